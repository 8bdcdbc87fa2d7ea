from datetime import UTC, datetime
from typing import Any

import httpx

from .schemas import TraceStep, WalletConfig
from .settings import settings


def datadog_logs_enabled() -> bool:
    return bool(settings.dd_api_key and settings.dd_send_logs)


async def send_wallet_update_log(
    wallet: WalletConfig,
    trace: list[TraceStep],
    new_transactions: int,
    balance_changed: bool,
) -> None:
    if not datadog_logs_enabled():
        return

    url = f'https://http-intake.logs.{settings.dd_site}/api/v2/logs'
    payload = {
        'ddsource': 'python',
        'service': settings.dd_service,
        'ddtags': f'env:{settings.dd_env},version:{settings.dd_version},chain:{wallet.chain}',
        'hostname': 'wallet-tracker',
        'timestamp': datetime.now(UTC).isoformat(),
        'message': 'wallet_update_completed',
        'wallet': wallet.address,
        'chain': wallet.chain,
        'label': wallet.label,
        'trace': [step.model_dump() for step in trace],
        'new_transactions': new_transactions,
        'balance_changed': balance_changed,
    }
    headers = {'Content-Type': 'application/json', 'DD-API-KEY': settings.dd_api_key}

    async with httpx.AsyncClient(timeout=settings.request_timeout_seconds) as client:
        resp = await client.post(url, headers=headers, json=[payload])
        resp.raise_for_status()


def datadog_config_summary() -> dict[str, Any]:
    return {
        'dd_send_logs': settings.dd_send_logs,
        'dd_trace_enabled': settings.dd_trace_enabled,
        'dd_site': settings.dd_site,
        'dd_service': settings.dd_service,
        'dd_env': settings.dd_env,
        'dd_version': settings.dd_version,
        'dd_api_key_present': bool(settings.dd_api_key),
    }
