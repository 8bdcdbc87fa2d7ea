import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, HTTPException, Query, Response

from .chains import DEFAULT_EXPLORERS, SOLANA_CHAIN
from .datadog_client import datadog_config_summary
from .formatting import explorer_tx_url, format_balance, shorten_address
from .logging_config import setup_logging
from .schemas import PollerStatus, Transaction, UpdateResponse, WalletActivity, WalletBalance, WalletConfig
from .settings import settings
from .tracker import TrackerOptions, WalletTracker

logger = logging.getLogger(__name__)


def parse_tracked_wallets(raw: str) -> list[WalletConfig]:
    """Parse ``chain:address[:label]`` entries separated by commas."""
    wallets: list[WalletConfig] = []
    for entry in raw.split(','):
        entry = entry.strip()
        if not entry:
            continue
        parts = entry.split(':', 2)
        if len(parts) < 2 or not parts[0] or not parts[1]:
            raise ValueError(f'Invalid TRACKED_WALLETS entry: {entry!r}')
        label = parts[2] if len(parts) == 3 and parts[2] else None
        wallets.append(WalletConfig(chain=parts[0], address=parts[1], label=label))
    return wallets


def _native_unit(chain: str) -> tuple[int, str]:
    if chain == SOLANA_CHAIN:
        return 9, 'SOL'
    endpoint = DEFAULT_EXPLORERS.get(chain)
    return 18, endpoint.native_symbol if endpoint else '?'


def _wallet_name(wallet: WalletConfig) -> str:
    return wallet.label or shorten_address(wallet.address)


def log_transaction(tx: Transaction, wallet: WalletConfig) -> None:
    logger.info(
        'New %s transaction for %s on %s: %s %s',
        tx.type,
        _wallet_name(wallet),
        wallet.chain,
        tx.hash,
        explorer_tx_url(wallet.chain, tx.hash),
    )


def log_balance_change(balance: WalletBalance, wallet: WalletConfig) -> None:
    decimals, symbol = _native_unit(wallet.chain)
    try:
        amount = format_balance(balance.native, decimals)
    except ValueError:
        amount = balance.native
    logger.info('Balance of %s on %s is now %s %s', _wallet_name(wallet), wallet.chain, amount, symbol)


def log_error(error: Exception, wallet: WalletConfig) -> None:
    logger.warning('Update failed for %s on %s: %s', _wallet_name(wallet), wallet.chain, error)


def create_app(tracker: WalletTracker | None = None, autostart: bool | None = None) -> FastAPI:
    if tracker is None:
        tracker = WalletTracker(
            TrackerOptions.from_settings(
                on_transaction=log_transaction,
                on_balance_change=log_balance_change,
                on_error=log_error,
            )
        )
    if autostart is None:
        autostart = settings.tracker_autostart

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        for config in parse_tracked_wallets(settings.tracked_wallets):
            tracker.add_wallet(config)
        if autostart:
            tracker.start()
        try:
            yield
        finally:
            tracker.stop()
            await tracker.wait_for_updates()

    app = FastAPI(title='wallet tracker API', version='0.1.0', lifespan=lifespan)
    app.state.tracker = tracker

    @app.get('/health')
    def health() -> dict[str, str]:
        return {'status': 'ok'}

    @app.get('/v1/wallets', response_model=list[WalletConfig])
    def list_wallets() -> list[WalletConfig]:
        return tracker.get_wallets()

    @app.post('/v1/wallets', response_model=WalletConfig, status_code=201)
    def add_wallet(config: WalletConfig) -> WalletConfig:
        tracker.add_wallet(config)
        return config

    @app.delete('/v1/wallets/{chain}/{address}', status_code=204)
    def remove_wallet(chain: str, address: str) -> Response:
        tracker.remove_wallet(chain, address)
        return Response(status_code=204)

    @app.get('/v1/wallets/{chain}/{address}/activity', response_model=WalletActivity)
    def wallet_activity(chain: str, address: str) -> WalletActivity:
        activity = tracker.get_activity(chain, address)
        if activity is None:
            raise HTTPException(status_code=404, detail='No activity recorded for this wallet')
        return activity

    @app.get('/v1/wallets/{chain}/{address}/transactions', response_model=list[Transaction])
    def wallet_transactions(
        chain: str, address: str, limit: int = Query(default=20, ge=1, le=50)
    ) -> list[Transaction]:
        return tracker.get_transaction_history(chain, address, limit)

    @app.post('/v1/update', response_model=UpdateResponse)
    async def run_update() -> UpdateResponse:
        await tracker.update()
        return UpdateResponse(wallets=len(tracker.get_wallets()))

    def _status() -> PollerStatus:
        return PollerStatus(
            state=tracker.state,
            poll_interval_seconds=tracker.options.poll_interval,
            wallets=len(tracker.get_wallets()),
        )

    @app.get('/v1/poller', response_model=PollerStatus)
    def poller_status() -> PollerStatus:
        return _status()

    @app.post('/v1/poller/start', response_model=PollerStatus)
    async def poller_start() -> PollerStatus:
        tracker.start()
        return _status()

    @app.post('/v1/poller/stop', response_model=PollerStatus)
    async def poller_stop() -> PollerStatus:
        tracker.stop()
        return _status()

    @app.get('/v1/observability')
    def observability() -> dict:
        return datadog_config_summary()

    return app


app = create_app()


def run() -> None:
    setup_logging()
    uvicorn.run(app, host=settings.host, port=settings.port)
