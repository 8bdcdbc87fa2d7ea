import pytest

from wallet_tracker import datadog_client
from wallet_tracker.observability import TraceCollector
from wallet_tracker.schemas import TraceStep, WalletConfig

from helpers import WALLET


class _DummyResponse:
    def raise_for_status(self):
        return None


class _DummyClient:
    last_request = None

    def __init__(self, *_, **__):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def post(self, url, headers, json):
        _DummyClient.last_request = {'url': url, 'headers': headers, 'json': json}
        return _DummyResponse()


def test_trace_collector_records_success_and_failure():
    trace = TraceCollector('ethereum:0x1')

    with trace.step('fetch_transactions', detail='page=1'):
        pass
    with pytest.raises(RuntimeError):
        with trace.step('fetch_balance'):
            raise RuntimeError('explorer down')

    ok, failed = trace.as_list()
    assert ok.step == 'fetch_transactions'
    assert ok.ok is True
    assert ok.detail == 'page=1'
    assert failed.ok is False
    assert failed.detail == 'explorer down'


@pytest.mark.asyncio
async def test_update_log_skipped_without_api_key(monkeypatch):
    monkeypatch.setattr(datadog_client.settings, 'dd_api_key', None)
    monkeypatch.setattr(datadog_client.httpx, 'AsyncClient', _DummyClient)
    _DummyClient.last_request = None

    await datadog_client.send_wallet_update_log(
        wallet=WalletConfig(address=WALLET, chain='ethereum'),
        trace=[],
        new_transactions=0,
        balance_changed=False,
    )

    assert _DummyClient.last_request is None


@pytest.mark.asyncio
async def test_update_log_ships_summary(monkeypatch):
    monkeypatch.setattr(datadog_client.settings, 'dd_api_key', 'dd-key')
    monkeypatch.setattr(datadog_client.settings, 'dd_send_logs', True)
    monkeypatch.setattr(datadog_client.settings, 'dd_site', 'datadoghq.eu')
    monkeypatch.setattr(datadog_client.httpx, 'AsyncClient', _DummyClient)

    await datadog_client.send_wallet_update_log(
        wallet=WalletConfig(address=WALLET, chain='base', label='hot'),
        trace=[TraceStep(step='fetch_balance', duration_ms=12, ok=True)],
        new_transactions=2,
        balance_changed=True,
    )

    request = _DummyClient.last_request
    assert request['url'] == 'https://http-intake.logs.datadoghq.eu/api/v2/logs'
    assert request['headers']['DD-API-KEY'] == 'dd-key'
    [entry] = request['json']
    assert entry['message'] == 'wallet_update_completed'
    assert entry['chain'] == 'base'
    assert entry['new_transactions'] == 2
    assert entry['balance_changed'] is True
    assert entry['trace'][0]['step'] == 'fetch_balance'


def test_config_summary_hides_api_key(monkeypatch):
    monkeypatch.setattr(datadog_client.settings, 'dd_api_key', 'secret')

    summary = datadog_client.datadog_config_summary()

    assert summary['dd_api_key_present'] is True
    assert 'secret' not in summary.values()
