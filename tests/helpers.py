import json
from typing import Any

import httpx

from wallet_tracker.schemas import Transaction, WalletBalance, WalletConfig

WALLET = '0xAbC0000000000000000000000000000000000001'
OTHER = '0x9990000000000000000000000000000000000009'


def make_tx(tx_hash: str, timestamp: int = 0, **overrides: Any) -> Transaction:
    fields = {
        'hash': tx_hash,
        'from': OTHER,
        'to': WALLET,
        'value': '1',
        'timestamp': timestamp,
        'type': 'in',
        'status': 'confirmed',
    }
    fields.update(overrides)
    return Transaction.model_validate(fields)


def explorer_ok(result: Any) -> dict[str, Any]:
    return {'status': '1', 'message': 'OK', 'result': result}


class RecordingHandler:
    """MockTransport handler that answers from a route table and records requests.

    Routes are keyed by the explorer ``action`` query param, by URL path for
    REST calls, or by JSON-RPC method for POST bodies. A value may be a JSON
    payload, an ``httpx.Response`` or an exception to raise.
    """

    def __init__(self, routes: dict[str, Any]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def _route_key(self, request: httpx.Request) -> str:
        if request.method == 'POST':
            return json.loads(request.content)['method']
        action = request.url.params.get('action')
        return action or request.url.path

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = self._route_key(request)
        if key not in self.routes:
            return httpx.Response(404, json={'detail': f'no route for {key}'})
        answer = self.routes[key]
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, httpx.Response):
            return answer
        return httpx.Response(200, json=answer)

    def keys(self) -> list[str]:
        return [self._route_key(r) for r in self.requests]


def mock_client(handler: RecordingHandler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class FakeAdapter:
    """Stands in for an explorer adapter; tests edit ``transactions``/``balances`` between cycles."""

    def __init__(self) -> None:
        self.transactions: dict[str, list[Transaction]] = {}
        self.balances: dict[str, WalletBalance] = {}
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple[str, str]] = []
        self.before_fetch = None

    async def fetch_transactions(self, wallet: WalletConfig) -> list[Transaction]:
        self.calls.append(('transactions', wallet.key))
        if self.before_fetch is not None:
            self.before_fetch(wallet)
        if wallet.key in self.failures:
            raise self.failures[wallet.key]
        return list(self.transactions.get(wallet.key, []))

    async def fetch_balance(self, wallet: WalletConfig) -> WalletBalance:
        self.calls.append(('balance', wallet.key))
        return self.balances.get(wallet.key, WalletBalance(native='0', tokens=[]))


