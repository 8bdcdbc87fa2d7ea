import asyncio
import logging
from typing import Any

import httpx

from .schemas import TokenBalance, TokenInfo, Transaction, WalletBalance, WalletConfig
from .upstream import (
    DEFAULT_SPL_DECIMALS,
    MalformedResponseError,
    RpcEnvelope,
    SolanaTokenAccount,
    SolanaTxRecord,
    parse_record,
    parse_records,
)

logger = logging.getLogger(__name__)

SIGNATURE_LIMIT = 50


class SolanaRPCError(RuntimeError):
    pass


class SolanaRateLimitError(SolanaRPCError):
    pass


def _unwrap_list(payload: Any) -> Any:
    # The indexer answers either with a bare list or with {success, data}.
    if isinstance(payload, dict) and 'data' in payload:
        return payload['data']
    return payload


def normalize_solana_tx(record: SolanaTxRecord, wallet: str) -> Transaction:
    return Transaction(
        hash=record.tx_hash,
        from_=record.signer[0] if record.signer else wallet,
        to='',
        value=str(record.lamport or 0),
        timestamp=record.block_time or 0,
        type='contract',
        status='confirmed' if record.status.lower() == 'success' else 'failed',
        block_number=record.slot,
    )


def normalize_token_account(account: SolanaTokenAccount) -> TokenBalance | None:
    amount = account.token_amount
    if not amount.ui_amount or amount.ui_amount <= 0:
        return None
    return TokenBalance(
        token=TokenInfo(
            address=account.token_address,
            symbol=account.token_symbol,
            name=account.token_name or None,
            decimals=DEFAULT_SPL_DECIMALS if amount.decimals is None else amount.decimals,
        ),
        balance=amount.amount,
    )


class SolanaClient:
    """Solana adapter: JSON-RPC for lamports, a public indexer for history and SPL tokens."""

    def __init__(
        self,
        rpc_url: str,
        indexer_url: str,
        indexer_token: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout_s: float | None = None,
        limit: int = SIGNATURE_LIMIT,
    ) -> None:
        self.rpc_url = rpc_url
        self.indexer_url = indexer_url.rstrip('/')
        self.indexer_token = indexer_token
        self.timeout_s = timeout_s
        self.limit = limit
        self._client = client

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(method, url, **kwargs)
        async with httpx.AsyncClient(timeout=self.timeout_s) as client:
            return await client.request(method, url, **kwargs)

    async def _rpc(self, method: str, params: list[Any]) -> Any:
        payload = {'jsonrpc': '2.0', 'id': 1, 'method': method, 'params': params}
        try:
            response = await self._send('POST', self.rpc_url, json=payload)
            response.raise_for_status()
            data = parse_record(RpcEnvelope, response.json())
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 429:
                raise SolanaRateLimitError('Solana RPC rate limited (HTTP 429)') from exc
            raise SolanaRPCError(f'Solana RPC HTTP error: {exc.response.status_code}') from exc
        except httpx.HTTPError as exc:
            raise SolanaRPCError(f'Solana RPC transport error: {exc}') from exc
        except ValueError as exc:
            raise SolanaRPCError(f'Solana RPC returned an unreadable body: {exc}') from exc
        if data.error:
            raise SolanaRPCError(str(data.error))
        return data.result

    async def _indexer(self, path: str, params: dict[str, Any]) -> Any:
        headers = {'accept': 'application/json'}
        if self.indexer_token:
            headers['token'] = self.indexer_token
        response = await self._send('GET', f'{self.indexer_url}{path}', params=params, headers=headers)
        response.raise_for_status()
        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponseError(f'Indexer returned a non-JSON body for {path}') from exc
        return _unwrap_list(payload)

    async def fetch_transactions(self, wallet: WalletConfig) -> list[Transaction]:
        try:
            result = await self._indexer(
                '/account/transactions', {'account': wallet.address, 'limit': self.limit}
            )
            records = parse_records(SolanaTxRecord, result)
        except (httpx.HTTPError, MalformedResponseError) as exc:
            logger.warning('Solana transactions failed for %s: %s', wallet.address, exc)
            return []
        transactions = [normalize_solana_tx(r, wallet.address) for r in records[: self.limit]]
        transactions.sort(key=lambda tx: tx.timestamp, reverse=True)
        return transactions

    async def _fetch_lamports(self, wallet: WalletConfig) -> str:
        try:
            result = await self._rpc('getBalance', [wallet.address])
        except SolanaRPCError as exc:
            logger.warning('getBalance failed for %s: %s', wallet.address, exc)
            return '0'
        value = result.get('value') if isinstance(result, dict) else result
        if not isinstance(value, int):
            logger.warning('Unexpected getBalance result for %s: %r', wallet.address, result)
            return '0'
        return str(value)

    async def _fetch_token_balances(self, wallet: WalletConfig) -> list[TokenBalance]:
        try:
            result = await self._indexer('/account/tokens', {'account': wallet.address})
            accounts = parse_records(SolanaTokenAccount, result)
        except (httpx.HTTPError, MalformedResponseError) as exc:
            logger.warning('Solana token accounts failed for %s: %s', wallet.address, exc)
            return []
        balances = [normalize_token_account(a) for a in accounts]
        return [b for b in balances if b is not None]

    async def fetch_balance(self, wallet: WalletConfig) -> WalletBalance:
        lamports, tokens = await asyncio.gather(
            self._fetch_lamports(wallet),
            self._fetch_token_balances(wallet),
        )
        return WalletBalance(native=lamports, tokens=tokens)
