import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from .chains import DEFAULT_EXPLORERS, ExplorerEndpoint
from .schemas import TokenBalance, TokenInfo, Transaction, TransactionType, WalletBalance, WalletConfig
from .upstream import (
    DEFAULT_EVM_DECIMALS,
    EvmTokenHolding,
    EvmTokenTxRecord,
    EvmTxRecord,
    ExplorerEnvelope,
    MalformedResponseError,
    parse_decimals,
    parse_record,
    parse_records,
)

logger = logging.getLogger(__name__)

TX_PAGE_SIZE = 50
TOKEN_PAGE_SIZE = 100


class ExplorerError(RuntimeError):
    pass


def classify_direction(sender: str, recipient: str | None, wallet: str) -> TransactionType:
    sender = (sender or '').lower()
    recipient = (recipient or '').lower()
    wallet = wallet.lower()
    if not recipient or sender == recipient:
        return 'contract'
    if sender == wallet:
        return 'out'
    if recipient == wallet:
        return 'in'
    return 'contract'


def _unwrap(payload: Any) -> Any:
    envelope = parse_record(ExplorerEnvelope, payload)
    if envelope.status == '1':
        return envelope.result
    # Etherscan reports an empty account as status 0 with an empty list.
    if envelope.status == '0' and envelope.result == [] and envelope.message.lower().startswith('no '):
        return []
    raise ExplorerError(f'Explorer error: status={envelope.status} message={envelope.message} result={envelope.result}')


def normalize_native_tx(record: EvmTxRecord, wallet: str) -> Transaction:
    return Transaction(
        hash=record.hash,
        from_=record.from_,
        to=record.to or '',
        value=record.value,
        timestamp=record.time_stamp,
        type=classify_direction(record.from_, record.to, wallet),
        status='failed' if record.is_error == '1' else 'confirmed',
        gas_used=record.gas_used,
        gas_price=record.gas_price,
        block_number=record.block_number,
    )


def normalize_token_tx(record: EvmTokenTxRecord, wallet: str) -> Transaction:
    return Transaction(
        hash=record.hash,
        from_=record.from_,
        to=record.to or '',
        value=record.value,
        token=TokenInfo(
            address=record.contract_address,
            symbol=record.token_symbol,
            name=record.token_name or None,
            decimals=parse_decimals(record.token_decimal, DEFAULT_EVM_DECIMALS),
        ),
        timestamp=record.time_stamp,
        type=classify_direction(record.from_, record.to, wallet),
        status='confirmed',
        gas_used=record.gas_used,
        gas_price=record.gas_price,
        block_number=record.block_number,
    )


def merge_transactions(native: list[Transaction], tokens: list[Transaction]) -> list[Transaction]:
    merged: list[Transaction] = []
    seen: set[str] = set()
    for tx in [*native, *tokens]:
        if tx.hash in seen:
            continue
        seen.add(tx.hash)
        merged.append(tx)
    merged.sort(key=lambda tx: tx.timestamp, reverse=True)
    return merged


def normalize_holding(holding: EvmTokenHolding) -> TokenBalance | None:
    try:
        quantity = int(holding.token_quantity)
    except ValueError:
        quantity = 0
    if quantity <= 0:
        return None
    return TokenBalance(
        token=TokenInfo(
            address=holding.token_address,
            symbol=holding.token_symbol,
            name=holding.token_name or None,
            decimals=parse_decimals(holding.token_divisor, DEFAULT_EVM_DECIMALS),
        ),
        balance=holding.token_quantity,
    )


class EvmExplorerClient:
    """Etherscan-family adapter: one explorer per chain, looked up in ``explorers``."""

    def __init__(
        self,
        explorers: Mapping[str, ExplorerEndpoint] | None = None,
        api_keys: Mapping[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
        timeout_s: float | None = None,
        page_size: int = TX_PAGE_SIZE,
    ) -> None:
        self.explorers = dict(DEFAULT_EXPLORERS if explorers is None else explorers)
        self.api_keys = dict(api_keys or {})
        self.timeout_s = timeout_s
        self.page_size = page_size
        self._client = client

    def supports(self, chain: str) -> bool:
        return chain in self.explorers

    async def _get(self, chain: str, params: dict[str, Any]) -> Any:
        endpoint = self.explorers[chain]
        query = {'module': 'account', **params}
        api_key = self.api_keys.get(chain)
        if api_key:
            query['apikey'] = api_key

        if self._client is not None:
            response = await self._client.get(endpoint.api_url, params=query)
        else:
            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                response = await client.get(endpoint.api_url, params=query)
        response.raise_for_status()
        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponseError(f'Explorer returned a non-JSON body for {chain}') from exc
        return _unwrap(payload)

    def _list_params(self, action: str, address: str) -> dict[str, Any]:
        return {
            'action': action,
            'address': address,
            'startblock': 0,
            'endblock': 99999999,
            'page': 1,
            'offset': self.page_size,
            'sort': 'desc',
        }

    async def _fetch_native_txs(self, wallet: WalletConfig) -> list[Transaction]:
        try:
            result = await self._get(wallet.chain, self._list_params('txlist', wallet.address))
            records = parse_records(EvmTxRecord, result)
        except (httpx.HTTPError, ExplorerError, MalformedResponseError) as exc:
            logger.warning('txlist failed for %s on %s: %s', wallet.address, wallet.chain, exc)
            return []
        return [normalize_native_tx(r, wallet.address) for r in records[: self.page_size]]

    async def _fetch_token_txs(self, wallet: WalletConfig) -> list[Transaction]:
        try:
            result = await self._get(wallet.chain, self._list_params('tokentx', wallet.address))
            records = parse_records(EvmTokenTxRecord, result)
        except (httpx.HTTPError, ExplorerError, MalformedResponseError) as exc:
            logger.warning('tokentx failed for %s on %s: %s', wallet.address, wallet.chain, exc)
            return []
        return [normalize_token_tx(r, wallet.address) for r in records[: self.page_size]]

    async def fetch_transactions(self, wallet: WalletConfig) -> list[Transaction]:
        if not self.supports(wallet.chain):
            logger.debug('No explorer configured for chain %s; skipping %s', wallet.chain, wallet.address)
            return []
        native = await self._fetch_native_txs(wallet)
        tokens = await self._fetch_token_txs(wallet)
        return merge_transactions(native, tokens)

    async def _fetch_native_balance(self, wallet: WalletConfig) -> str:
        try:
            result = await self._get(
                wallet.chain, {'action': 'balance', 'address': wallet.address, 'tag': 'latest'}
            )
        except (httpx.HTTPError, ExplorerError, MalformedResponseError) as exc:
            logger.warning('balance failed for %s on %s: %s', wallet.address, wallet.chain, exc)
            return '0'
        if not isinstance(result, (str, int)):
            logger.warning('Unexpected balance result for %s on %s: %r', wallet.address, wallet.chain, result)
            return '0'
        return str(result)

    async def _fetch_token_balances(self, wallet: WalletConfig) -> list[TokenBalance]:
        try:
            result = await self._get(
                wallet.chain,
                {
                    'action': 'addresstokenbalance',
                    'address': wallet.address,
                    'page': 1,
                    'offset': TOKEN_PAGE_SIZE,
                },
            )
            holdings = parse_records(EvmTokenHolding, result)
        except (httpx.HTTPError, ExplorerError, MalformedResponseError) as exc:
            logger.warning('addresstokenbalance failed for %s on %s: %s', wallet.address, wallet.chain, exc)
            return []
        balances = [normalize_holding(h) for h in holdings]
        return [b for b in balances if b is not None]

    async def fetch_balance(self, wallet: WalletConfig) -> WalletBalance:
        if not self.supports(wallet.chain):
            logger.debug('No explorer configured for chain %s; skipping %s', wallet.chain, wallet.address)
            return WalletBalance(native='0', tokens=[])
        native, tokens = await asyncio.gather(
            self._fetch_native_balance(wallet),
            self._fetch_token_balances(wallet),
        )
        return WalletBalance(native=native, tokens=tokens)
