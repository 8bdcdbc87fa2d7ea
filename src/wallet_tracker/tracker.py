from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal

import httpx

from .chains import SOLANA_CHAIN, ExplorerEndpoint
from .datadog_client import send_wallet_update_log
from .diff import BalanceChangeEvent, TrackerEvent, TransactionEvent, diff_activity
from .evm_client import EvmExplorerClient
from .observability import TraceCollector
from .schemas import Transaction, WalletActivity, WalletBalance, WalletConfig, wallet_key
from .settings import Settings, settings
from .solana_client import SolanaClient

TransactionCallback = Callable[[Transaction, WalletConfig], Any]
BalanceCallback = Callable[[WalletBalance, WalletConfig], Any]
ErrorCallback = Callable[[Exception, WalletConfig], Any]


@dataclass(slots=True)
class TrackerOptions:
    poll_interval: float = 30.0
    on_transaction: TransactionCallback | None = None
    on_balance_change: BalanceCallback | None = None
    on_error: ErrorCallback | None = None
    etherscan_api_key: str | None = None
    bscscan_api_key: str | None = None
    polygonscan_api_key: str | None = None
    arbiscan_api_key: str | None = None
    basescan_api_key: str | None = None

    @classmethod
    def from_settings(cls, config: Settings | None = None, **callbacks: Any) -> TrackerOptions:
        config = config or settings
        return cls(
            poll_interval=config.poll_interval_seconds,
            etherscan_api_key=config.etherscan_api_key,
            bscscan_api_key=config.bscscan_api_key,
            polygonscan_api_key=config.polygonscan_api_key,
            arbiscan_api_key=config.arbiscan_api_key,
            basescan_api_key=config.basescan_api_key,
            **callbacks,
        )

    def api_keys(self) -> dict[str, str]:
        keys = {
            'ethereum': self.etherscan_api_key,
            'bsc': self.bscscan_api_key,
            'polygon': self.polygonscan_api_key,
            'arbitrum': self.arbiscan_api_key,
            'base': self.basescan_api_key,
        }
        return {chain: key for chain, key in keys.items() if key}


async def _invoke(callback: Callable[..., Any], *args: Any) -> None:
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class WalletTracker:
    """Polls tracked wallets and reports new transactions and balance changes.

    Wallets live in an in-memory registry keyed by ``chain:address``; the last
    snapshot of each wallet lives in an activity store under the same key.
    ``update()`` walks the registry one wallet at a time. ``start()`` runs it
    immediately and then every ``poll_interval`` seconds until ``stop()``.
    """

    def __init__(
        self,
        options: TrackerOptions | None = None,
        *,
        explorers: Mapping[str, ExplorerEndpoint] | None = None,
        client: httpx.AsyncClient | None = None,
        evm: EvmExplorerClient | None = None,
        solana: SolanaClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.options = options or TrackerOptions()
        self.logger = logger or logging.getLogger(__name__)
        self.evm = evm or EvmExplorerClient(
            explorers=explorers,
            api_keys=self.options.api_keys(),
            client=client,
            timeout_s=settings.request_timeout_seconds,
            page_size=settings.tx_page_size,
        )
        self.solana = solana or SolanaClient(
            rpc_url=settings.solana_rpc_url,
            indexer_url=settings.solana_indexer_url,
            indexer_token=settings.solscan_api_key,
            client=client,
            timeout_s=settings.request_timeout_seconds,
            limit=settings.tx_page_size,
        )
        self._wallets: dict[str, WalletConfig] = {}
        self._activities: dict[str, WalletActivity] = {}
        self._timer_task: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()

    # ---------------------------
    # Registry
    # ---------------------------
    def add_wallet(self, config: WalletConfig) -> None:
        self._wallets[config.key] = config
        self.logger.info('Tracking %s on %s', config.address, config.chain)

    def remove_wallet(self, chain: str, address: str) -> None:
        key = wallet_key(chain, address)
        self._wallets.pop(key, None)
        self._activities.pop(key, None)

    def get_wallets(self) -> list[WalletConfig]:
        return list(self._wallets.values())

    def get_activity(self, chain: str, address: str) -> WalletActivity | None:
        return self._activities.get(wallet_key(chain, address))

    def get_transaction_history(self, chain: str, address: str, limit: int = 20) -> list[Transaction]:
        activity = self.get_activity(chain, address)
        if activity is None:
            return []
        return activity.transactions[:limit]

    # ---------------------------
    # Adapter dispatch
    # ---------------------------
    async def fetch_transactions(self, wallet: WalletConfig) -> list[Transaction]:
        if wallet.chain == SOLANA_CHAIN:
            return await self.solana.fetch_transactions(wallet)
        return await self.evm.fetch_transactions(wallet)

    async def fetch_balance(self, wallet: WalletConfig) -> WalletBalance:
        if wallet.chain == SOLANA_CHAIN:
            return await self.solana.fetch_balance(wallet)
        return await self.evm.fetch_balance(wallet)

    # ---------------------------
    # Update cycle
    # ---------------------------
    async def update(self) -> None:
        wallets = self.get_wallets()
        self.logger.debug('Update cycle started for %d wallets', len(wallets))
        for wallet in wallets:
            try:
                await self._update_wallet(wallet)
            except Exception as exc:  # noqa: BLE001
                self.logger.error(
                    'Failed to update wallet %s on %s: %s', wallet.address, wallet.chain, exc, exc_info=True
                )
                await self._report_error(exc, wallet)

    async def _update_wallet(self, wallet: WalletConfig) -> None:
        trace = TraceCollector(wallet.key)
        with trace.step('fetch_transactions'):
            transactions = await self.fetch_transactions(wallet)
        with trace.step('fetch_balance'):
            balance = await self.fetch_balance(wallet)

        registered = self._wallets.get(wallet.key)
        if registered is None:
            self.logger.debug('Wallet %s was removed during update; dropping snapshot', wallet.key)
            return
        wallet = registered

        current = WalletActivity(
            wallet=wallet,
            transactions=transactions,
            balance=balance,
            last_updated=datetime.now(UTC),
        )
        previous = self._activities.get(wallet.key)
        self._activities[wallet.key] = current

        events = diff_activity(previous, current)
        await self._dispatch(events)
        await self._ship_trace(wallet, trace, events)

    async def _dispatch(self, events: list[TrackerEvent]) -> None:
        for event in events:
            if isinstance(event, TransactionEvent):
                if self.options.on_transaction:
                    await _invoke(self.options.on_transaction, event.transaction, event.wallet)
            elif isinstance(event, BalanceChangeEvent):
                if self.options.on_balance_change:
                    await _invoke(self.options.on_balance_change, event.balance, event.wallet)

    async def _report_error(self, error: Exception, wallet: WalletConfig) -> None:
        if not self.options.on_error:
            return
        try:
            await _invoke(self.options.on_error, error, wallet)
        except Exception as exc:  # noqa: BLE001
            self.logger.warning('on_error callback failed for %s: %s', wallet.key, exc, exc_info=True)

    async def _ship_trace(self, wallet: WalletConfig, trace: TraceCollector, events: list[TrackerEvent]) -> None:
        new_transactions = sum(1 for e in events if isinstance(e, TransactionEvent))
        balance_changed = any(isinstance(e, BalanceChangeEvent) for e in events)
        self.logger.debug(
            'Updated %s in %dms; new_transactions=%d balance_changed=%s',
            wallet.key,
            trace.total_ms,
            new_transactions,
            balance_changed,
        )
        try:
            await send_wallet_update_log(
                wallet=wallet,
                trace=trace.as_list(),
                new_transactions=new_transactions,
                balance_changed=balance_changed,
            )
        except Exception as exc:  # noqa: BLE001
            self.logger.warning('Datadog log shipping failed for %s: %s', wallet.key, exc)

    # ---------------------------
    # Poller lifecycle
    # ---------------------------
    @property
    def state(self) -> Literal['idle', 'polling']:
        return 'polling' if self._timer_task is not None else 'idle'

    def start(self) -> None:
        if self._timer_task is not None:
            self.logger.debug('Poller already running')
            return
        self.logger.info(
            'Wallet poller starting with %d wallets; interval=%ss',
            len(self._wallets),
            self.options.poll_interval,
        )
        self._spawn_update()
        self._timer_task = asyncio.create_task(self._run_timer(), name='wallet-tracker-poller')

    def stop(self) -> None:
        if self._timer_task is None:
            return
        self._timer_task.cancel()
        self._timer_task = None
        self.logger.info('Wallet poller stopped')

    def _spawn_update(self) -> None:
        task = asyncio.create_task(self.update())
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _run_timer(self) -> None:
        while True:
            await asyncio.sleep(self.options.poll_interval)
            self._spawn_update()

    async def wait_for_updates(self) -> None:
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)
