from dataclasses import dataclass

from .schemas import Transaction, WalletActivity, WalletBalance, WalletConfig


@dataclass(frozen=True, slots=True)
class TransactionEvent:
    transaction: Transaction
    wallet: WalletConfig


@dataclass(frozen=True, slots=True)
class BalanceChangeEvent:
    balance: WalletBalance
    wallet: WalletConfig


TrackerEvent = TransactionEvent | BalanceChangeEvent


def diff_activity(previous: WalletActivity | None, current: WalletActivity) -> list[TrackerEvent]:
    """Events implied by moving from ``previous`` to ``current``.

    The first snapshot of a wallet is a baseline and yields nothing. After
    that, every transaction whose hash was not in the previous snapshot is
    reported in list order, followed by at most one balance change. Balances
    are compared as strings, so ``'1000'`` and ``'1000.0'`` differ.
    """
    if previous is None:
        return []

    events: list[TrackerEvent] = []
    known = {tx.hash for tx in previous.transactions}
    for tx in current.transactions:
        if tx.hash not in known:
            events.append(TransactionEvent(transaction=tx, wallet=current.wallet))

    if previous.balance.native != current.balance.native:
        events.append(BalanceChangeEvent(balance=current.balance, wallet=current.wallet))
    return events
