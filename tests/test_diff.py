from datetime import UTC, datetime

from wallet_tracker.diff import BalanceChangeEvent, TransactionEvent, diff_activity
from wallet_tracker.schemas import WalletActivity, WalletBalance, WalletConfig

from helpers import WALLET, make_tx

WALLET_CONFIG = WalletConfig(address=WALLET, chain='ethereum')


def _activity(hashes: list[str], native: str = '1000') -> WalletActivity:
    return WalletActivity(
        wallet=WALLET_CONFIG,
        transactions=[make_tx(h, 100 - i) for i, h in enumerate(hashes)],
        balance=WalletBalance(native=native, tokens=[]),
        last_updated=datetime.now(UTC),
    )


def test_first_snapshot_is_a_baseline():
    assert diff_activity(None, _activity(['A', 'B'], native='5')) == []


def test_only_unseen_hashes_become_events():
    events = diff_activity(_activity(['A', 'B']), _activity(['B', 'C']))

    assert len(events) == 1
    assert isinstance(events[0], TransactionEvent)
    assert events[0].transaction.hash == 'C'
    assert events[0].wallet == WALLET_CONFIG


def test_new_transactions_keep_list_order():
    events = diff_activity(_activity(['A']), _activity(['D', 'C', 'A']))

    assert [e.transaction.hash for e in events] == ['D', 'C']


def test_balance_compared_as_exact_strings():
    changed = diff_activity(_activity([], native='1000'), _activity([], native='1000.0'))
    unchanged = diff_activity(_activity([], native='1000'), _activity([], native='1000'))

    assert len(changed) == 1
    assert isinstance(changed[0], BalanceChangeEvent)
    assert changed[0].balance.native == '1000.0'
    assert unchanged == []


def test_balance_event_follows_transaction_events():
    events = diff_activity(_activity(['A'], native='1'), _activity(['B', 'A'], native='2'))

    assert [type(e) for e in events] == [TransactionEvent, BalanceChangeEvent]
