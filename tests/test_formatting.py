import pytest

from wallet_tracker.formatting import explorer_tx_url, format_balance, shorten_address


@pytest.mark.parametrize(
    ('value', 'decimals', 'expected'),
    [
        ('1500000000000000000', 18, '1.500000'),
        ('1', 18, '0.000000'),
        ('123456789', 9, '0.123456'),
        ('2500000', 6, '2.500000'),
        ('150', 2, '1.50'),
        ('42', 0, '42'),
    ],
)
def test_format_balance(value, decimals, expected):
    assert format_balance(value, decimals) == expected


def test_format_balance_rejects_non_integer_input():
    with pytest.raises(ValueError):
        format_balance('1.5', 18)


def test_shorten_address():
    assert shorten_address('0x1234567890abcdef', 4) == '0x1234...cdef'
    assert shorten_address('0x1234567890abcdef', 2) == '0x12...ef'
    assert shorten_address('0x1234') == '0x1234'


def test_explorer_tx_url_per_chain():
    assert explorer_tx_url('ethereum', '0xabc') == 'https://etherscan.io/tx/0xabc'
    assert explorer_tx_url('base', '0xabc') == 'https://basescan.org/tx/0xabc'
    assert explorer_tx_url('solana', 'sig') == 'https://solscan.io/tx/sig'
    assert explorer_tx_url('unknown', '0xabc') == ''
