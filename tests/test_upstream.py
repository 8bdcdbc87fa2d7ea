import pytest

from wallet_tracker.upstream import (
    EvmTxRecord,
    MalformedResponseError,
    SolanaTokenAccount,
    parse_decimals,
    parse_record,
    parse_records,
)


def test_evm_record_coerces_explorer_strings():
    record = parse_record(
        EvmTxRecord,
        {'hash': '0x1', 'from': '0xa', 'to': '', 'value': '7', 'timeStamp': '1700000000', 'blockNumber': '12', 'nonce': '3'},
    )

    assert record.from_ == '0xa'
    assert record.to == ''
    assert record.time_stamp == 1700000000
    assert record.block_number == 12
    assert record.is_error == '0'


def test_missing_required_field_is_malformed():
    with pytest.raises(MalformedResponseError):
        parse_record(EvmTxRecord, {'hash': '0x1', 'from': '0xa'})


def test_non_list_result_is_malformed():
    with pytest.raises(MalformedResponseError):
        parse_records(SolanaTokenAccount, 'Max rate limit reached')


def test_one_bad_record_fails_the_whole_list():
    good = {'tokenAddress': 'mint', 'tokenAmount': {'amount': '1', 'uiAmount': 1}}

    with pytest.raises(MalformedResponseError):
        parse_records(SolanaTokenAccount, [good, {'tokenAmount': {}}])


@pytest.mark.parametrize(('raw', 'expected'), [('6', 6), (8, 8), ('', 18), (None, 18), ('abc', 18)])
def test_parse_decimals_falls_back(raw, expected):
    assert parse_decimals(raw, 18) == expected
