"""Typed views of raw explorer, indexer and RPC payloads.

Every payload coming off the wire goes through one of the ``parse_*`` helpers
below. A record that does not match the documented shape raises
``MalformedResponseError`` instead of leaking half-filled fields into the
normalized models.
"""

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

DEFAULT_EVM_DECIMALS = 18
DEFAULT_SPL_DECIMALS = 9

ModelT = TypeVar('ModelT', bound=BaseModel)


class MalformedResponseError(ValueError):
    pass


class _Record(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True)


class ExplorerEnvelope(_Record):
    status: str
    message: str = ''
    result: Any = None


class EvmTxRecord(_Record):
    hash: str
    from_: str = Field(alias='from')
    to: str | None = None
    value: str = '0'
    time_stamp: int = Field(alias='timeStamp')
    is_error: str = Field(default='0', alias='isError')
    gas_used: str | None = Field(default=None, alias='gasUsed')
    gas_price: str | None = Field(default=None, alias='gasPrice')
    block_number: int | None = Field(default=None, alias='blockNumber')


class EvmTokenTxRecord(EvmTxRecord):
    contract_address: str = Field(alias='contractAddress')
    token_symbol: str = Field(default='', alias='tokenSymbol')
    token_name: str | None = Field(default=None, alias='tokenName')
    token_decimal: str | None = Field(default=None, alias='tokenDecimal')


class EvmTokenHolding(_Record):
    token_address: str = Field(alias='TokenAddress')
    token_name: str | None = Field(default=None, alias='TokenName')
    token_symbol: str = Field(default='', alias='TokenSymbol')
    token_quantity: str = Field(default='0', alias='TokenQuantity')
    token_divisor: str | None = Field(default=None, alias='TokenDivisor')


class SolanaTxRecord(_Record):
    tx_hash: str = Field(alias='txHash')
    block_time: int | None = Field(default=None, alias='blockTime')
    slot: int | None = None
    fee: int | None = None
    status: str = ''
    signer: list[str] = Field(default_factory=list)
    lamport: int | None = None


class SolanaTokenAmount(_Record):
    amount: str = '0'
    decimals: int | None = None
    ui_amount: float | None = Field(default=None, alias='uiAmount')


class SolanaTokenAccount(_Record):
    token_address: str = Field(alias='tokenAddress')
    token_symbol: str = Field(default='', alias='tokenSymbol')
    token_name: str | None = Field(default=None, alias='tokenName')
    token_amount: SolanaTokenAmount = Field(alias='tokenAmount')


class RpcEnvelope(_Record):
    result: Any = None
    error: Any = None


def parse_record(model: type[ModelT], raw: Any) -> ModelT:
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise MalformedResponseError(f'Malformed {model.__name__}: {exc.error_count()} error(s)') from exc


def parse_records(model: type[ModelT], raw: Any) -> list[ModelT]:
    if not isinstance(raw, list):
        raise MalformedResponseError(f'Expected a list of {model.__name__}, got {type(raw).__name__}')
    return [parse_record(model, item) for item in raw]


def parse_decimals(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
