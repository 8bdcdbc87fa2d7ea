from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

TransactionType = Literal['in', 'out', 'swap', 'approval', 'contract']
TransactionStatus = Literal['pending', 'confirmed', 'failed']


def wallet_key(chain: str, address: str) -> str:
    return f'{chain}:{address}'


class WalletConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str = Field(..., min_length=1, description='Wallet address as used by the chain explorer')
    chain: str = Field(..., min_length=1, description='Chain identifier, e.g. ethereum or solana')
    label: str | None = None

    @property
    def key(self) -> str:
        return wallet_key(self.chain, self.address)


class TokenInfo(BaseModel):
    address: str
    symbol: str
    name: str | None = None
    decimals: int


class TokenBalance(BaseModel):
    token: TokenInfo
    balance: str
    value_usd: float | None = None


class Transaction(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    hash: str
    from_: str = Field(alias='from')
    to: str = ''
    value: str
    value_usd: float | None = None
    token: TokenInfo | None = None
    timestamp: int
    type: TransactionType
    status: TransactionStatus
    gas_used: str | None = None
    gas_price: str | None = None
    block_number: int | None = None


class WalletBalance(BaseModel):
    native: str = '0'
    native_usd: float | None = None
    tokens: list[TokenBalance] = Field(default_factory=list)
    total_usd: float | None = None


class WalletActivity(BaseModel):
    wallet: WalletConfig
    transactions: list[Transaction]
    balance: WalletBalance
    last_updated: datetime


class TraceStep(BaseModel):
    step: str
    duration_ms: int
    ok: bool
    detail: str | None = None


class UpdateResponse(BaseModel):
    wallets: int


class PollerStatus(BaseModel):
    state: Literal['idle', 'polling']
    poll_interval_seconds: float
    wallets: int
