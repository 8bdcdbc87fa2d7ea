import pytest

from wallet_tracker.schemas import WalletConfig

from helpers import WALLET, FakeAdapter


@pytest.fixture
def evm_wallet() -> WalletConfig:
    return WalletConfig(address=WALLET, chain='ethereum', label='main')


@pytest.fixture
def fake_adapter() -> FakeAdapter:
    return FakeAdapter()
