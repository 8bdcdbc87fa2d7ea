from dataclasses import dataclass

SOLANA_CHAIN = 'solana'
SOLANA_TX_URL = 'https://solscan.io/tx/'


@dataclass(frozen=True, slots=True)
class ExplorerEndpoint:
    """Etherscan-compatible explorer for one EVM chain."""

    api_url: str
    tx_url: str
    native_symbol: str = 'ETH'


DEFAULT_EXPLORERS: dict[str, ExplorerEndpoint] = {
    'ethereum': ExplorerEndpoint('https://api.etherscan.io/api', 'https://etherscan.io/tx/'),
    'bsc': ExplorerEndpoint('https://api.bscscan.com/api', 'https://bscscan.com/tx/', 'BNB'),
    'polygon': ExplorerEndpoint('https://api.polygonscan.com/api', 'https://polygonscan.com/tx/', 'POL'),
    'arbitrum': ExplorerEndpoint('https://api.arbiscan.io/api', 'https://arbiscan.io/tx/'),
    'base': ExplorerEndpoint('https://api.basescan.org/api', 'https://basescan.org/tx/'),
}
