from .chains import DEFAULT_EXPLORERS, SOLANA_CHAIN, SOLANA_TX_URL

DISPLAY_DECIMALS = 6


def format_balance(value: str, decimals: int = 18) -> str:
    amount = int(value)
    if decimals <= 0:
        return str(amount)
    divisor = 10**decimals
    whole, fraction = divmod(amount, divisor)
    fraction_str = str(fraction).rjust(decimals, '0')[:DISPLAY_DECIMALS]
    return f'{whole}.{fraction_str}'


def shorten_address(address: str, chars: int = 4) -> str:
    if len(address) <= chars * 2 + 2:
        return address
    return f'{address[: chars + 2]}...{address[-chars:]}'


def explorer_tx_url(chain: str, tx_hash: str) -> str:
    if chain == SOLANA_CHAIN:
        return f'{SOLANA_TX_URL}{tx_hash}'
    endpoint = DEFAULT_EXPLORERS.get(chain)
    if endpoint is None:
        return ''
    return f'{endpoint.tx_url}{tx_hash}'
