from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    poll_interval_seconds: float = Field(default=30.0, alias='POLL_INTERVAL_SECONDS')
    etherscan_api_key: str | None = Field(default=None, alias='ETHERSCAN_API_KEY')
    bscscan_api_key: str | None = Field(default=None, alias='BSCSCAN_API_KEY')
    polygonscan_api_key: str | None = Field(default=None, alias='POLYGONSCAN_API_KEY')
    arbiscan_api_key: str | None = Field(default=None, alias='ARBISCAN_API_KEY')
    basescan_api_key: str | None = Field(default=None, alias='BASESCAN_API_KEY')
    solana_rpc_url: str = Field(default='https://api.mainnet-beta.solana.com', alias='SOLANA_RPC_URL')
    solana_indexer_url: str = Field(default='https://public-api.solscan.io', alias='SOLANA_INDEXER_URL')
    solscan_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices('SOLSCAN_API_KEY', 'SOLSCAN_TOKEN'),
    )
    tx_page_size: int = Field(default=50, alias='TX_PAGE_SIZE')
    request_timeout_seconds: float | None = Field(default=None, alias='REQUEST_TIMEOUT_SECONDS')
    tracked_wallets: str = Field(default='', alias='TRACKED_WALLETS')
    tracker_autostart: bool = Field(default=True, alias='TRACKER_AUTOSTART')
    log_level: str = Field(default='INFO', alias='LOG_LEVEL')
    host: str = Field(default='127.0.0.1', alias='HOST')
    port: int = Field(default=8000, alias='PORT')
    dd_api_key: str | None = Field(default=None, alias='DD_API_KEY')
    dd_service: str = Field(default='wallet-tracker', alias='DD_SERVICE')
    dd_env: str = Field(default='dev', alias='DD_ENV')
    dd_version: str = Field(default='0.1.0', alias='DD_VERSION')
    dd_site: str = Field(default='datadoghq.com', alias='DD_SITE')
    dd_send_logs: bool = Field(default=True, alias='DD_SEND_LOGS')
    dd_trace_enabled: bool = Field(default=False, alias='DD_TRACE_ENABLED')
    dd_trace_agent_url: str | None = Field(default=None, alias='DD_TRACE_AGENT_URL')


settings = Settings()
