"""
Configuration management using pydantic-settings.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="ORC_"
    )

    mempool_api_url: str = "https://mempool.space/api"
    mempool_testnet_api_url: str = "https://mempool.space/testnet/api"
    mempool_testnet4_api_url: str = "https://mempool.space/testnet4/api"
    mempool_regtest_api_url: str = "http://127.0.0.1:8999/api"
    http_timeout: float = 30.0

    utxo_retry_delay: float = 1.0
    min_utxo_value: int = 1000  # sats
    default_fee_rate: int = 10  # sat/vB

    account_poll_interval: float = 3.0

    state_dir: Path = Path.home() / ".orc-wallet"

    log_level: str = "INFO"

    @property
    def connection_file(self) -> Path:
        return self.state_dir / "connection.json"


def get_settings() -> Settings:
    return Settings()
