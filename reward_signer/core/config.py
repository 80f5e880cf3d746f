from typing import Literal, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from .errors import ConfigError
from .state import (
    StateStore,
    JsonFileStateStore,
    RedisStateStore,
    InMemoryStateStore,
    DEFAULT_REDIS_KEY,
)

DEFAULT_REWARDS_DATA_URL_TEMPLATE = (
    "https://raw.githubusercontent.com/flare-foundation/fsp-rewards/refs/heads/main/"
    "{network}/{epoch}/reward-distribution-data.json"
)

class SignerSettings(BaseSettings):
    """
    Runtime settings, read from the environment and an optional .env file.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # -----------------------
    # Chain
    # -----------------------
    RPC_URL: str = ""
    FLARE_SYSTEMS_MANAGER_ADDRESS: str = ""
    SIGNING_POLICY_PRIVATE_KEY: str = ""
    # Sends the transactions; the signing policy key only signs the messages
    IDENTITY_PRIVATE_KEY: str = ""
    TX_RECEIPT_TIMEOUT_S: float = 120.0

    # -----------------------
    # Rewards data
    # -----------------------
    NETWORK: str = "flare"
    REWARDS_DATA_URL_TEMPLATE: str = DEFAULT_REWARDS_DATA_URL_TEMPLATE
    HTTP_TIMEOUT_S: float = 20.0

    # -----------------------
    # Loop
    # -----------------------
    CHECK_INTERVAL_S: float = Field(default=300.0, gt=0)
    MAX_RETRIES: int = Field(default=3, ge=1)
    RETRY_DELAY_S: float = Field(default=30.0, ge=0)
    LOOKBACK_EPOCHS: int = Field(default=4, ge=0)
    ALLOW_OVERLAP: bool = False

    # -----------------------
    # State
    # -----------------------
    STATE_BACKEND: Literal["file", "redis", "memory"] = "file"
    STATE_FILE: Optional[str] = None
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_STATE_KEY: str = DEFAULT_REDIS_KEY

    # -----------------------
    # Logging
    # -----------------------
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_JSON: bool = False

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value

    @property
    def identity_key(self) -> str:
        return self.IDENTITY_PRIVATE_KEY or self.SIGNING_POLICY_PRIVATE_KEY

    def require_chain(self) -> None:
        """
        Raises ConfigError listing every missing chain setting.
        """
        missing = [
            name for name in ("RPC_URL", "FLARE_SYSTEMS_MANAGER_ADDRESS", "SIGNING_POLICY_PRIVATE_KEY")
            if not getattr(self, name).strip()
        ]
        if missing:
            raise ConfigError(f"missing required settings: {', '.join(missing)}")

def build_state_store(settings: SignerSettings) -> StateStore:
    if settings.STATE_BACKEND == "redis":
        return RedisStateStore(settings.REDIS_URL, settings.REDIS_STATE_KEY)
    if settings.STATE_BACKEND == "memory":
        return InMemoryStateStore()
    return JsonFileStateStore(settings.STATE_FILE)
