"""Settings loaded from FLASHPAY_* environment variables or a .env file."""

from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Application
    app_name: str = Field(default="flashpay-core", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/production)")
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=True, description="Render logs as JSON (console otherwise)")

    # Persistence
    storage_prefix: str = Field(default="flashpay", description="Prefix for every storage key")
    persist_debounce_ms: int = Field(default=100, ge=0, description="Write debounce window (ms)")

    # Payment provider
    provider_timeout_seconds: float = Field(
        default=30.0, gt=0, description="Timeout for provider init/auth/registration"
    )
    provider_sandbox: bool = Field(default=True, description="Use the provider sandbox")
    provider_sdk_version: str = Field(default="2.0", description="Provider SDK version")

    # Backend mirror
    backend_base_url: str = Field(default="http://localhost:3000", description="Backend mirror URL")
    backend_timeout_seconds: float = Field(default=10.0, gt=0, description="Backend request timeout")

    # Owner analytics
    owner_secret: SecretStr | None = Field(default=None, description="Owner analytics secret")

    # Audit & error trail
    error_trail_capacity: int = Field(default=100, gt=0, description="Error trail size")
    audit_trail_capacity: int = Field(default=200, gt=0, description="Audit trail size")

    # Rate limiting
    create_rate_limit_max_attempts: int = Field(default=10, gt=0)
    create_rate_limit_window_ms: int = Field(default=60_000, gt=0)
    execute_rate_limit_max_attempts: int = Field(default=5, gt=0)
    execute_rate_limit_window_ms: int = Field(default=60_000, gt=0)

    # Operational flags
    testnet_only: bool = Field(default=True, description="Refuse mainnet configuration")
    require_wallet: bool = Field(default=True, description="Block operations without a wallet")
    require_domain_enabled: bool = Field(default=True, description="Enforce feature domains")
    require_master_enabled: bool = Field(default=False, description="Enforce the master toggle")
    enable_rate_limiting: bool = Field(default=True, description="Enforce rate limits")
    enable_audit_logging: bool = Field(default=True, description="Record the audit trail")

    model_config = SettingsConfigDict(
        env_prefix="FLASHPAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()

    @field_validator("storage_prefix")
    @classmethod
    def validate_storage_prefix(cls, v: str) -> str:
        if not v or not v.replace("-", "").replace("_", "").isalnum():
            raise ValueError("storage_prefix must be non-empty and alphanumeric (- and _ allowed)")
        return v

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Settings are read once per process."""
    return Settings()
