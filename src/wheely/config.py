"""
Configuration management.

Uses Pydantic Settings for environment variable handling and validation.
An optional config.yaml supplies defaults; environment variables win.
"""

import json
import os
from functools import lru_cache
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def load_config_file(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    if config_path is None:
        config_path = os.environ.get("WHEELY_CONFIG_FILE")

    if config_path is None:
        # Look for config.yaml in common locations
        possible_paths = [
            "config.yaml",  # Current directory
            "../../config.yaml",  # Project root from src/wheely
        ]

        for path in possible_paths:
            if os.path.exists(path):
                config_path = path
                break
        else:
            return {}

    if os.path.exists(config_path):
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
            return config_data
    return {}


class DatabaseSettings(BaseSettings):
    """Relational store connection and pool configuration."""

    url: str = Field(default="sqlite:///./wheely.db", description="SQLAlchemy database URL")
    pool_size: int = Field(default=20, description="Pooled connections kept open")
    max_overflow: int = Field(default=10, description="Connections allowed above pool_size")
    pool_timeout_seconds: int = Field(default=30, description="Wait for a pooled connection")
    pool_recycle_seconds: int = Field(default=1800, description="Recycle connections older than this")
    pool_pre_ping: bool = Field(default=True, description="Test connections before use")
    echo: bool = Field(default=False, description="Log every SQL statement")
    create_schema: bool = Field(default=True, description="Create missing tables on startup")

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def safe_url(self) -> str:
        """URL with credentials stripped, for logging."""
        if "@" in self.url:
            scheme, _, rest = self.url.partition("://")
            return f"{scheme}://***@{rest.split('@', 1)[1]}"
        return self.url

    model_config = SettingsConfigDict(env_prefix="WHEELY_DATABASE_")


class SecuritySettings(BaseSettings):
    """Credential hashing and login throttling configuration."""

    bcrypt_rounds: int = Field(default=10, ge=4, le=31, description="bcrypt cost factor")
    min_password_length: int = Field(default=6, ge=1, description="Minimum credential length")
    login_rate_limit_rps: int = Field(default=1, description="Login attempts refilled per second per client")
    login_rate_limit_burst: int = Field(default=10, description="Login attempt burst capacity per client")
    login_rate_limit_max_clients: int = Field(default=10000, ge=1, description="Client buckets kept before idle ones are evicted")

    model_config = SettingsConfigDict(env_prefix="WHEELY_SECURITY_")


class AccountSettings(BaseSettings):
    """Account lifecycle configuration."""

    delete_policy: Literal["restrict", "cascade"] = Field(
        default="restrict",
        description="What happens to an account's reports when the account is deleted",
    )

    model_config = SettingsConfigDict(env_prefix="WHEELY_ACCOUNTS_")


class ReportSettings(BaseSettings):
    """Report statistics configuration."""

    recent_window_days: int = Field(default=30, ge=1, description="Trailing window for recent reports")

    model_config = SettingsConfigDict(env_prefix="WHEELY_REPORTS_")


class MaskingSettings(BaseSettings):
    """Log masking configuration."""

    sensitive_keys: List[str] = Field(
        default=["password", "credential", "secret", "token", "authorization", "hash"],
        description="Log keys whose values are always masked",
    )
    email_keys: List[str] = Field(
        default=["email"],
        description="Log keys whose values are partially masked as emails",
    )

    @field_validator("sensitive_keys", "email_keys", mode="before")
    def parse_key_list(cls, v: Any) -> Any:
        """Accept comma separated strings as well as JSON lists."""
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
            except json.JSONDecodeError:
                return [item.strip() for item in v.split(",") if item.strip()]
            return parsed
        return v

    model_config = SettingsConfigDict(env_prefix="WHEELY_MASKING_")


class Settings(BaseSettings):
    """Main application settings."""

    # Server configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=7000, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(default=False, description="Render logs as JSON lines")

    # Component settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    accounts: AccountSettings = Field(default_factory=AccountSettings)
    reports: ReportSettings = Field(default_factory=ReportSettings)
    masking: MaskingSettings = Field(default_factory=MaskingSettings)

    model_config = SettingsConfigDict(env_prefix="WHEELY_", case_sensitive=False)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance with config file and env support."""

    # Load config file data
    config_data = load_config_file()

    # Config file provides defaults, env vars override
    if config_data:
        _set_env_from_config(config_data)

    return Settings()


_CONFIG_ENV_MAPPINGS = {
    ("server", "host"): "WHEELY_HOST",
    ("server", "port"): "WHEELY_PORT",
    ("server", "debug"): "WHEELY_DEBUG",
    ("server", "log_level"): "WHEELY_LOG_LEVEL",
    ("server", "log_json"): "WHEELY_LOG_JSON",
    ("database", "url"): "WHEELY_DATABASE_URL",
    ("database", "pool_size"): "WHEELY_DATABASE_POOL_SIZE",
    ("database", "max_overflow"): "WHEELY_DATABASE_MAX_OVERFLOW",
    ("database", "pool_timeout_seconds"): "WHEELY_DATABASE_POOL_TIMEOUT_SECONDS",
    ("database", "pool_recycle_seconds"): "WHEELY_DATABASE_POOL_RECYCLE_SECONDS",
    ("database", "echo"): "WHEELY_DATABASE_ECHO",
    ("database", "create_schema"): "WHEELY_DATABASE_CREATE_SCHEMA",
    ("security", "bcrypt_rounds"): "WHEELY_SECURITY_BCRYPT_ROUNDS",
    ("security", "min_password_length"): "WHEELY_SECURITY_MIN_PASSWORD_LENGTH",
    ("security", "login_rate_limit_rps"): "WHEELY_SECURITY_LOGIN_RATE_LIMIT_RPS",
    ("security", "login_rate_limit_burst"): "WHEELY_SECURITY_LOGIN_RATE_LIMIT_BURST",
    ("security", "login_rate_limit_max_clients"): "WHEELY_SECURITY_LOGIN_RATE_LIMIT_MAX_CLIENTS",
    ("accounts", "delete_policy"): "WHEELY_ACCOUNTS_DELETE_POLICY",
    ("reports", "recent_window_days"): "WHEELY_REPORTS_RECENT_WINDOW_DAYS",
}


def _set_env_from_config(config_data: Dict[str, Any]) -> None:
    """Set environment variables from config file if not already set."""
    for (section, key), env_var in _CONFIG_ENV_MAPPINGS.items():
        if env_var not in os.environ:
            value = (config_data.get(section) or {}).get(key)
            if value is not None:
                os.environ[env_var] = str(value)

    # Lists are handed over as JSON
    masking = config_data.get("masking") or {}
    for key in ("sensitive_keys", "email_keys"):
        env_var = f"WHEELY_MASKING_{key.upper()}"
        if env_var not in os.environ and masking.get(key):
            os.environ[env_var] = json.dumps(masking[key])


def reload_settings() -> Settings:
    """Reload settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings()
