"""
Configuration management for the Drip API client
"""
from pydantic_settings import BaseSettings, SettingsConfigDict

from constants import (
    DEFAULT_BASE_URL,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_TLS_HANDSHAKE_TIMEOUT,
)


class DripConfig(BaseSettings):
    """Client configuration with environment variable support (DRIP_* variables)."""

    # Credentials
    api_key: str = ""
    account_id: str = ""

    # Transport
    base_url: str = DEFAULT_BASE_URL
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    tls_handshake_timeout: float = DEFAULT_TLS_HANDSHAKE_TIMEOUT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    # Logging
    log_level: str = "INFO"
    log_file: str = ""  # Empty string disables the JSON file handler

    model_config = SettingsConfigDict(
        env_prefix="DRIP_",
        case_sensitive=False,
        extra="ignore"  # Ignore unrelated DRIP_* variables
    )


# Global configuration instance - lazily initialized to avoid import-time errors
_config = None

def get_config() -> DripConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = DripConfig()
    return _config
