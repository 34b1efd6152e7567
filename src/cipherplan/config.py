"""Configuration system using pydantic-settings with environment variable loading.

Settings are process-wide startup state: ``AppSettings()`` is built once in
``cipherplan.main`` and handed to the components that need it. Nothing in the
package reads settings at import time.
"""

from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class NetworkSettings(BaseSettings):
    """Confidential-computation network connection settings."""

    model_config = SettingsConfigDict(env_prefix="NETWORK_")

    signing_public_key: str = ""  # hex Ed25519 key used to verify receipts
    encryption_public_key: str = ""  # hex X25519 key inputs are sealed to
    client_secret_key: SecretStr = SecretStr("")  # hex X25519 client key


class SessionSettings(BaseSettings):
    """Polling, deadline and clock-skew policy for a computation session."""

    model_config = SettingsConfigDict(env_prefix="SESSION_")

    poll_initial_interval: float = 0.5  # seconds before the first re-poll
    poll_multiplier: float = 2.0
    poll_max_interval: float = 8.0
    deadline_seconds: float = 120.0
    clock_skew_seconds: int = 30  # tolerated receipt timestamp drift into the future


class ReceiptStoreSettings(BaseSettings):
    """Receipt audit store configuration."""

    model_config = SettingsConfigDict(env_prefix="RECEIPTS_")

    backend: Literal["memory", "sqlite"] = "memory"
    db_path: str = "data/receipts.db"


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    network: NetworkSettings = NetworkSettings()
    session: SessionSettings = SessionSettings()
    receipts: ReceiptStoreSettings = ReceiptStoreSettings()
