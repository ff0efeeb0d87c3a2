"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """HealthPath vitals server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default; binding elsewhere requires hp_allow_insecure_bind.
    hp_host: str = "127.0.0.1"
    hp_port: int = 8001
    hp_log_level: str = "info"
    hp_allow_insecure_bind: bool = False

    # LLM (document extraction + insights)
    llm_provider: Literal["anthropic", "openai", "mock"] = "anthropic"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-5-20250929"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"

    # Timeouts (seconds)
    extraction_timeout_s: float = 60.0
    insights_timeout_s: float = 30.0
    ble_connect_timeout_s: float = 15.0
    ble_scan_timeout_s: float = 5.0

    # Storage
    db_path: str = "~/.healthpath/vitals.db"
    encryption_key: str = ""

    # Dashboard / export
    history_default_limit: int = 20
    export_limit: int = 100

    # Identity
    auth_max_failed_attempts: int = 5
    auth_lockout_s: int = 900

    # BLE heart-rate stream
    ble_queue_size: int = 32


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
