"""
Configuration Management Module

Centralized, environment-driven configuration using pydantic-settings.
Values are read once and handed to component constructors explicitly.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TreasuryFlowConfig(BaseSettings):
    """MedTreasury Flow configuration"""

    model_config = SettingsConfigDict(
        env_prefix="MEDTREASURY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Accounts
    admin_account: str = "0x" + "a" * 40
    treasury_account: str = "0x" + "7" * 40

    # Token
    token_name: str = "MNEE USD Stablecoin"
    token_symbol: str = "MNEE"
    token_decimals: int = Field(default=18, ge=0, le=77)
    initial_supply: int = Field(default=1_000_000, ge=0)

    # Credentials
    default_credential_validity_seconds: int = Field(default=365 * 24 * 60 * 60, gt=0)

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    # API
    api_title: str = "MedTreasury Flow API"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_root_path: str = ""


config = TreasuryFlowConfig()


def get_config() -> TreasuryFlowConfig:
    return config


def reload_config() -> TreasuryFlowConfig:
    """Reload configuration from environment"""
    global config
    config = TreasuryFlowConfig()
    return config
