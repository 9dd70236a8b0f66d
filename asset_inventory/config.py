# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Configuration management for AWS Asset Inventory.

This module handles loading and validating configuration from environment
variables with sensible defaults. Settings are passed explicitly into the
collector; nothing here is read implicitly at collection time.
"""

from typing import Optional
from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    
    All settings have sensible defaults. They can be set via environment
    variables or a .env file, and are overridden by command-line flags.
    """
    
    # AWS Configuration
    aws_profile: Optional[str] = Field(
        default=None,
        description="Shared credentials profile (default credential chain if unset)",
        validation_alias=AliasChoices("ASSET_INVENTORY_PROFILE", "AWS_PROFILE")
    )
    connect_timeout: int = Field(
        default=10,
        ge=1,
        description="Connect timeout for AWS API calls in seconds",
        validation_alias="AWS_CONNECT_TIMEOUT"
    )
    read_timeout: int = Field(
        default=60,
        ge=1,
        description="Read timeout for AWS API calls in seconds",
        validation_alias="AWS_READ_TIMEOUT"
    )
    
    # Collection Configuration
    max_concurrency: int = Field(
        default=5,
        ge=1,
        description="Maximum number of regions collected at the same time",
        validation_alias="ASSET_INVENTORY_MAX_CONCURRENCY"
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        description="Maximum retries for throttled AWS Config calls",
        validation_alias="ASSET_INVENTORY_MAX_RETRIES"
    )
    base_delay_seconds: float = Field(
        default=0.1,
        gt=0,
        description="Initial backoff delay between retries in seconds",
        validation_alias="ASSET_INVENTORY_BASE_DELAY"
    )
    max_delay_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Upper bound for the backoff delay in seconds",
        validation_alias="ASSET_INVENTORY_MAX_DELAY"
    )
    
    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="LOG_LEVEL"
    )
    
    model_config = SettingsConfigDict(
        env_prefix="",  # No prefix for environment variables
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def get_settings() -> Settings:
    """
    Get application settings.
    
    Loads settings from environment variables and .env file. A new
    instance is returned on every call.
    
    Returns:
        Settings instance with all configuration values
    """
    return Settings()
