"""
Pipeline configuration definition.

Loads configuration from environment variables and provides a Pydantic model.
Uses pydantic-settings for type safety and defaults.
"""

import sys

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RapidConfig(BaseSettings):
    """
    Configuration management for the request pipeline and its dev server.
    """

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Log level")
    LOG_CONFIG_PATH: str = Field(default="logging.yml", description="YAML logging config path")
    REQUEST_ID_HEADER: str = Field(
        default="X-Request-Id", description="Header carrying the Request ID"
    )

    # Responses
    SUCCESS_STATUS_CODE: int = Field(
        default=200, ge=100, le=399, description="Status for handler return values"
    )
    INTERNAL_ERROR_NAME: str = Field(
        default="Internal Server Error", description="Name of the generic 500 error"
    )
    INTERNAL_ERROR_MESSAGE: str = Field(
        default="An error occurred while processing the request",
        description="Message of the generic 500 error",
    )

    # Server settings
    APP_TITLE: str = Field(default="rapidroute", description="FastAPI application title")
    BIND_HOST: str = Field(default="0.0.0.0", description="Listen host")
    BIND_PORT: int = Field(default=8000, description="Listen port")

    # FastAPI settings
    root_path: str = Field(default="", description="API root path (for proxy)")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )


# Load config as a singleton.
# pydantic-settings reads environment variables during instantiation.
try:
    config = RapidConfig()
except Exception as e:
    sys.stderr.write(f"Failed to load configuration: {e}\n")
    raise
