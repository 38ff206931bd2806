"""
Shared configuration management for the Access Layer authorization service.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ACCESS_",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Operation id -> requirement declarations, loaded at startup
    requirements_file: Optional[str] = Field(default=None)

    # Claim names read from verified tokens
    user_claim: str = Field(default="preferred_username")
    email_claim: str = Field(default="email")
    tenant_claim: str = Field(default="tenant")
    group_claim: str = Field(default="groupId")
    authorization_claim: str = Field(default="authorization")


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port)
