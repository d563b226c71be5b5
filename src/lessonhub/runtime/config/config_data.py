"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class OIDCProviderConfig(BaseModel):
    """Federated identity provider whose ID tokens the API accepts."""

    issuer: str = Field(description="Expected `iss` claim of the provider's ID tokens")
    jwks_uri: str = Field(description="JWKS endpoint for ID token validation")
    client_id: str = Field(
        description="Audience the provider stamps into ID tokens (client or project ID)"
    )
    enabled: bool = Field(default=True, description="Accept tokens from this provider")


class OIDCConfig(BaseModel):
    """Federated identity configuration."""

    providers: dict[str, OIDCProviderConfig] = Field(
        default_factory=dict, description="Federated identity provider configurations"
    )
    jwks_cache_ttl: int = Field(
        default=3600, description="Seconds a fetched JWKS document stays cached"
    )


class JWTConfig(BaseModel):
    """Session credential signing and validation configuration."""

    allowed_algorithms: list[str] = Field(
        default_factory=lambda: ["HS256", "RS256", "RS512", "ES256", "ES384"],
        description="JWT algorithms allowed for token validation",
    )
    signing_algorithm: str = Field(
        default="HS256", description="Algorithm used to sign session credentials"
    )
    gen_issuer: str = Field(
        default="lessonhub-api",
        description="Issuer name to use when generating session credentials",
    )
    clock_skew: int = Field(default=60, description="Clock skew tolerance in seconds")


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="plain", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Database configuration model."""

    url: str = Field(
        default="sqlite:///./lessonhub.db", description="Database connection URL"
    )
    pool_size: int = Field(default=20, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    session_signing_secret: str | None = Field(
        default=None, description="Secret for signing session credentials"
    )
    session_ttl_seconds: int = Field(
        default=7 * 24 * 3600, description="Session credential lifetime (7 days)"
    )
    bootstrap_admin_email: str | None = Field(
        default=None,
        description="Email address automatically granted the admin role",
    )


class SecurityConfig(BaseModel):
    """Password policy and hashing configuration."""

    bcrypt_rounds: int = Field(
        default=12, ge=4, le=31, description="bcrypt cost factor for password hashes"
    )
    min_password_length: int = Field(
        default=6, description="Minimum accepted password length"
    )


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    oidc: OIDCConfig = Field(
        default_factory=OIDCConfig, description="Federated identity configuration"
    )
    jwt: JWTConfig = Field(
        default_factory=JWTConfig, description="JWT configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
    security: SecurityConfig = Field(
        default_factory=SecurityConfig, description="Security configuration"
    )
