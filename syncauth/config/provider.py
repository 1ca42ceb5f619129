"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from typing import Optional, Protocol

DEFAULT_TOKEN_LIFETIME = 4 * 60 * 60
DEFAULT_VERSION_CACHE_TTL = 5 * 60


@dataclass
class AuthConfig:
    """Authentication configuration."""
    jwt_secret: Optional[str]
    primary_username: Optional[str]
    primary_password: Optional[str]
    admin_username: Optional[str]
    token_lifetime: int = DEFAULT_TOKEN_LIFETIME
    version_cache_ttl: int = DEFAULT_VERSION_CACHE_TTL
    revocation_cache_size: int = 10000
    cookie_secure: bool = False

    @property
    def is_configured(self) -> bool:
        """Check if tokens can be signed."""
        return bool(self.jwt_secret)


@dataclass
class StoreConfig:
    """Durable store configuration."""
    backend: str
    redis_url: str
    redis_password: Optional[str]


@dataclass
class APIConfig:
    """API configuration."""
    port: int
    host: str
    debug: bool
    log_level: str


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_auth_config(self) -> AuthConfig:
        """Get authentication configuration."""
        ...

    def get_store_config(self) -> StoreConfig:
        """Get durable store configuration."""
        ...

    def get_api_config(self) -> APIConfig:
        """Get API configuration."""
        ...


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_auth_config(self) -> AuthConfig:
        """Get authentication configuration from environment variables.

        PRIMARY_USERNAME / PRIMARY_PASSWORD fall back to the older
        VALID_USERNAME / VALID_PASSWORD names. The admin identity defaults
        to the primary account.
        """
        primary_username = os.getenv("PRIMARY_USERNAME") or os.getenv("VALID_USERNAME")
        primary_password = os.getenv("PRIMARY_PASSWORD") or os.getenv("VALID_PASSWORD")

        return AuthConfig(
            jwt_secret=os.getenv("JWT_SECRET"),
            primary_username=primary_username,
            primary_password=primary_password,
            admin_username=os.getenv("ADMIN_USERNAME") or primary_username,
            token_lifetime=int(os.getenv("TOKEN_LIFETIME_SECONDS", str(DEFAULT_TOKEN_LIFETIME))),
            version_cache_ttl=int(
                os.getenv("AUTH_VERSION_CACHE_TTL", str(DEFAULT_VERSION_CACHE_TTL))
            ),
            revocation_cache_size=int(os.getenv("REVOCATION_CACHE_SIZE", "10000")),
            cookie_secure=os.getenv("COOKIE_SECURE", "false").lower() == "true",
        )

    def get_store_config(self) -> StoreConfig:
        """Get durable store configuration from environment variables."""
        backend = os.getenv("STORE_BACKEND", "redis").lower()
        if backend not in ("redis", "memory"):
            raise ValueError(
                f"Unsupported STORE_BACKEND '{backend}'. Expected 'redis' or 'memory'."
            )

        return StoreConfig(
            backend=backend,
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            redis_password=os.getenv("REDIS_PASSWORD"),
        )

    def get_api_config(self) -> APIConfig:
        """Get API configuration from environment variables."""
        return APIConfig(
            port=int(os.getenv("API_PORT", "8080")),
            host=os.getenv("API_HOST", "0.0.0.0"),
            debug=os.getenv("API_DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
