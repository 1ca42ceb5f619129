"""
Authentication Factory following Black Box Design principles.

This factory:
- Constructs the authentication stack based on configuration
- Wires dependencies together
- Returns only the service facade (hiding implementation)
"""

import logging
import time
from typing import Optional

from ...config.provider import AuthConfig, ConfigProvider
from ..session import SessionModule
from ..storage import KeyValueStore
from .credentials import CredentialValidator
from .interfaces import CheckPolicies, Clock
from .revocation import RevocationRegistry
from .service import AuthService
from .tokens import TokenIssuer, TokenValidator
from .version import GlobalVersionManager

logger = logging.getLogger(__name__)


class AuthFactory:
    """
    Factory for building the authentication stack.

    This is the composition root that:
    - Creates all auth components
    - Wires them together via dependency injection
    - Returns only the public interface
    """

    @staticmethod
    def build(config_provider: ConfigProvider, store: KeyValueStore) -> AuthService:
        """
        Build the complete authentication stack.

        Args:
            config_provider: Configuration provider
            store: Durable key-value store

        Returns:
            AuthService facade (hides all implementation details)
        """
        auth_config = config_provider.get_auth_config()

        if not auth_config.is_configured:
            logger.error("JWT_SECRET is not set; logins will fail until it is configured")
        if not auth_config.admin_username:
            logger.warning("No admin identity configured; force relogin is disabled")

        return AuthFactory.build_from_config(auth_config, store)

    @staticmethod
    def build_from_config(
        auth_config: AuthConfig,
        store: KeyValueStore,
        policies: Optional[CheckPolicies] = None,
        clock: Optional[Clock] = None,
        monotonic: Optional[Clock] = None,
    ) -> AuthService:
        """
        Build the stack from an explicit config.

        Args:
            auth_config: Authentication configuration
            store: Durable key-value store
            policies: Store failure policy per validation check
            clock: Wall-clock time source for token and record expiry
            monotonic: Time source for local cache ageing

        Returns:
            AuthService for the given configuration
        """
        if monotonic is None:
            # An injected wall clock also drives cache ageing
            monotonic = time.monotonic if clock is None else clock
        clock = clock or time.time
        policies = policies or CheckPolicies()

        credentials = CredentialValidator(
            store,
            primary_username=auth_config.primary_username,
            primary_password=auth_config.primary_password,
        )
        versions = GlobalVersionManager(
            store, cache_ttl=auth_config.version_cache_ttl, clock=monotonic
        )
        revocations = RevocationRegistry(
            store,
            token_lifetime=auth_config.token_lifetime,
            cache_size=auth_config.revocation_cache_size,
            failure_policy=policies.revocation_lookup,
            clock=clock,
        )
        sessions = SessionModule(store, default_ttl=auth_config.token_lifetime, clock=clock)

        issuer = TokenIssuer(
            auth_config.jwt_secret,
            credentials,
            versions,
            sessions,
            token_lifetime=auth_config.token_lifetime,
            clock=clock,
        )
        validator = TokenValidator(
            auth_config.jwt_secret,
            credentials,
            versions,
            revocations,
            policies=policies,
            clock=clock,
        )

        return AuthService(
            credentials=credentials,
            issuer=issuer,
            validator=validator,
            revocations=revocations,
            versions=versions,
            sessions=sessions,
            admin_username=auth_config.admin_username,
        )
