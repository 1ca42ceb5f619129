#!/usr/bin/env python3
"""
Syncauth - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes modules
3. Runs the API server

All business logic is in the modules, following black box principles.
"""

import logging
import logging.config as log_config
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from syncauth.config.provider import ConfigProvider, EnvConfigProvider
from syncauth.logging_config import get_logging_config

# Import modules through their black box interfaces
from syncauth.modules.api import (
    ErrorResponse,
    ForceReloginResponse,
    IdentityResponse,
    LoginRequest,
    SessionListResponse,
    StatusResponse,
    TokenResponse,
)
from syncauth.modules.auth import (
    AuthFactory,
    AuthService,
    ForbiddenError,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenSigningError,
)
from syncauth.modules.middleware import (
    LOGIN_PATH,
    TOKEN_COOKIE,
    create_token_middleware,
    extract_token,
)
from syncauth.modules.storage import KeyValueStore, StorageModule, StoreError

# Configuration provider (centralized config access)
config_provider: ConfigProvider = EnvConfigProvider()

log_config.dictConfig(get_logging_config(config_provider.get_api_config().log_level))
logger = logging.getLogger(__name__)

# Module instances (initialized at startup)
auth_service: Optional[AuthService] = None
storage: Optional[StorageModule] = None
store: Optional[KeyValueStore] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle - initialize and cleanup resources.
    """
    global auth_service, storage, store

    logger.info("Starting Syncauth API...")

    store_config = config_provider.get_store_config()
    storage = StorageModule(
        connection_url=store_config.redis_url,
        password=store_config.redis_password,
        backend=store_config.backend,
    )
    store = await storage.connect()

    # Build authentication service via factory (dependency injection)
    auth_service = AuthFactory.build(config_provider, store)
    logger.info(f"Authentication service initialized with {store_config.backend} store")

    yield

    logger.info("Shutting down Syncauth API...")
    await storage.disconnect()
    auth_service = None
    store = None
    logger.info("Syncauth API shutdown complete")


app = FastAPI(
    title="Syncauth API",
    description="Multi-device session and authentication service",
    version="1.0.0",
    lifespan=lifespan,
    debug=config_provider.get_api_config().debug,
)


async def _authenticate(token: str) -> Optional[str]:
    if not auth_service:
        return None
    return await auth_service.authenticate(token)


app.middleware("http")(create_token_middleware(_authenticate))


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return _error(400, "Invalid request format")


@app.exception_handler(InvalidCredentialsError)
async def invalid_credentials_handler(request: Request, exc: InvalidCredentialsError):
    return _error(401, str(exc))


@app.exception_handler(InvalidTokenError)
async def invalid_token_handler(request: Request, exc: InvalidTokenError):
    response = _error(401, str(exc))
    response.delete_cookie(TOKEN_COOKIE, path="/")
    return response


@app.exception_handler(ForbiddenError)
async def forbidden_handler(request: Request, exc: ForbiddenError):
    return _error(403, str(exc))


@app.exception_handler(TokenSigningError)
async def signing_error_handler(request: Request, exc: TokenSigningError):
    logger.error(f"Token signing failed: {exc}")
    return _error(500, "Authentication service misconfigured")


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"Store failure on {request.url.path}: {exc}")
    return _error(500, "Storage temporarily unavailable")


def get_auth_service() -> AuthService:
    """Dependency returning the initialized auth service."""
    if not auth_service:
        raise HTTPException(503, "Service not initialized")
    return auth_service


def set_token_cookie(response, token: str, max_age: int) -> None:
    """Write the token as an httpOnly cookie that expires with it."""
    response.set_cookie(
        TOKEN_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        secure=config_provider.get_auth_config().cookie_secure,
        max_age=max_age,
        path="/",
    )


# Auth Endpoints


@app.post("/api/login", response_model=TokenResponse)
async def login(payload: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """
    Exchange username/password for a bearer token.

    Returns:
        Token and its lifetime in seconds
        401: Invalid username or password
    """
    grant = await service.login(payload.username, payload.password)

    response = JSONResponse(
        content=TokenResponse(token=grant.token, expiresIn=grant.expires_in).model_dump()
    )
    set_token_cookie(response, grant.token, grant.expires_in)
    return response


@app.post("/api/logout", response_model=StatusResponse)
async def logout(request: Request, service: AuthService = Depends(get_auth_service)):
    """Revoke the presented token. Succeeds even without a token."""
    await service.logout(extract_token(request))

    response = JSONResponse(content=StatusResponse().model_dump())
    response.delete_cookie(TOKEN_COOKIE, path="/")
    return response


@app.post("/api/refresh-token", response_model=TokenResponse)
async def refresh_token(request: Request, service: AuthService = Depends(get_auth_service)):
    """
    Rotate the presented token.

    Returns:
        New token and its lifetime in seconds
        401: Presented token is not valid
    """
    grant = await service.refresh(extract_token(request))

    response = JSONResponse(
        content=TokenResponse(token=grant.token, expiresIn=grant.expires_in).model_dump()
    )
    set_token_cookie(response, grant.token, grant.expires_in)
    return response


@app.post("/api/admin/force-relogin", response_model=ForceReloginResponse)
async def force_relogin(request: Request, service: AuthService = Depends(get_auth_service)):
    """
    Invalidate every outstanding token.

    Returns:
        New global auth version
        401: Presented token is not valid
        403: Caller is not the admin
    """
    new_version = await service.force_relogin(extract_token(request))
    return ForceReloginResponse(newVersion=new_version)


@app.get("/api/admin/sessions", response_model=SessionListResponse)
async def list_sessions(
    request: Request,
    username: Optional[str] = None,
    service: AuthService = Depends(get_auth_service),
):
    """List recorded sessions, optionally for one user (admin only)."""
    sessions = await service.list_sessions(extract_token(request), username=username)
    return SessionListResponse(sessions=sessions)


@app.get(LOGIN_PATH)
async def login_landing():
    """
    Target of the unauthenticated redirect.

    The sign-in page itself is served by the web front end; this endpoint
    tells API clients where to exchange credentials.
    """
    return {"success": False, "error": "Authentication required", "loginEndpoint": "/api/login"}


@app.get("/api/me", response_model=IdentityResponse)
async def whoami(request: Request):
    """Return the identity the middleware authenticated."""
    return IdentityResponse(username=request.state.username)


@app.get("/health")
async def health():
    """Liveness probe."""
    return {"status": "healthy", "initialized": auth_service is not None}


def main():
    """Run the API server."""
    api_config = config_provider.get_api_config()
    uvicorn.run(
        app,
        host=api_config.host,
        port=api_config.port,
        log_config=get_logging_config(api_config.log_level),
    )


if __name__ == "__main__":
    main()
