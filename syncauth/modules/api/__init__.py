"""
API Module - Black Box Interface

Purpose: Request and response models for the HTTP layer
Interface: Pydantic models
Hidden: Field validation rules
"""

from .models import (
    ErrorResponse,
    ForceReloginResponse,
    IdentityResponse,
    LoginRequest,
    SessionInfo,
    SessionListResponse,
    StatusResponse,
    TokenResponse,
)

__all__ = [
    "ErrorResponse",
    "ForceReloginResponse",
    "IdentityResponse",
    "LoginRequest",
    "SessionInfo",
    "SessionListResponse",
    "StatusResponse",
    "TokenResponse",
]
