"""
Syncauth API data models.

Field names follow the JSON the browser client already sends and reads
(camelCase expiresIn / newVersion).
"""

from typing import List, Optional

from pydantic import BaseModel, Field

# Request Models (API Input)


class LoginRequest(BaseModel):
    """Username/password login."""

    username: str = Field(..., description="Account name", min_length=1, max_length=255)
    password: str = Field(..., description="Account password", max_length=1024)


# Response Models (API Output)


class StatusResponse(BaseModel):
    """Plain acknowledgement."""

    success: bool = True


class TokenResponse(BaseModel):
    """Issued bearer token."""

    success: bool = True
    token: str = Field(..., description="Bearer token")
    expiresIn: int = Field(..., description="Seconds until the token expires")


class ForceReloginResponse(BaseModel):
    """Result of bumping the global auth version."""

    success: bool = True
    newVersion: str = Field(..., description="New global auth version")


class SessionInfo(BaseModel):
    """Observational session record."""

    username: str
    created: int = Field(..., description="Creation time, ms since epoch")
    expires: int = Field(..., description="Expiry time, ms since epoch")
    token_prefix: Optional[str] = Field(None, description="First characters of the token")


class SessionListResponse(BaseModel):
    """Recorded sessions."""

    success: bool = True
    sessions: List[SessionInfo] = Field(default_factory=list)


class IdentityResponse(BaseModel):
    """Authenticated identity."""

    success: bool = True
    username: str


class ErrorResponse(BaseModel):
    """Error envelope."""

    success: bool = False
    error: str
