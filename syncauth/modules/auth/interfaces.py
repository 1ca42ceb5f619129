"""Authentication interfaces following Black Box Design principles."""
from dataclasses import dataclass
from enum import Enum
from typing import Callable

Clock = Callable[[], float]


class FailurePolicy(str, Enum):
    """What a check concludes when the store cannot answer it."""

    FAIL_OPEN = "fail_open"
    FAIL_CLOSED = "fail_closed"


class TokenRejection(str, Enum):
    """Internal reason a token was rejected. Logged, never returned to callers."""

    MISSING = "missing"
    MALFORMED = "malformed"
    EXPIRED = "expired"
    REVOKED = "revoked"
    STALE_VERSION = "stale_version"
    PASSWORD_CHANGED = "password_changed"


@dataclass
class CheckPolicies:
    """
    Per-check store failure policy for token validation.

    Signature and expiry checks need no store and always fail closed, as
    does login credential validation. The revocation and version reads fail
    open so that a store outage does not log every device out; the password
    fingerprint check fails closed and backs them up.
    """
    revocation_lookup: FailurePolicy = FailurePolicy.FAIL_OPEN
    version_lookup: FailurePolicy = FailurePolicy.FAIL_OPEN
    fingerprint_lookup: FailurePolicy = FailurePolicy.FAIL_CLOSED
