"""
Unit tests for credential validation.
"""

import json

import pytest

from syncauth.modules.auth.credentials import CredentialValidator
from syncauth.modules.storage import MemoryKeyValueStore


@pytest.fixture
def validator(store):
    return CredentialValidator(store, primary_username="admin", primary_password="correct-pw")


@pytest.mark.asyncio
async def test_primary_account_accepted(validator, store):
    """Test the configured primary pair is accepted without a store read."""
    assert await validator.validate("admin", "correct-pw") is True
    assert store.reads == 0


@pytest.mark.asyncio
async def test_stored_account_accepted(validator, add_user):
    await add_user("alice", "s3cret")

    assert await validator.validate("alice", "s3cret") is True


@pytest.mark.asyncio
async def test_wrong_password_rejected(validator, add_user):
    await add_user("alice", "s3cret")

    assert await validator.validate("alice", "wrong") is False
    assert await validator.validate("admin", "wrong") is False


@pytest.mark.asyncio
async def test_unknown_user_rejected(validator):
    assert await validator.validate("nobody", "anything") is False


@pytest.mark.asyncio
async def test_empty_username_rejected(validator):
    assert await validator.validate("", "correct-pw") is False


@pytest.mark.asyncio
async def test_store_error_fails_closed(validator, store, add_user):
    """Test a store outage rejects rather than raises."""
    await add_user("alice", "s3cret")
    store.fail_reads.add("auth:")

    assert await validator.validate("alice", "s3cret") is False


@pytest.mark.asyncio
async def test_corrupt_record_fails_closed(validator, store):
    """Test an unreadable credential record rejects the login."""
    await MemoryKeyValueStore.put(store, "auth:alice", "not json")
    await MemoryKeyValueStore.put(store, "auth:bob", json.dumps(["bob", "pw"]))

    assert await validator.validate("alice", "not json") is False
    assert await validator.validate("bob", "pw") is False


@pytest.mark.asyncio
async def test_current_secret(validator, add_user):
    """Test secrets come from config for the primary account and the store otherwise."""
    await add_user("alice", "s3cret")

    assert await validator.current_secret("admin") == "correct-pw"
    assert await validator.current_secret("alice") == "s3cret"
    assert await validator.current_secret("nobody") is None


@pytest.mark.asyncio
async def test_no_primary_account(store, add_user):
    """Test only stored records are used when no primary pair is configured."""
    validator = CredentialValidator(store)
    await add_user("admin", "stored-pw")

    assert await validator.validate("admin", "stored-pw") is True
    assert await validator.current_secret("admin") == "stored-pw"
