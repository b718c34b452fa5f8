from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt
import pytest

from procurement.auth.tokens import InvalidTokenError, SigningKey, TokenService, WrongCredentialsError

SECRET = "unit-test-secret-that-is-long-enough"


@pytest.fixture
def key() -> SigningKey:
    return SigningKey(secret=SECRET)


@pytest.fixture
def tokens(key, credential_store) -> TokenService:
    return TokenService(key, credential_store, ttl=timedelta(hours=1))


@pytest.mark.asyncio
async def test_issue_and_validate_round_trip(tokens, alice):
    token = await tokens.issue("alice", "password")

    assert tokens.validate(token) == alice.id


@pytest.mark.asyncio
async def test_token_carries_user_id_and_expiry(key, credential_store, bob):
    issued_at = datetime.now(timezone.utc)
    tokens = TokenService(key, credential_store, ttl=timedelta(minutes=5), clock=lambda: issued_at)

    claims = jwt.decode(await tokens.issue("bob", "password"), SECRET, algorithms=["HS256"])

    assert claims["user_id"] == str(bob.id)
    assert claims["exp"] == int((issued_at + timedelta(minutes=5)).timestamp())


@pytest.mark.asyncio
@pytest.mark.parametrize(("login", "password"), [("alice", "wrong"), ("nobody", "password"), ("", "")])
async def test_wrong_credentials_are_rejected(tokens, login, password):
    with pytest.raises(WrongCredentialsError):
        await tokens.issue(login, password)


@pytest.mark.asyncio
async def test_expired_token_is_invalid(key, credential_store):
    past = datetime.now(timezone.utc) - timedelta(hours=2)
    issuer = TokenService(key, credential_store, ttl=timedelta(hours=1), clock=lambda: past)
    token = await issuer.issue("alice", "password")

    with pytest.raises(InvalidTokenError):
        TokenService(key, credential_store, ttl=timedelta(hours=1)).validate(token)


@pytest.mark.asyncio
async def test_expiry_follows_the_service_clock(key, credential_store, alice):
    now = {"value": datetime(2020, 1, 1, tzinfo=timezone.utc)}
    tokens = TokenService(key, credential_store, ttl=timedelta(minutes=10), clock=lambda: now["value"])
    token = await tokens.issue("alice", "password")

    now["value"] += timedelta(minutes=9, seconds=59)
    assert tokens.validate(token) == alice.id

    now["value"] += timedelta(seconds=1)
    with pytest.raises(InvalidTokenError):
        tokens.validate(token)


@pytest.mark.asyncio
async def test_tampered_token_is_invalid(tokens):
    token = await tokens.issue("alice", "password")
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[:-2] + ("AA" if signature[-2:] != "AA" else "BB")])

    with pytest.raises(InvalidTokenError):
        tokens.validate(tampered)


@pytest.mark.asyncio
async def test_token_signed_with_other_key_is_invalid(tokens, credential_store):
    other = TokenService(SigningKey(secret="another-secret-that-is-also-long-enough"), credential_store,
                         ttl=timedelta(hours=1))
    token = await other.issue("alice", "password")

    with pytest.raises(InvalidTokenError):
        tokens.validate(token)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_token_is_invalid(tokens, token):
    with pytest.raises(InvalidTokenError):
        tokens.validate(token)


@pytest.mark.parametrize(
    "claims",
    [
        {"user_id": str(UUID(int=1))},
        {"exp": 4102444800},
        {"user_id": "not-a-uuid", "exp": 4102444800},
    ],
)
def test_token_with_bad_claims_is_invalid(tokens, claims):
    token = jwt.encode(claims, SECRET, algorithm="HS256")

    with pytest.raises(InvalidTokenError):
        tokens.validate(token)


def test_signing_key_rejects_empty_secret():
    with pytest.raises(ValueError):
        SigningKey(secret="")


def test_signing_key_repr_hides_secret(key):
    assert SECRET not in repr(key)
