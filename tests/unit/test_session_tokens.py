from datetime import timedelta

import jwt
import pytest

from maguru.core.auth import (
    TokenError,
    create_access_token,
    decode_access_token,
    identity_from_claims,
    resolve_identity,
)
from maguru.core.config import get_settings
from maguru.domain import Identity, Role


def test_create_and_decode_token_roundtrip() -> None:
    token = create_access_token("creator-7", role=Role.CREATOR, email="c7@example.com")

    payload = decode_access_token(token)

    assert payload["sub"] == "creator-7"
    assert payload["role"] == "creator"
    assert payload["email"] == "c7@example.com"


def test_resolve_identity_without_token_is_anonymous() -> None:
    assert resolve_identity(None) is None
    assert resolve_identity("") is None


def test_resolve_identity_reads_role_claim() -> None:
    identity = resolve_identity(create_access_token("a1", role=Role.ADMIN))

    assert identity == Identity(user_id="a1", role=Role.ADMIN, email="")
    assert identity.is_admin


def test_missing_role_claim_defaults_to_user() -> None:
    identity = resolve_identity(create_access_token("u9", role=None))

    assert identity is not None
    assert identity.role is Role.USER


def test_unknown_role_resolves_without_role() -> None:
    identity = identity_from_claims({"sub": "x1", "role": "superuser"})

    assert identity.role is None
    assert not identity.is_admin


def test_expired_token_is_rejected() -> None:
    token = create_access_token("u1", expires_delta=timedelta(seconds=-5))

    with pytest.raises(TokenError):
        decode_access_token(token)


def test_token_signed_with_another_secret_is_rejected() -> None:
    settings = get_settings()
    forged = jwt.encode(
        {"sub": "u1", "exp": 4102444800, "role": "admin"},
        "not-the-secret",
        algorithm=settings.jwt_algorithm,
    )

    with pytest.raises(TokenError):
        resolve_identity(forged)


def test_claims_without_subject_are_rejected() -> None:
    with pytest.raises(TokenError):
        identity_from_claims({"role": "user"})
