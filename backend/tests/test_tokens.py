from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

import jwt
import pytest
from items_api.auth import tokens as tokens_module
from items_api.auth.errors import (
    ExpiredTokenError,
    KeyInitializationError,
    MalformedTokenError,
    SignatureMismatchError,
    SigningError,
    TokenError,
    TokenNotYetValidError,
    WrongAlgorithmError,
)
from items_api.auth.models import Identity
from items_api.auth.tokens import SigningKey, TokenService

from .utils import OTHER_SECRET, TEST_SECRET, build_token, replace_header

ALICE = Identity(user_id=7, username="alice")


def _service(secret: str = TEST_SECRET, clock=None) -> TokenService:
    return TokenService(SigningKey.load(secret), clock=clock)


def test_issue_then_validate_round_trips_identity():
    service = _service()

    token = service.issue(ALICE)

    assert service.validate(token) == ALICE
    # Same token, same key, same answer
    assert service.validate(token) == ALICE


def test_issued_claims_cover_a_24_hour_window():
    now = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
    service = _service(clock=lambda: now)

    claims = jwt.decode(
        service.issue(ALICE),
        TEST_SECRET,
        algorithms=["HS256"],
        options={"verify_exp": False, "verify_nbf": False, "verify_iat": False},
    )

    assert claims["user_id"] == 7
    assert claims["username"] == "alice"
    assert claims["sub"] == "7"
    assert claims["iss"] == "items-api"
    assert claims["iat"] == claims["nbf"] == int(now.timestamp())
    assert claims["exp"] - claims["iat"] == 24 * 60 * 60
    assert jwt.get_unverified_header(service.issue(ALICE))["alg"] == "HS256"


def test_token_past_expiry_is_rejected():
    issued_at = datetime.now(UTC) - timedelta(hours=24, minutes=1)
    token = _service(clock=lambda: issued_at).issue(ALICE)

    with pytest.raises(ExpiredTokenError) as exc:
        _service().validate(token)

    assert exc.value.reason == "expired"


def test_token_before_not_before_is_rejected():
    issued_at = datetime.now(UTC) + timedelta(hours=1)
    token = _service(clock=lambda: issued_at).issue(ALICE)

    with pytest.raises(TokenNotYetValidError):
        _service().validate(token)


def test_token_signed_with_other_key_is_rejected():
    token = _service(OTHER_SECRET).issue(ALICE)

    with pytest.raises(SignatureMismatchError):
        _service().validate(token)


def test_altered_algorithm_header_is_rejected():
    token = replace_header(_service().issue(ALICE), alg="HS512", typ="JWT")

    with pytest.raises(WrongAlgorithmError):
        _service().validate(token)


@pytest.mark.parametrize("algorithm", ["HS384", "HS512"])
def test_other_hmac_algorithms_are_rejected(algorithm: str):
    token = build_token(TEST_SECRET, algorithm=algorithm)

    with pytest.raises(WrongAlgorithmError):
        _service().validate(token)


def test_unsigned_token_is_rejected():
    unsigned = replace_header(_service().issue(ALICE), alg="none", typ="JWT")
    unsigned = unsigned.rsplit(".", 1)[0] + "."

    with pytest.raises(WrongAlgorithmError):
        _service().validate(unsigned)


@pytest.mark.parametrize("token", ["", "badtoken", "a.b.c", "a.b"])
def test_garbage_is_malformed(token: str):
    with pytest.raises(MalformedTokenError):
        _service().validate(token)


@pytest.mark.parametrize("claim", ["user_id", "username", "exp", "nbf", "iat", "sub"])
def test_missing_claim_is_malformed(claim: str):
    token = build_token(omit=(claim,))

    with pytest.raises(MalformedTokenError):
        _service().validate(token)


def test_foreign_issuer_is_rejected():
    token = build_token(issuer="someone-else")

    with pytest.raises(TokenError):
        _service().validate(token)


def test_external_token_with_matching_claims_validates():
    assert _service().validate(build_token()) == ALICE


def test_signing_failure_raises_signing_error(monkeypatch: pytest.MonkeyPatch):
    def _broken_encode(*args, **kwargs):
        raise TypeError("key unavailable")

    monkeypatch.setattr(tokens_module.jwt, "encode", _broken_encode)

    with pytest.raises(SigningError):
        _service().issue(ALICE)


def test_configured_secret_is_adopted_verbatim():
    key = SigningKey.load(TEST_SECRET)

    assert key.secret == TEST_SECRET.encode("utf-8")
    assert key.generated is False
    assert TEST_SECRET not in repr(key)


@pytest.mark.parametrize("secret", [None, ""])
def test_missing_secret_generates_random_key(secret: str | None, caplog: pytest.LogCaptureFixture):
    with caplog.at_level(logging.WARNING, logger="items_api.auth.tokens"):
        first = SigningKey.load(secret)
        second = SigningKey.load(secret)

    assert first.generated is True
    assert len(first.secret) == 32
    assert first.secret != second.secret
    assert "JWT_SECRET not set" in caplog.text
    assert first.secret.hex() not in caplog.text


def test_generated_keys_do_not_validate_each_others_tokens():
    first = TokenService(SigningKey.load(None))
    second = TokenService(SigningKey.load(None))

    with pytest.raises(SignatureMismatchError):
        second.validate(first.issue(ALICE))


def test_key_generation_failure_raises(monkeypatch: pytest.MonkeyPatch):
    def _no_entropy(size: int) -> bytes:
        raise NotImplementedError("no randomness source")

    monkeypatch.setattr(tokens_module.secrets, "token_bytes", _no_entropy)

    with pytest.raises(KeyInitializationError):
        SigningKey.load(None)


def test_signing_key_is_immutable():
    key = SigningKey.load(TEST_SECRET)

    with pytest.raises(AttributeError):
        key.secret = b"other"  # type: ignore[misc]
