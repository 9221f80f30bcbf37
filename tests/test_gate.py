from datetime import timedelta

import pytest
from jose import jwt

from finance_tracker.database import utcnow
from finance_tracker.errors import InvalidToken, Unauthorized
from finance_tracker.gate import authorize, extract_bearer_token
from finance_tracker.security import (
    TokenIssuer,
    hash_password,
    hash_reset_token,
    verify_password,
)


def test_extract_bearer_token():
    assert extract_bearer_token("Bearer abc.def") == "abc.def"
    assert extract_bearer_token("bearer   abc.def ") == "abc.def"
    assert extract_bearer_token("abc.def") == "abc.def"
    assert extract_bearer_token("Bearer ") is None
    assert extract_bearer_token("") is None
    assert extract_bearer_token(None) is None


def test_authorize_resolves_owner(issuer):
    token = issuer.issue(42)
    assert authorize(f"Bearer {token}", issuer) == 42
    assert authorize(token, issuer) == 42


@pytest.mark.parametrize("raw", [None, "", "Bearer "])
def test_authorize_without_token(issuer, raw):
    with pytest.raises(Unauthorized):
        authorize(raw, issuer)


def test_authorize_rejects_foreign_signature(issuer):
    forged = TokenIssuer(secret="someone-else").issue(42)
    with pytest.raises(InvalidToken):
        authorize(f"Bearer {forged}", issuer)


def test_authorize_rejects_expired_token(issuer):
    stale = issuer.issue(42, now=utcnow() - timedelta(hours=2))
    with pytest.raises(InvalidToken):
        authorize(stale, issuer)


def test_authorize_rejects_garbage_and_missing_subject(issuer):
    with pytest.raises(InvalidToken):
        authorize("Bearer not-a-jwt", issuer)
    no_subject = jwt.encode(
        {"exp": int((utcnow() + timedelta(hours=1)).timestamp())},
        issuer.secret,
        algorithm=issuer.algorithm,
    )
    with pytest.raises(InvalidToken):
        authorize(no_subject, issuer)


def test_token_lifetime_is_one_hour(issuer):
    now = utcnow()
    claims = jwt.get_unverified_claims(issuer.issue(7, now=now))
    assert claims["sub"] == "7"
    assert claims["exp"] - claims["iat"] == 3600


def test_issuer_requires_secret():
    with pytest.raises(ValueError):
        TokenIssuer(secret="")


def test_password_hashing():
    hashed = hash_password("s3cr3t")
    assert hashed != "s3cr3t"
    assert verify_password("s3cr3t", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("s3cr3t", "not-a-bcrypt-hash")
    assert not verify_password("", hashed)


def test_reset_token_hash_is_stable():
    assert hash_reset_token("abc") == hash_reset_token("abc")
    assert hash_reset_token("abc") != hash_reset_token("abd")
    assert len(hash_reset_token("abc")) == 64
