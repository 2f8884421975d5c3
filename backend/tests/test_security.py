from datetime import datetime, timedelta, timezone

import jwt
import pytest

from collegeplan.errors import InvalidToken
from collegeplan.security import PasswordHasher, TokenCodec


def test_issued_token_verifies_to_same_email():
    codec = TokenCodec("s3cret")
    token = codec.issue("alice@example.com")
    claims = codec.verify(token)
    assert claims["email"] == "alice@example.com"
    assert claims["sub"] == "alice@example.com"
    assert claims["exp"] > claims["iat"]


def test_token_never_carries_password():
    claims = jwt.decode(TokenCodec("s3cret").issue("a@b.co"), options={"verify_signature": False})
    assert "password" not in claims


def test_token_from_other_secret_rejected():
    token = TokenCodec("one-secret").issue("a@b.co")
    with pytest.raises(InvalidToken):
        TokenCodec("another-secret").verify(token)


def test_tampered_token_rejected():
    codec = TokenCodec("s3cret")
    header, payload, signature = codec.issue("a@b.co").split(".")
    forged = jwt.encode({"email": "mallory@b.co"}, "guess", algorithm="HS256").split(".")[1]
    with pytest.raises(InvalidToken):
        codec.verify(".".join([header, forged, signature]))


def test_expired_token_rejected():
    codec = TokenCodec("s3cret", expire_minutes=5)
    token = codec.issue("a@b.co", now=datetime.now(timezone.utc) - timedelta(hours=1))
    with pytest.raises(InvalidToken, match="expired"):
        codec.verify(token)


@pytest.mark.parametrize("token", [None, "", "not-a-jwt", "a.b.c"])
def test_malformed_tokens_rejected(token):
    with pytest.raises(InvalidToken):
        TokenCodec("s3cret").verify(token)


def test_token_without_email_claim_rejected():
    now = int(datetime.now(timezone.utc).timestamp())
    token = jwt.encode({"sub": "x", "iat": now, "exp": now + 60}, "s3cret", algorithm="HS256")
    with pytest.raises(InvalidToken):
        TokenCodec("s3cret").verify(token)


def test_empty_secret_refused():
    with pytest.raises(ValueError):
        TokenCodec("")


def test_plaintext_scheme_stores_password_verbatim():
    hasher = PasswordHasher("plaintext")
    assert hasher.hash("secret") == "secret"
    assert hasher.verify("secret", "secret")
    assert not hasher.verify("Secret", "secret")


def test_pbkdf2_scheme_hashes_and_verifies():
    hasher = PasswordHasher("pbkdf2_sha256")
    stored = hasher.hash("secret")
    assert stored != "secret"
    assert hasher.verify("secret", stored)
    assert not hasher.verify("wrong", stored)


def test_value_stored_under_other_scheme_does_not_verify():
    assert PasswordHasher("pbkdf2_sha256").verify("secret", "secret") is False
