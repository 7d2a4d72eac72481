import asyncio

import pytest
from jose import jwt

from errors import InvalidToken, MissingToken
from security import ALPHANUMERIC, PasswordHasher, TokenIssuer, random_suffix


def test_issued_token_verifies_to_same_user(tokens):
    token = tokens.issue("64b7f0c2a1b2c3d4e5f60718")
    assert tokens.verify(token) == "64b7f0c2a1b2c3d4e5f60718"


def test_token_carries_only_user_id(tokens):
    claims = jwt.get_unverified_claims(tokens.issue("abc"))
    assert claims == {"id": "abc"}


def test_missing_token():
    with pytest.raises(MissingToken):
        TokenIssuer("s").verify(None)
    with pytest.raises(MissingToken):
        TokenIssuer("s").verify("")


def test_token_signed_with_other_secret_is_rejected():
    token = TokenIssuer("other").issue("abc")
    with pytest.raises(InvalidToken):
        TokenIssuer("s").verify(token)


def test_garbage_token_is_rejected(tokens):
    with pytest.raises(InvalidToken):
        tokens.verify("not-a-jwt")


def test_token_without_id_claim_is_rejected(tokens):
    token = jwt.encode({"sub": "abc"}, tokens.secret_key, algorithm="HS256")
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_password_hash_roundtrip():
    hasher = PasswordHasher(rounds=4)
    hashed = asyncio.run(hasher.hash("Abc123"))
    assert hashed != "Abc123"
    assert hashed.startswith("$2b$04$")
    assert asyncio.run(hasher.verify("Abc123", hashed))
    assert not asyncio.run(hasher.verify("Abc124", hashed))


def test_random_suffix():
    suffix = random_suffix(5)
    assert len(suffix) == 5
    assert all(c in ALPHANUMERIC for c in suffix)
