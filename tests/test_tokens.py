import re
import uuid

import jwt
import pytest

from library_api.tokens import TokenUtils


def test_refresh_token_is_256_bit_hex(tokens):
    token = tokens.generate_refresh_token()
    assert re.fullmatch(r"[0-9a-f]{64}", token)
    assert token != tokens.generate_refresh_token()


def test_refresh_token_hash_verifies_only_the_original(tokens):
    token = tokens.generate_refresh_token()
    hashed = tokens.hash_refresh_token(token)
    assert hashed != token
    assert tokens.verify_refresh_token(token, hashed)
    assert not tokens.verify_refresh_token(tokens.generate_refresh_token(), hashed)


def test_verify_against_non_bcrypt_value_is_false(tokens):
    assert not tokens.verify_refresh_token("abc", "not-a-hash")


def test_token_family_is_uuid(tokens):
    family = tokens.generate_token_family()
    assert str(uuid.UUID(family)) == family


def test_password_hashing(tokens):
    hashed = tokens.hash_password("secret123")
    assert tokens.verify_password("secret123", hashed)
    assert not tokens.verify_password("wrong", hashed)


def test_access_token_claims(tokens):
    token = tokens.create_access_token(7, "ann@example.com", "member")
    payload = tokens.decode_access_token(token)
    assert payload["sub"] == "7"
    assert payload["email"] == "ann@example.com"
    assert payload["role"] == "member"


def test_expired_access_token_only_decodes_without_exp_check():
    expired = TokenUtils(jwt_secret="s", access_token_minutes=-1, bcrypt_rounds=4)
    token = expired.create_access_token(1, "a@example.com", "admin")
    with pytest.raises(jwt.ExpiredSignatureError):
        expired.decode_access_token(token)
    assert expired.decode_access_token(token, verify_exp=False)["sub"] == "1"


def test_access_token_signed_with_other_secret_is_rejected(tokens):
    other = TokenUtils(jwt_secret="other-secret", bcrypt_rounds=4)
    token = other.create_access_token(1, "a@example.com", "admin")
    with pytest.raises(jwt.InvalidTokenError):
        tokens.decode_access_token(token, verify_exp=False)
