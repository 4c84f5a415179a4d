"""Password hashing, token issuance/decoding and mandatory signing secret."""
from datetime import timedelta

import pytest
from pydantic import ValidationError

from healthmate.core.config import Settings
from healthmate.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


def test_password_hash_roundtrip():
    hashed = hash_password("s3cret-pass")
    assert hashed != "s3cret-pass"
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("other-pass", hashed)


def test_token_binds_user_id():
    payload = decode_access_token(create_access_token(42))
    assert payload is not None
    assert payload["sub"] == "42"
    assert "exp" in payload


def test_expired_token_decodes_to_none():
    assert decode_access_token(create_access_token(1, expires_delta=timedelta(minutes=-1))) is None


def test_garbage_token_decodes_to_none():
    assert decode_access_token("abc.def.ghi") is None
    assert decode_access_token("") is None


def test_settings_require_secret_key(monkeypatch):
    monkeypatch.delenv("SECRET_KEY", raising=False)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_settings_reject_blank_secret_key():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, secret_key="   ")
