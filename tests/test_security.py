import uuid

import jwt
import pytest

from krisefikser.core.config import settings
from krisefikser.core.security import create_access_token, decode_access_token


def test_token_roundtrip():
    user_id = uuid.uuid4()
    payload = decode_access_token(create_access_token(user_id, "admin"))
    assert payload["sub"] == str(user_id)
    assert payload["role"] == "admin"


def test_previous_secret_still_accepted_during_rotation(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "JWT_SECRET", "old-secret")
    token = create_access_token(uuid.uuid4(), "user")

    monkeypatch.setattr(settings, "JWT_SECRET", "new-secret")
    monkeypatch.setattr(settings, "JWT_SECRET_PREVIOUS", "old-secret")
    assert decode_access_token(token)["role"] == "user"


def test_unknown_secret_rejected(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "JWT_SECRET", "some-secret")
    token = create_access_token(uuid.uuid4(), "user")

    monkeypatch.setattr(settings, "JWT_SECRET", "other-secret")
    monkeypatch.setattr(settings, "JWT_SECRET_PREVIOUS", "")
    with pytest.raises(jwt.InvalidTokenError):
        decode_access_token(token)
