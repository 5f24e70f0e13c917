import pytest
from fastapi import HTTPException, Request
from jose import jwt

from utils import auth_utils


def _request(authorization=None):
    headers = [(b"authorization", authorization.encode())] if authorization else []
    return Request({"type": "http", "headers": headers})


def test_bearer_token_is_read_from_the_header():
    assert auth_utils.bearer_token(_request("Bearer abc.def.ghi")) == "abc.def.ghi"


@pytest.mark.parametrize("header", [None, "Basic dXNlcjpwdw==", "Bearer", "Bearer   "])
def test_missing_or_malformed_header_is_unauthorized(header):
    with pytest.raises(HTTPException) as excinfo:
        auth_utils.get_current_user(_request(header))
    assert excinfo.value.status_code == 401


def test_token_signed_by_an_unknown_key_is_rejected(monkeypatch):
    monkeypatch.setattr(auth_utils, "get_jwks", lambda: [{"kid": "pool-key-1", "kty": "RSA"}])
    token = jwt.encode({"sub": "shopper-1"}, "not-the-pool-key", algorithm="HS256", headers={"kid": "someone-else"})

    with pytest.raises(HTTPException) as excinfo:
        auth_utils.get_current_user(_request(f"Bearer {token}"))

    assert excinfo.value.status_code == 401
    assert "public key" in excinfo.value.detail


def test_garbage_token_is_rejected(monkeypatch):
    monkeypatch.setattr(auth_utils, "get_jwks", lambda: [])
    with pytest.raises(HTTPException) as excinfo:
        auth_utils.get_current_user(_request("Bearer not-a-jwt"))
    assert excinfo.value.detail == "Invalid token header"


def test_user_identifier_prefers_sub():
    assert auth_utils.get_user_identifier({"sub": "abc-123", "username": "ada"}) == "abc-123"
    assert auth_utils.get_user_identifier({"cognito:username": "ada"}) == "ada"
    with pytest.raises(HTTPException):
        auth_utils.get_user_identifier({"email": "ada@example.com"})
