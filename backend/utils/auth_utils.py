import json
import logging
import os
import time
import urllib.request
from typing import Any, Dict

from dotenv import load_dotenv
from fastapi import HTTPException, Request, status
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError

load_dotenv()

logger = logging.getLogger(__name__)

COGNITO_REGION = os.getenv("COGNITO_REGION", "eu-west-1")
COGNITO_USER_POOL_ID = os.getenv("COGNITO_USER_POOL_ID")
COGNITO_APP_CLIENT_ID = os.getenv("COGNITO_APP_CLIENT_ID")
COGNITO_ISSUER = f"https://cognito-idp.{COGNITO_REGION}.amazonaws.com/{COGNITO_USER_POOL_ID}"

JWKS_CACHE_SECONDS = 60 * 60 * 24
_jwks = {"keys": [], "expires": 0.0}


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def get_jwks():
    """Cognito's signing keys, refreshed once a day."""
    if _jwks["keys"] and _jwks["expires"] > time.time():
        return _jwks["keys"]

    url = f"{COGNITO_ISSUER}/.well-known/jwks.json"
    logger.info(f"Fetching JWKS from: {url}")
    try:
        with urllib.request.urlopen(url) as response:
            keys = json.loads(response.read().decode("utf-8"))["keys"]
    except Exception as e:
        logger.error(f"Error fetching JWKS: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not fetch Cognito public keys for token validation.",
        )
    _jwks.update(keys=keys, expires=time.time() + JWKS_CACHE_SECONDS)
    return keys


def bearer_token(request: Request) -> str:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized("A bearer token is required")
    return token.strip()


def _signing_key(token: str) -> Dict[str, Any]:
    try:
        kid = jwt.get_unverified_header(token).get("kid")
    except JWTError:
        raise _unauthorized("Invalid token header")
    key = next((k for k in get_jwks() if k.get("kid") == kid), None)
    if key is None:
        raise _unauthorized("Unable to find a matching public key to verify the token")
    return key


def get_current_user(request: Request) -> Dict[str, Any]:
    """FastAPI dependency returning the verified Cognito claims of the caller."""
    token = bearer_token(request)
    key = _signing_key(token)
    try:
        return jwt.decode(token, key, algorithms=["RS256"], audience=COGNITO_APP_CLIENT_ID, issuer=COGNITO_ISSUER)
    except ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except JWTError as e:
        raise _unauthorized(f"Token validation failed: {e}")


def get_user_identifier(user: Dict[str, Any]) -> str:
    """Stable identifier recorded as the acting user on ledger rows."""
    identifier = user.get("sub") or user.get("username") or user.get("cognito:username")
    if not identifier:
        raise _unauthorized("Token does not identify a user")
    return str(identifier)
