"""
Auth token helpers.

Tokens are HS256 JWTs carrying the user's ``username`` and ``email``.
Only the username is consumed downstream: it becomes the *viewer* that
every service call receives.
"""
from datetime import datetime, timedelta, timezone

import jwt

from conduit.config import settings
from conduit.exceptions import Unauthorized

_TOKEN_SCHEMES = ("token", "bearer")


def generate_token(username: str, email: str) -> str:
    """Issue a signed token valid for ``settings.TOKEN_TTL_DAYS`` days."""
    payload = {
        "username": username,
        "email": email,
        "exp": datetime.now(timezone.utc) + timedelta(days=settings.TOKEN_TTL_DAYS),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> str:
    """
    Return the username carried by *token*.

    Raises ``Unauthorized`` when the signature is invalid, the token has
    expired, or the payload has no username.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError as exc:
        raise Unauthorized() from exc

    username = payload.get("username")
    if not username:
        raise Unauthorized()
    return username


def parse_authorization_header(header: str | None) -> str | None:
    """
    Extract the raw token from an ``Authorization: Token <jwt>`` header
    (``Bearer`` is accepted too).  Returns None when the header is absent.
    """
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() not in _TOKEN_SCHEMES or not token.strip():
        raise Unauthorized()
    return token.strip()
