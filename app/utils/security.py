from __future__ import annotations

import base64
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Literal, Mapping, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

# ---------------------------------------------------------------------
# Password hashing (bcrypt via passlib)
# ---------------------------------------------------------------------

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

TokenType = Literal["access"]


def hash_password(password: str) -> str:
    """
    Hash a raw password using bcrypt.
    Returns a passlib-formatted hash string.
    """
    if not isinstance(password, str) or not password:
        raise ValueError("password must be a non-empty string")
    return _pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a raw password against the stored hash.
    Returns True if matches; otherwise False.
    """
    if not password or not password_hash:
        return False
    try:
        return _pwd_context.verify(password, password_hash)
    except ValueError:
        # malformed hash or unknown scheme
        return False


# ---------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------

def utcnow() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------
# JWT helpers
# ---------------------------------------------------------------------

def _load_jwt_settings() -> tuple[str, str]:
    """
    Load SECRET_KEY and ALGORITHM from environment variables.
    """
    secret_key = os.getenv("SECRET_KEY")
    algorithm = os.getenv("ALGORITHM", "HS256")

    if not secret_key or len(secret_key) < 32:
        raise RuntimeError("SECRET_KEY environment variable is not set (or too short; use 32+ chars)")

    return secret_key, algorithm


def _access_token_default_ttl() -> timedelta:
    # members stay signed in for a week, like the old session cookie
    minutes = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))
    return timedelta(minutes=minutes)


def create_access_token(
    *,
    subject: str,  # member id (uuid as str)
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
    extra_claims: Optional[Mapping[str, Any]] = None,
) -> str:
    """
    Create a signed JWT access token.

    Includes:
      - sub: subject (member id)
      - type: "access"
      - iat, exp: epoch seconds
      - email (optional)
      - extra_claims (optional, cannot overwrite reserved claims)
    """
    secret_key, algorithm = _load_jwt_settings()

    if not subject or not isinstance(subject, str):
        raise ValueError("subject must be a non-empty string")

    now = utcnow()
    expire = now + (expires_delta or _access_token_default_ttl())

    payload: Dict[str, Any] = {
        "sub": subject,
        "type": "access",
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }

    if email is not None:
        payload["email"] = email

    if extra_claims:
        for k, v in extra_claims.items():
            if k in {"sub", "type", "iat", "exp"}:
                raise ValueError(f"extra_claims must not override reserved claim: {k}")
            payload[k] = v

    return jwt.encode(payload, secret_key, algorithm=algorithm)


def verify_token(
    token: str,
    *,
    expected_type: Optional[TokenType] = None,
) -> Dict[str, Any]:
    """
    Verify a JWT and return its decoded payload.

    Verifies:
      - signature validity
      - exp (expiry) validity (python-jose enforces exp by default)
      - required claims: sub, type
      - if expected_type provided: payload['type'] must match

    Does NOT check whether the member still exists or is active.
    """
    secret_key, algorithm = _load_jwt_settings()

    if not token or not isinstance(token, str):
        raise ValueError("token must be a non-empty string")

    try:
        payload = jwt.decode(token, secret_key, algorithms=[algorithm])
    except JWTError as e:
        raise ValueError("Invalid token") from e

    sub = payload.get("sub")
    token_type = payload.get("type")

    if not sub or not isinstance(sub, str):
        raise ValueError("Invalid token: missing/invalid 'sub'")

    if token_type != "access":
        raise ValueError("Invalid token: missing/invalid 'type'")

    if expected_type is not None and token_type != expected_type:
        raise ValueError(f"Invalid token type: expected '{expected_type}', got '{token_type}'")

    return payload


# ---------------------------------------------------------------------
# Invitation tokens
# ---------------------------------------------------------------------

def create_invitation_uid(*, nbytes: int = 24) -> str:
    """
    URL-safe random token identifying an invitation in its sign-up link.
    """
    if not isinstance(nbytes, int) or nbytes < 16:
        raise ValueError("nbytes must be an int >= 16")
    raw = os.urandom(nbytes)
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")
