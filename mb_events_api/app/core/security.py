"""
Security helpers: password hashing, password policy and signed tokens.

Passwords are hashed with PBKDF2-HMAC-SHA256 and a random 16-byte salt;
the stored form is ``<salt hex>$<hash hex>``.  Tokens are HS256 JSON Web
Tokens issued and verified with PyJWT.  Two token types exist: access
tokens handed out at login and short-lived password-reset tokens.  The
``type`` claim keeps one from being accepted in place of the other.
"""

import hashlib
import hmac
import os
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt

from .config import Settings
from .errors import AuthenticationError

PBKDF2_ITERATIONS = 100_000

ACCESS_TOKEN = "access"
RESET_TOKEN = "reset"

# Lowercase, uppercase, digit and one special character; nothing else.
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@.#$!%*?&])[A-Za-z\d@.#$!%*?&]+$")
PASSWORD_RULE = (
    "Password must include at least one uppercase letter, one lowercase letter, "
    "one number, and one special character (@.#$!%*?&)"
)


def hash_password(password: str) -> str:
    """Hash a password with a fresh random salt."""
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Check a plain password against a stored ``salt$hash`` string.

    Malformed or missing hashes never verify.
    """
    if not hashed_password or "$" not in hashed_password:
        return False
    salt_hex, hash_hex = hashed_password.split("$", 1)
    try:
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except ValueError:
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return hmac.compare_digest(dk, stored_hash)


def is_strong_password(password: str) -> bool:
    return bool(PASSWORD_PATTERN.match(password))


def create_token(
    claims: Dict[str, Any],
    settings: Settings,
    token_type: str = ACCESS_TOKEN,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign ``claims`` into a JWT.

    The lifetime defaults to the access-token lifetime for access tokens
    and to the reset-token lifetime for reset tokens.
    """
    if expires_delta is None:
        minutes = (
            settings.reset_token_expire_minutes
            if token_type == RESET_TOKEN
            else settings.access_token_expire_minutes
        )
        expires_delta = timedelta(minutes=minutes)
    now = datetime.now(timezone.utc)
    payload = dict(claims)
    payload.update({"type": token_type, "iat": now, "exp": now + expires_delta})
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings, token_type: str = ACCESS_TOKEN) -> Dict[str, Any]:
    """Verify a JWT and return its claims.

    Raises
    ------
    AuthenticationError
        If the token is expired, badly signed, malformed or of the wrong
        type.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Token has expired") from exc
    except jwt.PyJWTError as exc:
        raise AuthenticationError("Invalid token") from exc
    if payload.get("type") != token_type:
        raise AuthenticationError("Invalid token")
    return payload


def create_access_token(user_id: int, email: str, settings: Settings) -> str:
    return create_token({"userId": user_id, "email": email}, settings, ACCESS_TOKEN)


def create_reset_token(user_id: int, settings: Settings) -> str:
    # ``jti`` makes every reset token distinct, so a new request supersedes the last.
    return create_token({"id": user_id, "jti": secrets.token_hex(8)}, settings, RESET_TOKEN)
