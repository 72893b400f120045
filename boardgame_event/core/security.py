"""
Password hashing, credential validation & JWT helpers.

- Passwords are hashed with bcrypt directly (passlib is unmaintained
  and broken with bcrypt>=4.1).  Cost factor 12 in production.
- Tokens are HS256 JWTs carrying integer ``iat`` / ``exp`` claims.
  Account and event tokens share the secret; the claim shape tells
  them apart.
- Bearer extraction is strict: only ``Authorization: Bearer <token>``.
"""

import re
import time
from typing import Any

import bcrypt
from jose import jwt

from boardgame_event.core.errors import AccountErrorCode
from boardgame_event.core.result import Err

BCRYPT_COST_FACTOR = 12
MIN_PASSWORD_LENGTH = 8

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_LETTER_RE = re.compile(r"[a-zA-Z]")
_DIGIT_RE = re.compile(r"[0-9]")

_BEARER_PREFIX = "Bearer "

# ── Password hashing ────────────────────────────────────────────────


def hash_password(plain: str, rounds: int = BCRYPT_COST_FACTOR) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash at all
        return False


# ── Credential rules ─────────────────────────────────────────────────


def validate_password(password: str) -> Err | None:
    """Min 8 characters, at least one letter and one digit."""
    if len(password) < MIN_PASSWORD_LENGTH:
        return Err.of(AccountErrorCode.PASSWORD_TOO_SHORT)
    if not _LETTER_RE.search(password):
        return Err.of(AccountErrorCode.PASSWORD_MISSING_LETTER)
    if not _DIGIT_RE.search(password):
        return Err.of(AccountErrorCode.PASSWORD_MISSING_NUMBER)
    return None


def validate_email(email: str) -> Err | None:
    if not _EMAIL_RE.match(email):
        return Err.of(AccountErrorCode.INVALID_EMAIL)
    return None


# ── JWT ──────────────────────────────────────────────────────────────


def encode_token(
    claims: dict[str, Any],
    *,
    secret: str,
    algorithm: str,
    expires_in: int,
) -> str:
    """Sign ``claims`` with ``iat = now`` and ``exp = iat + expires_in`` seconds."""
    issued_at = int(time.time())
    to_encode = dict(claims)
    to_encode.update({"iat": issued_at, "exp": issued_at + expires_in})
    return jwt.encode(to_encode, secret, algorithm=algorithm)


def decode_token(
    token: str,
    *,
    secret: str,
    algorithm: str,
    verify_exp: bool = True,
) -> dict[str, Any]:
    """Verify signature (and expiry) and return the claims.

    Raises ``jose.JWTError`` (``ExpiredSignatureError`` for an expired
    but otherwise valid token).
    """
    return jwt.decode(
        token,
        secret,
        algorithms=[algorithm],
        options={"verify_exp": verify_exp},
    )


def extract_bearer_token(authorization: str | None) -> str | None:
    """``"Bearer abc"`` → ``"abc"``; any other scheme or no header → None."""
    if not authorization or not authorization.startswith(_BEARER_PREFIX):
        return None
    return authorization[len(_BEARER_PREFIX):] or None
