"""
security helpers:
- Argon2 password hashing via argon2-cffi (the credential verifier)
- TokenCodec: signed, expiring bearer tokens via PyJWT
- JTI generation so two tokens issued in the same second never collide
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from services.errors import InvalidToken, MalformedToken

ph = PasswordHasher()

ACCESS = "access"
REFRESH = "refresh"


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TokenCodec:
    """Creates and validates HS256 tokens carrying a subject (the user id)."""

    def __init__(self, secret: str, algorithm: str = "HS256", issuer: str | None = None):
        if not secret:
            raise ValueError("a signing secret is required")
        self.secret = secret
        self.algorithm = algorithm
        self.issuer = issuer

    def issue(self, user_id: str, lifetime_seconds: int, token_type: str = ACCESS) -> str:
        issued_at = _now()
        payload = {
            "sub": str(user_id),
            "type": token_type,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + timedelta(seconds=lifetime_seconds)).timestamp()),
            "jti": generate_jti(),
        }
        if self.issuer:
            payload["iss"] = self.issuer
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str, expected_type: str | None = None) -> Dict[str, Any]:
        """
        Check signature and expiry and return the claims.
        Raises InvalidToken on a bad signature, an expired token or a wrong type.
        """
        try:
            decoded = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise InvalidToken("Token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidToken(f"Invalid token: {exc}") from exc

        if expected_type and decoded.get("type") != expected_type:
            raise InvalidToken("Wrong token type")
        return decoded

    def decode_unverified(self, token: str) -> str:
        """
        Return the subject without checking signature or expiry.
        Only used to locate the session slot before the real verification.
        """
        try:
            decoded = jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError as exc:
            raise MalformedToken() from exc
        subject = decoded.get("sub")
        if not subject or not isinstance(subject, str):
            raise MalformedToken("Token carries no subject")
        return subject
