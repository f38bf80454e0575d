"""
JWT-style token creation and verification.

Tokens are base64url-encoded JSON payloads signed with HMAC-SHA256::

    <base64url(payload)>.<hex HMAC-SHA256(secret, payload)>

The payload carries ``sub`` (user id), ``iat`` and ``exp`` (unix seconds).
Nothing is stored server-side; a token stays valid until ``exp``.
"""

from __future__ import annotations

import binascii
import hashlib
import hmac
import json
import time
from base64 import urlsafe_b64decode, urlsafe_b64encode
from typing import Callable

from config.settings import Settings
from utils.errors import ExpiredTokenError, InvalidSignatureError, MalformedTokenError


def _b64encode(raw: bytes) -> str:
    return urlsafe_b64encode(raw).decode().rstrip("=")


def _b64decode(data: str) -> bytes:
    return urlsafe_b64decode(data + "=" * (-len(data) % 4))


class TokenService:
    """Issue and verify signed, time-limited identity tokens."""

    def __init__(
        self,
        secret: str,
        expiry_seconds: int,
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ValueError("Token secret must not be empty")
        self._secret = secret.encode()
        self._expiry_seconds = expiry_seconds
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(settings.jwt_secret, settings.jwt_expiry_seconds)

    def _sign(self, raw: bytes) -> str:
        return hmac.new(self._secret, raw, hashlib.sha256).hexdigest()

    def issue(self, user_id: str) -> str:
        """Create a signed token containing ``user_id`` and expiry."""
        now = int(self._clock())
        payload = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + self._expiry_seconds,
        }
        raw = json.dumps(payload, separators=(",", ":")).encode()
        return _b64encode(raw) + "." + self._sign(raw)

    def verify(self, token: str) -> str:
        """
        Verify token and return the ``user_id`` it was issued for.

        Raises ``MalformedTokenError``, ``InvalidSignatureError`` or
        ``ExpiredTokenError``; the signature is checked before the payload
        is parsed.
        """
        parts = token.split(".")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise MalformedTokenError("expected <payload>.<signature>")

        try:
            raw = _b64decode(parts[0])
        except (binascii.Error, ValueError) as exc:
            raise MalformedTokenError("payload is not base64url") from exc

        if not hmac.compare_digest(parts[1].encode(), self._sign(raw).encode()):
            raise InvalidSignatureError("signature mismatch")

        try:
            payload = json.loads(raw)
        except ValueError as exc:
            raise MalformedTokenError("payload is not JSON") from exc

        if not isinstance(payload, dict):
            raise MalformedTokenError("payload is not an object")
        user_id = payload.get("sub")
        exp = payload.get("exp")
        if not isinstance(user_id, str) or not user_id:
            raise MalformedTokenError("missing subject")
        if not isinstance(exp, (int, float)) or isinstance(exp, bool):
            raise MalformedTokenError("missing expiry")

        if self._clock() >= exp:
            raise ExpiredTokenError("token expired")
        return user_id
