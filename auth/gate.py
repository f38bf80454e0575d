"""
Auth gate: resolves the caller of a protected request.

The gate is an ordered tuple of stages. Each stage takes a ``GateContext``
and returns a new one, or raises ``UnauthenticatedError`` to stop the
request:

    extract_bearer  ->  verify_token  ->  resolve_user

Every failure carries the same client-facing message; the specific reason
(bad signature, expiry, unknown user, …) is only logged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Optional, Tuple

from auth.jwt import TokenService
from database.models import User
from database.users import UserStore
from utils.errors import TokenError, UnauthenticatedError

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "Not authorized"


@dataclass(frozen=True)
class GateContext:
    authorization: Optional[str]
    token: Optional[str] = None
    user_id: Optional[str] = None
    user: Optional[User] = None


Stage = Callable[[GateContext], Awaitable[GateContext]]


def _reject(reason: str) -> UnauthenticatedError:
    logger.info("Rejected request: %s", reason)
    return UnauthenticatedError(GENERIC_MESSAGE)


class AuthGate:
    def __init__(self, tokens: TokenService, users: UserStore):
        self._tokens = tokens
        self._users = users
        self.stages: Tuple[Stage, ...] = (
            self.extract_bearer,
            self.verify_token,
            self.resolve_user,
        )

    async def extract_bearer(self, ctx: GateContext) -> GateContext:
        header = (ctx.authorization or "").strip()
        scheme, _, token = header.partition(" ")
        token = token.strip()
        if scheme.lower() != "bearer" or not token or " " in token:
            raise _reject("missing or malformed Authorization header")
        return replace(ctx, token=token)

    async def verify_token(self, ctx: GateContext) -> GateContext:
        try:
            user_id = self._tokens.verify(ctx.token or "")
        except TokenError as exc:
            raise _reject(f"{type(exc).__name__}: {exc}") from exc
        return replace(ctx, user_id=user_id)

    async def resolve_user(self, ctx: GateContext) -> GateContext:
        user = await self._users.find_by_id(ctx.user_id or "")
        if user is None:
            raise _reject(f"token subject {ctx.user_id} no longer exists")
        return replace(ctx, user=user)

    async def authenticate(self, authorization: Optional[str]) -> User:
        """Run every stage in order and return the resolved user."""
        ctx = GateContext(authorization=authorization)
        for stage in self.stages:
            ctx = await stage(ctx)
        return ctx.user
