"""
Auth dependencies — request gating for account and event tokens.

`require_auth` is the account gate:

1. Extract the bearer token (``Authorization: Bearer <token>`` only).
2. Validate it via the session service (signature, expiry, session row).
3. Load the account; a missing account and a deactivated account get
   their own error codes.
4. Return an ``AuthContext`` (account + session id) to the route.

`require_admin` stacks on top of it and checks the role.
`resolve_optional_account` never fails — routes that treat anonymous
and signed-in callers differently use it.
`require_event_auth` gates event-scoped routes with stateless event tokens.

Usage in a route:
    @router.get("/me")
    async def me(auth: AuthContext = Depends(require_auth)): ...

    @router.get("/", dependencies=[Depends(require_admin)])
    async def list_accounts(...): ...
"""

import logging
import uuid
from dataclasses import dataclass

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from boardgame_event.core.database import get_db
from boardgame_event.core.errors import INVALID_EVENT_TOKEN, AccountErrorCode, APIError
from boardgame_event.core.security import extract_bearer_token
from boardgame_event.models.account import Account
from boardgame_event.services import Services, get_services
from boardgame_event.services.event_token_service import EventTokenFailure

logger = logging.getLogger(__name__)

EVENT_TOKEN_REQUIRED = "Event token required"
EVENT_TOKEN_EXPIRED = "Event token expired"
EVENT_TOKEN_INVALID = "Invalid event token"


@dataclass(frozen=True)
class AuthContext:
    account: Account
    session_id: uuid.UUID


# ── Account tokens ──────────────────────────────────────────────────


async def require_auth(
    authorization: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
) -> AuthContext:
    token = extract_bearer_token(authorization)
    if token is None:
        raise APIError.for_account(AccountErrorCode.INVALID_TOKEN, 401)

    payload = await services.sessions.validate_token(db, token)
    if payload is None:
        raise APIError.for_account(AccountErrorCode.INVALID_TOKEN, 401)

    account = await services.accounts.get_by_id(db, payload.account_id)
    if account is None:
        logger.warning("Session %s references missing account %s", payload.session_id, payload.account_id)
        raise APIError.for_account(AccountErrorCode.ACCOUNT_NOT_FOUND, 401)

    if account.is_deactivated:
        raise APIError.for_account(AccountErrorCode.ACCOUNT_DEACTIVATED, 403)

    return AuthContext(account=account, session_id=payload.session_id)


async def require_admin(auth: AuthContext | None = Depends(require_auth)) -> AuthContext:
    """Must run after ``require_auth`` — FastAPI's dependency graph guarantees it."""
    if auth is None or auth.account is None:
        raise APIError.for_account(AccountErrorCode.INVALID_TOKEN, 401)

    if not auth.account.is_admin:
        logger.warning("Admin route denied for account %s", auth.account.id)
        raise APIError.for_account(AccountErrorCode.NOT_AUTHORIZED, 403)

    return auth


async def resolve_optional_account(
    authorization: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
) -> Account | None:
    """The caller's account, or None — never an error response."""
    token = extract_bearer_token(authorization)
    if token is None:
        return None

    payload = await services.sessions.validate_token(db, token)
    if payload is None:
        return None

    account = await services.accounts.get_by_id(db, payload.account_id)
    if account is None or account.is_deactivated:
        return None
    return account


# ── Event tokens ────────────────────────────────────────────────────


def require_event_auth(
    authorization: str | None = Header(default=None),
    services: Services = Depends(get_services),
) -> str:
    """Return the event id of a valid event token (no database lookup)."""
    token = extract_bearer_token(authorization)
    if token is None:
        raise APIError(INVALID_EVENT_TOKEN, EVENT_TOKEN_REQUIRED, 401)

    check = services.event_tokens.check(token)
    if check.payload is None:
        message = (
            EVENT_TOKEN_EXPIRED
            if check.failure == EventTokenFailure.EXPIRED
            else EVENT_TOKEN_INVALID
        )
        raise APIError(INVALID_EVENT_TOKEN, message, 401)

    return check.payload.event_id
