"""
Pydantic schemas for request / response serialization.

Kept in a single file for now — split per-domain when it grows.
Schemas are deliberately decoupled from SQLAlchemy models so the
API surface can evolve independently of the DB layer.

The frontend speaks camelCase: every schema serializes by alias and
accepts both camelCase and snake_case on input.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from boardgame_event.models.account import AccountRole, AccountStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ── Accounts ─────────────────────────────────────────────────────────
# Required fields default to "" so the controller can answer with
# MISSING_FIELDS instead of a generic validation error.
class CredentialsRequest(CamelModel):
    email: str = ""
    password: str = ""


class ChangePasswordRequest(CamelModel):
    current_password: str = ""
    new_password: str = ""


class PasswordConfirmationRequest(CamelModel):
    password: str = ""


class ResetPasswordRequest(CamelModel):
    new_password: str = ""


class SetRoleRequest(CamelModel):
    role: str = ""


class SetStatusRequest(CamelModel):
    status: str = ""


class AccountOut(CamelModel):
    id: uuid.UUID
    email: str
    role: AccountRole
    status: AccountStatus
    created_at: datetime


class AccountEnvelope(CamelModel):
    account: AccountOut


class WhoAmIOut(CamelModel):
    authenticated: bool
    account: AccountOut | None = None


class AccountListOut(CamelModel):
    accounts: list[AccountOut]


class RegisterResponse(CamelModel):
    account: AccountOut
    message: str


class LoginResponse(CamelModel):
    token: str
    account: AccountOut


# ── Sessions ─────────────────────────────────────────────────────────
class SessionOut(CamelModel):
    id: uuid.UUID
    account_id: uuid.UUID
    user_agent: str | None = None
    ip_address: str | None = None
    created_at: datetime
    last_used_at: datetime
    is_current: bool = False


class SessionListOut(CamelModel):
    sessions: list[SessionOut]


# ── Event auth ───────────────────────────────────────────────────────
class EventPasswordRequest(CamelModel):
    password: str | None = None
    event_id: str | None = None


class EventTokenResponse(CamelModel):
    success: bool = True
    token: str
    event_id: str


class EventOut(CamelModel):
    event_id: str


# ── Generic ──────────────────────────────────────────────────────────
class SuccessResponse(CamelModel):
    success: bool = True
    message: str | None = None
