"""
Account controller — registration, login, profile & admin account management.

Register, login and `/whoami` are PUBLIC.  `/me/*` routes need a valid session
(`require_auth`); everything keyed by an account id is admin-only.

Controllers are THIN — they unwrap service results and decide which
sessions die:
  - password change  → every session except the current one
  - deactivation     → all sessions
  - admin reset / admin deactivation / force logout → all sessions
"""

import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from boardgame_event.auth.dependencies import (
    AuthContext,
    require_admin,
    require_auth,
    resolve_optional_account,
)
from boardgame_event.core.database import get_db
from boardgame_event.core.errors import (
    MISSING_FIELDS,
    VALIDATION_ERROR,
    AccountErrorCode,
    APIError,
)
from boardgame_event.core.result import unwrap
from boardgame_event.models.account import Account, AccountRole, AccountStatus
from boardgame_event.schemas import (
    AccountEnvelope,
    AccountListOut,
    AccountOut,
    ChangePasswordRequest,
    CredentialsRequest,
    LoginResponse,
    PasswordConfirmationRequest,
    RegisterResponse,
    ResetPasswordRequest,
    SetRoleRequest,
    SetStatusRequest,
    SuccessResponse,
    WhoAmIOut,
)
from boardgame_event.services import Services, get_services

router = APIRouter(prefix="/api/accounts", tags=["Accounts"])


def _missing(message: str) -> APIError:
    return APIError(MISSING_FIELDS, message, 400)


# ── Public ───────────────────────────────────────────────────────────
@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    body: CredentialsRequest,
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Create an account_owner account.  Does not log in."""
    if not body.email or not body.password:
        raise _missing("E-Mail und Passwort sind erforderlich.")

    account = unwrap(await services.accounts.register(db, body.email, body.password))
    return RegisterResponse(
        account=AccountOut.model_validate(account),
        message="Konto erfolgreich erstellt. Bitte melden Sie sich an.",
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    body: CredentialsRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Email + password → account token bound to a new session."""
    if not body.email or not body.password:
        raise _missing("E-Mail und Passwort sind erforderlich.")

    account = unwrap(await services.accounts.authenticate(db, body.email, body.password))
    token = await services.sessions.create_session(
        db,
        account.id,
        user_agent=request.headers.get("user-agent"),
        ip_address=request.client.host if request.client else None,
    )
    return LoginResponse(token=token, account=AccountOut.model_validate(account))


# ── Current account ──────────────────────────────────────────────────
@router.post("/logout", response_model=SuccessResponse)
async def logout(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Delete the session behind the presented token."""
    unwrap(await services.sessions.delete_session(db, auth.session_id, auth.account.id))
    return SuccessResponse(message="Erfolgreich abgemeldet.")


@router.get("/whoami", response_model=WhoAmIOut)
async def whoami(account: Account | None = Depends(resolve_optional_account)):
    """PUBLIC.  Reports the signed-in account, or that the caller is anonymous."""
    if account is None:
        return WhoAmIOut(authenticated=False)
    return WhoAmIOut(authenticated=True, account=AccountOut.model_validate(account))


@router.get("/me", response_model=AccountEnvelope)
async def me(auth: AuthContext = Depends(require_auth)):
    return AccountEnvelope(account=AccountOut.model_validate(auth.account))


@router.patch("/me/password", response_model=SuccessResponse)
async def change_password(
    body: ChangePasswordRequest,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Change password; every other device is logged out, this one stays."""
    if not body.current_password or not body.new_password:
        raise _missing("Aktuelles und neues Passwort sind erforderlich.")

    unwrap(
        await services.accounts.change_password(
            db, auth.account.id, body.current_password, body.new_password,
        )
    )
    await services.sessions.delete_all_sessions_except(db, auth.account.id, auth.session_id)
    return SuccessResponse(
        message="Passwort erfolgreich geändert. Alle anderen Sitzungen wurden beendet.",
    )


@router.post("/me/deactivate", response_model=SuccessResponse)
async def deactivate(
    body: PasswordConfirmationRequest,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Deactivate the own account (password re-confirmation) and end all sessions."""
    if not body.password:
        raise _missing("Passwort ist erforderlich.")

    unwrap(await services.accounts.deactivate(db, auth.account.id, body.password))
    await services.sessions.delete_all_sessions(db, auth.account.id)
    return SuccessResponse(message="Konto erfolgreich deaktiviert.")


# ── Admin ────────────────────────────────────────────────────────────
@router.get("", response_model=AccountListOut, dependencies=[Depends(require_admin)])
async def list_accounts(
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    accounts = await services.accounts.get_all(db)
    return AccountListOut(accounts=[AccountOut.model_validate(a) for a in accounts])


@router.post("/{account_id}/promote", response_model=AccountEnvelope)
async def promote(
    account_id: uuid.UUID,
    auth: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    account = unwrap(await services.accounts.promote_to_admin(db, account_id, auth.account.id))
    return AccountEnvelope(account=AccountOut.model_validate(account))


@router.patch("/{account_id}/role", response_model=AccountEnvelope, dependencies=[Depends(require_admin)])
async def set_role(
    account_id: uuid.UUID,
    body: SetRoleRequest,
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    try:
        role = AccountRole(body.role)
    except ValueError:
        raise APIError(VALIDATION_ERROR, "Ungültige Rolle.", 400)

    account = unwrap(await services.accounts.set_role(db, account_id, role))
    return AccountEnvelope(account=AccountOut.model_validate(account))


@router.patch("/{account_id}/status", response_model=AccountEnvelope)
async def set_status(
    account_id: uuid.UUID,
    body: SetStatusRequest,
    auth: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Activate / deactivate an account.  Deactivation ends all its sessions."""
    try:
        status = AccountStatus(body.status)
    except ValueError:
        raise APIError(VALIDATION_ERROR, "Ungültiger Status.", 400)

    account = unwrap(
        await services.accounts.set_status(db, account_id, status, auth.account.id)
    )
    if status == AccountStatus.DEACTIVATED:
        await services.sessions.delete_all_sessions(db, account_id)
    return AccountEnvelope(account=AccountOut.model_validate(account))


@router.patch("/{account_id}/password", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
async def reset_password(
    account_id: uuid.UUID,
    body: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    if not body.new_password:
        raise _missing("Neues Passwort ist erforderlich.")

    unwrap(await services.accounts.reset_password(db, account_id, body.new_password))
    await services.sessions.delete_all_sessions(db, account_id)
    return SuccessResponse(message="Passwort zurückgesetzt. Alle Sitzungen wurden beendet.")


@router.delete("/{account_id}/sessions", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
async def force_logout(
    account_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Admin force-logout: end every session of the account."""
    if await services.accounts.get_by_id(db, account_id) is None:
        raise APIError.for_account(AccountErrorCode.ACCOUNT_NOT_FOUND, 404)

    await services.sessions.delete_all_sessions(db, account_id)
    return SuccessResponse(message="Alle Sitzungen wurden beendet.")
