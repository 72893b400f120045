"""
Session controller — list and end the caller's own sessions.

All routes require a valid session.  Admin force-logout lives in the
account controller.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from boardgame_event.auth.dependencies import AuthContext, require_auth
from boardgame_event.core.database import get_db
from boardgame_event.core.result import unwrap
from boardgame_event.schemas import SessionListOut, SessionOut, SuccessResponse
from boardgame_event.services import Services, get_services

router = APIRouter(prefix="/api/sessions", tags=["Sessions"])


@router.get("", response_model=SessionListOut)
async def list_sessions(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    """All sessions of the caller; the one making this request is flagged."""
    sessions = await services.sessions.get_sessions_for_account(db, auth.account.id)
    return SessionListOut(
        sessions=[
            SessionOut.model_validate(s).model_copy(update={"is_current": s.id == auth.session_id})
            for s in sessions
        ]
    )


@router.delete("", response_model=SuccessResponse)
async def logout_everywhere(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    await services.sessions.delete_all_sessions(db, auth.account.id)
    return SuccessResponse(message="Alle Sitzungen wurden beendet.")


@router.delete("/{session_id}", response_model=SuccessResponse)
async def delete_session(
    session_id: uuid.UUID,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    """End one of the caller's sessions (403 if it belongs to someone else)."""
    unwrap(await services.sessions.delete_session(db, session_id, auth.account.id))
    return SuccessResponse()
