"""
Auth controller — event password check & event token issue.

`POST /verify` is PUBLIC: guests trade the shared event password for a
stateless event token.  `GET /event` is the smallest event-token
protected route; the frontend uses it to check a stored token.
"""

import logging
import uuid

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from boardgame_event.auth.dependencies import require_event_auth
from boardgame_event.core.database import get_db
from boardgame_event.schemas import EventOut, EventPasswordRequest, EventTokenResponse
from boardgame_event.services import Services, get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@router.post("/verify", response_model=EventTokenResponse)
async def verify_event_password(
    body: EventPasswordRequest,
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Check the event password; on success return an event token."""
    if not body.password:
        return _failure(400, "Bitte Passwort eingeben.")

    if body.event_id:
        try:
            event_id = uuid.UUID(body.event_id)
        except ValueError:
            return _failure(401, "Falsches Passwort")
    else:
        event_id = await services.events.get_default_event_id(db)

    if not await services.events.verify_event_password(db, event_id, body.password):
        logger.info("Wrong event password for event %s", event_id)
        return _failure(401, "Falsches Passwort")

    return EventTokenResponse(
        token=services.event_tokens.sign(str(event_id)),
        event_id=str(event_id),
    )


@router.get("/event", response_model=EventOut)
async def current_event(event_id: str = Depends(require_event_auth)):
    return EventOut(event_id=event_id)
