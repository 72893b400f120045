"""
BGG controller — cached BoardGameGeek thumbnails.

`GET /api/bgg/image/{bgg_id}/{size}` is PUBLIC.  The first request for
an uncached game waits for the fetch; concurrent requests for the same
game share it (see BggImageService / FetchQueue).
"""

import logging
import re

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from boardgame_event.core.errors import APIError
from boardgame_event.services import Services, get_services
from boardgame_event.services.bgg_image_service import IMAGE_SIZES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bgg", tags=["BGG"])

IMAGE_CACHE_CONTROL = "public, max-age=2592000"  # 30 days


def _parse_bgg_id(raw: str) -> int:
    if not re.fullmatch(r"[0-9]+", raw) or int(raw) <= 0:
        raise APIError("INVALID_BGG_ID", "Ungültige BGG-ID.", 400)
    return int(raw)


@router.get("/image/{bgg_id}/{size}")
async def get_image(
    bgg_id: str,
    size: str,
    services: Services = Depends(get_services),
):
    game_id = _parse_bgg_id(bgg_id)
    if size not in IMAGE_SIZES:
        raise APIError("INVALID_SIZE", "Ungültige Bildgröße. Erlaubt: micro, square200.", 400)

    try:
        path = await services.bgg_images.get_image(game_id, size)
    except Exception:
        logger.exception("Image service failed for BGG ID %s", game_id)
        raise APIError("SERVICE_UNAVAILABLE", "Bilddienst vorübergehend nicht verfügbar.", 503)

    if path is None:
        raise APIError("IMAGE_NOT_FOUND", "Kein Bild verfügbar.", 404)

    return FileResponse(
        path,
        media_type=services.bgg_images.get_content_type(path),
        headers={"Cache-Control": IMAGE_CACHE_CONTROL},
    )
