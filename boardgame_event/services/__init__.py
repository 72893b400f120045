"""
Service wiring.

Services are built once per process by ``build_services`` (called from
the app factory) and reached from routes through ``get_services``.
Nothing in here is a module-level singleton, so tests can build their
own set with different settings.
"""

from dataclasses import dataclass

from fastapi import Request

from boardgame_event.core.config import Settings
from boardgame_event.services.account_service import AccountService
from boardgame_event.services.bgg_image_service import BggImageService
from boardgame_event.services.bgg_page_fetcher import BggPageFetcher
from boardgame_event.services.event_service import EventService
from boardgame_event.services.event_token_service import EventTokenService
from boardgame_event.services.session_service import SessionService


@dataclass
class Services:
    accounts: AccountService
    sessions: SessionService
    events: EventService
    event_tokens: EventTokenService
    bgg_images: BggImageService


def build_services(settings: Settings) -> Services:
    page_fetcher = BggPageFetcher(
        scraper_api_key=settings.BGG_SCRAPER_API_KEY,
        crawler_url=settings.BGG_CRAWLER_URL,
        timeout=settings.BGG_HTTP_TIMEOUT_SECONDS,
    )
    return Services(
        accounts=AccountService(bcrypt_rounds=settings.BCRYPT_ROUNDS),
        sessions=SessionService(secret=settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM),
        events=EventService(
            event_name=settings.EVENT_NAME,
            event_password=settings.EVENT_PASSWORD,
            bcrypt_rounds=settings.BCRYPT_ROUNDS,
        ),
        event_tokens=EventTokenService(
            secret=settings.SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
            expires_in=settings.EVENT_TOKEN_EXPIRES_IN,
        ),
        bgg_images=BggImageService(
            cache_dir=settings.BGG_IMAGE_CACHE_DIR,
            page_fetcher=page_fetcher,
            scrape_enabled=settings.BGG_SCRAPE_ENABLED,
            timeout=settings.BGG_HTTP_TIMEOUT_SECONDS,
        ),
    )


def get_services(request: Request) -> Services:
    """FastAPI dependency — the process-wide service set."""
    return request.app.state.services
