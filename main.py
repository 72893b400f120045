"""
Root entrypoint for the Brettspiel-Event API.

    python main.py                 # host/port/reload from settings
    uvicorn main:app --port 3006   # or let uvicorn own the flags
"""

from boardgame_event.core.config import settings
from boardgame_event.main import app  # noqa: F401

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
