"""ParseAI server entry point.

``RUN_MODE`` picks what the server exposes:

- ``app`` (default): the REST API with the NiceGUI chat and login pages
  mounted on the same FastAPI server.
- ``api``: the REST API alone, for clients that bring their own interface.

``HOST`` and ``PORT`` set the listen address. Environment variables are
loaded from a .env file.
"""

import logging
import os
import sys

from dotenv import load_dotenv
from fastapi import FastAPI

# Load environment variables before any other imports that might need them
load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

RUN_MODES = ("app", "api")


def mount_ui(app: FastAPI) -> None:
    """Serve the chat and login pages from the API server.

    The pages call ChatService in-process and keep per-browser state in
    NiceGUI user storage, signed with ``NICEGUI_STORAGE_SECRET``.
    """
    from nicegui import ui

    from parseai.ui import chat_page, login_page  # noqa: F401 - Registers the pages

    ui.run_with(
        app,
        title="ParseAI",
        favicon="🤖",
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "parseai-secret"),
    )


def build_app(mode: str) -> FastAPI:
    """Create the ASGI app for a run mode.

    Raises:
        ValueError: The mode is not one of RUN_MODES.
    """
    from parseai.api.app import create_app

    if mode not in RUN_MODES:
        raise ValueError(f"Unknown RUN_MODE {mode!r}; expected one of: {', '.join(RUN_MODES)}")

    app = create_app()
    if mode == "app":
        mount_ui(app)
    return app


def main() -> None:
    import uvicorn

    mode = os.getenv("RUN_MODE", "app").lower()
    app = build_app(mode)

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    logger.info(f"Starting ParseAI ({mode}) on http://{host}:{port}")
    logger.info(f"API docs available at http://localhost:{port}/docs")
    if mode == "app":
        logger.info(f"Chat UI available at http://localhost:{port}/")

    uvicorn.run(app, host=host, port=port, log_level=os.getenv("LOG_LEVEL", "info").lower())


if __name__ == "__main__":
    main()
