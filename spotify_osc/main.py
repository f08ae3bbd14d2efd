"""Spotify OSC bridge entry point."""

import uvicorn

from spotify_osc.config import get_settings
from spotify_osc.core.app_factory import create_app
from spotify_osc.logging_config import get_logger, log_with_context, setup_logging

logger = get_logger(__name__)


def main() -> None:
    """Load settings, configure logging and serve until interrupted."""
    settings = get_settings()
    setup_logging(settings.log_level)

    app = create_app(settings)

    log_with_context(
        logger,
        "info",
        "OAuth web server starting",
        setup_url=f"{settings.http_base_url}/setup",
        event_type="web_server_startup",
    )
    uvicorn.run(app, host=settings.http_host, port=settings.http_port, log_config=None)


if __name__ == "__main__":
    main()
