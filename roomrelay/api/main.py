"""
Server entrypoint for the redesign relay.

Architectural role:
- Configures root logging from `LOG_LEVEL`.
- Builds the application with `create_app` and serves it with uvicorn.

Side effects:
- Reads `.env` and process environment through `Settings.from_env()`.
- Binds `HOST:PORT` (default `0.0.0.0:3001`).
"""

import logging

import uvicorn

from roomrelay.api.http_api import create_app
from roomrelay.config import Settings


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def main():
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    app = create_app(settings)
    logging.getLogger(__name__).info(
        "Backend server running on http://localhost:%d (mode=%s)",
        settings.port,
        app.state.pipeline.gateway.mode,
    )
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
