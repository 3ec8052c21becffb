from __future__ import annotations

import argparse
import sys

import structlog
import uvicorn

from app.config import get_settings
from app.errors import StoreError, TelemetryConfigError
from app.main import create_app
from app.observability.logging import configure_logging


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="User records HTTP service")
    parser.add_argument("--host", default=settings.listen_host, help="Interface to bind (default from GOAPI_ENDPOINT)")
    parser.add_argument("--port", type=int, default=settings.listen_port, help="Port to bind (default from GOAPI_ENDPOINT)")
    parser.add_argument("--log-level", default=settings.log_level, help="Root log level")
    args = parser.parse_args()

    configure_logging(args.log_level)
    logger = structlog.get_logger("app")

    try:
        app = create_app(settings)
    except (StoreError, TelemetryConfigError) as exc:
        logger.critical("startup.failed", error=str(exc))
        sys.exit(1)

    logger.info("startup.listening", host=args.host, port=args.port)
    uvicorn.run(app, host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main()
