"""
portfolio_api.api.__main__

Entrypoint for running the FastAPI application via `python -m portfolio_api.api`.

Responsibilities:
- Load and validate settings; abort with a non-zero exit on invalid configuration.
- Create the app.
- Start uvicorn with structlog-compatible logging config.
"""

from __future__ import annotations

import sys

import structlog
import uvicorn
from pydantic import ValidationError

from portfolio_api.api.app import create_app
from portfolio_api.settings import get_settings


def main() -> None:
    try:
        settings = get_settings()
    except ValidationError as e:
        # Logging is not configured yet; structlog's defaults still print to stderr.
        structlog.get_logger("portfolio_api.settings").error(
            "invalid_configuration",
            errors=[
                {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                for err in e.errors()
            ],
        )
        sys.exit(1)

    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
    )


if __name__ == "__main__":
    main()
