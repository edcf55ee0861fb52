"""
store_orders.api.__main__

Entrypoint for running the services via `python -m store_orders.api`.
"""

from __future__ import annotations

import uvicorn

from store_orders.api.app import create_app
from store_orders.settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
    )


if __name__ == "__main__":
    main()
