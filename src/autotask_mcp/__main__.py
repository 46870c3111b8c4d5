"""CLI entrypoint."""

from __future__ import annotations

import uvicorn

from .logging_config import configure_logging
from .settings import Settings


def main() -> None:
    settings = Settings()
    configure_logging(settings.log_level, settings.log_format)

    if settings.mcp_transport == "stdio":
        from .mcp_server import create_mcp_server

        create_mcp_server(settings).run("stdio")
        return

    from .asgi import create_app

    uvicorn.run(
        create_app(settings),
        host=settings.mcp_host,
        port=settings.mcp_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
