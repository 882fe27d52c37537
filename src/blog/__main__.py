"""Run the blog API: ``python -m blog`` or the ``blog-api`` script."""

import asyncio
import contextlib

import structlog
import uvicorn

from blog.app import create_app
from blog.config import Settings
from blog.lifecycle import ShutdownSignal, serve_until_signalled
from blog.logging import configure_logging

logger = structlog.get_logger()


def build_server(settings: Settings) -> uvicorn.Server:
    """Create the uvicorn server for the configured app.

    uvicorn's own access log is off; requests are logged by middleware.
    """
    config = uvicorn.Config(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else "warning",
        access_log=False,
        timeout_graceful_shutdown=int(settings.shutdown_timeout),
    )
    return uvicorn.Server(config)


async def serve(settings: Settings) -> None:
    """Serve until SIGTERM or SIGINT arrives.

    Args:
        settings: Server configuration.
    """
    shutdown = ShutdownSignal(grace_seconds=settings.shutdown_timeout)
    shutdown.install(asyncio.get_running_loop())

    logger.info(
        "server_starting",
        host=settings.host,
        port=settings.port,
        content_root=str(settings.content_root),
        watch_enabled=settings.watch_enabled,
    )
    await serve_until_signalled(build_server(settings), shutdown)


def main() -> None:
    settings = Settings()
    configure_logging(debug=settings.debug, json=settings.log_json)

    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(serve(settings))


if __name__ == "__main__":
    main()
