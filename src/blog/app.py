"""Blog API application: factory, shared state and startup/shutdown."""

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from blog.config import Settings
from blog.content.loader import FileSystemError
from blog.content.store import FileContentStore
from blog.events import EventBus, FilesystemWatcher
from blog.middleware.auth import AdminKeyMiddleware
from blog.middleware.cors import configure_cors
from blog.middleware.logging import RequestLoggingMiddleware
from blog.routes import content, health, search
from blog.search import SearchIndexError, SearchService, run_search_subscriber
from blog.search.stopwords import DEFAULT_STOPWORDS

logger = structlog.get_logger()


def build_search_service(settings: Settings, store: FileContentStore) -> SearchService:
    """Create the search service described by the settings."""
    return SearchService(
        store,
        fetch_limit=settings.search_fetch_limit,
        default_limit=settings.search_default_limit,
        tokenizer=settings.search_tokenizer,
        stopwords=DEFAULT_STOPWORDS if settings.search_stopwords else frozenset(),
        highlight_tag=settings.highlight_tag,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Warm the search index and start live reindexing for the app's lifetime.

    A failed warmup is logged and left to the first query. With watching
    enabled, file changes flow watcher -> event bus -> search subscriber.
    On shutdown the watcher stops first so no event reaches a closed index.
    """
    settings: Settings = app.state.settings
    service: SearchService = app.state.search_service
    logger.info(
        "api_startup",
        host=settings.host,
        port=settings.port,
        content_root=str(settings.content_root),
    )

    if settings.search_warm_on_startup:
        try:
            await service.rebuild_index()
        except (FileSystemError, SearchIndexError) as e:
            # First query retries the build
            logger.error("search_index_warmup_failed", error=str(e))

    watcher: FilesystemWatcher | None = None
    search_task: asyncio.Task[None] | None = None

    if settings.watch_enabled:
        event_bus = EventBus(
            queue_size=settings.event_queue_size,
            max_subscribers=settings.event_max_subscribers,
        )
        watcher = FilesystemWatcher(
            content_root=settings.content_root,
            loop=asyncio.get_running_loop(),
            on_event=event_bus.publish_filesystem_event,
            debounce_ms=settings.event_debounce_ms,
        )
        search_task = asyncio.create_task(run_search_subscriber(event_bus, service))
        watcher.start()
        app.state.event_bus = event_bus
        app.state.watcher = watcher

    try:
        yield
    finally:
        if watcher is not None:
            watcher.stop()

        if search_task is not None:
            search_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await search_task

        service.close()
        logger.info("api_shutdown")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the blog API.

    Args:
        settings: Configuration; read from the environment when omitted.

    Returns:
        Application with content, search and health routes under /api/v1.
    """
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="Blog API",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/api/v1/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/api/v1/openapi.json" if settings.debug else None,
    )

    store = FileContentStore(settings.posts_dir, settings.pages_dir)
    app.state.settings = settings
    app.state.content_store = store
    app.state.search_service = build_search_service(settings, store)
    app.state.event_bus = None
    app.state.watcher = None

    configure_cors(app, settings.cors_origins)
    app.add_middleware(RequestLoggingMiddleware)
    if settings.admin_key:
        app.add_middleware(AdminKeyMiddleware, admin_key=settings.admin_key)

    app.include_router(health.router, prefix="/api/v1")
    app.include_router(content.router, prefix="/api/v1")
    app.include_router(search.router, prefix="/api/v1")

    return app
