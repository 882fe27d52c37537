"""Event bus subscriber for keeping the search index in sync."""

import asyncio

import structlog

from blog.content.loader import ContentValidationError, FileSystemError
from blog.events.bus import WILDCARD, EventBus
from blog.events.types import DomainEvent
from blog.search.index import SearchIndexError
from blog.search.schemas import SearchDocumentType
from blog.search.service import SearchService

logger = structlog.get_logger()

_TOPIC_TO_TYPE: dict[str, SearchDocumentType] = {
    "posts": SearchDocumentType.POST,
    "pages": SearchDocumentType.PAGE,
}


async def handle_event(service: SearchService, event: DomainEvent) -> None:
    """Apply one content event to the search index.

    Created and modified files are re-synced, which also drops entities
    that are no longer published. Deleted files are removed by slug.

    Args:
        service: Search service owning the index.
        event: Domain event from the bus.
    """
    if not event.slug:
        return

    doc_type = _TOPIC_TO_TYPE[event.topic]

    if event.removed:
        await service.remove_entity(doc_type, event.slug)
    else:
        indexed = await service.sync_entity(doc_type, event.slug)
        logger.debug("search_event_synced", slug=event.slug, indexed=indexed)


async def run_search_subscriber(
    event_bus: EventBus,
    service: SearchService,
) -> None:
    """Subscribe to content events and update the search index.

    Runs as a long-lived asyncio task. A failure to apply one event is
    logged and does not stop the subscriber.

    Args:
        event_bus: Application event bus instance.
        service: Search service owning the index.
    """
    with event_bus.subscribe(WILDCARD) as subscription:
        logger.info("search_subscriber_started", subscriber_id=subscription.id)
        try:
            async for event in subscription:
                try:
                    await handle_event(service, event)
                except (ContentValidationError, FileSystemError, SearchIndexError) as e:
                    logger.error(
                        "search_event_failed",
                        event_type=event.type.value,
                        slug=event.slug,
                        error=str(e),
                    )
        except asyncio.CancelledError:
            logger.info("search_subscriber_stopped", subscriber_id=subscription.id)
            raise
