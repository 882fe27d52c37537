"""Translation of raw watchdog events into content domain events."""

import uuid
from datetime import UTC, datetime
from pathlib import Path

import structlog
from watchdog.events import (
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
)

from blog.content.paths import is_valid_slug
from blog.events.types import CONTENT_DIRS, DomainEvent, EventType, Topic

logger = structlog.get_logger()

_EVENT_TYPES: dict[tuple[type[FileSystemEvent], Topic], EventType] = {
    (FileCreatedEvent, "posts"): EventType.POST_CREATED,
    (FileModifiedEvent, "posts"): EventType.POST_MODIFIED,
    (FileDeletedEvent, "posts"): EventType.POST_DELETED,
    (FileCreatedEvent, "pages"): EventType.PAGE_CREATED,
    (FileModifiedEvent, "pages"): EventType.PAGE_MODIFIED,
    (FileDeletedEvent, "pages"): EventType.PAGE_DELETED,
}


def _decode(path: str | bytes) -> str:
    if isinstance(path, str):
        return path
    return bytes(path).decode("utf-8", errors="replace")


def extract_slug(filename: str) -> str | None:
    """Extract the slug from a markdown filename.

    Args:
        filename: Name of the file (with extension).

    Returns:
        Filename without ``.md`` if it is a valid slug, None otherwise.
    """
    if not filename.endswith(".md"):
        return None

    slug = filename[:-3]
    if not slug or not is_valid_slug(slug):
        return None
    return slug


def determine_topic(path: Path) -> Topic | None:
    """Map a file path to its topic from the name of its parent directory."""
    for topic in CONTENT_DIRS:
        if path.parent.name == topic:
            return topic
    return None


def _make_event(event_type: EventType, topic: Topic, path: Path) -> DomainEvent | None:
    slug = extract_slug(path.name)
    if slug is None:
        logger.debug("event_invalid_slug", filename=path.name)
        return None
    return DomainEvent(
        id=str(uuid.uuid4()),
        type=event_type,
        timestamp=datetime.now(UTC),
        topic=topic,
        path=path.name,
        slug=slug,
    )


def normalize_event(raw_event: FileSystemEvent) -> list[DomainEvent]:
    """Transform a raw filesystem event into domain events.

    A rename becomes a delete of the old slug followed by a create of the
    new one; editors that save through a temporary file rely on this.

    Args:
        raw_event: Raw watchdog filesystem event.

    Returns:
        Zero, one or two domain events.
    """
    if isinstance(raw_event, FileMovedEvent):
        events: list[DomainEvent] = []
        src = Path(_decode(raw_event.src_path))
        dest = Path(_decode(raw_event.dest_path))

        src_topic = determine_topic(src)
        if src_topic is not None:
            deleted = _make_event(_EVENT_TYPES[(FileDeletedEvent, src_topic)], src_topic, src)
            if deleted:
                events.append(deleted)

        dest_topic = determine_topic(dest)
        if dest_topic is not None:
            created = _make_event(
                _EVENT_TYPES[(FileCreatedEvent, dest_topic)], dest_topic, dest
            )
            if created:
                events.append(created)
        return events

    path = Path(_decode(raw_event.src_path))
    topic = determine_topic(path)
    if topic is None:
        logger.debug("event_unknown_topic", path=str(path))
        return []

    event_type = _EVENT_TYPES.get((type(raw_event), topic))
    if event_type is None:
        return []

    event = _make_event(event_type, topic, path)
    return [event] if event else []
