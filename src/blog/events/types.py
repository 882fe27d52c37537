"""Content change events published on the event bus."""
from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel

Topic = Literal["posts", "pages"]

# Subdirectories of the content root that produce events, one topic each
CONTENT_DIRS: tuple[Topic, ...] = ("posts", "pages")

# Editor swap and backup files
TEMP_SUFFIXES: tuple[str, ...] = (".swp", ".swo", ".swx", ".tmp", ".bak", "~", ".4913")


class EventType(str, Enum):
    """What happened to which kind of content file."""

    POST_CREATED = "post.created"
    POST_MODIFIED = "post.modified"
    POST_DELETED = "post.deleted"
    PAGE_CREATED = "page.created"
    PAGE_MODIFIED = "page.modified"
    PAGE_DELETED = "page.deleted"

    @property
    def action(self) -> str:
        return self.value.partition(".")[2]


class DomainEvent(BaseModel):
    """A change to one post or page file.

    Attributes:
        id: Event id, unique per event.
        type: Kind of change.
        timestamp: When the change was observed (UTC).
        topic: Content directory the file lives in.
        path: File name inside that directory.
        slug: File stem; always a valid slug.
    """

    id: str
    type: EventType
    timestamp: datetime
    topic: Topic
    path: str | None = None
    slug: str | None = None

    @property
    def removed(self) -> bool:
        """Whether the file is gone rather than new or changed."""
        return self.type.action == "deleted"
