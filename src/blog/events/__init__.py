"""Events subsystem for content file monitoring."""
from blog.events.bus import EventBus
from blog.events.normalizer import normalize_event
from blog.events.types import DomainEvent, EventType
from blog.events.watcher import FilesystemWatcher

__all__ = [
    "DomainEvent",
    "EventBus",
    "EventType",
    "FilesystemWatcher",
    "normalize_event",
]
