"""Watchdog observer for the posts and pages directories.

Watchdog calls handlers on its own thread. The handler here only filters
events there and hands them to the asyncio loop, where bursts for the
same file are coalesced before the callback runs.
"""

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path

import structlog
from watchdog.events import (
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from blog.events.types import CONTENT_DIRS, TEMP_SUFFIXES

logger = structlog.get_logger()

EventCallback = Callable[[FileSystemEvent], Awaitable[None]]

# A burst keeps its strongest event: an editor's create+modify is still a create
EVENT_PRIORITY: dict[type[FileSystemEvent], int] = {
    FileMovedEvent: 4,
    FileCreatedEvent: 3,
    FileDeletedEvent: 2,
    FileModifiedEvent: 1,
}


def is_temp_file(path: str) -> bool:
    """Whether ``path`` names a dotfile or an editor swap/backup file."""
    name = Path(path).name
    return name.startswith(".") or name.endswith(TEMP_SUFFIXES)


def get_event_priority(event: FileSystemEvent) -> int:
    """Debounce priority of an event; 0 for events that are never delivered."""
    return EVENT_PRIORITY.get(type(event), 0)


def _decode(path: str | bytes) -> str:
    if isinstance(path, str):
        return path
    return bytes(path).decode("utf-8", errors="replace")


class DebouncingHandler(FileSystemEventHandler):
    """Coalesce events per file and deliver them on the asyncio loop.

    Each path gets a ``loop.call_later`` timer that restarts on every
    event. When it fires, the highest-priority event seen in the window is
    passed to the callback as a task.

    Attributes:
        debounce_ms: Quiet period before an event is delivered.
        coalesced_events: Events folded into an already pending one.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        callback: EventCallback,
        debounce_ms: int = 50,
    ) -> None:
        super().__init__()
        self._loop = loop
        self._callback = callback
        self.debounce_ms = debounce_ms
        self.coalesced_events = 0
        self._pending: dict[str, tuple[asyncio.TimerHandle, FileSystemEvent]] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed = False

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or get_event_priority(event) == 0:
            return

        path = _decode(event.src_path)
        # A rename from a temp file onto a real one is how atomic saves land
        if is_temp_file(path) and not isinstance(event, FileMovedEvent):
            return

        try:
            self._loop.call_soon_threadsafe(self._schedule, path, event)
        except RuntimeError:
            logger.debug("watcher_loop_closed", path=path)

    def _schedule(self, path: str, event: FileSystemEvent) -> None:
        if self._closed:
            return

        pending = self._pending.pop(path, None)
        if pending is not None:
            handle, previous = pending
            handle.cancel()
            self.coalesced_events += 1
            if get_event_priority(previous) >= get_event_priority(event):
                event = previous

        handle = self._loop.call_later(self.debounce_ms / 1000, self._emit, path)
        self._pending[path] = (handle, event)

    def _emit(self, path: str) -> None:
        _, event = self._pending.pop(path)
        logger.debug("watcher_emit", path=path, event_type=event.event_type)
        task = self._loop.create_task(self._deliver(path, event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(self, path: str, event: FileSystemEvent) -> None:
        try:
            await self._callback(event)
        except Exception as e:
            logger.error("watcher_callback_error", path=path, error=str(e))

    def cancel_all(self) -> None:
        """Drop pending events and cancel running callbacks.

        Must be called on the loop thread.
        """
        self._closed = True
        for handle, _ in self._pending.values():
            handle.cancel()
        self._pending.clear()
        for task in self._tasks:
            task.cancel()


class FilesystemWatcher:
    """Watch the content subdirectories of ``content_root`` for changes.

    Args:
        content_root: Directory holding ``posts/`` and ``pages/``.
        loop: Loop the callback runs on.
        on_event: Coroutine function given each debounced event.
        debounce_ms: Quiet period per file before delivery.
    """

    def __init__(
        self,
        content_root: Path,
        loop: asyncio.AbstractEventLoop,
        on_event: EventCallback,
        debounce_ms: int = 50,
    ) -> None:
        self.directories = [content_root / name for name in CONTENT_DIRS]
        self._handler = DebouncingHandler(loop, on_event, debounce_ms)
        self._observer: Observer | None = None  # pyright: ignore[reportInvalidTypeForm]

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """Create missing content directories and start observing them.

        Raises:
            ValueError: If a content directory path is a regular file.
        """
        for directory in self.directories:
            if directory.exists() and not directory.is_dir():
                raise ValueError(f"Not a directory: {directory}")
            directory.mkdir(parents=True, exist_ok=True)

        observer = Observer()
        for directory in self.directories:
            observer.schedule(self._handler, str(directory), recursive=False)
        observer.start()
        self._observer = observer
        logger.info("watcher_started", directories=[str(d) for d in self.directories])

    def stop(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5.0)
            self._observer = None
        self._handler.cancel_all()
        logger.info("watcher_stopped", coalesced_events=self._handler.coalesced_events)
