"""Liveness and readiness probes."""
from pathlib import Path
from typing import Literal

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel

from blog.search.index import SearchIndexError

router = APIRouter(prefix="/health", tags=["health"])

CheckStatus = Literal["ok", "failed", "disabled"]


class LivenessResponse(BaseModel):
    status: Literal["alive"]


class ComponentCheck(BaseModel):
    """State of one component. ``disabled`` never fails readiness."""

    status: CheckStatus
    detail: str | None = None


class ReadinessResponse(BaseModel):
    """Overall readiness with a check per component.

    Components are ``posts`` and ``pages`` (content directories),
    ``search_index`` and ``watcher``.
    """

    status: Literal["ready", "not_ready"]
    checks: dict[str, ComponentCheck]


def _content_dir(path: Path) -> ComponentCheck:
    if not path.is_dir():
        return ComponentCheck(status="failed", detail=f"{path} is not a directory")
    try:
        entries = sum(1 for entry in path.iterdir() if entry.suffix == ".md")
    except OSError as e:
        return ComponentCheck(status="failed", detail=e.strerror or str(e))
    return ComponentCheck(status="ok", detail=f"{entries} files")


def _search_index(request: Request) -> ComponentCheck:
    try:
        count = request.app.state.search_service.document_count
    except SearchIndexError as e:
        return ComponentCheck(status="failed", detail=str(e))
    # Built lazily on the first query, so an empty slot is still healthy
    if count is None:
        return ComponentCheck(status="ok", detail="not built")
    return ComponentCheck(status="ok", detail=f"{count} documents")


def _watcher(request: Request) -> ComponentCheck:
    watcher = request.app.state.watcher
    if watcher is None:
        return ComponentCheck(status="disabled")
    if not watcher.running:
        return ComponentCheck(status="failed", detail="observer stopped")
    bus = request.app.state.event_bus
    return ComponentCheck(
        status="ok",
        detail=f"{bus.subscriber_count} subscribers, {bus.dropped_events} dropped events",
    )


@router.get("/live")
async def liveness() -> LivenessResponse:
    return LivenessResponse(status="alive")


@router.get("/ready", responses={503: {"model": ReadinessResponse}})
async def readiness(request: Request, response: Response) -> ReadinessResponse:
    """Report whether content can be served and searched.

    Responds 503 when any component check fails.
    """
    settings = request.app.state.settings
    checks = {
        "posts": _content_dir(settings.posts_dir),
        "pages": _content_dir(settings.pages_dir),
        "search_index": _search_index(request),
        "watcher": _watcher(request),
    }
    ready = all(check.status != "failed" for check in checks.values())
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(status="ready" if ready else "not_ready", checks=checks)
