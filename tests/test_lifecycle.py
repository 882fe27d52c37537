"""Shutdown signal tests."""

import asyncio

from blog.lifecycle import ShutdownSignal, serve_until_signalled


class FakeServer:
    """Serves until told to exit, like uvicorn.Server."""

    def __init__(self) -> None:
        self.should_exit = False

    async def serve(self) -> None:
        while not self.should_exit:
            await asyncio.sleep(0.01)


async def test_request_stops_server() -> None:
    shutdown = ShutdownSignal()
    server = FakeServer()
    task = asyncio.create_task(serve_until_signalled(server, shutdown))

    await asyncio.sleep(0.02)
    assert not task.done()
    shutdown.request("SIGTERM")
    await asyncio.wait_for(task, timeout=1.0)

    assert server.should_exit
    assert shutdown.reason == "SIGTERM"


def test_first_request_wins() -> None:
    shutdown = ShutdownSignal(grace_seconds=5)
    assert not shutdown.requested

    shutdown.request("SIGINT")
    shutdown.request("SIGTERM")

    assert shutdown.requested
    assert shutdown.reason == "SIGINT"
