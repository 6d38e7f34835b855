from __future__ import annotations

# pylint: disable=redefined-outer-name

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field

import pytest

from coachpwa.cache import CacheStorage
from coachpwa.config import PwaConfig
from coachpwa.exceptions import PwaNetworkError
from coachpwa.models.http import Request, Response
from coachpwa.sw.clients import NotificationTray, WindowClients
from coachpwa.sw.worker import OfflineCacheWorker

ORIGIN = "https://coach.example"


@dataclass
class FakeOrigin:
    """In-memory origin server reachable through the :class:`Fetcher` protocol."""

    routes: dict[str, tuple[int, bytes, dict[str, str]]] = field(default_factory=dict)
    online: bool = True
    unreachable: set[str] = field(default_factory=set)
    calls: list[Request] = field(default_factory=list)

    def serve(self, url: str, body: bytes, *, status: int = 200, headers: dict[str, str] | None = None) -> None:
        self.routes[url] = (status, body, dict(headers or {}))

    def calls_for(self, url: str) -> int:
        return sum(1 for request in self.calls if request.url == url)

    async def fetch(self, request: Request) -> Response:
        self.calls.append(request)
        await asyncio.sleep(0)
        if not self.online or request.url in self.unreachable:
            raise PwaNetworkError(f"network unreachable for {request.url}", url=request.url)
        route = self.routes.get(request.url)
        if route is None:
            return Response(b"not found", status=404, url=request.url)
        status, body, headers = route
        return Response(body, status=status, headers=headers, url=request.url)


@pytest.fixture
def config() -> PwaConfig:
    return PwaConfig(origin=ORIGIN, prompt_delay=0.01)


@pytest.fixture
def origin(config: PwaConfig) -> FakeOrigin:
    server = FakeOrigin()
    for path in config.static_assets:
        server.serve(config.resolve(path), f"asset:{path}".encode())
    server.serve(config.offline_document_url, b"<h1>Vous etes hors ligne</h1>", headers={"content-type": "text/html"})
    return server


@pytest.fixture
def caches() -> CacheStorage:
    return CacheStorage()


@pytest.fixture
def clients() -> WindowClients:
    return WindowClients()


@pytest.fixture
def tray() -> NotificationTray:
    return NotificationTray()


@pytest.fixture
def make_worker(
    config: PwaConfig,
    origin: FakeOrigin,
    caches: CacheStorage,
    clients: WindowClients,
    tray: NotificationTray,
) -> Callable[..., OfflineCacheWorker]:
    """Build a worker sharing the fixture cache storage, clients and tray.

    Call from inside a running event loop; the worker is started.
    """

    def _make(worker_config: PwaConfig | None = None) -> OfflineCacheWorker:
        worker = OfflineCacheWorker(
            worker_config or config,
            caches=caches,
            fetcher=origin,
            clients=clients,
            notifications=tray,
        )
        worker.start()
        return worker

    return _make
