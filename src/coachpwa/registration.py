"""Page-side worker registration and update detection."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import urlsplit

from coachpwa._constants import LOCAL_HOSTS
from coachpwa._transport import Fetcher
from coachpwa.cache import CacheStorage
from coachpwa.config import PwaConfig
from coachpwa.exceptions import PwaError
from coachpwa.models.http import Request, Response
from coachpwa.models.messages import WorkerMessage
from coachpwa.models.notification import NotificationOptions
from coachpwa.sw.clients import Notification, NotificationTray, WindowClient, WindowClients
from coachpwa.sw.events import FetchEvent, PushEvent
from coachpwa.sw.worker import OfflineCacheWorker, WorkerState

_logger = logging.getLogger(__name__)

UpdatePrompt = Callable[[OfflineCacheWorker], bool | Awaitable[bool]]

# claim() hands the page over while activation is still finishing.
_CONTROLLING_STATES = frozenset({WorkerState.ACTIVATING, WorkerState.ACTIVATED})


def is_secure_origin(origin: str) -> bool:
    """Whether *origin* is a secure context (https, or a loopback host)."""
    parts = urlsplit(origin)
    if parts.scheme == "https":
        return True
    return (parts.hostname or "") in LOCAL_HOSTS


class Registration:
    """One registered worker script and its installing / waiting / active workers."""

    def __init__(self, container: ServiceWorkerContainer, scope: str) -> None:
        self._container = container
        self.scope = scope
        self.installing: OfflineCacheWorker | None = None
        self.waiting: OfflineCacheWorker | None = None
        self.active: OfflineCacheWorker | None = None
        self._activation: asyncio.Task[None] | None = None

    def __repr__(self) -> str:
        return f"<Registration scope={self.scope!r} active={self.active!r}>"

    async def update(self, config: PwaConfig | None = None) -> OfflineCacheWorker:
        """Install a fresh worker and activate it when allowed.

        *config* describes the new script version (e.g. a bumped
        ``cache_version``); it defaults to the container's configuration.

        Raises
        ------
        PwaError
            The install phase failed. The new worker is redundant and the
            previously active worker (if any) keeps control.
        """
        worker = self._container._create_worker(config)
        worker.set_skip_waiting_listener(self._on_skip_waiting)
        worker.start()
        self.installing = worker
        _logger.debug("Update found: installing %r", worker)

        try:
            await worker.install()
        except BaseException:
            self.installing = None
            await worker.stop()
            raise

        self.installing = None
        self.waiting = worker

        if self._container.controller is not None:
            _logger.info("New version available")
            await self._container._offer_update(worker)

        if worker.state == WorkerState.INSTALLED and (worker.skip_waiting_requested or self.active is None):
            await self._activate(worker)
        if self._activation is not None and not self._activation.done():
            await self._activation
        return worker

    def _on_skip_waiting(self, worker: OfflineCacheWorker) -> None:
        if worker is not self.waiting or worker.state != WorkerState.INSTALLED:
            return
        if self._activation is not None and not self._activation.done():
            return
        self._activation = asyncio.get_running_loop().create_task(self._activate(worker))

    async def _activate(self, worker: OfflineCacheWorker) -> None:
        if worker.state != WorkerState.INSTALLED:
            return
        previous = self.active
        self.waiting = None
        await worker.activate()
        self.active = worker
        if previous is not None:
            # No new events reach a redundant worker; the ones it holds still finish.
            previous.mark_redundant()
            await previous.drain()
            await previous.stop()
        _logger.debug("Activated %r", worker)

    async def show_notification(self, title: str, options: NotificationOptions | None = None) -> Notification:
        return await self._container._notifications.show_notification(title, options)

    async def push(self, data: bytes | str | None = None) -> None:
        """Deliver a push message to the active worker."""
        if self.active is None:
            raise PwaError("no active worker to receive push messages")
        await self.active.post(PushEvent(data))

    async def unregister(self) -> None:
        if self._activation is not None and not self._activation.done():
            self._activation.cancel()
        for worker in (self.installing, self.waiting, self.active):
            if worker is not None:
                worker.mark_redundant()
                await worker.stop()
        self.installing = self.waiting = self.active = None


class ServiceWorkerContainer:
    """A page's view of worker registration (``navigator.serviceWorker``).

    Parameters
    ----------
    config : PwaConfig
        Runtime configuration.
    client : WindowClient
        The page this container belongs to.
    supported : bool
        Whether the platform offers workers at all. When ``False``,
        :meth:`register` is a no-op returning ``None``.
    on_update_available : callable, optional
        Asked (sync or async) whether to load a freshly installed version
        while the page is controlled by an older one. Returning ``True``
        posts ``SKIP_WAITING`` to the new worker and calls *on_reload*.
    on_reload : callable, optional
        Invoked after the user accepted an update.
    """

    def __init__(
        self,
        config: PwaConfig,
        *,
        client: WindowClient,
        caches: CacheStorage,
        fetcher: Fetcher,
        clients: WindowClients,
        notifications: NotificationTray,
        supported: bool = True,
        on_update_available: UpdatePrompt | None = None,
        on_reload: Callable[[], Any] | None = None,
    ) -> None:
        self._config = config
        self._client = client
        self._caches = caches
        self._fetcher = fetcher
        self._clients = clients
        self._notifications = notifications
        self._supported = supported
        self._on_update_available = on_update_available
        self._on_reload = on_reload
        self._registration: Registration | None = None
        self._register_attempted = False

    @property
    def supported(self) -> bool:
        return self._supported

    @property
    def client(self) -> WindowClient:
        return self._client

    @property
    def controller(self) -> OfflineCacheWorker | None:
        return self._client.controller

    @property
    def registration(self) -> Registration | None:
        return self._registration

    @property
    def is_secure_context(self) -> bool:
        return self._config.allow_insecure or is_secure_origin(self._config.origin)

    async def register(self) -> Registration | None:
        """Register the worker script, once per page lifetime.

        Returns ``None`` when workers are unsupported, the origin is not a
        secure context, or the install phase failed (logged).
        """
        if self._register_attempted:
            return self._registration
        self._register_attempted = True

        if not self._supported:
            _logger.debug("Service workers not supported; skipping registration")
            return None
        if not self.is_secure_context:
            _logger.warning("Origin %s is not a secure context; skipping registration", self._config.origin)
            return None

        registration = Registration(self, scope=self._config.resolve("/"))
        try:
            await registration.update()
        except PwaError:
            _logger.error("Service worker registration failed", exc_info=True)
            return None

        self._registration = registration
        _logger.info("Service worker registered with scope %s", registration.scope)
        return registration

    def _create_worker(self, config: PwaConfig | None = None) -> OfflineCacheWorker:
        return OfflineCacheWorker(
            config or self._config,
            caches=self._caches,
            fetcher=self._fetcher,
            clients=self._clients,
            notifications=self._notifications,
        )

    async def _offer_update(self, worker: OfflineCacheWorker) -> None:
        if self._on_update_available is None:
            return
        accepted = self._on_update_available(worker)
        if inspect.isawaitable(accepted):
            accepted = await accepted
        if not accepted:
            return
        worker.post_message(WorkerMessage.skip_waiting().to_wire(), source=self._client.id)
        if self._on_reload is not None:
            result = self._on_reload()
            if inspect.isawaitable(result):
                await result

    async def fetch(self, request: Request) -> Response:
        """The page's ``fetch``: through the controlling worker when it intercepts."""
        worker = self.controller
        if worker is not None and worker.state in _CONTROLLING_STATES and worker.is_running:
            response = await worker.post(FetchEvent(request, client_id=self._client.id))
            if response is not None:
                return response
        return await self._fetcher.fetch(request)

    async def close(self) -> None:
        if self._registration is not None:
            await self._registration.unregister()
