"""Offline cache controller: the worker execution context.

The worker shares no state with the page. The page talks to it only by
posting events onto its inbox (:meth:`OfflineCacheWorker.post`,
:meth:`OfflineCacheWorker.post_message`); :meth:`OfflineCacheWorker.run`
serves the inbox and handles every event in its own task, so a slow
network fetch never blocks an unrelated push or message.

Caching policy is network-first for same-origin ``GET`` requests::

    network ok   -> clone, store clone, return original
    network fail -> cached entry
                 -> offline document (navigations only)
                 -> PwaFetchFailedError
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from coachpwa._constants import CLOSE_ACTION, DEFAULT_NOTIFICATION_URL
from coachpwa._redact import redact_url
from coachpwa._transport import Fetcher
from coachpwa.cache import CacheStorage
from coachpwa.config import PwaConfig
from coachpwa.exceptions import PwaFetchFailedError, PwaNetworkError, PwaWorkerError
from coachpwa.models.http import Request, Response
from coachpwa.models.messages import WorkerMessage
from coachpwa.models.notification import DEFAULT_ACTIONS, NotificationOptions, PushPayload
from coachpwa.sw.clients import NotificationTray, WindowClients
from coachpwa.sw.events import (
    ActivateEvent,
    ExtendableEvent,
    FetchEvent,
    InstallEvent,
    MessageEvent,
    NotificationClickEvent,
    PushEvent,
)

_logger = logging.getLogger(__name__)


class WorkerState(StrEnum):
    PARSED = "parsed"
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVATING = "activating"
    ACTIVATED = "activated"
    REDUNDANT = "redundant"


@dataclass(slots=True)
class _Envelope:
    event: ExtendableEvent
    reply: asyncio.Future[Any] | None


class OfflineCacheWorker:
    """Network-first cache controller with push notification delivery.

    Usage::

        worker = OfflineCacheWorker(config, caches=caches, fetcher=fetcher,
                                    clients=clients, notifications=tray)
        worker.start()
        await worker.install()
        await worker.activate()
        response = await worker.post(FetchEvent(Request.navigate(url)))
    """

    def __init__(
        self,
        config: PwaConfig,
        *,
        caches: CacheStorage,
        fetcher: Fetcher,
        clients: WindowClients,
        notifications: NotificationTray,
    ) -> None:
        self._config = config
        self._caches = caches
        self._fetcher = fetcher
        self._clients = clients
        self._notifications = notifications
        self._state = WorkerState.PARSED
        self._inbox: asyncio.Queue[_Envelope] = asyncio.Queue()
        self._runner: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._skip_waiting = False
        self._skip_waiting_listener: Callable[[OfflineCacheWorker], None] | None = None

    def __repr__(self) -> str:
        return f"<OfflineCacheWorker cache={self.cache_name!r} state={self._state}>"

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> WorkerState:
        return self._state

    @property
    def cache_name(self) -> str:
        return self._config.cache_name

    @property
    def skip_waiting_requested(self) -> bool:
        return self._skip_waiting

    @property
    def is_running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    def set_skip_waiting_listener(self, listener: Callable[[OfflineCacheWorker], None] | None) -> None:
        """Register the callback the registration uses to promote this worker."""
        self._skip_waiting_listener = listener

    # ------------------------------------------------------------------
    # Execution context
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start serving the inbox on the running event loop."""
        if self.is_running:
            return
        self._runner = asyncio.get_running_loop().create_task(self.run(), name=f"worker-{self.cache_name}")

    async def stop(self) -> None:
        """Stop serving and cancel every in-flight event handler."""
        runner, self._runner = self._runner, None
        if runner is not None:
            runner.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await runner
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        while not self._inbox.empty():
            envelope = self._inbox.get_nowait()
            if envelope.reply is not None and not envelope.reply.done():
                envelope.reply.cancel()

    async def run(self) -> None:
        while True:
            envelope = await self._inbox.get()
            self._spawn(self._handle(envelope))

    async def drain(self) -> None:
        """Wait until every event posted so far, including extended work, has settled."""
        while self._tasks or (self.is_running and not self._inbox.empty()):
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            else:
                await asyncio.sleep(0)

    def _spawn(self, coro: Any) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _ensure_accepting(self) -> None:
        if self._state == WorkerState.REDUNDANT:
            raise PwaWorkerError(f"worker for {self.cache_name} is redundant")
        if not self.is_running:
            raise PwaWorkerError(f"worker for {self.cache_name} is not running")

    async def post(self, event: ExtendableEvent) -> Any:
        """Deliver *event* to the worker and wait for its result.

        For a :class:`FetchEvent` the result is the response (or ``None``
        when the worker did not intercept); for other events it is ``None``
        once the event and its extended work have settled.
        """
        self._ensure_accepting()
        reply: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._inbox.put_nowait(_Envelope(event=event, reply=reply))
        return await reply

    def post_message(self, data: Any, *, source: str = "") -> None:
        """Fire-and-forget ``postMessage`` from a page."""
        self._ensure_accepting()
        self._inbox.put_nowait(_Envelope(event=MessageEvent(data, source=source), reply=None))

    async def _handle(self, envelope: _Envelope) -> None:
        reply = envelope.reply
        try:
            result = await self.dispatch(envelope.event)
        except asyncio.CancelledError:
            if reply is not None and not reply.done():
                reply.cancel()
            raise
        except Exception as exc:
            if reply is not None and not reply.done():
                reply.set_exception(exc)
            else:
                _logger.error("Unhandled error in %s handler", type(envelope.event).__name__, exc_info=True)
            return
        if reply is not None and not reply.done():
            reply.set_result(result)

    async def dispatch(self, event: ExtendableEvent) -> Any:
        """Route *event* to its handler and keep it alive until its work settles."""
        if isinstance(event, FetchEvent):
            self.on_fetch(event)
            response = await event.response()
            # The page gets its response now; the cache write finishes on its own.
            self._spawn(self._keep_alive(event))
            return response

        if isinstance(event, InstallEvent):
            self.on_install(event)
        elif isinstance(event, ActivateEvent):
            self.on_activate(event)
        elif isinstance(event, MessageEvent):
            self.on_message(event)
        elif isinstance(event, PushEvent):
            self.on_push(event)
        elif isinstance(event, NotificationClickEvent):
            self.on_notification_click(event)
        else:
            raise PwaWorkerError(f"unsupported event type {type(event).__name__}")

        await event.settle()
        return None

    async def _keep_alive(self, event: ExtendableEvent) -> None:
        try:
            await event.settle()
        except Exception:
            _logger.warning("Extended work for %s failed", type(event).__name__, exc_info=True)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def install(self) -> None:
        """Run the install phase. Failure leaves the worker redundant."""
        self._state = WorkerState.INSTALLING
        try:
            await self.post(InstallEvent())
        except BaseException:
            self._state = WorkerState.REDUNDANT
            raise
        self._state = WorkerState.INSTALLED

    async def activate(self) -> None:
        """Run the activate phase (stale cache cleanup, then claim)."""
        if self._state != WorkerState.INSTALLED:
            raise PwaWorkerError(f"cannot activate a worker in state {self._state}")
        self._state = WorkerState.ACTIVATING
        await self.post(ActivateEvent())
        self._state = WorkerState.ACTIVATED

    def mark_redundant(self) -> None:
        self._state = WorkerState.REDUNDANT

    def skip_waiting(self) -> None:
        """Ask to activate as soon as installed, without waiting for old pages to close."""
        self._skip_waiting = True
        if self._skip_waiting_listener is not None:
            self._skip_waiting_listener(self)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_install(self, event: InstallEvent) -> None:
        _logger.info("Installing worker %s", self.cache_name)
        event.wait_until(self._precache())
        self.skip_waiting()

    async def _precache(self) -> None:
        cache = await self._caches.open(self.cache_name)
        _logger.debug("Caching %d static assets", len(self._config.static_assets))
        await cache.add_all(self._fetcher, [self._config.resolve(path) for path in self._config.static_assets])

    def on_activate(self, event: ActivateEvent) -> None:
        _logger.info("Activating worker %s", self.cache_name)
        event.wait_until(self._cleanup_and_claim())

    async def _cleanup_and_claim(self) -> None:
        names = await self._caches.keys()
        stale = [name for name in names if name != self.cache_name]
        for name in stale:
            _logger.info("Deleting old cache %s", name)
        await asyncio.gather(*(self._caches.delete(name) for name in stale))
        claimed = await self._clients.claim(self)
        _logger.debug("Claimed %d client(s)", claimed)

    def on_fetch(self, event: FetchEvent) -> None:
        request = event.request
        if request.method != "GET":
            return
        if request.origin != self._config.origin:
            return
        event.respond_with(self._network_first(event))

    async def _network_first(self, event: FetchEvent) -> Response:
        request = event.request
        try:
            response = await self._fetcher.fetch(request)
        except PwaNetworkError:
            _logger.debug("Network failed for %s; trying cache", redact_url(request.url))
            return await self._from_cache(request)

        # A body reads once: the clone goes to the cache, the original to the page.
        copy = response.clone()
        event.wait_until(self._store(request, copy))
        return response

    async def _store(self, request: Request, response: Response) -> None:
        if self._state == WorkerState.REDUNDANT:
            # The successor already deleted this version's store.
            _logger.debug("Worker retired; not caching %s", redact_url(request.url))
            return
        try:
            cache = await self._caches.open(self.cache_name)
            await cache.put(request, response)
        except Exception:
            _logger.warning("Cache write failed for %s", redact_url(request.url), exc_info=True)

    async def _from_cache(self, request: Request) -> Response:
        cached = await self._caches.match(request)
        if cached is not None:
            return cached

        if request.is_navigation:
            offline = await self._caches.match(self._config.offline_document_url)
            if offline is not None:
                _logger.info("Serving offline page for %s", redact_url(request.url))
                return offline

        raise PwaFetchFailedError(
            f"{redact_url(request.url)} is unavailable offline and not cached",
            url=request.url,
        )

    def on_message(self, event: MessageEvent) -> None:
        message = WorkerMessage.coerce(event.data)
        if message is None:
            _logger.debug("Ignoring unrecognised message %r", event.data)
            return
        if message.is_skip_waiting:
            self.skip_waiting()

    def on_push(self, event: PushEvent) -> None:
        _logger.info("Push notification received")
        payload = PushPayload.parse(event.data)
        options = NotificationOptions(
            body=payload.body_or_default(self._config.default_notification_body),
            icon=self._config.notification_icon,
            badge=self._config.notification_badge,
            vibrate=self._config.vibrate_pattern,
            data=payload.url_or_default(),
            actions=DEFAULT_ACTIONS,
        )
        title = payload.title_or_default(self._config.app_name)
        event.wait_until(self._notifications.show_notification(title, options))

    def on_notification_click(self, event: NotificationClickEvent) -> None:
        _logger.info("Notification clicked (action=%r)", event.action)
        event.notification.close()
        if event.action == CLOSE_ACTION:
            return
        target = event.notification.data or DEFAULT_NOTIFICATION_URL
        event.wait_until(self._clients.open_window(self._config.resolve(str(target))))
