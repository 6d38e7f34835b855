"""Window clients and the notification surface seen from the worker."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from coachpwa.models.notification import NotificationOptions

if TYPE_CHECKING:
    from coachpwa.sw.worker import OfflineCacheWorker

_logger = logging.getLogger(__name__)

_client_ids = itertools.count(1)


@dataclass(eq=False)
class WindowClient:
    """An open page of the application."""

    url: str
    id: str = field(default_factory=lambda: f"client-{next(_client_ids)}")
    focused: bool = False
    controller: OfflineCacheWorker | None = None


class WindowClients:
    """All open windows of one origin."""

    def __init__(self) -> None:
        self._clients: list[WindowClient] = []

    def add(self, url: str, *, focused: bool = True) -> WindowClient:
        client = WindowClient(url=url)
        self._clients.append(client)
        if focused:
            self._focus(client)
        return client

    def remove(self, client: WindowClient) -> None:
        if client in self._clients:
            self._clients.remove(client)

    async def match_all(self) -> list[WindowClient]:
        return list(self._clients)

    async def claim(self, worker: OfflineCacheWorker) -> int:
        """Make *worker* the controller of every open window; return how many."""
        for client in self._clients:
            client.controller = worker
        return len(self._clients)

    async def open_window(self, url: str) -> WindowClient:
        """Focus a window already showing *url*, or open a new one."""
        for client in self._clients:
            if client.url == url:
                self._focus(client)
                return client
        client = self.add(url)
        _logger.debug("Opened window %s at %s", client.id, url)
        return client

    def _focus(self, target: WindowClient) -> None:
        for client in self._clients:
            client.focused = client is target


@dataclass(eq=False)
class Notification:
    """A notification displayed to the user."""

    title: str
    options: NotificationOptions = field(default_factory=NotificationOptions)
    closed: bool = False

    @property
    def body(self) -> str:
        return self.options.body

    @property
    def data(self) -> Any:
        return self.options.data

    def close(self) -> None:
        self.closed = True


class NotificationTray:
    """Platform notification surface (what ``showNotification`` draws on)."""

    def __init__(self) -> None:
        self._shown: list[Notification] = []

    async def show_notification(self, title: str, options: NotificationOptions | None = None) -> Notification:
        notification = Notification(title=title, options=options or NotificationOptions())
        self._shown.append(notification)
        _logger.debug("Showing notification %r", title)
        return notification

    @property
    def history(self) -> list[Notification]:
        """Every notification ever shown, oldest first."""
        return list(self._shown)

    def get_notifications(self) -> list[Notification]:
        """Notifications still on screen."""
        return [n for n in self._shown if not n.closed]
