"""Worker execution context: offline caching and push delivery."""

from coachpwa.sw.clients import Notification, NotificationTray, WindowClient, WindowClients
from coachpwa.sw.events import (
    ActivateEvent,
    ExtendableEvent,
    FetchEvent,
    InstallEvent,
    MessageEvent,
    NotificationClickEvent,
    PushEvent,
)
from coachpwa.sw.worker import OfflineCacheWorker, WorkerState

__all__ = [
    "ActivateEvent",
    "ExtendableEvent",
    "FetchEvent",
    "InstallEvent",
    "MessageEvent",
    "Notification",
    "NotificationClickEvent",
    "NotificationTray",
    "OfflineCacheWorker",
    "PushEvent",
    "WindowClient",
    "WindowClients",
    "WorkerState",
]
