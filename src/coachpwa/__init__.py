"""coachpwa - Offline cache controller and PWA lifecycle for the Coach Digital app."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("coachpwa")
except PackageNotFoundError:
    __version__ = "0+local"
from coachpwa.cache import CacheStorage, CacheStore
from coachpwa.config import PwaConfig
from coachpwa.exceptions import (
    PwaBodyUsedError,
    PwaCacheError,
    PwaConfigError,
    PwaError,
    PwaFetchFailedError,
    PwaInstallPromptError,
    PwaNetworkError,
    PwaPrecacheError,
    PwaWorkerError,
)
from coachpwa.host import PwaHost
from coachpwa.install import InstallBanner, InstallLifecycleController
from coachpwa.models import (
    NotificationOptions,
    PushPayload,
    Request,
    RequestMode,
    Response,
    WorkerMessage,
)
from coachpwa.notifications import (
    InMemoryPermissionApi,
    NotificationCenter,
    PermissionPromptController,
)
from coachpwa.registration import Registration, ServiceWorkerContainer
from coachpwa.state.events import NotificationPermission, PageEvent, PageEventType
from coachpwa.state.install import BeforeInstallPromptEvent, InstallOutcome, InstallState
from coachpwa.storage import DismissalFlag, JsonFileStorage, MemoryStorage
from coachpwa.sw import OfflineCacheWorker, WorkerState

__all__ = [
    "__version__",
    "BeforeInstallPromptEvent",
    "CacheStorage",
    "CacheStore",
    "DismissalFlag",
    "InMemoryPermissionApi",
    "InstallBanner",
    "InstallLifecycleController",
    "InstallOutcome",
    "InstallState",
    "JsonFileStorage",
    "MemoryStorage",
    "NotificationCenter",
    "NotificationOptions",
    "NotificationPermission",
    "OfflineCacheWorker",
    "PageEvent",
    "PageEventType",
    "PermissionPromptController",
    "PushPayload",
    "PwaBodyUsedError",
    "PwaCacheError",
    "PwaConfig",
    "PwaConfigError",
    "PwaError",
    "PwaFetchFailedError",
    "PwaHost",
    "PwaInstallPromptError",
    "PwaNetworkError",
    "PwaPrecacheError",
    "PwaWorkerError",
    "Registration",
    "Request",
    "RequestMode",
    "Response",
    "ServiceWorkerContainer",
    "WorkerMessage",
    "WorkerState",
]
