"""High-level async host wiring a page to its offline worker."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from coachpwa._transport import AiohttpFetcher, Fetcher
from coachpwa.cache import CacheStorage
from coachpwa.config import PwaConfig
from coachpwa.exceptions import PwaError
from coachpwa.install import InstallBanner, InstallLifecycleController
from coachpwa.models.http import Request, Response
from coachpwa.notifications import NotificationCenter, NotificationPermissionApi, PermissionPromptController
from coachpwa.registration import Registration, ServiceWorkerContainer, UpdatePrompt
from coachpwa.state.events import PageEvent
from coachpwa.state.install import InstallState
from coachpwa.storage import KeyValueStorage, MemoryStorage
from coachpwa.sw.clients import NotificationTray, WindowClient, WindowClients

_logger = logging.getLogger(__name__)


class PwaHost:
    """A browser page of the Coach Digital app, plus its worker context.

    Usage::

        async with PwaHost(config, storage=JsonFileStorage(path)) as host:
            await host.load()
            response = await host.fetch(Request.navigate(config.resolve("/clients")))
            if host.banner.visible:
                await host.banner.install()

    The host owns the aiohttp session unless one is passed in. Page-level
    controllers (install lifecycle, banner, notification prompt) live for
    one page load; :meth:`reload` rebuilds them from durable storage while
    the worker registration and cache storage survive, as in a browser.
    """

    def __init__(
        self,
        config: PwaConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        fetcher: Fetcher | None = None,
        storage: KeyValueStorage | None = None,
        permission_api: NotificationPermissionApi | None = None,
        standalone: bool = False,
        service_worker_supported: bool = True,
        on_update_available: UpdatePrompt | None = None,
        path: str = "/",
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._fetcher = fetcher
        self._owns_fetcher = fetcher is None
        self._storage: KeyValueStorage = storage if storage is not None else MemoryStorage()
        self._permission_api = permission_api
        self._standalone = standalone
        self._service_worker_supported = service_worker_supported
        self._on_update_available = on_update_available
        self._path = path

        self.caches = CacheStorage()
        self.clients = WindowClients()
        self.notification_tray = NotificationTray()
        self.reloads = 0

        self._client: WindowClient | None = None
        self._container: ServiceWorkerContainer | None = None
        self._install: InstallLifecycleController | None = None
        self._banner: InstallBanner | None = None
        self._notifications: NotificationCenter | None = None
        self._prompt: PermissionPromptController | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> PwaHost:
        if self._fetcher is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._fetcher = AiohttpFetcher(self._http_session, timeout=self._config.fetch_timeout)

        self._client = self.clients.add(self._config.resolve(self._path))
        self._container = ServiceWorkerContainer(
            self._config,
            client=self._client,
            caches=self.caches,
            fetcher=self._fetcher,
            clients=self.clients,
            notifications=self.notification_tray,
            supported=self._service_worker_supported,
            on_update_available=self._on_update_available,
            on_reload=self.reload,
        )
        self._build_page()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._prompt is not None:
            self._prompt.unmount()
        if self._container is not None:
            await self._container.close()
        if self._client is not None:
            self.clients.remove(self._client)
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if self._owns_fetcher:
            self._fetcher = None

    def _build_page(self) -> None:
        container = self._require_container()
        self._install = InstallLifecycleController(standalone=self._standalone)
        self._banner = InstallBanner(self._install, self._storage)
        self._notifications = NotificationCenter(self._permission_api, container=container)
        self._prompt = PermissionPromptController(
            self._notifications,
            self._storage,
            delay=self._config.prompt_delay,
        )

    def _require_container(self) -> ServiceWorkerContainer:
        if self._container is None:
            raise PwaError("Host not initialized. Use 'async with PwaHost(...) as host:'")
        return self._container

    # ------------------------------------------------------------------
    # Page lifecycle
    # ------------------------------------------------------------------

    async def load(self) -> Registration | None:
        """The page ``load`` event: mount the prompt and register the worker (once)."""
        self.prompt.mount()
        return await self._require_container().register()

    async def reload(self) -> None:
        """Reload the page: page state is rebuilt from durable storage."""
        self.reloads += 1
        _logger.debug("Reloading page (%d)", self.reloads)
        if self._prompt is not None:
            self._prompt.unmount()
        self._build_page()
        self.prompt.mount()

    def dispatch(self, event: PageEvent) -> InstallState:
        """Feed a browser install signal to the install lifecycle controller."""
        return self.install.dispatch(event)

    async def fetch(self, request: Request | str) -> Response:
        if isinstance(request, str):
            request = Request(url=self._config.resolve(request))
        return await self._require_container().fetch(request)

    async def push(self, data: bytes | str | None = None) -> None:
        registration = self._require_container().registration
        if registration is None:
            raise PwaError("No worker registered; call load() first")
        await registration.push(data)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> PwaConfig:
        return self._config

    @property
    def service_worker(self) -> ServiceWorkerContainer:
        return self._require_container()

    @property
    def install(self) -> InstallLifecycleController:
        if self._install is None:
            raise PwaError("Host not initialized")
        return self._install

    @property
    def banner(self) -> InstallBanner:
        if self._banner is None:
            raise PwaError("Host not initialized")
        return self._banner

    @property
    def notifications(self) -> NotificationCenter:
        if self._notifications is None:
            raise PwaError("Host not initialized")
        return self._notifications

    @property
    def prompt(self) -> PermissionPromptController:
        if self._prompt is None:
            raise PwaError("Host not initialized")
        return self._prompt
