"""Notification permission handling and the delayed permission prompt."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Protocol

from coachpwa._constants import PROMPT_DELAY_SECONDS, PROMPT_DISMISSED_KEY
from coachpwa.models.notification import NotificationOptions
from coachpwa.state.events import NotificationPermission, PageEvent, PageEventType
from coachpwa.state.prompt import PromptState, is_durable_dismissal, reduce_prompt
from coachpwa.storage import DismissalFlag, KeyValueStorage

if TYPE_CHECKING:
    from coachpwa.registration import ServiceWorkerContainer

_logger = logging.getLogger(__name__)


class NotificationPermissionApi(Protocol):
    """The platform ``Notification`` API."""

    @property
    def permission(self) -> NotificationPermission: ...

    async def request_permission(self) -> NotificationPermission: ...

    def notify(self, title: str, options: NotificationOptions) -> None: ...


class InMemoryPermissionApi:
    """A ``Notification`` API whose permission dialog answers with a preset decision.

    The platform, not the application, persists the decision: once the
    user granted or denied, later requests return it without asking.
    """

    def __init__(
        self,
        permission: NotificationPermission = NotificationPermission.DEFAULT,
        *,
        decision: NotificationPermission = NotificationPermission.GRANTED,
    ) -> None:
        self._permission = permission
        self.decision = decision
        self.requests = 0
        self.delivered: list[tuple[str, NotificationOptions]] = []

    @property
    def permission(self) -> NotificationPermission:
        return self._permission

    async def request_permission(self) -> NotificationPermission:
        self.requests += 1
        if self._permission == NotificationPermission.DEFAULT:
            self._permission = self.decision
        return self._permission

    def notify(self, title: str, options: NotificationOptions) -> None:
        self.delivered.append((title, options))


class NotificationCenter:
    """Notification support, permission and display for one page.

    ``api`` is ``None`` when the platform has no notification support; every
    operation then degrades to a logged no-op.
    """

    def __init__(
        self,
        api: NotificationPermissionApi | None,
        *,
        container: ServiceWorkerContainer | None = None,
    ) -> None:
        self._api = api
        self._container = container

    @property
    def is_supported(self) -> bool:
        return self._api is not None

    @property
    def permission(self) -> NotificationPermission:
        if self._api is None:
            return NotificationPermission.DEFAULT
        return self._api.permission

    async def request_permission(self) -> NotificationPermission:
        """Ask the user for permission. Failures count as a denial."""
        if self._api is None:
            _logger.warning("Notifications are not supported")
            return NotificationPermission.DENIED

        try:
            result = NotificationPermission(await self._api.request_permission())
        except Exception:
            _logger.error("Notification permission request failed", exc_info=True)
            return NotificationPermission.DENIED

        _logger.info("Notification permission: %s", result)
        return result

    async def show_notification(self, title: str, options: NotificationOptions | None = None) -> None:
        """Display a notification if permission was granted.

        Goes through the worker registration when the page is controlled,
        otherwise straight through the platform API.
        """
        if self._api is None or self.permission != NotificationPermission.GRANTED:
            _logger.warning("Notification permission not granted")
            return

        options = options or NotificationOptions()
        container = self._container
        try:
            if container is not None and container.controller is not None and container.registration is not None:
                await container.registration.show_notification(title, options)
            else:
                self._api.notify(title, options)
        except Exception:
            _logger.error("Failed to show notification %r", title, exc_info=True)


class PermissionPromptController:
    """Delayed "enable notifications" prompt with a durable per-device dismissal.

    :meth:`mount` arms a timer; after ``delay`` seconds the prompt becomes
    visible if notifications are supported, permission is still
    ``default`` and the prompt was never dismissed on this device. The
    timer is cancelled by :meth:`unmount` and by :meth:`permission_changed`.
    """

    def __init__(
        self,
        center: NotificationCenter,
        storage: KeyValueStorage,
        *,
        delay: float = PROMPT_DELAY_SECONDS,
    ) -> None:
        self._center = center
        self._flag = DismissalFlag(storage, PROMPT_DISMISSED_KEY)
        self._delay = delay
        self._state = PromptState()
        self._timer: asyncio.TimerHandle | None = None

    @property
    def state(self) -> PromptState:
        return self._state

    @property
    def dismissed(self) -> bool:
        return self._state.dismissed

    @property
    def timer_pending(self) -> bool:
        return self._timer is not None

    @property
    def visible(self) -> bool:
        return (
            self._center.is_supported
            and self._center.permission == NotificationPermission.DEFAULT
            and not self._state.dismissed
            and self._state.visible
        )

    def mount(self) -> None:
        """Initialise from durable storage and arm the delay timer when eligible."""
        if self._flag.is_set:
            self._state = PromptState(visible=False, dismissed=True)
            self._cancel_timer()
            return
        self._arm()

    def unmount(self) -> None:
        self._cancel_timer()

    def permission_changed(self) -> None:
        """Re-evaluate after the permission changed outside the prompt."""
        self._cancel_timer()
        if not self._state.visible:
            self.mount()

    def dispatch(self, event: PageEvent) -> PromptState:
        previous = self._state
        self._state = reduce_prompt(previous, event)
        if is_durable_dismissal(event) and self._state.dismissed and not previous.dismissed:
            self._flag.set()
        if self._state.dismissed:
            self._cancel_timer()
        return self._state

    async def allow(self) -> NotificationPermission:
        """The prompt's "enable" button."""
        result = await self._center.request_permission()
        self.dispatch(PageEvent.for_permission(result))
        return result

    def dismiss(self) -> None:
        """The prompt's close / "later" button."""
        self.dispatch(PageEvent.of(PageEventType.USER_DISMISSED))

    def _arm(self) -> None:
        self._cancel_timer()
        if self._state.dismissed:
            return
        if not self._center.is_supported or self._center.permission != NotificationPermission.DEFAULT:
            return
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._delay, self._on_delay_elapsed)

    def _on_delay_elapsed(self) -> None:
        self._timer = None
        self.dispatch(PageEvent.of(PageEventType.DELAY_ELAPSED))

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
