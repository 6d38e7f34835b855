"""Install lifecycle controller and install banner."""

from __future__ import annotations

import logging

from coachpwa._constants import BANNER_DISMISSED_KEY
from coachpwa.state.events import PageEvent, PageEventType
from coachpwa.state.install import InstallOutcome, InstallState, reduce_install
from coachpwa.storage import DismissalFlag, KeyValueStorage

_logger = logging.getLogger(__name__)


class InstallLifecycleController:
    """Tracks whether the app can be installed, is installed, and runs the install handshake.

    Construct one per page load. ``standalone`` is the result of the
    ``(display-mode: standalone)`` media query at initialization; when it
    matches, the app is already installed for the whole session.

    Usage::

        controller = InstallLifecycleController(standalone=False)
        controller.dispatch(PageEvent.before_install_prompt(candidate))
        if controller.can_install:
            accepted = await controller.install_pwa()
    """

    def __init__(self, *, standalone: bool = False) -> None:
        self._state = InstallState()
        if standalone:
            self.dispatch(PageEvent.of(PageEventType.DISPLAY_MODE_STANDALONE))

    @property
    def state(self) -> InstallState:
        return self._state

    @property
    def is_installed(self) -> bool:
        return self._state.is_installed

    @property
    def can_install(self) -> bool:
        return self._state.can_install

    def dispatch(self, event: PageEvent) -> InstallState:
        """Apply a page event and return the new state."""
        if event.type == PageEventType.BEFORE_INSTALL_PROMPT:
            # Must happen synchronously inside the event, or the browser shows its own UI.
            event.candidate.prevent_default()

        previous = self._state
        self._state = reduce_install(previous, event)

        if event.type == PageEventType.APP_INSTALLED:
            _logger.info("App installed")
        elif self._state.is_installed and not previous.is_installed:
            _logger.debug("App running in standalone display mode")
        return self._state

    async def install_pwa(self) -> bool:
        """Prompt the stored install candidate.

        Returns
        -------
        bool
            ``True`` when the user accepted. ``False`` when they dismissed
            the dialog or when no candidate is available (a benign no-op).
        """
        candidate = self._state.candidate
        if candidate is None:
            _logger.info("No install prompt available")
            return False

        try:
            outcome = await candidate.prompt()
        finally:
            # Single use: drop the candidate whatever the outcome.
            if self._state.candidate is candidate:
                self._state = reduce_install(self._state, PageEvent.of(PageEventType.CANDIDATE_CONSUMED))

        _logger.info("Install %s", "accepted" if outcome == InstallOutcome.ACCEPTED else "dismissed")
        return outcome == InstallOutcome.ACCEPTED


class InstallBanner:
    """Banner inviting the user to install the app on their home screen.

    Visible iff the app is not installed, a candidate is available, and
    the banner was not dismissed. Closing the banner is remembered across
    reloads; a successful install only hides it for the current session.
    """

    def __init__(self, controller: InstallLifecycleController, storage: KeyValueStorage) -> None:
        self._controller = controller
        self._flag = DismissalFlag(storage, BANNER_DISMISSED_KEY)
        self._dismissed = self._flag.is_set

    @property
    def dismissed(self) -> bool:
        return self._dismissed

    @property
    def visible(self) -> bool:
        return not self._controller.is_installed and self._controller.can_install and not self._dismissed

    async def install(self) -> bool:
        accepted = await self._controller.install_pwa()
        if accepted:
            self._dismissed = True
        return accepted

    def dismiss(self) -> None:
        self._dismissed = True
        self._flag.set()
