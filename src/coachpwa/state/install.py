"""Install lifecycle state and its pure transition function."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from enum import StrEnum

from coachpwa.exceptions import PwaInstallPromptError
from coachpwa.state.events import PageEvent, PageEventType


class InstallOutcome(StrEnum):
    ACCEPTED = "accepted"
    DISMISSED = "dismissed"


class BeforeInstallPromptEvent:
    """The browser's single-use offer to install the application.

    ``chooser`` stands in for the native install dialog: it is awaited when
    :meth:`prompt` runs and returns the user's decision.
    """

    def __init__(self, chooser: Callable[[], Awaitable[InstallOutcome]]) -> None:
        self._chooser = chooser
        self.default_prevented = False
        self.consumed = False

    def __repr__(self) -> str:
        return f"<BeforeInstallPromptEvent consumed={self.consumed}>"

    def prevent_default(self) -> None:
        """Suppress the browser's own mini-infobar."""
        self.default_prevented = True

    async def prompt(self) -> InstallOutcome:
        """Show the install dialog and wait for the user's choice."""
        if self.consumed:
            raise PwaInstallPromptError("install prompt has already been shown")
        self.consumed = True
        return InstallOutcome(await self._chooser())


@dataclass(frozen=True, slots=True)
class InstallState:
    is_installed: bool = False
    candidate: BeforeInstallPromptEvent | None = None

    @property
    def can_install(self) -> bool:
        return self.candidate is not None


def reduce_install(state: InstallState, event: PageEvent) -> InstallState:
    """Return the state that follows *event*.

    Pure: never touches the candidate itself (``prevent_default`` is the
    controller's job) and returns *state* unchanged for unrelated events.
    """
    if event.type == PageEventType.DISPLAY_MODE_STANDALONE:
        return InstallState(is_installed=True, candidate=None)

    if event.type == PageEventType.BEFORE_INSTALL_PROMPT:
        if state.is_installed:
            return state
        return replace(state, candidate=event.candidate)

    if event.type == PageEventType.APP_INSTALLED:
        return InstallState(is_installed=True, candidate=None)

    if event.type == PageEventType.CANDIDATE_CONSUMED:
        return replace(state, candidate=None)

    return state
