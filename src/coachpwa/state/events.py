"""Normalized page-level events.

Browser signals (display-mode query, ``beforeinstallprompt``,
``appinstalled``, permission results, timers, user clicks) are converted
into these events. Only the reducers in :mod:`coachpwa.state.install` and
:mod:`coachpwa.state.prompt` turn them into new state.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

if TYPE_CHECKING:
    from coachpwa.state.install import BeforeInstallPromptEvent


class PageEventType(StrEnum):
    # Install lifecycle
    DISPLAY_MODE_STANDALONE = "display-mode-standalone"
    BEFORE_INSTALL_PROMPT = "beforeinstallprompt"
    APP_INSTALLED = "appinstalled"
    CANDIDATE_CONSUMED = "candidate-consumed"

    # Notification permission prompt
    DELAY_ELAPSED = "delay-elapsed"
    PERMISSION_GRANTED = "permission-granted"
    PERMISSION_DENIED = "permission-denied"
    PERMISSION_IGNORED = "permission-ignored"
    USER_DISMISSED = "user-dismissed"


class NotificationPermission(StrEnum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


class PageEvent(BaseModel):
    """A single page-level signal fed to a controller's ``dispatch``."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: PageEventType
    candidate: Any = Field(default=None, description="BeforeInstallPromptEvent for beforeinstallprompt")
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="after")
    def _candidate_only_for_install_prompt(self) -> PageEvent:
        if self.type == PageEventType.BEFORE_INSTALL_PROMPT and self.candidate is None:
            raise ValueError("beforeinstallprompt events must carry a candidate")
        if self.type != PageEventType.BEFORE_INSTALL_PROMPT and self.candidate is not None:
            raise ValueError(f"{self.type} events cannot carry a candidate")
        return self

    @classmethod
    def before_install_prompt(cls, candidate: BeforeInstallPromptEvent) -> PageEvent:
        return cls(type=PageEventType.BEFORE_INSTALL_PROMPT, candidate=candidate)

    @classmethod
    def of(cls, event_type: PageEventType) -> PageEvent:
        return cls(type=event_type)

    @classmethod
    def for_permission(cls, permission: NotificationPermission) -> PageEvent:
        """Map a permission request result onto the matching prompt event."""
        mapping = {
            NotificationPermission.GRANTED: PageEventType.PERMISSION_GRANTED,
            NotificationPermission.DENIED: PageEventType.PERMISSION_DENIED,
            NotificationPermission.DEFAULT: PageEventType.PERMISSION_IGNORED,
        }
        return cls(type=mapping[permission])
