"""Push payload and notification models."""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import Field, ValidationError

from coachpwa._constants import (
    APP_NAME,
    CLOSE_ACTION,
    DEFAULT_NOTIFICATION_BODY,
    DEFAULT_NOTIFICATION_URL,
    NOTIFICATION_ICON,
    OPEN_ACTION,
    VIBRATE_PATTERN,
)
from coachpwa.models._base import PwaBaseModel

_logger = logging.getLogger(__name__)


class PushPayload(PwaBaseModel):
    """JSON body of a push message: ``{title?, body?, url?}``.

    Every field is optional; the ``*_or_default`` accessors apply the
    application defaults.
    """

    title: str | None = None
    body: str | None = None
    url: str | None = None

    def title_or_default(self, default: str = APP_NAME) -> str:
        return self.title or default

    def body_or_default(self, default: str = DEFAULT_NOTIFICATION_BODY) -> str:
        return self.body or default

    def url_or_default(self) -> str:
        return self.url or DEFAULT_NOTIFICATION_URL

    @classmethod
    def parse(cls, data: bytes | str | None) -> PushPayload:
        """Parse a raw push body.

        Undecodable bodies give an empty payload; a field of the wrong type
        falls back to its default while the other fields are kept.
        """
        if data is None:
            return cls()
        try:
            decoded: Any = json.loads(data)
        except (ValueError, UnicodeDecodeError):
            _logger.warning("Push payload is not valid JSON; using defaults")
            return cls()
        if not isinstance(decoded, dict):
            _logger.warning("Push payload is not a JSON object; using defaults")
            return cls()
        try:
            return cls.model_validate(decoded)
        except ValidationError as exc:
            bad = {str(error["loc"][0]) for error in exc.errors() if error["loc"]}
            _logger.warning("Push payload fields %s have unexpected types; using defaults for them", sorted(bad))
            kept = {key: value for key, value in decoded.items() if key not in bad}
        return cls.model_validate(kept)


class NotificationAction(PwaBaseModel):
    action: str
    title: str


DEFAULT_ACTIONS: tuple[NotificationAction, ...] = (
    NotificationAction(action=OPEN_ACTION, title="Ouvrir"),
    NotificationAction(action=CLOSE_ACTION, title="Fermer"),
)


class NotificationOptions(PwaBaseModel):
    """Options accepted by ``showNotification`` (subset used by the app)."""

    body: str = ""
    icon: str = NOTIFICATION_ICON
    badge: str = NOTIFICATION_ICON
    vibrate: tuple[int, ...] = VIBRATE_PATTERN
    data: Any = None
    tag: str | None = None
    require_interaction: bool = False
    actions: tuple[NotificationAction, ...] = Field(default_factory=tuple)
