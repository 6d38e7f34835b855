"""Typed control messages posted from the page to the worker."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from coachpwa.models._base import PwaBaseModel


class MessageType(StrEnum):
    SKIP_WAITING = "SKIP_WAITING"


class WorkerMessage(PwaBaseModel):
    type: str
    payload: dict[str, Any] | None = None

    @classmethod
    def skip_waiting(cls) -> WorkerMessage:
        return cls(type=MessageType.SKIP_WAITING.value)

    @classmethod
    def coerce(cls, data: Any) -> WorkerMessage | None:
        """Best-effort conversion of a posted value; ``None`` if it is not a message."""
        if isinstance(data, WorkerMessage):
            return data
        if not isinstance(data, dict):
            return None
        try:
            return cls.model_validate(data)
        except ValidationError:
            return None

    @property
    def is_skip_waiting(self) -> bool:
        return self.type == MessageType.SKIP_WAITING
