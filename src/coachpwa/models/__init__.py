"""Pydantic models and value types for coachpwa."""

from coachpwa.models.http import Request, RequestMode, Response
from coachpwa.models.messages import MessageType, WorkerMessage
from coachpwa.models.notification import (
    DEFAULT_ACTIONS,
    NotificationAction,
    NotificationOptions,
    PushPayload,
)

__all__ = [
    "DEFAULT_ACTIONS",
    "MessageType",
    "NotificationAction",
    "NotificationOptions",
    "PushPayload",
    "Request",
    "RequestMode",
    "Response",
    "WorkerMessage",
]
