"""Events delivered to the worker execution context.

Every event is *extendable*: a handler that starts asynchronous work
hands it to :meth:`ExtendableEvent.wait_until` so the worker keeps the
event alive until that work settles.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any

from coachpwa.models.http import Request, Response

if TYPE_CHECKING:
    from coachpwa.sw.clients import Notification


class ExtendableEvent:
    """Base worker event with lifetime extension."""

    def __init__(self) -> None:
        self._pending: list[asyncio.Future[Any]] = []

    def wait_until(self, work: Awaitable[Any]) -> None:
        """Keep the event alive until *work* settles."""
        self._pending.append(asyncio.ensure_future(work))

    @property
    def pending(self) -> int:
        return sum(1 for fut in self._pending if not fut.done())

    async def settle(self) -> None:
        """Wait for all extended work, including work added while waiting.

        Raises the first failure once everything has settled.
        """
        errors: list[BaseException] = []
        while self._pending:
            batch, self._pending = self._pending, []
            results = await asyncio.gather(*batch, return_exceptions=True)
            errors.extend(r for r in results if isinstance(r, BaseException))
        if errors:
            raise errors[0]


class InstallEvent(ExtendableEvent):
    pass


class ActivateEvent(ExtendableEvent):
    pass


class FetchEvent(ExtendableEvent):
    """An outbound page request offered to the worker.

    A handler that wants to answer calls :meth:`respond_with`; when none
    does, the request goes to the network untouched.
    """

    def __init__(self, request: Request, *, client_id: str = "") -> None:
        super().__init__()
        self.request = request
        self.client_id = client_id
        self._response: asyncio.Future[Response] | None = None

    @property
    def handled(self) -> bool:
        return self._response is not None

    def respond_with(self, response: Awaitable[Response]) -> None:
        if self._response is not None:
            raise RuntimeError("respond_with() already called for this fetch")
        self._response = asyncio.ensure_future(response)

    async def response(self) -> Response | None:
        if self._response is None:
            return None
        return await self._response


class MessageEvent(ExtendableEvent):
    def __init__(self, data: Any, *, source: str = "") -> None:
        super().__init__()
        self.data = data
        self.source = source


class PushEvent(ExtendableEvent):
    def __init__(self, data: bytes | str | None = None) -> None:
        super().__init__()
        self.data = data


class NotificationClickEvent(ExtendableEvent):
    def __init__(self, notification: Notification, *, action: str = "") -> None:
        super().__init__()
        self.notification = notification
        self.action = action
