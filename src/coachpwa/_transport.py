"""Network transport used by the offline cache controller."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

import aiohttp

from coachpwa._constants import USER_AGENT
from coachpwa._redact import redact_headers, redact_url
from coachpwa.exceptions import PwaNetworkError
from coachpwa.models.http import Request, Response

_logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    """Structural network interface used by the worker and the cache.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (:class:`AiohttpFetcher`) concrete.

    Like the browser's ``fetch``, implementations resolve for any HTTP
    status and raise :class:`PwaNetworkError` only when no response was
    obtained at all.
    """

    async def fetch(self, request: Request) -> Response:
        ...


class AiohttpFetcher:
    """:class:`Fetcher` backed by an :class:`aiohttp.ClientSession`."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float | None = None,
    ) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout) if timeout is not None else None

    async def fetch(self, request: Request) -> Response:
        headers: dict[str, str] = {"user-agent": USER_AGENT}
        headers.update(request.headers)

        _logger.debug("%s %s headers=%s", request.method, redact_url(request.url), redact_headers(headers))

        kwargs: dict[str, Any] = {"headers": headers, "data": request.body}
        if self._timeout is not None:
            kwargs["timeout"] = self._timeout

        try:
            async with self._http.request(request.method, request.url, **kwargs) as resp:
                body = await resp.read()
                return Response(
                    body,
                    status=resp.status,
                    reason=resp.reason or "",
                    headers={k: v for k, v in resp.headers.items()},
                    url=str(resp.url),
                )
        except aiohttp.ClientError as exc:
            raise PwaNetworkError(
                f"{request.method} {redact_url(request.url)} failed: {exc}",
                url=request.url,
            ) from exc
        except asyncio.TimeoutError as exc:
            raise PwaNetworkError(
                f"{request.method} {redact_url(request.url)} timed out",
                url=request.url,
            ) from exc
