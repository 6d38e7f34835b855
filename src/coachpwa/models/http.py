"""Request and response values exchanged with the offline cache controller."""

from __future__ import annotations

import json
from collections.abc import Mapping
from enum import StrEnum
from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

from coachpwa.exceptions import PwaBodyUsedError

_DEFAULT_PORTS = {"http": 80, "https": 443}


def url_origin(url: str) -> str:
    """Return the ``scheme://host[:port]`` origin of *url*.

    Scheme and host are lowercased and a default port is dropped, so
    ``HTTPS://Coach.Example:443/x`` and ``https://coach.example`` share an origin.
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    port = parts.port
    if port is None or port == _DEFAULT_PORTS.get(scheme):
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


class RequestMode(StrEnum):
    NAVIGATE = "navigate"
    SAME_ORIGIN = "same-origin"
    CORS = "cors"
    NO_CORS = "no-cors"


class Request(BaseModel):
    """An outbound page request as seen by the worker.

    ``mode`` is ``navigate`` for top-level page loads; only those fall
    back to the offline document when both network and cache miss.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str
    method: str = "GET"
    mode: RequestMode = RequestMode.CORS
    headers: dict[str, str] = Field(default_factory=dict)
    body: bytes | None = None

    @field_validator("method")
    @classmethod
    def _normalize_method(cls, value: str) -> str:
        method = value.strip().upper()
        if not method:
            raise ValueError("method must be non-empty")
        return method

    @field_validator("url")
    @classmethod
    def _require_absolute(cls, value: str) -> str:
        parts = urlsplit(value)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"request url must be absolute, got {value!r}")
        return value

    @classmethod
    def navigate(cls, url: str) -> Request:
        return cls(url=url, mode=RequestMode.NAVIGATE)

    @property
    def origin(self) -> str:
        return url_origin(self.url)

    @property
    def is_navigation(self) -> bool:
        return self.mode == RequestMode.NAVIGATE

    @property
    def cache_key(self) -> tuple[str, str]:
        """Request identity used as the cache store key: ``(method, url)``.

        The fragment never reaches the network, so it is not part of the key.
        """
        return (self.method, self.url.split("#", 1)[0])


class Response:
    """A network response with a consume-once body.

    The body can be read exactly once. Anything that needs to hand the
    response to the caller *and* persist it must :meth:`clone` first,
    before either side reads.
    """

    __slots__ = ("status", "reason", "headers", "url", "_body", "_body_used")

    def __init__(
        self,
        body: bytes = b"",
        *,
        status: int = 200,
        reason: str = "",
        headers: Mapping[str, str] | None = None,
        url: str = "",
    ) -> None:
        self.status = status
        self.reason = reason
        self.headers: dict[str, str] = dict(headers or {})
        self.url = url
        self._body = bytes(body)
        self._body_used = False

    def __repr__(self) -> str:
        return f"<Response status={self.status} url={self.url!r} body_used={self._body_used}>"

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def body_used(self) -> bool:
        return self._body_used

    def read(self) -> bytes:
        """Consume and return the body."""
        if self._body_used:
            raise PwaBodyUsedError(f"body of {self.url or 'response'} already read")
        self._body_used = True
        return self._body

    def text(self, encoding: str = "utf-8") -> str:
        return self.read().decode(encoding)

    def json(self) -> Any:
        return json.loads(self.read())

    def clone(self) -> Response:
        """Duplicate the response so two consumers can each read the body once."""
        if self._body_used:
            raise PwaBodyUsedError(f"cannot clone {self.url or 'response'}: body already read")
        return Response(
            self._body,
            status=self.status,
            reason=self.reason,
            headers=self.headers,
            url=self.url,
        )
