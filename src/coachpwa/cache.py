"""Versioned cache storage for the offline cache controller.

A :class:`CacheStorage` holds named :class:`CacheStore` instances. Each
store maps a request identity (``GET`` + URL) to a snapshot of a
response. Snapshots are immutable; every :meth:`CacheStore.match` hands out
a fresh :class:`~coachpwa.models.http.Response` whose body can be read once.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from coachpwa._transport import Fetcher
from coachpwa.exceptions import PwaCacheError, PwaNetworkError, PwaPrecacheError
from coachpwa.models.http import Request, Response

_logger = logging.getLogger(__name__)

CacheKey = tuple[str, str]


@dataclass(frozen=True)
class CachedEntry:
    """Stored snapshot of a response."""

    status: int
    reason: str
    url: str
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def capture(cls, response: Response) -> CachedEntry:
        """Snapshot *response*, consuming its body."""
        return cls(
            status=response.status,
            reason=response.reason,
            url=response.url,
            body=response.read(),
            headers=dict(response.headers),
        )

    def to_response(self) -> Response:
        return Response(
            self.body,
            status=self.status,
            reason=self.reason,
            headers=self.headers,
            url=self.url,
        )


def _key_for(request: Request | str) -> CacheKey:
    if isinstance(request, str):
        return ("GET", request.split("#", 1)[0])
    return request.cache_key


class CacheStore:
    """A single named key → response mapping."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: dict[CacheKey, CachedEntry] = {}

    def __repr__(self) -> str:
        return f"<CacheStore {self.name!r} entries={len(self._entries)}>"

    def __len__(self) -> int:
        return len(self._entries)

    async def put(self, request: Request | str, response: Response) -> None:
        """Store *response* under *request*, consuming the response body.

        Only ``GET`` requests can be stored. Concurrent writers to the same
        key simply overwrite each other (last write wins).
        """
        key = _key_for(request)
        if key[0] != "GET":
            raise PwaCacheError(f"cannot cache {key[0]} request for {key[1]}")
        self._entries[key] = CachedEntry.capture(response)

    async def match(self, request: Request | str) -> Response | None:
        entry = self._entries.get(_key_for(request))
        if entry is None:
            return None
        return entry.to_response()

    async def delete(self, request: Request | str) -> bool:
        return self._entries.pop(_key_for(request), None) is not None

    async def keys(self) -> list[CacheKey]:
        return list(self._entries)

    async def add_all(self, fetcher: Fetcher, urls: Iterable[str]) -> None:
        """Fetch every URL and store the results, all or nothing.

        Every asset is fetched before anything is written. A network error
        or a non-2xx status for any of them raises
        :class:`PwaPrecacheError` and leaves the store untouched.
        """
        requests = [Request(url=url) for url in urls]
        results = await asyncio.gather(
            *(fetcher.fetch(request) for request in requests),
            return_exceptions=True,
        )

        for request, result in zip(requests, results, strict=True):
            if isinstance(result, PwaNetworkError):
                raise PwaPrecacheError(
                    f"Failed to fetch {request.url} for precache: {result}",
                    url=request.url,
                ) from result
            if isinstance(result, BaseException):
                raise result
            if not result.ok:
                raise PwaPrecacheError(
                    f"Precache of {request.url} returned HTTP {result.status}",
                    url=request.url,
                    status_code=result.status,
                )

        for request, result in zip(requests, results, strict=True):
            assert isinstance(result, Response)  # noqa: S101
            self._entries[request.cache_key] = CachedEntry.capture(result)


class CacheStorage:
    """All cache stores for one origin, keyed by name."""

    def __init__(self) -> None:
        self._stores: dict[str, CacheStore] = {}

    async def open(self, name: str) -> CacheStore:
        """Return the store called *name*, creating it if needed."""
        store = self._stores.get(name)
        if store is None:
            store = CacheStore(name)
            self._stores[name] = store
            _logger.debug("Created cache store %s", name)
        return store

    async def has(self, name: str) -> bool:
        return name in self._stores

    async def keys(self) -> list[str]:
        return list(self._stores)

    async def delete(self, name: str) -> bool:
        return self._stores.pop(name, None) is not None

    async def match(self, request: Request | str) -> Response | None:
        """Look *request* up across every store, in creation order."""
        for store in list(self._stores.values()):
            response = await store.match(request)
            if response is not None:
                return response
        return None
