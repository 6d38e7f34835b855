from __future__ import annotations

import pytest

from coachpwa.cache import CacheStorage, CacheStore
from coachpwa.exceptions import PwaBodyUsedError, PwaCacheError, PwaPrecacheError
from coachpwa.models.http import Request, RequestMode, Response


def test_response_body_reads_once() -> None:
    response = Response(b'{"ok": true}', url="https://coach.example/api")
    assert response.json() == {"ok": True}
    assert response.body_used
    with pytest.raises(PwaBodyUsedError):
        response.read()
    with pytest.raises(PwaBodyUsedError):
        response.clone()


def test_clone_gives_independent_body() -> None:
    original = Response(b"hello", status=201, headers={"etag": "1"})
    copy = original.clone()

    assert copy.text() == "hello"
    assert not original.body_used
    assert original.read() == b"hello"
    assert (copy.status, copy.headers) == (201, {"etag": "1"})


def test_request_identity() -> None:
    request = Request(url="https://Coach.example/clients#top", method="get")
    assert request.method == "GET"
    assert request.origin == "https://coach.example"
    assert Request(url="HTTPS://coach.example:443/x").origin == "https://coach.example"
    assert Request(url="http://[::1]:8080/").origin == "http://[::1]:8080"
    assert request.cache_key == ("GET", "https://Coach.example/clients")
    assert Request.navigate("https://coach.example/").mode == RequestMode.NAVIGATE
    with pytest.raises(ValueError):
        Request(url="/relative")


@pytest.mark.asyncio
async def test_store_put_and_match() -> None:
    store = CacheStore("coach-digital-v1")
    response = Response(b"page", url="https://coach.example/")

    await store.put(Request(url="https://coach.example/"), response)

    assert response.body_used
    first = await store.match("https://coach.example/")
    second = await store.match(Request.navigate("https://coach.example/#main"))
    assert first.read() == second.read() == b"page"
    assert await store.match("https://coach.example/other") is None
    assert await store.delete("https://coach.example/")
    assert len(store) == 0


@pytest.mark.asyncio
async def test_store_rejects_non_get() -> None:
    store = CacheStore("coach-digital-v1")
    with pytest.raises(PwaCacheError):
        await store.put(Request(url="https://coach.example/api", method="POST"), Response(b"{}"))
    assert len(store) == 0


@pytest.mark.asyncio
async def test_add_all_is_all_or_nothing(origin) -> None:
    store = CacheStore("coach-digital-v1")
    origin.serve("https://coach.example/a.css", b"a")
    origin.serve("https://coach.example/b.css", b"b", status=404)

    with pytest.raises(PwaPrecacheError) as exc_info:
        await store.add_all(origin, ["https://coach.example/a.css", "https://coach.example/b.css"])

    assert exc_info.value.status_code == 404
    assert len(store) == 0

    origin.serve("https://coach.example/b.css", b"b")
    await store.add_all(origin, ["https://coach.example/a.css", "https://coach.example/b.css"])
    assert sorted(url for _, url in await store.keys()) == [
        "https://coach.example/a.css",
        "https://coach.example/b.css",
    ]


@pytest.mark.asyncio
async def test_storage_open_keys_delete() -> None:
    caches = CacheStorage()
    v1 = await caches.open("coach-digital-v1")
    assert await caches.open("coach-digital-v1") is v1
    await caches.open("coach-digital-v2")

    assert await caches.keys() == ["coach-digital-v1", "coach-digital-v2"]
    assert await caches.has("coach-digital-v2")
    assert await caches.delete("coach-digital-v1")
    assert not await caches.delete("coach-digital-v1")
    assert await caches.keys() == ["coach-digital-v2"]
