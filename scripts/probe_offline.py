#!/usr/bin/env python3
"""Live offline-readiness probe for a deployed Coach Digital origin.

Registers the offline cache controller against a real origin over HTTP,
browses a few pages online, then cuts the network and checks what the
worker serves back.

Configuration comes from ``COACHPWA_*`` environment variables; ``--origin``
overrides ``COACHPWA_ORIGIN``.

Default behavior:
1) register the worker (precaches the static asset manifest),
2) fetch every ``--path`` online,
3) go offline and fetch the same paths plus one never-visited page,
4) print a pass/fail report.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

import aiohttp

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from coachpwa import PwaConfig, PwaError, PwaHost, Request  # noqa: E402
from coachpwa._transport import AiohttpFetcher  # noqa: E402
from coachpwa.exceptions import PwaNetworkError  # noqa: E402
from coachpwa.models.http import Response  # noqa: E402


class SwitchableFetcher:
    """AiohttpFetcher with a network kill switch."""

    def __init__(self, inner: AiohttpFetcher) -> None:
        self._inner = inner
        self.online = True

    async def fetch(self, request: Request) -> Response:
        if not self.online:
            raise PwaNetworkError(f"offline (probe): {request.url}", url=request.url)
        return await self._inner.fetch(request)


@dataclass
class CheckResult:
    name: str
    ok: bool
    detail: str


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Probe offline behavior of a Coach Digital deployment.")
    parser.add_argument("--origin", help="Origin to probe (overrides COACHPWA_ORIGIN).")
    parser.add_argument(
        "--path",
        action="append",
        default=[],
        help="Page path to browse online before going offline. Repeatable. Default: /",
    )
    parser.add_argument(
        "--unvisited",
        default="/__coachpwa_probe_unvisited__",
        help="Path never fetched online; expected to get the offline page.",
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging.")
    return parser.parse_args()


async def _fetch(host: PwaHost, url: str) -> tuple[int | None, bytes | str]:
    try:
        response = await host.fetch(Request.navigate(url))
    except PwaError as exc:
        return None, str(exc)
    return response.status, response.read()


async def _run(args: argparse.Namespace) -> int:
    overrides = {"origin": args.origin} if args.origin else {}
    config = PwaConfig.from_env(**overrides)
    paths: list[str] = args.path or ["/"]
    results: list[CheckResult] = []

    async with aiohttp.ClientSession() as session:
        fetcher = SwitchableFetcher(AiohttpFetcher(session, timeout=config.fetch_timeout))
        async with PwaHost(config, fetcher=fetcher) as host:
            registration = await host.load()
            if registration is None or registration.active is None:
                print("Worker registration failed; see log output")
                return 2
            results.append(CheckResult("register", True, f"active cache {registration.active.cache_name}"))

            online_bodies: dict[str, bytes] = {}
            for path in paths:
                url = config.resolve(path)
                status, body = await _fetch(host, url)
                ok = status is not None and isinstance(body, bytes)
                results.append(CheckResult(f"online {path}", ok, f"status={status}"))
                if ok:
                    online_bodies[url] = body
            await registration.active.drain()

            offline_page = await host.caches.match(config.offline_document_url)
            offline_body = offline_page.read() if offline_page is not None else None

            fetcher.online = False
            for url, expected in online_bodies.items():
                status, body = await _fetch(host, url)
                results.append(
                    CheckResult(f"offline {url}", body == expected, f"status={status} cached={body == expected}")
                )

            status, body = await _fetch(host, config.resolve(args.unvisited))
            results.append(
                CheckResult(
                    "offline fallback",
                    offline_body is not None and body == offline_body,
                    f"status={status} offline_page_cached={offline_body is not None}",
                )
            )

    if args.json:
        print(json.dumps([r.__dict__ for r in results], indent=2))
    else:
        for result in results:
            print(f"[{'PASS' if result.ok else 'FAIL'}] {result.name}: {result.detail}")

    return 0 if all(r.ok for r in results) else 1


def main() -> int:
    args = _parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
