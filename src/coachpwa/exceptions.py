"""Custom exception hierarchy for coachpwa."""

from __future__ import annotations


class PwaError(Exception):
    """Base exception for all coachpwa errors."""


class PwaConfigError(PwaError):
    """Invalid or missing configuration."""


class PwaNetworkError(PwaError):
    """Network-level fetch failure (connection refused, DNS, timeout)."""

    def __init__(self, message: str, *, url: str = "") -> None:
        self.url = url
        super().__init__(message)


class PwaFetchFailedError(PwaNetworkError):
    """An intercepted fetch could be satisfied neither by the network nor the cache.

    This is what the page sees for a non-navigation request (an image, a
    script) while offline with nothing cached for it.
    """


class PwaCacheError(PwaError):
    """Cache storage operation failed."""


class PwaPrecacheError(PwaCacheError):
    """Install-phase population of the static asset manifest failed.

    Population is all-or-nothing: when this is raised no asset has been
    written and the installing worker becomes redundant.
    """

    def __init__(
        self,
        message: str,
        *,
        url: str = "",
        status_code: int | None = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class PwaBodyUsedError(PwaError):
    """A response body was read twice, or cloned after being read."""


class PwaInstallPromptError(PwaError):
    """An install candidate was prompted more than once."""


class PwaWorkerError(PwaError):
    """Worker context misuse (e.g. posting to a stopped or redundant worker)."""
