"""Runtime configuration for coachpwa."""

from __future__ import annotations

import dataclasses
import os
from typing import Any
from urllib.parse import urljoin, urlsplit

from coachpwa._constants import (
    APP_NAME,
    CACHE_PREFIX,
    CACHE_VERSION,
    DEFAULT_NOTIFICATION_BODY,
    DEFAULT_ORIGIN,
    NOTIFICATION_ICON,
    OFFLINE_URL,
    PROMPT_DELAY_SECONDS,
    SCRIPT_URL,
    STATIC_ASSETS,
    VIBRATE_PATTERN,
    cache_name_for,
)
from coachpwa.exceptions import PwaConfigError
from coachpwa.models.http import url_origin


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise PwaConfigError(f"{name} is not a number: {value!r}") from exc


def _env_optional_float(name: str, value: str) -> float | None:
    stripped = value.strip().lower()
    if stripped in {"", "none", "off"}:
        return None
    return _env_float(name, stripped)


@dataclasses.dataclass(frozen=True)
class PwaConfig:
    """PWA runtime configuration.

    Parameters
    ----------
    origin : str
        Scheme, host and port the application is served from
        (e.g. ``"https://coach.example.com"``). Only requests to this
        origin are intercepted by the offline cache controller.
    cache_prefix : str
        Prefix of every cache store name.
    cache_version : int
        Current cache version. Bumping it is the only way to invalidate
        every previously cached byte.
    offline_url : str
        Path of the offline fallback document.
    static_assets : tuple of str
        Paths pre-cached during the install phase.
    script_url : str
        Path the worker script is registered from.
    prompt_delay : float
        Seconds to wait before showing the notification permission prompt.
    fetch_timeout : float or None
        Total network timeout in seconds for worker fetches. ``None``
        leaves the transport default in place.
    allow_insecure : bool
        Register the worker even when the origin is not a secure context.
        Intended for tests and local tooling only.
    app_name : str
        Default notification title.
    default_notification_body : str
        Body used when a push payload carries none.
    notification_icon : str
        Icon path attached to displayed notifications.
    notification_badge : str
        Badge path attached to displayed notifications.
    vibrate_pattern : tuple of int
        Vibration pattern attached to displayed notifications.
    """

    origin: str = DEFAULT_ORIGIN
    cache_prefix: str = CACHE_PREFIX
    cache_version: int = CACHE_VERSION
    offline_url: str = OFFLINE_URL
    static_assets: tuple[str, ...] = STATIC_ASSETS
    script_url: str = SCRIPT_URL
    prompt_delay: float = PROMPT_DELAY_SECONDS
    fetch_timeout: float | None = None
    allow_insecure: bool = False
    app_name: str = APP_NAME
    default_notification_body: str = DEFAULT_NOTIFICATION_BODY
    notification_icon: str = NOTIFICATION_ICON
    notification_badge: str = NOTIFICATION_ICON
    vibrate_pattern: tuple[int, ...] = VIBRATE_PATTERN

    def __post_init__(self) -> None:
        parts = urlsplit(self.origin)
        if parts.scheme not in {"http", "https"} or not parts.hostname:
            raise PwaConfigError(f"origin must be an absolute http(s) URL, got {self.origin!r}")
        if parts.path not in {"", "/"} or parts.query or parts.fragment:
            raise PwaConfigError(f"origin must not carry a path, query or fragment: {self.origin!r}")
        if self.cache_version < 1:
            raise PwaConfigError(f"cache_version must be >= 1, got {self.cache_version}")
        if self.prompt_delay < 0:
            raise PwaConfigError(f"prompt_delay must be >= 0, got {self.prompt_delay}")
        try:
            origin = url_origin(self.origin)
        except ValueError as exc:
            raise PwaConfigError(f"origin has an invalid port: {self.origin!r}") from exc
        # Normalised so it compares equal to Request.origin.
        object.__setattr__(self, "origin", origin)

    @property
    def cache_name(self) -> str:
        """Name of the single active cache store (``coach-digital-v{N}``)."""
        return cache_name_for(self.cache_version, self.cache_prefix)

    @property
    def offline_document_url(self) -> str:
        return self.resolve(self.offline_url)

    def resolve(self, path: str) -> str:
        """Resolve *path* against :attr:`origin` into an absolute URL."""
        return urljoin(f"{self.origin}/", path)

    @classmethod
    def from_env(cls, **overrides: Any) -> PwaConfig:
        """Create configuration from environment variables.

        Reads optional ``COACHPWA_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        PwaConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "COACHPWA_ORIGIN": "origin",
            "COACHPWA_CACHE_PREFIX": "cache_prefix",
            "COACHPWA_OFFLINE_URL": "offline_url",
            "COACHPWA_SCRIPT_URL": "script_url",
            "COACHPWA_APP_NAME": "app_name",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        version_env = env.get("COACHPWA_CACHE_VERSION")
        if version_env is not None and "cache_version" not in overrides:
            try:
                config_kwargs["cache_version"] = int(version_env)
            except ValueError as exc:
                raise PwaConfigError(f"COACHPWA_CACHE_VERSION is not an integer: {version_env!r}") from exc

        delay_env = env.get("COACHPWA_PROMPT_DELAY")
        if delay_env is not None and "prompt_delay" not in overrides:
            config_kwargs["prompt_delay"] = _env_float("COACHPWA_PROMPT_DELAY", delay_env)

        timeout_env = env.get("COACHPWA_FETCH_TIMEOUT")
        if timeout_env is not None and "fetch_timeout" not in overrides:
            config_kwargs["fetch_timeout"] = _env_optional_float("COACHPWA_FETCH_TIMEOUT", timeout_env)

        if "allow_insecure" not in overrides:
            config_kwargs["allow_insecure"] = _env_bool(env.get("COACHPWA_ALLOW_INSECURE"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
