from __future__ import annotations

import dataclasses

import pytest

from coachpwa._constants import cache_name_for
from coachpwa.config import PwaConfig
from coachpwa.exceptions import PwaConfigError


def test_defaults() -> None:
    config = PwaConfig()
    assert config.origin == "http://localhost:3000"
    assert config.cache_name == "coach-digital-v1"
    assert config.static_assets == ("/", "/offline.html", "/manifest.json", "/icon-192.png", "/icon-512.png")
    assert config.prompt_delay == 5.0
    assert config.offline_document_url == "http://localhost:3000/offline.html"


def test_origin_is_normalized() -> None:
    config = PwaConfig(origin="HTTPS://Coach.Example:8443/")
    assert config.origin == "https://coach.example:8443"
    assert config.resolve("/clients?week=2") == "https://coach.example:8443/clients?week=2"


@pytest.mark.parametrize(
    "origin",
    ["coach.example", "ftp://coach.example", "https://coach.example/app", "https://coach.example/?x=1"],
)
def test_invalid_origin_rejected(origin: str) -> None:
    with pytest.raises(PwaConfigError):
        PwaConfig(origin=origin)


def test_invalid_numbers_rejected() -> None:
    with pytest.raises(PwaConfigError):
        PwaConfig(cache_version=0)
    with pytest.raises(PwaConfigError):
        PwaConfig(prompt_delay=-1)


def test_version_bump_changes_cache_name() -> None:
    config = PwaConfig()
    assert dataclasses.replace(config, cache_version=2).cache_name == "coach-digital-v2"
    assert cache_name_for(7, "other-") == "other-7"
    with pytest.raises(ValueError):
        cache_name_for(0)


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COACHPWA_ORIGIN", "https://coach.example")
    monkeypatch.setenv("COACHPWA_CACHE_VERSION", "4")
    monkeypatch.setenv("COACHPWA_PROMPT_DELAY", "0.5")
    monkeypatch.setenv("COACHPWA_FETCH_TIMEOUT", "none")
    monkeypatch.setenv("COACHPWA_ALLOW_INSECURE", "yes")

    config = PwaConfig.from_env(app_name="Coach Test")

    assert config.origin == "https://coach.example"
    assert config.cache_name == "coach-digital-v4"
    assert config.prompt_delay == 0.5
    assert config.fetch_timeout is None
    assert config.allow_insecure is True
    assert config.app_name == "Coach Test"


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COACHPWA_CACHE_VERSION", "not-a-number")
    monkeypatch.setenv("COACHPWA_FETCH_TIMEOUT", "12")

    config = PwaConfig.from_env(cache_version=3)

    assert config.cache_version == 3
    assert config.fetch_timeout == 12.0


def test_from_env_invalid_version(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COACHPWA_CACHE_VERSION", "v2")
    with pytest.raises(PwaConfigError, match="COACHPWA_CACHE_VERSION"):
        PwaConfig.from_env()


@pytest.mark.parametrize(
    ("origin", "expected"),
    [
        ("https://coach.example:443", "https://coach.example"),
        ("http://localhost:80/", "http://localhost"),
        ("http://localhost:443", "http://localhost:443"),
    ],
)
def test_default_port_is_dropped(origin: str, expected: str) -> None:
    assert PwaConfig(origin=origin).origin == expected


def test_origin_with_bad_port_rejected() -> None:
    with pytest.raises(PwaConfigError, match="invalid port"):
        PwaConfig(origin="https://coach.example:99999")


@pytest.mark.parametrize("name", ["COACHPWA_PROMPT_DELAY", "COACHPWA_FETCH_TIMEOUT"])
def test_from_env_invalid_number(monkeypatch: pytest.MonkeyPatch, name: str) -> None:
    monkeypatch.setenv(name, "soon")
    with pytest.raises(PwaConfigError, match=name):
        PwaConfig.from_env()
