from __future__ import annotations

from coachpwa._redact import redact_headers, redact_url


def test_redact_headers_masks_credentials() -> None:
    headers = {
        "user-agent": "coachpwa-worker/1",
        "Authorization": "Bearer abc.def",
        "Cookie": "session=1234",
        "X-CSRF-Token": "csrf",
        "x-trace": b"\x00\x01\x02",
    }

    redacted = redact_headers(headers)
    assert redacted == {
        "user-agent": "coachpwa-worker/1",
        "Authorization": "<redacted>",
        "Cookie": "<redacted>",
        "X-CSRF-Token": "<redacted>",
        "x-trace": "<bytes:3b>",
    }
    assert headers["Authorization"] == "Bearer abc.def"


def test_redact_headers_truncates_long_values() -> None:
    redacted = redact_headers({"referer": "x" * 600}, max_value=10)
    assert redacted["referer"] == "xxxxxxxxxx...<truncated>"


def test_redact_url_masks_sensitive_query_params() -> None:
    url = "https://coach.example/seances?token=s3cret&week=12"
    assert redact_url(url) == "https://coach.example/seances?token=<redacted>&week=12"
    assert redact_url("https://coach.example/seances") == "https://coach.example/seances"
