"""Internal constants shared across the library."""

DEFAULT_ORIGIN = "http://localhost:3000"
USER_AGENT = "coachpwa-worker/1"

# ------------------------------------------------------------------
# Cache storage
# ------------------------------------------------------------------

CACHE_PREFIX = "coach-digital-v"
CACHE_VERSION = 1
OFFLINE_URL = "/offline.html"
SCRIPT_URL = "/sw.js"

STATIC_ASSETS: tuple[str, ...] = (
    "/",
    "/offline.html",
    "/manifest.json",
    "/icon-192.png",
    "/icon-512.png",
)

# ------------------------------------------------------------------
# Durable dismissal flags (keys in the page's persistent storage)
# ------------------------------------------------------------------

BANNER_DISMISSED_KEY = "pwa-banner-dismissed"
PROMPT_DISMISSED_KEY = "notification-prompt-dismissed"
DISMISSED_VALUE = "true"

# ------------------------------------------------------------------
# Notifications
# ------------------------------------------------------------------

APP_NAME = "Coach Digital"
DEFAULT_NOTIFICATION_BODY = "Nouvelle notification"
DEFAULT_NOTIFICATION_URL = "/"
NOTIFICATION_ICON = "/icon-192.png"
VIBRATE_PATTERN: tuple[int, ...] = (200, 100, 200)

OPEN_ACTION = "open"
CLOSE_ACTION = "close"

PROMPT_DELAY_SECONDS = 5.0

# Hosts treated as secure contexts even over plain http.
LOCAL_HOSTS: frozenset[str] = frozenset({"localhost", "127.0.0.1", "::1"})


def cache_name_for(version: int, prefix: str = CACHE_PREFIX) -> str:
    """Return the cache store name for *version* (e.g. ``coach-digital-v1``).

    Raises :class:`ValueError` for versions below 1.
    """
    if version < 1:
        raise ValueError(f"cache version must be >= 1, got {version}")
    return f"{prefix}{version}"
