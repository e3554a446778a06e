import threading
import time

import requests

from tutoring_scheduler.core.config import settings

JWKS_TTL_SECONDS = 300

_jwks_cache: dict | None = None
_jwks_fetched_at: float = 0.0
_jwks_lock = threading.Lock()


def get_jwks(force_refresh: bool = False) -> dict:
    """Keycloak realm signing keys, cached for ``JWKS_TTL_SECONDS``."""
    global _jwks_cache, _jwks_fetched_at
    with _jwks_lock:
        fresh = time.monotonic() - _jwks_fetched_at < JWKS_TTL_SECONDS
        if _jwks_cache is not None and fresh and not force_refresh:
            return _jwks_cache
        response = requests.get(settings.KEYCLOAK_JWKS_URL, timeout=5)
        response.raise_for_status()
        _jwks_cache = response.json()
        _jwks_fetched_at = time.monotonic()
        return _jwks_cache
