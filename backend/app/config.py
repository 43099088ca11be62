import logging
import os

logger = logging.getLogger(__name__)


def _canon_prefix(val):
    """
    Normalize API prefix to always be exactly like '/api':
      - defaults to '/api' when unset/empty
      - ensures a single leading slash
      - removes any trailing slash (except for root)
    """
    val = (val or "/api").strip()
    if not val.startswith("/"):
        val = "/" + val
    if len(val) > 1 and val.endswith("/"):
        val = val[:-1]
    return val


def _parse_ttl(env_var: str, default: float) -> float:
    raw_value = os.getenv(env_var)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        value = float(raw_value)
    except ValueError:
        logger.warning(
            "%s is not a valid number (got %r); defaulting to %.0f",
            env_var,
            raw_value,
            default,
        )
        return default
    return max(value, 0.0)


API_PREFIX = _canon_prefix(os.getenv("API_PREFIX"))

# Seconds a computed leaderboard may be served before it is rebuilt. Writes
# invalidate it immediately regardless of this value.
LEADERBOARD_CACHE_TTL = _parse_ttl("LEADERBOARD_CACHE_TTL", 60.0)


def rate_limits_disabled() -> bool:
    return (os.getenv("DISABLE_RATE_LIMITS") or "").lower() == "true"
