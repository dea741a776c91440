"""Rate limiting for public endpoints."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from tipping.config import Settings

# Rate limiter using client IP
limiter = Limiter(key_func=get_remote_address)

# Per-route limit strings, read on every request; create_app() installs its settings
_route_limits = {"health": Settings.model_fields["HEALTH_RATE_LIMIT"].default}


def configure_limits(settings: Settings) -> None:
    """Apply the rate limits of the settings the app was built with."""
    _route_limits["health"] = settings.HEALTH_RATE_LIMIT


def health_rate_limit() -> str:
    return _route_limits["health"]
