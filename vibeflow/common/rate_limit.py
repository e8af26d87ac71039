"""Rate limiting configuration using slowapi.

Provides a module-level Limiter instance that routers import for
per-endpoint limits, and which main.py wires into the FastAPI app.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Credential endpoints override with @limiter.limit(settings.LOGIN_RATE_LIMIT).
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["60/minute"],
)
