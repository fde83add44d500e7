from slowapi import Limiter
from slowapi.util import get_remote_address

from warden.core.config import settings


# ============================================================================
# Rate Limiter Setup
# ============================================================================
# In-process storage by default; point RATE_LIMIT_STORAGE_URI at a shared
# backend when running more than one worker.
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.rate_limit_storage_uri,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
)
