"""Request rate limiting shared by the routers."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from incident_map.config import get_settings

settings = get_settings()

limiter = Limiter(key_func=get_remote_address)

RATE_LIMIT = f"{settings.rate_limit_per_minute}/minute"
