from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request
import logging

from quietpost.config import settings

logger = logging.getLogger(__name__)

def participant_key(request: Request) -> str:
    """Rate limit anonymous sessions by their id, everyone else by address"""
    anonymous_id = request.headers.get(settings.ANONYMOUS_ID_HEADER)
    if anonymous_id:
        return f"anon:{anonymous_id}"
    return get_remote_address(request)

limiter = Limiter(
    key_func=participant_key,
    enabled=settings.RATE_LIMIT_ENABLED,
    storage_uri=settings.redis_url if not settings.is_testing else "memory://",
)
