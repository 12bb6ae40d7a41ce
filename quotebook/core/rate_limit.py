# quotebook/core/rate_limit.py
from slowapi import Limiter
from slowapi.util import get_remote_address

from quotebook.core.settings import settings

# One shared limiter for the whole app, keyed per client ip
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
)

exempt = limiter.exempt
