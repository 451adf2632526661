"""
Shared rate limiter.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from boundary_survey.config import settings


limiter = Limiter(key_func=get_remote_address)

# Applied to endpoints that ingest whole coordinate files
IMPORT_RATE_LIMIT = f"{settings.rate_limit_requests}/minute"
