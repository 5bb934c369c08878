"""Rate limiter instance for SlowAPI.

Shared so both main (app.state.limiter) and route modules can use the same
instance without circular imports. Central limit strings and decorators
keep rate limits DRY.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

# Single source of truth for rate limit strings and decorators.
CREATE_PROJECT_LIMIT = "5/minute"
WRITE_ENDPOINT_LIMIT = "120/minute"
INVOKE_TASK_LIMIT = "60/minute"

limit_create_project = limiter.limit(CREATE_PROJECT_LIMIT)
limit_writes = limiter.limit(WRITE_ENDPOINT_LIMIT)
limit_invocations = limiter.limit(INVOKE_TASK_LIMIT)
