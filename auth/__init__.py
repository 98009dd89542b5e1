"""Edit-token authorization and admission control."""

from auth.exceptions import (
    AuthError,
    UnauthorizedError,
    RateLimitedError,
)
from auth.tokens import (
    generate_public_id,
    generate_edit_token,
    hash_token,
    verify_token,
)
from auth.rate_limiter import (
    RateLimiter,
    InMemoryRateLimiter,
    ValkeyRateLimiter,
    create_rate_limiter,
)
from auth.security_logger import SecurityLogger, SecurityEvent
