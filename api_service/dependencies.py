import hashlib
import secrets

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from starlette import status

from api_service.formula.guard import RateLimiter
from config import settings, redis_session

security = HTTPBearer(auto_error=False)

rate_limiter = RateLimiter(redis=redis_session(),
                           limit=settings.formula.rate_limit,
                           window=settings.formula.rate_window_seconds)


async def require_admin(request: Request,
                        credentials: HTTPAuthorizationCredentials | None = Depends(security)) -> str:
    """Returns the caller identity used for rate limiting."""
    expected = settings.admin.token.get_secret_value()
    if credentials is None or not secrets.compare_digest(credentials.credentials.encode(), expected.encode()):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="Admin token required",
                            headers={"WWW-Authenticate": "Bearer"})
    token_id = hashlib.sha256(credentials.credentials.encode()).hexdigest()[:12]
    host = request.client.host if request.client else "unknown"
    return f"admin:{token_id}:{host}"


def get_rate_limiter() -> RateLimiter:
    return rate_limiter
