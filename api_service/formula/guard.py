import logging
import time

from redis.asyncio import Redis

from api_service.formula.context import ResolutionContext
from api_service.formula.errors import FormulaError, FormulaTimeoutError
from api_service.formula.resolver import ShortcodeResolver
from api_service.schemas.formula import FormulaExecuteResponse

log = logging.getLogger(__name__)


class Deadline:
    def __init__(self, seconds: float):
        self.seconds = seconds
        self.expires_at = time.monotonic() + seconds

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self.expires_at

    def check(self):
        if self.expired:
            raise FormulaTimeoutError(self.seconds)


class RateLimiter:
    """Fixed window counter per caller: at most `limit` hits every `window` seconds."""

    def __init__(self, redis: Redis, limit: int, window: int, prefix: str = "formula:rate"):
        self.redis = redis
        self.limit = limit
        self.window = window
        self.prefix = prefix

    def key(self, identity: str) -> str:
        return f"{self.prefix}:{identity}"

    async def hit(self, identity: str) -> bool:
        key = self.key(identity)
        count = await self.redis.incr(key)
        if count == 1:
            await self.redis.expire(key, self.window)
        if count > self.limit:
            log.warning("rate limit reached for %s (%s/%s)", identity, count, self.limit)
            return False
        return True

    async def reset(self, identity: str):
        await self.redis.delete(self.key(identity))


def elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


def run_guarded(template: str, context: ResolutionContext, timeout_seconds: float) -> FormulaExecuteResponse:
    started = time.perf_counter()
    resolver = ShortcodeResolver(context, deadline=Deadline(timeout_seconds))
    try:
        result = resolver.resolve(template)
    except FormulaError as e:
        log.info("formula execution failed: %s", e)
        return FormulaExecuteResponse(success=False, error=str(e), execution_time=elapsed_ms(started))
    return FormulaExecuteResponse(success=True, result=result, execution_time=elapsed_ms(started))
