from api_service.formula.guard import Deadline, RateLimiter, run_guarded
from tests.conftest import make_context


async def test_rate_limiter_fixed_window(fake_redis):
    limiter = RateLimiter(redis=fake_redis, limit=2, window=60)
    assert await limiter.hit("admin:a")
    assert await limiter.hit("admin:a")
    assert not await limiter.hit("admin:a")
    assert await limiter.hit("admin:b")

    ttl = await fake_redis.ttl(limiter.key("admin:a"))
    assert 0 < ttl <= 60


async def test_rate_limiter_reset(fake_redis):
    limiter = RateLimiter(redis=fake_redis, limit=1, window=60)
    assert await limiter.hit("admin:a")
    assert not await limiter.hit("admin:a")
    await limiter.reset("admin:a")
    assert await limiter.hit("admin:a")


def test_deadline():
    assert not Deadline(60).expired
    assert Deadline(0).expired


def test_run_guarded_success():
    response = run_guarded("[field:a] * 2", make_context(fields={"a": 21}), timeout_seconds=5)
    assert response.success
    assert response.result == 42
    assert response.error is None
    assert response.execution_time >= 0


def test_run_guarded_turns_errors_into_failures():
    response = run_guarded("[field:a] / 0", make_context(fields={"a": 1}), timeout_seconds=5)
    assert not response.success
    assert response.error == "Division by zero"

    response = run_guarded("1 +", make_context(), timeout_seconds=5)
    assert not response.success
    assert "Unexpected end" in response.error


def test_run_guarded_timeout():
    response = run_guarded("[field:a] + 1", make_context(fields={"a": 1}), timeout_seconds=0)
    assert not response.success
    assert "exceeded" in response.error


def test_run_guarded_rejects_overlong_operator_chain():
    response = run_guarded("1+" * 499 + "1", make_context(), timeout_seconds=5)
    assert not response.success
    assert "nested too deeply" in response.error
