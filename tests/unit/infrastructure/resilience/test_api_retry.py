from unittest.mock import AsyncMock, MagicMock

import pytest

from pterocli.domain.events.api_events import (
    ApiCallDeferred,
    ApiCallFailed,
    ApiCallInitiated,
    ApiCallSucceeded,
    RetryScheduled,
)
from pterocli.domain.models.common import ApiType, Endpoint, HttpMethod
from pterocli.domain.models.errors import MaxRetryError, PanelApiError
from pterocli.domain.models.request import RequestDescriptor
from pterocli.infrastructure.http.request_executor import RequestExecutor
from pterocli.infrastructure.resilience.api_retry import ApiRetryService
from pterocli.infrastructure.resilience.rate_limiter import RateLimiter


def rate_limited() -> PanelApiError:
    return PanelApiError("Too Many Requests - Rate limit exceeded.", status_code=429)


@pytest.fixture
def descriptor() -> RequestDescriptor:
    return RequestDescriptor(method=HttpMethod("GET"), api_base="/api/client", endpoint=Endpoint("/servers"))


@pytest.fixture
def mock_executor():
    executor = MagicMock(spec=RequestExecutor)
    executor.execute = AsyncMock(return_value={"data": []})
    return executor


@pytest.fixture
def rate_limiter(fake_clock) -> RateLimiter:
    return RateLimiter(clock=fake_clock, sleep=fake_clock.sleep)


@pytest.fixture
def events():
    return []


@pytest.fixture
def retry_service(rate_limiter, mock_executor, fake_clock, events) -> ApiRetryService:
    return ApiRetryService(
        rate_limiter=rate_limiter,
        executor=mock_executor,
        sleep=fake_clock.sleep,
        event_sink=events.append,
    )


@pytest.mark.asyncio
async def test_success_on_first_attempt(retry_service, mock_executor, descriptor, client_credentials, fake_clock):
    result = await retry_service.execute_with_retry(descriptor, client_credentials, ApiType.CLIENT)

    assert result == {"data": []}
    mock_executor.execute.assert_awaited_once_with(descriptor, client_credentials)
    assert fake_clock.sleeps == []


@pytest.mark.asyncio
async def test_rate_limited_request_backs_off_then_gives_up(
    retry_service, mock_executor, descriptor, client_credentials, fake_clock
):
    mock_executor.execute.side_effect = rate_limited()

    with pytest.raises(MaxRetryError) as exc_info:
        await retry_service.execute_with_retry(descriptor, client_credentials, ApiType.CLIENT)

    assert mock_executor.execute.await_count == 6
    assert fake_clock.sleeps == [5.0, 10.0, 20.0, 40.0, 80.0]
    assert exc_info.value.status_code == 429
    assert "Max retries (5) exceeded" in exc_info.value.message
    assert "Rate limit exceeded" in exc_info.value.message


@pytest.mark.asyncio
async def test_rate_limited_request_recovers(retry_service, mock_executor, descriptor, client_credentials, fake_clock):
    mock_executor.execute.side_effect = [rate_limited(), rate_limited(), {"attributes": {"id": 1}}]

    result = await retry_service.execute_with_retry(descriptor, client_credentials, ApiType.CLIENT)

    assert result == {"attributes": {"id": 1}}
    assert mock_executor.execute.await_count == 3
    assert fake_clock.sleeps == [5.0, 10.0]


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [None, 400, 401, 403, 404, 409, 422, 500, 502, 503])
async def test_other_failures_are_not_retried(
    retry_service, mock_executor, descriptor, client_credentials, fake_clock, status_code
):
    error = PanelApiError("boom", status_code=status_code)
    mock_executor.execute.side_effect = error

    with pytest.raises(PanelApiError) as exc_info:
        await retry_service.execute_with_retry(descriptor, client_credentials, ApiType.CLIENT)

    assert exc_info.value is error
    mock_executor.execute.assert_awaited_once()
    assert fake_clock.sleeps == []


@pytest.mark.asyncio
async def test_rate_limiter_is_consulted_before_every_attempt(
    retry_service, rate_limiter, mock_executor, descriptor, client_credentials, mocker
):
    acquire = mocker.spy(rate_limiter, "acquire")
    mock_executor.execute.side_effect = [rate_limited(), rate_limited(), {"ok": True}]

    await retry_service.execute_with_retry(descriptor, client_credentials, ApiType.APPLICATION)

    assert acquire.call_count == 3
    assert acquire.call_args.args[1] is ApiType.APPLICATION


@pytest.mark.asyncio
async def test_zero_retries_fails_on_first_429(rate_limiter, mock_executor, descriptor, client_credentials, fake_clock):
    service = ApiRetryService(rate_limiter, mock_executor, max_retries=0, sleep=fake_clock.sleep)
    mock_executor.execute.side_effect = rate_limited()

    with pytest.raises(MaxRetryError):
        await service.execute_with_retry(descriptor, client_credentials, ApiType.CLIENT)

    mock_executor.execute.assert_awaited_once()
    assert fake_clock.sleeps == []


@pytest.mark.asyncio
async def test_events_describe_the_retry(retry_service, mock_executor, descriptor, client_credentials, events):
    mock_executor.execute.side_effect = [rate_limited(), {"ok": True}]

    await retry_service.execute_with_retry(descriptor, client_credentials, ApiType.CLIENT)

    assert [type(e) for e in events] == [ApiCallInitiated, RetryScheduled, ApiCallInitiated, ApiCallSucceeded]
    assert events[1].delay_seconds == 5.0
    assert events[2].attempt_number == 2


@pytest.mark.asyncio
async def test_failure_and_deferral_events(fake_clock, mock_executor, descriptor, client_credentials, events):
    limiter = RateLimiter(client_budget=1, clock=fake_clock, sleep=fake_clock.sleep)
    service = ApiRetryService(limiter, mock_executor, sleep=fake_clock.sleep, event_sink=events.append)

    await service.execute_with_retry(descriptor, client_credentials, ApiType.CLIENT)
    mock_executor.execute.side_effect = PanelApiError("Not Found", status_code=404)
    with pytest.raises(PanelApiError):
        await service.execute_with_retry(descriptor, client_credentials, ApiType.CLIENT)

    deferred = [e for e in events if isinstance(e, ApiCallDeferred)]
    failed = [e for e in events if isinstance(e, ApiCallFailed)]
    assert len(deferred) == 1 and deferred[0].wait_time_seconds == 60.0
    assert len(failed) == 1 and failed[0].status_code == 404


def test_backoff_policy(rate_limiter, mock_executor):
    service = ApiRetryService(rate_limiter, mock_executor)
    assert [service.backoff_delay_ms(n) for n in range(5)] == [5000, 10000, 20000, 40000, 80000]
    assert service.policy == {"max_retries": 5, "base_delay_ms": 5000, "factor": 2.0}
