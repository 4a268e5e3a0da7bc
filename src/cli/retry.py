"""Retry policy for LLM calls: exponential backoff on rate limits."""

import structlog
from tenacity import RetryCallState, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from llm import LLMRateLimitError

logger = structlog.get_logger()


def _log_retry(state: RetryCallState) -> None:
    error = state.outcome.exception() if state.outcome else None
    logger.warning(
        "llm.retrying",
        attempt=state.attempt_number,
        wait=round(state.next_action.sleep, 1) if state.next_action else None,
        error=str(error),
    )


def llm_retry(
    max_attempts: int = 3,
    min_wait: float = 2.0,
    max_wait: float = 30.0,
    exceptions: tuple[type[BaseException], ...] = (LLMRateLimitError,),
):
    """Retry decorator for LLM API calls.

    Only rate limits are retried by default; auth and request errors fail on
    the first attempt. The last error is re-raised once attempts run out.

    Args:
        max_attempts: Total attempts including the first call
        min_wait: Min wait between retries (seconds)
        max_wait: Max wait between retries (seconds)
        exceptions: Exception types to retry on
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(exceptions),
        before_sleep=_log_retry,
        reraise=True,
    )
