"""
Retry policy shared by the embedding and rerank services.
"""

import logging
from typing import Tuple, Type

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

logger = logging.getLogger(__name__)


def build_retrying(
    operation: str,
    max_attempts: int,
    retry_delay: float,
    retry_on: Tuple[Type[BaseException], ...]
) -> Retrying:
    """Retry `retry_on` errors, sleeping retry_delay * attempt between tries.

    The last error is re-raised once max_attempts calls have failed.
    """

    def log_retry(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"{operation} retry {retry_state.attempt_number}/{max_attempts} after error: {error}")

    return Retrying(
        retry=retry_if_exception_type(retry_on),
        stop=stop_after_attempt(max_attempts),
        wait=wait_incrementing(start=retry_delay, increment=retry_delay),
        before_sleep=log_retry,
        reraise=True,
    )
