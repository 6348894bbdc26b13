"""Timeout-bounded calls to external collaborators."""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Any, Callable, TypeVar

from ...observability.request_id import bind_context
from ..verification.errors import ExternalServiceFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Shared pool; a hung collaborator occupies a worker but never the caller
_executor = ThreadPoolExecutor(max_workers=16, thread_name_prefix="external-call")


def call_with_timeout(
    func: Callable[..., T],
    *args: Any,
    timeout: float,
    service: str = "external service",
    **kwargs: Any,
) -> T:
    """Run func(*args, **kwargs) and wait at most timeout seconds.

    Args:
        func: Collaborator call to execute
        timeout: Caller-supplied bound in seconds
        service: Name used in error messages and logs

    Returns:
        Whatever func returns

    Raises:
        ExternalServiceFailure: If the call times out or raises
    """
    if timeout is None or timeout <= 0:
        raise ValueError(f"timeout must be positive, got {timeout!r}")

    future = _executor.submit(bind_context(func), *args, **kwargs)
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError:
        future.cancel()
        logger.warning(f"{service} call timed out after {timeout}s")
        raise ExternalServiceFailure(f"{service} timed out after {timeout}s")
    except ExternalServiceFailure:
        raise
    except Exception as e:
        logger.warning(f"{service} call failed: {e}")
        raise ExternalServiceFailure(f"{service} failed: {e}") from e
