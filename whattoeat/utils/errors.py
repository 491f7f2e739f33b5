"""Error types and graceful-degradation helpers.

Error taxonomy:
- "no results" is not an error: provider calls return empty lists / None.
- ProviderError: transport failure talking to TheMealDB (network, timeout,
  non-2xx, undecodable body). Absorbed by the pipeline, which degrades to
  random recommendations.
- RecommendationError: the only failure a caller ever sees from the pipeline,
  raised when even the random fallback could not reach the provider.
- Invalid input is rejected by pydantic (ValidationError) before the pipeline runs.

The safe_execute helpers consolidate the try/except/log pattern for optional
operations (keyword expansion, translation, lenient JSON parsing) that must
never break a request.
"""

from typing import Any, Optional

from whattoeat.utils.logger import logger


class WhatToEatError(Exception):
    """Base class for errors raised by this package."""


class ProviderError(WhatToEatError):
    """Transport-level failure while calling the recipe provider."""

    def __init__(self, message: str, operation: str = "", url: Optional[str] = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.url = url


class RecommendationError(WhatToEatError):
    """Total failure: no stage, random fallback included, produced recipes.

    Attributes:
        stage: Name of the last stage attempted (e.g. "random").
    """

    def __init__(self, message: str, stage: str) -> None:
        super().__init__(message)
        self.stage = stage

    def to_dict(self) -> dict[str, str]:
        return {"error": str(self), "stage": self.stage}


def _log_error(operation_name: str, exception: Exception, log_level: str = "warning") -> None:
    """Log error with appropriate level."""
    msg = f"{operation_name}: {exception}"
    if log_level == "debug":
        logger.debug(msg)
    elif log_level == "error":
        logger.error(msg)
    else:
        logger.warning(msg)


async def safe_execute_async(
    coro,
    operation_name: str,
    log_level: str = "warning",
    default_return: Any = None,
    reraise: bool = False,
):
    """Safely execute async operation with consistent error logging.

    Cancellation (asyncio.CancelledError) is a BaseException and is never
    swallowed here, so a cancelled request stays cancelled.

    Args:
        coro: Awaitable coroutine to execute.
        operation_name: Description for logging (e.g., "Keyword expansion").
        log_level: Logging level ("debug", "warning", "error"). Default: "warning".
        default_return: Value to return on exception. Default: None.
        reraise: If True, re-raise exception after logging. Default: False.

    Returns:
        Result of coroutine if successful, default_return on exception if reraise=False.

    Raises:
        Exception: Original exception if reraise=True.
    """
    try:
        return await coro
    except Exception as e:
        _log_error(operation_name, e, log_level)
        if reraise:
            raise
        return default_return


def safe_execute_sync(
    func,
    operation_name: str,
    log_level: str = "warning",
    default_return: Any = None,
    reraise: bool = False,
):
    """Synchronous version of safe_execute_async. Same behavior and patterns."""
    try:
        return func()
    except Exception as e:
        _log_error(operation_name, e, log_level)
        if reraise:
            raise
        return default_return
