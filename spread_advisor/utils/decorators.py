"""Execution logging for recommendation steps."""
import asyncio
import functools
import time
from typing import Any, Callable, Dict, Mapping, Sequence

from spread_advisor.models import RecommendationContext
from spread_advisor.utils.logging import get_logger

logger = get_logger(__name__)


def request_fields(args: Sequence[Any], kwargs: Mapping[str, Any]) -> Dict[str, Any]:
    """customer_id and currency of the request a call serves, if it carries one."""
    for value in list(args) + list(kwargs.values()):
        if isinstance(value, RecommendationContext):
            return {"customer_id": value.customer_id, "currency": value.currency}
    currency = kwargs.get("currency")
    if isinstance(currency, str):
        return {"currency": currency}
    return {}


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


def log_execution(log_result: bool = False):
    """
    Log start, completion and timing of a recommendation step.

    Every record is tagged with the customer and currency taken from a
    RecommendationContext argument (or a ``currency`` keyword), so JSON log
    lines of one request can be grouped. Errors are logged and re-raised.
    Cancellation is logged without an error entry.

    Example:
        @log_execution()
        async def generate(self, context):
            ...
    """
    def decorator(func: Callable):
        name = func.__name__

        def completed(extra: Dict[str, Any], start: float, result: Any) -> None:
            message = f"Completed {name}"
            if log_result:
                message += f" -> {str(result)[:100]}"
            logger.info(message, extra={**extra, "execution_time_ms": _elapsed_ms(start)})

        def failed(extra: Dict[str, Any], start: float, error: BaseException) -> None:
            logger.error(
                f"Failed {name}: {error}",
                extra={**extra, "execution_time_ms": _elapsed_ms(start), "error": repr(error)},
            )

        if asyncio.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                extra = {"function": name, **request_fields(args, kwargs)}
                logger.debug(f"Starting {name}", extra=extra)
                start = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                except asyncio.CancelledError:
                    logger.info(f"Cancelled {name}", extra={**extra, "execution_time_ms": _elapsed_ms(start)})
                    raise
                except Exception as e:
                    failed(extra, start, e)
                    raise
                completed(extra, start, result)
                return result

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            extra = {"function": name, **request_fields(args, kwargs)}
            logger.debug(f"Starting {name}", extra=extra)
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                failed(extra, start, e)
                raise
            completed(extra, start, result)
            return result

        return sync_wrapper

    return decorator
