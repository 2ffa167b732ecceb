"""
Retry utilities with exponential backoff for Lambda functions.

Provides a retry decorator and the batch helper that isolates per-user
failures into an SQS partial batch response.
"""

import time
import functools
from typing import Callable, TypeVar, Any, Dict, Iterable, List, Optional, Tuple, Type
from aws_lambda_powertools import Logger

logger = Logger(child=True)

T = TypeVar('T')


def exponential_backoff_retry(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    retry_if: Optional[Callable[[Exception], bool]] = None,
    logger_instance: Optional[Logger] = None
) -> Callable:
    """
    Decorator for retrying a function with exponential backoff.

    Args:
        max_retries: Maximum number of attempts (default 3)
        base_delay: Base delay in seconds (default 1.0)
        max_delay: Maximum delay in seconds (default 60.0)
        exponential_base: Base for exponential calculation (default 2.0)
        exceptions: Tuple of exception types to catch and retry
        retry_if: Optional predicate; a caught exception for which it returns
            False is re-raised immediately
        logger_instance: Optional logger instance for logging retries

    Returns:
        Decorated function with retry logic

    Example:
        @exponential_backoff_retry(max_retries=3, base_delay=0.5, exceptions=(ClientError,))
        def put_stats():
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            log = logger_instance or logger
            last_exception = None

            for attempt in range(1, max_retries + 1):
                try:
                    result = func(*args, **kwargs)
                    if attempt > 1:
                        log.info(
                            f"Function {func.__name__} succeeded on attempt {attempt}",
                            extra={"function": func.__name__, "attempt": attempt}
                        )
                    return result

                except exceptions as e:
                    if retry_if is not None and not retry_if(e):
                        raise

                    last_exception = e

                    if attempt < max_retries:
                        delay = min(base_delay * (exponential_base ** (attempt - 1)), max_delay)

                        log.warning(
                            f"Function {func.__name__} failed on attempt {attempt}/{max_retries}, "
                            f"retrying in {delay:.2f}s",
                            extra={
                                "function": func.__name__,
                                "attempt": attempt,
                                "max_retries": max_retries,
                                "delay_seconds": delay,
                                "error": str(e),
                                "error_type": type(e).__name__
                            }
                        )

                        time.sleep(delay)
                    else:
                        log.error(
                            f"Function {func.__name__} failed after {max_retries} attempts",
                            extra={
                                "function": func.__name__,
                                "max_retries": max_retries,
                                "error": str(e),
                                "error_type": type(e).__name__
                            }
                        )

            raise last_exception

        return wrapper
    return decorator


def process_groups_with_isolation(
    groups: Dict[str, List[str]],
    process_func: Callable[[str], Any],
    logger_instance: Optional[Logger] = None
) -> List[Dict[str, str]]:
    """
    Process keyed groups of queue messages with error isolation.

    Each key is processed once. A failure is logged and every message id of
    that key is reported, so the queue redelivers only those messages while
    the other keys carry on.

    Args:
        groups: Mapping of key (e.g. user id) to the message ids that named it
        process_func: Function called with each key
        logger_instance: Optional logger instance

    Returns:
        List of batch item failures (dicts with "itemIdentifier" key)

    Example:
        batch_item_failures = process_groups_with_isolation(
            {"user-1": ["msg-1", "msg-3"], "user-2": ["msg-2"]},
            recompute_weekly_stats
        )

        return {"batchItemFailures": batch_item_failures}
    """
    log = logger_instance or logger
    batch_item_failures = []

    for key, message_ids in groups.items():
        try:
            process_func(key)
        except Exception as e:
            log.error(
                "Failed to process message group",
                extra={
                    "group_key": key,
                    "message_ids": message_ids,
                    "error": str(e),
                    "error_type": type(e).__name__
                }
            )
            batch_item_failures.extend(_failures_for(message_ids))

    return batch_item_failures


def _failures_for(message_ids: Iterable[str]) -> List[Dict[str, str]]:
    return [{"itemIdentifier": message_id} for message_id in message_ids if message_id]
