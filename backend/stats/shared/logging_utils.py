"""
Logging utilities for structured logging across all Lambda functions.

Provides helper functions for consistent structured logging with AWS Lambda Powertools.
"""

from typing import Optional
from aws_lambda_powertools import Logger

from shared.models import WeeklyStats


def log_malformed_message(
    logger: Logger,
    message_id: Optional[str],
    body: Optional[str]
) -> None:
    """
    Log a queue message that could not be parsed into a notification.

    Args:
        logger: Logger instance
        message_id: SQS message ID
        body: Raw message body (truncated)
    """
    logger.warning(
        "Skipping malformed notification message",
        extra={
            "message_id": message_id,
            "body": (body or "")[:256],
            "event_category": "malformed_message"
        }
    )


def log_stats_recomputed(
    logger: Logger,
    stats: WeeklyStats,
    resource_count: int,
    duration_ms: Optional[int] = None
) -> None:
    """
    Log a completed weekly stats recomputation.

    Args:
        logger: Logger instance
        stats: Snapshot that was written
        resource_count: Number of resource records read
        duration_ms: Optional read-compute-write duration
    """
    extra_data = {
        "user_id": stats.user_id,
        "week_key": stats.week_key,
        "total_resources": stats.total_resources,
        "active": stats.active,
        "completed": stats.completed,
        "hours_spent_this_week": str(stats.hours_spent_this_week),
        "resource_count": resource_count,
        "event_category": "stats_recompute"
    }

    if duration_ms is not None:
        extra_data["duration_ms"] = duration_ms

    logger.info(
        "Stored weekly stats",
        extra=extra_data
    )


def log_batch_summary(
    logger: Logger,
    record_count: int,
    malformed_count: int,
    user_count: int,
    failed_message_count: int
) -> None:
    """
    Log the outcome of one queue batch.

    Args:
        logger: Logger instance
        record_count: Messages in the batch
        malformed_count: Messages skipped as malformed
        user_count: Distinct users recomputed
        failed_message_count: Messages reported back for redelivery
    """
    logger.info(
        "Stats batch processing complete",
        extra={
            "total_records": record_count,
            "malformed_records": malformed_count,
            "distinct_users": user_count,
            "failed_records": failed_message_count,
            "event_category": "batch_summary"
        }
    )
