"""
Weekly Stats Worker Lambda

Consumes batches of ResourceUpdated notifications from SQS and recomputes
each affected user's weekly stats snapshot:
- Parses and deduplicates user ids in the batch
- Re-reads all of a user's resource records
- Computes counts and hours spent this week
- Upserts one STATS#WEEKLY#{week_key} row per user

Recomputation is a full read-then-replace, so redelivered or duplicate
messages are safe.
"""

import time
from datetime import datetime
from typing import Dict, Any, Callable, List, Optional
from aws_lambda_powertools import Logger
from aws_lambda_powertools.utilities.typing import LambdaContext

from shared.aggregation import compute_weekly_stats
from shared.config import StatsWorkerConfig
from shared.logging_utils import log_malformed_message, log_stats_recomputed, log_batch_summary
from shared.models import WeeklyStats
from shared.notifications import parse_notification
from shared.retry_utils import process_groups_with_isolation
from shared.stats_store import ResourceStore
from shared.time_utils import utc_now

logger = Logger()


class WeeklyStatsAggregator:
    """
    Recomputes weekly stats for the users named in a queue batch.

    Args:
        store: Resource store used for the per-user read and the stats write
        config: Worker settings
        clock: Returns the current time; injectable for tests
    """

    def __init__(
        self,
        store: ResourceStore,
        config: StatsWorkerConfig,
        clock: Callable[[], datetime] = utc_now
    ):
        self.store = store
        self.config = config
        self.clock = clock

    def collect_user_ids(self, records: List[Dict[str, Any]]) -> Dict[str, List[str]]:
        """
        Deduplicate the users named in a batch.

        Malformed messages are logged and skipped.

        Args:
            records: SQS records

        Returns:
            Mapping of user id to the message ids that named it, in order of
            first appearance
        """
        users: Dict[str, List[str]] = {}

        for record in records:
            message_id = record.get("messageId")
            notification = parse_notification(record.get("body"))

            if notification is None:
                log_malformed_message(logger, message_id, record.get("body"))
                continue

            users.setdefault(notification.user_id, []).append(message_id)

        return users

    def recompute_weekly_stats(self, user_id: str) -> WeeklyStats:
        """
        Recompute and store the current week's stats for one user.

        Args:
            user_id: User to recompute

        Returns:
            The snapshot that was written

        Raises:
            ClientError if the read or the write fails
        """
        started = time.monotonic()
        logger.info("Recomputing weekly stats", extra={"user_id": user_id})

        items = self.store.query_user_resources(user_id)
        # One captured "now" keeps week_key and week_start consistent
        stats = compute_weekly_stats(user_id, items, self.clock())
        self.store.put_weekly_stats(stats)

        log_stats_recomputed(
            logger=logger,
            stats=stats,
            resource_count=len(items),
            duration_ms=int((time.monotonic() - started) * 1000)
        )
        return stats

    def handle_batch(self, records: List[Dict[str, Any]]) -> List[Dict[str, str]]:
        """
        Process one SQS batch.

        Args:
            records: SQS records

        Returns:
            Batch item failures for users whose recomputation failed
        """
        if len(records) > self.config.queue_batch_size:
            logger.warning(
                "Batch larger than configured batch size",
                extra={
                    "record_count": len(records),
                    "queue_batch_size": self.config.queue_batch_size
                }
            )

        users = self.collect_user_ids(records)
        malformed_count = len(records) - sum(len(ids) for ids in users.values())

        batch_item_failures = process_groups_with_isolation(
            groups=users,
            process_func=self.recompute_weekly_stats,
            logger_instance=logger
        )

        log_batch_summary(
            logger=logger,
            record_count=len(records),
            malformed_count=malformed_count,
            user_count=len(users),
            failed_message_count=len(batch_item_failures)
        )
        return batch_item_failures


_aggregator: Optional[WeeklyStatsAggregator] = None


def get_aggregator() -> WeeklyStatsAggregator:
    """Build the aggregator once per execution environment."""
    global _aggregator
    if _aggregator is None:
        config = StatsWorkerConfig.from_env()
        _aggregator = WeeklyStatsAggregator(
            store=ResourceStore.from_table_name(config.store_table_name),
            config=config
        )
    return _aggregator


@logger.inject_lambda_context
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Lambda handler for recomputing weekly stats from SQS batches.

    Args:
        event: SQS event containing Records
        context: Lambda context

    Returns:
        Response with batch item failures for partial batch failure handling
    """
    records = event.get("Records", [])
    logger.info("Stats worker invoked", extra={"record_count": len(records)})

    batch_item_failures = get_aggregator().handle_batch(records)

    return {
        "batchItemFailures": batch_item_failures
    }
