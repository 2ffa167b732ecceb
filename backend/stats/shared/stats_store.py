"""
Resource Store access for the stats pipeline.

Wraps the single-table DynamoDB layout:
- all resource records of a user (paginated key query)
- weekly stats snapshots (put / get / list)
"""

from typing import Dict, Any, List, Optional, Tuple
import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError
from aws_lambda_powertools import Logger

from shared.dynamodb_retry import retry_table_query, retry_table_put_item
from shared.models import (
    WeeklyStats,
    RESOURCE_KEY_PREFIX,
    WEEKLY_STATS_KEY_PREFIX,
    user_partition_key,
    weekly_stats_sort_key
)

logger = Logger(child=True)


class ResourceStore:
    """
    Reads resources and writes weekly stats for a user.

    The DynamoDB Table is injected so tests can pass a fake.
    """

    def __init__(self, table: Any):
        self.table = table

    @classmethod
    def from_table_name(cls, table_name: str, dynamodb_resource: Optional[Any] = None) -> "ResourceStore":
        """Build a store over a named table, creating the boto3 resource if needed."""
        resource = dynamodb_resource or boto3.resource("dynamodb")
        return cls(resource.Table(table_name))

    def query_user_resources(self, user_id: str) -> List[Dict[str, Any]]:
        """
        Fetch every resource record owned by a user.

        Follows LastEvaluatedKey until the query is exhausted.

        Args:
            user_id: Owner of the resources

        Returns:
            List of resource items

        Raises:
            ClientError if the query fails
        """
        key_condition = (
            Key("pk").eq(user_partition_key(user_id))
            & Key("sk").begins_with(RESOURCE_KEY_PREFIX)
        )

        try:
            response = retry_table_query(self.table, KeyConditionExpression=key_condition)
            items = list(response.get("Items", []))
            pages = 1

            # Handle pagination
            while "LastEvaluatedKey" in response:
                response = retry_table_query(
                    self.table,
                    KeyConditionExpression=key_condition,
                    ExclusiveStartKey=response["LastEvaluatedKey"]
                )
                items.extend(response.get("Items", []))
                pages += 1

        except ClientError as e:
            logger.error(
                "Failed to query user resources",
                extra={"user_id": user_id, "error": str(e)}
            )
            raise

        logger.debug(
            "Fetched user resources",
            extra={"user_id": user_id, "resource_count": len(items), "pages": pages}
        )
        return items

    def put_weekly_stats(self, stats: WeeklyStats) -> None:
        """
        Write a weekly stats snapshot, replacing any previous one for the week.

        Raises:
            ClientError if the write fails
        """
        item = stats.to_dynamodb_item()

        try:
            retry_table_put_item(self.table, item)
        except ClientError as e:
            logger.error(
                "Failed to write weekly stats",
                extra={"user_id": stats.user_id, "week_key": stats.week_key, "error": str(e)}
            )
            raise

        logger.debug(
            "Wrote weekly stats",
            extra={"pk": item["pk"], "sk": item["sk"]}
        )

    def get_weekly_stats(self, user_id: str, week_key: str) -> Optional[Dict[str, Any]]:
        """
        Get the snapshot for one week.

        Returns:
            Stats item or None if not computed yet
        """
        response = self.table.get_item(
            Key={
                "pk": user_partition_key(user_id),
                "sk": weekly_stats_sort_key(week_key)
            }
        )
        return response.get("Item")

    def list_weekly_stats(
        self,
        user_id: str,
        limit: int,
        exclusive_start_key: Optional[Dict[str, Any]] = None
    ) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """
        List a user's weekly snapshots, newest week first.

        Args:
            user_id: Owner of the snapshots
            limit: Maximum number of items in the page
            exclusive_start_key: Continuation key from a previous page

        Returns:
            Tuple of (items, last_evaluated_key)
        """
        query_kwargs = {
            "KeyConditionExpression": (
                Key("pk").eq(user_partition_key(user_id))
                & Key("sk").begins_with(WEEKLY_STATS_KEY_PREFIX)
            ),
            # Week keys sort lexicographically in time order
            "ScanIndexForward": False,
            "Limit": limit
        }
        if exclusive_start_key:
            query_kwargs["ExclusiveStartKey"] = exclusive_start_key

        response = self.table.query(**query_kwargs)
        return response.get("Items", []), response.get("LastEvaluatedKey")
