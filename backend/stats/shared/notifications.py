"""
Resource-updated notification contract.

Producers publish a ResourceUpdated event on the event bus; the bus routes it
to the stats queue, so each SQS message body is the EventBridge envelope with
the notification in its "detail" object.
"""

import json
from typing import Dict, Any, Optional
import boto3
from aws_lambda_powertools import Logger

from shared.config import event_bus_name_from_env
from shared.models import ChangeNotification
from shared.time_utils import format_timestamp, utc_now

logger = Logger(child=True)

EVENT_SOURCE = "learning-tracker.resources"
EVENT_DETAIL_TYPE = "ResourceUpdated"


class NotificationPublishError(Exception):
    """EventBridge rejected a notification."""


_events_client: Optional[Any] = None


def get_events_client() -> Any:
    """Build the EventBridge client once per execution environment."""
    global _events_client
    if _events_client is None:
        _events_client = boto3.client("events")
    return _events_client


def parse_notification(body: Any) -> Optional[ChangeNotification]:
    """
    Parse a change notification from an SQS message body.

    Args:
        body: Raw message body (JSON string)

    Returns:
        ChangeNotification, or None if the body is not JSON, not an object,
        or has no usable detail.userId
    """
    try:
        envelope = json.loads(body)
    except (TypeError, ValueError):
        return None

    if not isinstance(envelope, dict):
        return None

    detail = envelope.get("detail") or {}
    if not isinstance(detail, dict):
        return None

    user_id = detail.get("userId")
    if not isinstance(user_id, str) or not user_id:
        return None

    return ChangeNotification(
        user_id=user_id,
        resource_id=detail.get("resourceId"),
        happened_at=detail.get("happenedAt")
    )


def build_resource_updated_entry(notification: ChangeNotification, bus_name: str) -> Dict[str, Any]:
    """
    Build a PutEvents entry for a notification.

    Args:
        notification: Notification to publish
        bus_name: Target event bus name

    Returns:
        Entry dict for events_client.put_events(Entries=[...])
    """
    return {
        "Source": EVENT_SOURCE,
        "DetailType": EVENT_DETAIL_TYPE,
        "Detail": json.dumps(notification.to_detail()),
        "EventBusName": bus_name,
    }


def publish_resource_updated(events_client: Any, bus_name: str, notification: ChangeNotification) -> None:
    """
    Publish a ResourceUpdated event.

    Args:
        events_client: boto3 EventBridge client
        bus_name: Target event bus name
        notification: Notification to publish

    Raises:
        NotificationPublishError if EventBridge reports a failed entry
    """
    response = events_client.put_events(
        Entries=[build_resource_updated_entry(notification, bus_name)]
    )

    if response.get("FailedEntryCount"):
        entry = (response.get("Entries") or [{}])[0]
        logger.error(
            "EventBridge put_events failed",
            extra={
                "user_id": notification.user_id,
                "resource_id": notification.resource_id,
                "error_code": entry.get("ErrorCode"),
                "error_message": entry.get("ErrorMessage")
            }
        )
        raise NotificationPublishError(
            f"Failed to publish {EVENT_DETAIL_TYPE}: {entry.get('ErrorCode')}"
        )

    logger.debug(
        "Published resource updated event",
        extra={
            "user_id": notification.user_id,
            "resource_id": notification.resource_id,
            "event_bus": bus_name
        }
    )


def notify_resource_updated(
    user_id: str,
    resource_id: Optional[str] = None,
    happened_at: Optional[str] = None
) -> ChangeNotification:
    """
    Publish a ResourceUpdated event after a resource or progress write.

    Entry point for the resource handlers: the bus comes from EVENT_BUS_NAME
    and the client is reused across invocations.

    Args:
        user_id: Owner of the changed resource
        resource_id: Changed resource, if any
        happened_at: Change time (defaults to now)

    Returns:
        The notification that was published

    Raises:
        NotificationPublishError if EventBridge reports a failed entry
    """
    notification = ChangeNotification(
        user_id=user_id,
        resource_id=resource_id,
        happened_at=happened_at or format_timestamp(utc_now())
    )
    publish_resource_updated(get_events_client(), event_bus_name_from_env(), notification)
    return notification
