"""
Unit tests for the resource-updated notification contract.
"""

import json
import pytest
from datetime import datetime, timezone
from unittest.mock import Mock, patch

import shared.notifications as notifications
from shared.models import ChangeNotification
from shared.notifications import (
    parse_notification,
    build_resource_updated_entry,
    publish_resource_updated,
    notify_resource_updated,
    NotificationPublishError,
    EVENT_SOURCE,
    EVENT_DETAIL_TYPE
)


class TestParseNotification:
    """Tests for parsing SQS message bodies."""

    def test_parses_eventbridge_envelope(self, sqs_record):
        """Test the detail fields are extracted from the envelope."""
        notification = parse_notification(sqs_record("m1", "user-001")["body"])

        assert notification == ChangeNotification(
            user_id="user-001",
            resource_id="res-m1",
            happened_at="2024-01-17T11:59:00.000Z"
        )

    def test_only_user_id_required(self):
        """Test resourceId and happenedAt are optional."""
        notification = parse_notification('{"detail": {"userId": "user-001"}}')

        assert notification.user_id == "user-001"
        assert notification.resource_id is None
        assert notification.happened_at is None

    @pytest.mark.parametrize("body", [
        None,
        "",
        "{not json",
        "null",
        '"just a string"',
        '{"detail": null}',
        '{"detail": []}',
        '{"detail": {"resourceId": "res-1"}}',
        '{"detail": {"userId": null}}',
    ])
    def test_malformed_bodies(self, body):
        """Test malformed bodies yield None."""
        assert parse_notification(body) is None


class TestPublishResourceUpdated:
    """Tests for publishing notifications."""

    def test_build_entry(self):
        """Test the PutEvents entry shape."""
        notification = ChangeNotification("user-001", "res-1", "2024-01-17T11:59:00.000Z")

        entry = build_resource_updated_entry(notification, "learning-tracker-bus")

        assert entry["Source"] == EVENT_SOURCE
        assert entry["DetailType"] == EVENT_DETAIL_TYPE
        assert entry["EventBusName"] == "learning-tracker-bus"
        assert json.loads(entry["Detail"]) == {
            "userId": "user-001",
            "resourceId": "res-1",
            "happenedAt": "2024-01-17T11:59:00.000Z"
        }

    def test_published_detail_is_readable_by_worker(self):
        """Test the worker can parse what a producer publishes once the bus wraps it."""
        notification = ChangeNotification("user-001", "res-1")
        entry = build_resource_updated_entry(notification, "bus")
        envelope = {"source": entry["Source"], "detail": json.loads(entry["Detail"])}

        assert parse_notification(json.dumps(envelope)) == notification

    def test_publish(self):
        """Test a successful publish."""
        events_client = Mock()
        events_client.put_events.return_value = {"FailedEntryCount": 0, "Entries": [{"EventId": "e-1"}]}
        notification = ChangeNotification("user-001", "res-1")

        publish_resource_updated(events_client, "bus", notification)

        events_client.put_events.assert_called_once_with(
            Entries=[build_resource_updated_entry(notification, "bus")]
        )

    def test_publish_failed_entry_raises(self):
        """Test a rejected entry raises."""
        events_client = Mock()
        events_client.put_events.return_value = {
            "FailedEntryCount": 1,
            "Entries": [{"ErrorCode": "InternalFailure", "ErrorMessage": "try again"}]
        }

        with pytest.raises(NotificationPublishError, match="InternalFailure"):
            publish_resource_updated(events_client, "bus", ChangeNotification("user-001"))


class TestNotifyResourceUpdated:
    """Tests for the resource handler entry point."""

    @pytest.fixture
    def events_client(self, monkeypatch):
        client = Mock()
        client.put_events.return_value = {"FailedEntryCount": 0, "Entries": [{"EventId": "e-1"}]}
        monkeypatch.setattr(notifications, "_events_client", client)
        return client

    def test_publishes_to_configured_bus(self, events_client, monkeypatch):
        """Test the bus name is read from EVENT_BUS_NAME."""
        monkeypatch.setenv("EVENT_BUS_NAME", "learning-tracker-bus")

        notify_resource_updated("user-001", "res-1", "2024-01-17T11:59:00.000Z")

        entry = events_client.put_events.call_args.kwargs["Entries"][0]
        assert entry["EventBusName"] == "learning-tracker-bus"
        assert json.loads(entry["Detail"])["resourceId"] == "res-1"

    def test_default_bus_and_timestamp(self, events_client, monkeypatch):
        """Test the default bus is used and happenedAt defaults to now."""
        monkeypatch.delenv("EVENT_BUS_NAME", raising=False)

        with patch("shared.notifications.utc_now", return_value=datetime(2024, 1, 17, 12, 0, tzinfo=timezone.utc)):
            notification = notify_resource_updated("user-001")

        assert notification.happened_at == "2024-01-17T12:00:00.000Z"
        entry = events_client.put_events.call_args.kwargs["Entries"][0]
        assert entry["EventBusName"] == "default"

    def test_client_built_once(self, monkeypatch):
        """Test the EventBridge client is created lazily and reused."""
        monkeypatch.setattr(notifications, "_events_client", None)

        with patch("shared.notifications.boto3.client") as mock_client:
            mock_client.return_value.put_events.return_value = {"FailedEntryCount": 0}
            notify_resource_updated("user-001", "res-1")
            notify_resource_updated("user-001", "res-2")

        mock_client.assert_called_once_with("events")
        assert mock_client.return_value.put_events.call_count == 2

    def test_rejected_entry_raises(self, events_client):
        """Test publish failures reach the caller."""
        events_client.put_events.return_value = {"FailedEntryCount": 1, "Entries": [{"ErrorCode": "AccessDenied"}]}

        with pytest.raises(NotificationPublishError):
            notify_resource_updated("user-001", "res-1")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
