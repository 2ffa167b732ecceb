"""
Pytest configuration and shared fixtures for weekly stats tests.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone

import pytest


@dataclass
class FakeLambdaContext:
    function_name: str = "stats-worker"
    memory_limit_in_mb: int = 256
    invoked_function_arn: str = "arn:aws:lambda:us-east-1:123456789012:function:stats-worker"
    aws_request_id: str = "test-request-id"


@pytest.fixture
def lambda_context():
    """Fixture providing a minimal Lambda context."""
    return FakeLambdaContext()


@pytest.fixture
def fixed_now():
    """Wednesday 2024-01-17 12:00:00 UTC, in ISO week 2024-W03 (starts Monday 2024-01-15)."""
    return datetime(2024, 1, 17, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_resources():
    """Fixture providing one resource touched this week and one touched last week."""
    return [
        {
            "pk": "USER#user-001",
            "sk": "RESOURCE#res-1",
            "title": "Intro to Distributed Systems",
            "type": "course",
            "status": "active",
            "minutesSpent": 30,
            "createdAt": "2024-01-02T08:00:00.000Z",
            "updatedAt": "2024-01-16T09:30:00.000Z",
            "entityType": "resource",
        },
        {
            "pk": "USER#user-001",
            "sk": "RESOURCE#res-2",
            "title": "Designing Data-Intensive Applications",
            "type": "book",
            "status": "completed",
            "minutesSpent": 90,
            "createdAt": "2023-12-20T08:00:00.000Z",
            "updatedAt": "2024-01-10T18:00:00.000Z",
            "entityType": "resource",
        },
    ]


def make_sqs_record(message_id, user_id=None, body=None):
    """Build an SQS record whose body is an EventBridge envelope."""
    if body is None:
        body = json.dumps({
            "version": "0",
            "source": "learning-tracker.resources",
            "detail-type": "ResourceUpdated",
            "detail": {
                "userId": user_id,
                "resourceId": f"res-{message_id}",
                "happenedAt": "2024-01-17T11:59:00.000Z",
            },
        })
    return {
        "messageId": message_id,
        "receiptHandle": f"handle-{message_id}",
        "body": body,
        "eventSource": "aws:sqs",
    }


@pytest.fixture
def sqs_record():
    """Fixture providing the SQS record factory."""
    return make_sqs_record
