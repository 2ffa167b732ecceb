"""
Data models for the Learning Tracker weekly stats pipeline.

Contains domain models and persistence models:
- ResourceType / ResourceStatus
- ResourceRecord
- ProgressEntry
- WeeklyStats
- ChangeNotification
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional, Dict, Any


USER_KEY_PREFIX = "USER#"
RESOURCE_KEY_PREFIX = "RESOURCE#"
PROGRESS_KEY_PREFIX = "PROGRESS#"
WEEKLY_STATS_KEY_PREFIX = "STATS#WEEKLY#"


class ResourceType(str, Enum):
    """Kind of learning resource."""
    COURSE = "course"
    BOOK = "book"
    VIDEO = "video"
    ARTICLE = "article"


class ResourceStatus(str, Enum):
    """Resource progress status."""
    ACTIVE = "active"
    COMPLETED = "completed"


class EntityType(str, Enum):
    """Value of the entityType attribute stored on every item."""
    RESOURCE = "resource"
    PROGRESS = "progress"
    WEEKLY_STATS = "weekly_stats"


def user_partition_key(user_id: str) -> str:
    """Partition key shared by every item a user owns."""
    return f"{USER_KEY_PREFIX}{user_id}"


def resource_sort_key(resource_id: str) -> str:
    return f"{RESOURCE_KEY_PREFIX}{resource_id}"


def progress_sort_key(resource_id: str, progress_at: str) -> str:
    return f"{PROGRESS_KEY_PREFIX}{resource_id}#{progress_at}"


def weekly_stats_sort_key(week_key: str) -> str:
    """
    Sort key of a weekly stats snapshot.

    Args:
        week_key: ISO week key, e.g. "2025-W01"

    Returns:
        Sort key in format: STATS#WEEKLY#{week_key}
    """
    return f"{WEEKLY_STATS_KEY_PREFIX}{week_key}"


@dataclass
class ResourceRecord:
    """
    Learning resource owned by a user.

    Written by the resource CRUD handlers; the stats aggregator only reads it.
    """
    user_id: str
    resource_id: str
    title: str
    resource_type: ResourceType
    status: ResourceStatus = ResourceStatus.ACTIVE
    minutes_spent: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def __post_init__(self):
        if not self.title or not self.title.strip():
            raise ValueError("title must be a non-empty string")
        if self.minutes_spent < 0:
            raise ValueError("minutes_spent must be non-negative")

    def to_dynamodb_item(self) -> Dict[str, Any]:
        """Convert to DynamoDB item format."""
        item = {
            "pk": user_partition_key(self.user_id),
            "sk": resource_sort_key(self.resource_id),
            "userId": self.user_id,
            "resourceId": self.resource_id,
            "title": self.title,
            "type": self.resource_type.value,
            "status": self.status.value,
            "minutesSpent": self.minutes_spent,
            "entityType": EntityType.RESOURCE.value,
        }

        if self.created_at is not None:
            item["createdAt"] = self.created_at
        if self.updated_at is not None:
            item["updatedAt"] = self.updated_at

        return item


@dataclass
class ProgressEntry:
    """Append-only progress log entry for a resource."""
    user_id: str
    resource_id: str
    progress_at: str
    delta_minutes: int
    note: Optional[str] = None

    def __post_init__(self):
        if self.delta_minutes <= 0:
            raise ValueError("delta_minutes must be positive")

    def to_dynamodb_item(self) -> Dict[str, Any]:
        """Convert to DynamoDB item format."""
        item = {
            "pk": user_partition_key(self.user_id),
            "sk": progress_sort_key(self.resource_id, self.progress_at),
            "userId": self.user_id,
            "resourceId": self.resource_id,
            "deltaMinutes": self.delta_minutes,
            "progressAt": self.progress_at,
            "entityType": EntityType.PROGRESS.value,
        }

        if self.note:
            item["note"] = self.note

        return item


@dataclass
class WeeklyStats:
    """
    Weekly stats snapshot for a user.

    One row per (user_id, week_key); every write replaces the previous row.
    """
    user_id: str
    week_key: str
    total_resources: int
    active: int
    completed: int
    hours_spent_this_week: Decimal
    updated_at: str

    def to_dynamodb_item(self) -> Dict[str, Any]:
        """Convert to DynamoDB item format."""
        return {
            "pk": user_partition_key(self.user_id),
            "sk": weekly_stats_sort_key(self.week_key),
            "totalResources": self.total_resources,
            "active": self.active,
            "completed": self.completed,
            "hoursSpentThisWeek": self.hours_spent_this_week,
            "weekKey": self.week_key,
            "updatedAt": self.updated_at,
            "entityType": EntityType.WEEKLY_STATS.value,
        }

    @staticmethod
    def from_dynamodb_item(item: Dict[str, Any]) -> 'WeeklyStats':
        """Create from DynamoDB item; numbers arrive as Decimal."""
        return WeeklyStats(
            user_id=item["pk"][len(USER_KEY_PREFIX):],
            week_key=item["weekKey"],
            total_resources=int(item.get("totalResources", 0)),
            active=int(item.get("active", 0)),
            completed=int(item.get("completed", 0)),
            hours_spent_this_week=Decimal(str(item.get("hoursSpentThisWeek", 0))),
            updated_at=item.get("updatedAt")
        )

    def to_response(self) -> Dict[str, Any]:
        """Convert to the API response shape, with JSON numbers and no table keys."""
        return {
            "weekKey": self.week_key,
            "totalResources": self.total_resources,
            "active": self.active,
            "completed": self.completed,
            "hoursSpentThisWeek": float(self.hours_spent_this_week),
            "updatedAt": self.updated_at,
        }


@dataclass
class ChangeNotification:
    """Resource-updated fact carried in the detail of a bus event."""
    user_id: str
    resource_id: Optional[str] = None
    happened_at: Optional[str] = None

    def to_detail(self) -> Dict[str, Any]:
        """Convert to the event detail payload."""
        detail = {"userId": self.user_id}

        if self.resource_id is not None:
            detail["resourceId"] = self.resource_id
        if self.happened_at is not None:
            detail["happenedAt"] = self.happened_at

        return detail
