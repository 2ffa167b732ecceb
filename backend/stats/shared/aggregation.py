"""
Weekly stats computation from a user's resource records.

Pure functions: no store access, the caller supplies the records and "now".
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, Any, List
from aws_lambda_powertools import Logger

from shared.models import ResourceStatus, WeeklyStats
from shared.time_utils import week_key, week_start, parse_timestamp, format_timestamp

logger = Logger(child=True)

MINUTES_PER_HOUR = Decimal(60)
HOURS_QUANTUM = Decimal("0.1")


def count_by_status(items: List[Dict[str, Any]]) -> Dict[str, int]:
    """
    Count resources per status.

    Args:
        items: Resource items as returned by the store

    Returns:
        Dict with "total", "active" and "completed" counts
    """
    active = 0
    completed = 0

    for item in items:
        status = item.get("status")
        if status == ResourceStatus.ACTIVE.value:
            active += 1
        elif status == ResourceStatus.COMPLETED.value:
            completed += 1
        else:
            logger.warning(
                "Resource with unexpected status",
                extra={"sk": item.get("sk"), "status": status}
            )

    return {
        "total": len(items),
        "active": active,
        "completed": completed
    }


def minutes_this_week(items: List[Dict[str, Any]], since: datetime) -> Decimal:
    """
    Sum minutesSpent over resources last updated on or after `since`.

    A resource touched this week contributes its whole minutesSpent, not only
    the minutes logged this week. Resources without a usable updatedAt
    contribute nothing.

    Args:
        items: Resource items as returned by the store
        since: Week start (UTC)

    Returns:
        Total minutes
    """
    total = Decimal(0)

    for item in items:
        updated_at = parse_timestamp(item.get("updatedAt"))
        if updated_at is None or updated_at < since:
            continue
        try:
            total += Decimal(str(item.get("minutesSpent") or 0))
        except InvalidOperation:
            logger.warning(
                "Resource with non-numeric minutesSpent",
                extra={"sk": item.get("sk"), "minutes_spent": item.get("minutesSpent")}
            )

    return total


def hours_from_minutes(minutes: Decimal) -> Decimal:
    """
    Convert minutes to hours rounded half-up to one decimal place.

    Examples:
        5 -> 0.1 (0.0833...), 3 -> 0.1 (0.05), 0 -> 0.0
    """
    hours = Decimal(minutes) / MINUTES_PER_HOUR
    return hours.quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP)


def compute_weekly_stats(
    user_id: str,
    items: List[Dict[str, Any]],
    now: datetime
) -> WeeklyStats:
    """
    Compute the weekly stats snapshot for a user.

    Args:
        user_id: Owner of the resources
        items: All of the user's resource items
        now: Moment that selects the week; also stored as updatedAt

    Returns:
        WeeklyStats for the ISO week containing `now`
    """
    counts = count_by_status(items)
    minutes = minutes_this_week(items, week_start(now))

    return WeeklyStats(
        user_id=user_id,
        week_key=week_key(now),
        total_resources=counts["total"],
        active=counts["active"],
        completed=counts["completed"],
        hours_spent_this_week=hours_from_minutes(minutes),
        updated_at=format_timestamp(now)
    )
