"""
Stats API Lambda handlers

Read-only endpoints over the weekly stats snapshots:
- Current week's stats for the caller
- Weekly stats history for the caller
"""

import base64
import json
from typing import Dict, Any, Optional
from aws_lambda_powertools import Logger
from aws_lambda_powertools.utilities.typing import LambdaContext
from aws_lambda_powertools.event_handler import APIGatewayRestResolver
from aws_lambda_powertools.event_handler.exceptions import BadRequestError, NotFoundError

from shared.auth import get_user_id_from_authorization
from shared.config import StatsWorkerConfig
from shared.models import WeeklyStats
from shared.stats_store import ResourceStore
from shared.time_utils import week_key, utc_now

logger = Logger()
app = APIGatewayRestResolver()

DEFAULT_HISTORY_LIMIT = 12
MAX_HISTORY_LIMIT = 52

_store: Optional[ResourceStore] = None


def get_store() -> ResourceStore:
    """Build the store once per execution environment."""
    global _store
    if _store is None:
        _store = ResourceStore.from_table_name(StatsWorkerConfig.from_env().store_table_name)
    return _store


def encode_pagination_token(last_key: Dict[str, Any]) -> str:
    """Encode DynamoDB LastEvaluatedKey as a base64 pagination token."""
    return base64.b64encode(json.dumps(last_key).encode()).decode()


def decode_pagination_token(token: str) -> Dict[str, Any]:
    """Decode base64 pagination token to DynamoDB ExclusiveStartKey."""
    try:
        return json.loads(base64.b64decode(token.encode()).decode())
    except Exception as e:
        logger.warning(f"Failed to decode pagination token: {e}")
        raise BadRequestError('next_token is invalid')


def current_user_id() -> str:
    # headers is case-insensitive
    return get_user_id_from_authorization(app.current_event.headers.get("Authorization"))


@app.get("/stats")
def get_current_week_stats():
    """
    Get the caller's stats for the current ISO week.

    Returns:
    - stats: Weekly stats snapshot
    """
    user_id = current_user_id()
    current_week = week_key(utc_now())

    logger.info("Getting weekly stats", extra={"user_id": user_id, "week_key": current_week})

    item = get_store().get_weekly_stats(user_id, current_week)
    if not item:
        raise NotFoundError(f'No stats computed for week {current_week}')

    return {'stats': WeeklyStats.from_dynamodb_item(item).to_response()}


@app.get("/stats/weekly")
def get_weekly_stats_history():
    """
    List the caller's weekly stats, newest week first.

    Query parameters:
    - limit: Maximum number of weeks to return (default: 12, max: 52)
    - next_token: Pagination token for retrieving next page (optional)

    Returns:
    - stats: List of weekly stats snapshots
    - next_token: Token for next page (if more results available)
    """
    user_id = current_user_id()

    query_params = app.current_event.query_string_parameters or {}
    try:
        limit = int(query_params.get('limit', DEFAULT_HISTORY_LIMIT))
    except ValueError:
        raise BadRequestError('limit must be an integer')
    if limit < 1:
        raise BadRequestError('limit must be positive')
    limit = min(limit, MAX_HISTORY_LIMIT)

    exclusive_start_key = None
    next_token = query_params.get('next_token')
    if next_token:
        exclusive_start_key = decode_pagination_token(next_token)

    items, last_key = get_store().list_weekly_stats(user_id, limit, exclusive_start_key)

    result = {'stats': [WeeklyStats.from_dynamodb_item(item).to_response() for item in items]}
    if last_key:
        result['next_token'] = encode_pagination_token(last_key)

    logger.info(f"Retrieved {len(items)} weekly stats for user {user_id}")
    return result


@logger.inject_lambda_context
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Lambda handler for Stats API endpoints.

    Args:
        event: API Gateway event
        context: Lambda context

    Returns:
        API Gateway response
    """
    return app.resolve(event, context)
