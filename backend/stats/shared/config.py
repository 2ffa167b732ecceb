"""
Configuration for the weekly stats worker and the notification publisher.

Values come from the Lambda environment. The handler bootstrap builds a
StatsWorkerConfig once and passes it to the aggregator.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional


DEFAULT_TABLE_NAME = "learning-tracker-resources"
DEFAULT_QUEUE_BATCH_SIZE = 5
DEFAULT_QUEUE_BATCH_WINDOW_SECONDS = 5
DEFAULT_EVENT_BUS_NAME = "default"

# SQS event source mapping limits
MAX_QUEUE_BATCH_SIZE = 10000
MAX_QUEUE_BATCH_WINDOW_SECONDS = 300


@dataclass(frozen=True)
class StatsWorkerConfig:
    """Settings for the stats worker."""
    store_table_name: str = DEFAULT_TABLE_NAME
    queue_batch_size: int = DEFAULT_QUEUE_BATCH_SIZE
    queue_batch_window_seconds: int = DEFAULT_QUEUE_BATCH_WINDOW_SECONDS

    def __post_init__(self):
        if not self.store_table_name:
            raise ValueError("store_table_name must not be empty")
        if not 1 <= self.queue_batch_size <= MAX_QUEUE_BATCH_SIZE:
            raise ValueError(
                f"queue_batch_size must be between 1 and {MAX_QUEUE_BATCH_SIZE}"
            )
        if not 0 <= self.queue_batch_window_seconds <= MAX_QUEUE_BATCH_WINDOW_SECONDS:
            raise ValueError(
                f"queue_batch_window_seconds must be between 0 and {MAX_QUEUE_BATCH_WINDOW_SECONDS}"
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "StatsWorkerConfig":
        """
        Build config from environment variables.

        Reads RESOURCES_TABLE_NAME, STATS_QUEUE_BATCH_SIZE and
        STATS_QUEUE_BATCH_WINDOW_SECONDS.

        Raises:
            ValueError if a value is malformed or out of range
        """
        env = os.environ if environ is None else environ

        return cls(
            store_table_name=env.get("RESOURCES_TABLE_NAME", DEFAULT_TABLE_NAME),
            queue_batch_size=_int_setting(env, "STATS_QUEUE_BATCH_SIZE", DEFAULT_QUEUE_BATCH_SIZE),
            queue_batch_window_seconds=_int_setting(
                env, "STATS_QUEUE_BATCH_WINDOW_SECONDS", DEFAULT_QUEUE_BATCH_WINDOW_SECONDS
            )
        )


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def event_bus_name_from_env(environ: Optional[Mapping[str, str]] = None) -> str:
    """Bus that ResourceUpdated events are published to (EVENT_BUS_NAME)."""
    env = os.environ if environ is None else environ
    return env.get("EVENT_BUS_NAME") or DEFAULT_EVENT_BUS_NAME
