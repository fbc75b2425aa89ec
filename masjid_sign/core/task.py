"""
Background poll tasks with next_run persisted in DB.
A task fetches one snapshot and posts (task name, payload) on the result queue.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from queue import Queue
from typing import Any, Dict, Optional

from sqlalchemy import select

from masjid_sign.core.db import session_scope
from masjid_sign.core.models import TaskSchedule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskFailure:
    """Posted instead of a payload when a poll fails."""
    message: str


class TaskType:
    """Schedule kind for tasks."""
    INTERVAL_SECONDS = "interval_seconds"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def compute_next_run(
    schedule_type: str,
    schedule_config: Optional[Dict[str, Any]],
    last_run: Optional[datetime],
) -> datetime:
    """Compute next run datetime from schedule_type, schedule_config, and last_run."""
    if last_run is None:
        last_run = _utc_now()

    seconds = 3600
    if schedule_type == TaskType.INTERVAL_SECONDS and schedule_config:
        seconds = max(1, int(schedule_config.get("interval_seconds", seconds)))
    return last_run + timedelta(seconds=seconds)


def get_next_run_from_db(task_name: str) -> Optional[datetime]:
    """Read next_run_at for a task. None if no row or next_run_at is null (task will run immediately)."""
    try:
        with session_scope() as session:
            row = session.execute(
                select(TaskSchedule).where(TaskSchedule.task_name == task_name)
            ).scalars().first()
            if row and row.next_run_at is not None:
                return row.next_run_at
    except Exception as e:
        logger.debug(f"get_next_run_from_db {task_name}: {e}")
    return None


def upsert_task_schedule(
    task_name: str,
    schedule_type: str,
    schedule_config: Optional[Dict[str, Any]],
    next_run_at: Optional[datetime] = None,
) -> None:
    """Create or update the TaskSchedule row; an existing next_run_at is kept unless given."""
    with session_scope() as session:
        row = session.execute(
            select(TaskSchedule).where(TaskSchedule.task_name == task_name)
        ).scalars().first()
        now = _utc_now()
        if row:
            row.schedule_type = schedule_type
            row.schedule_config = schedule_config
            if next_run_at is not None:
                row.next_run_at = next_run_at
            row.updated_at = now
        else:
            session.add(TaskSchedule(
                task_name=task_name,
                schedule_type=schedule_type,
                schedule_config=schedule_config,
                next_run_at=next_run_at,
                created_at=now,
                updated_at=now,
            ))


def update_after_run(task_name: str, error: Optional[str] = None) -> None:
    """Record a run: last_run_at, last_error and the following next_run_at."""
    with session_scope() as session:
        row = session.execute(
            select(TaskSchedule).where(TaskSchedule.task_name == task_name)
        ).scalars().first()
        if not row:
            return
        now = _utc_now()
        row.last_run_at = now
        row.last_error = error
        row.next_run_at = compute_next_run(row.schedule_type, row.schedule_config, now)
        row.updated_at = now


class BaseTask(ABC):
    """
    Abstract poll task. Subclasses implement fetch(); run() handles the schedule row,
    error recording and posting the payload for the UI thread.
    """

    def __init__(self, task_name: str, schedule_type: str, schedule_config: Optional[Dict[str, Any]] = None):
        self.task_name = task_name
        self.schedule_type = schedule_type
        self.schedule_config = schedule_config or {}
        self.logger = logging.getLogger(self.__class__.__name__)

    @classmethod
    def every(cls, seconds: Any, default: int) -> tuple:
        try:
            seconds = int(seconds)
        except (TypeError, ValueError):
            seconds = default
        return TaskType.INTERVAL_SECONDS, {"interval_seconds": max(1, seconds)}

    def ensure_scheduled(self) -> None:
        """Ensure the TaskSchedule row exists; next_run_at on an existing row is untouched."""
        upsert_task_schedule(self.task_name, self.schedule_type, self.schedule_config)

    @abstractmethod
    def fetch(self, config: Dict[str, Any], config_data: Optional[Dict[str, Any]] = None) -> Any:
        """Return the fresh snapshot. Raise on failure; the previous snapshot stays in use."""

    def to_snapshots(self, payload: Any) -> Dict[str, Any]:
        """Map a fetched payload onto SignEngine.update() keyword arguments."""
        return {}

    def run(
        self,
        config: Dict[str, Any],
        result_queue: Queue,
        config_data: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> None:
        try:
            payload = self.fetch(config, config_data)
        except Exception as e:
            self.logger.exception(f"{self.task_name} poll failed: {e}")
            update_after_run(self.task_name, error=str(e))
            result_queue.put((self.task_name, TaskFailure(str(e))))
            return
        update_after_run(self.task_name)
        result_queue.put((self.task_name, payload))
