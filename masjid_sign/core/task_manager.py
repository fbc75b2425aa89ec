"""
Single place for background scheduling: in-memory timers and DB-backed poll tasks.
"""
import logging
from datetime import datetime, timezone
from queue import Queue
from threading import Timer
from typing import Any, Callable, Dict, List, Optional

from masjid_sign.core.task import get_next_run_from_db


class TaskManager:
    def __init__(self):
        self.tasks: Dict[str, Timer] = {}
        self.result_queue: Queue = Queue()
        self.logger = logging.getLogger("TaskManager")
        self._registered_tasks: Dict[str, Callable[..., None]] = {}
        self._registered_config: Dict[str, tuple] = {}  # task_name -> (config, config_data)
        self._stopped = False

    def schedule_task(self, name: str, callback: Callable, delay: float, one_time: bool = True) -> None:
        """Schedule a callback to run after delay seconds, replacing any timer with the same name."""
        if self._stopped:
            return
        try:
            if name in self.tasks:
                self.tasks[name].cancel()

            scheduled_time = datetime.now().timestamp() + delay
            timer = Timer(delay, self._run_task, args=(name, callback, delay, one_time))
            timer.daemon = True
            timer.scheduled_time = scheduled_time

            self.tasks[name] = timer
            timer.start()
            self.logger.debug(f"Timer started for {name}, scheduled for {datetime.fromtimestamp(scheduled_time)}")
        except Exception as e:
            self.logger.error(f"Error scheduling task {name}: {e}")

    def _run_task(self, name: str, callback: Callable, delay: float, one_time: bool) -> None:
        try:
            callback()
        except Exception as e:
            self.logger.error(f"Error running task {name}: {e}")
        if not one_time:
            self.schedule_task(name, callback, delay, one_time)

    def register_task(self, task_name: str, runnable: Callable[..., None]) -> None:
        """runnable(config, result_queue, config_data=...) does the work and updates next_run in DB."""
        self._registered_tasks[task_name] = runnable
        self.logger.debug(f"Registered task: {task_name}")

    def schedule_registered_task(
        self,
        task_name: str,
        config: Dict[str, Any],
        config_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Run at next_run from DB (immediately if null or past due), then reschedule from the new next_run."""
        if task_name not in self._registered_tasks:
            self.logger.warning(f"No task registered: {task_name}")
            return
        self._registered_config[task_name] = (config, config_data)
        next_run = get_next_run_from_db(task_name)
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        delay = 0 if next_run is None else max(0, int((next_run - now).total_seconds()))
        self.schedule_task(task_name, lambda: self._run_registered_and_reschedule(task_name), delay, one_time=True)

    def _run_registered_and_reschedule(self, task_name: str) -> None:
        self.run_task_now(task_name)
        config, config_data = self._registered_config.get(task_name, (None, None))
        if config is not None:
            self.schedule_registered_task(task_name, config, config_data)

    def run_task_now(self, task_name: str) -> None:
        """Run a registered task once in the calling thread (e.g. startup refresh)."""
        runnable = self._registered_tasks.get(task_name)
        if not runnable:
            self.logger.warning(f"No task registered: {task_name}")
            return
        config, config_data = self._registered_config.get(task_name, (None, None))
        try:
            runnable(config or {}, self.result_queue, config_data=config_data)
        except Exception as e:
            self.logger.exception(f"Task {task_name} failed: {e}")

    def refresh_now(self, task_name: str) -> None:
        """Run a registered task on a background timer right away."""
        self.schedule_task(f"{task_name}_refresh", lambda: self.run_task_now(task_name), 0, one_time=True)

    def get_active_timers(self) -> List[Dict[str, Any]]:
        result = []
        for name, timer in self.tasks.items():
            if getattr(timer, "scheduled_time", None) is not None and timer.is_alive():
                next_run = datetime.fromtimestamp(timer.scheduled_time, tz=timezone.utc)
                result.append({"name": name, "next_run_at": next_run})
        return result

    def stop(self) -> None:
        """Cancel all timers."""
        self._stopped = True
        for task in self.tasks.values():
            task.cancel()
