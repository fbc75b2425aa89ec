"""
Background task: fetch upcoming calendar events and keep the latest fetch in the DB.
"""
from typing import Any, Dict, List, Optional

from masjid_sign.core.task import BaseTask
from masjid_sign.plugins.events.calendar_backend import GoogleCalendarBackend
from masjid_sign.plugins.events.service import save_events

TASK_NAME = "calendar_events"


class CalendarEventsTask(BaseTask):
    def __init__(self, interval_seconds: Any = 3600, timezone_name: Optional[str] = None):
        schedule_type, schedule_config = self.every(interval_seconds, 3600)
        super().__init__(TASK_NAME, schedule_type, schedule_config)
        self.timezone_name = timezone_name

    def fetch(self, config: Dict[str, Any], config_data: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        events = GoogleCalendarBackend(config, self.timezone_name).get_events()
        save_events(events)
        self.logger.info(f"Saved {len(events)} calendar event(s)")
        return events

    def to_snapshots(self, payload: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {"events": payload}
