"""
Background task: load the announcements the sign may show.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from masjid_sign.core.clock import get_zone
from masjid_sign.core.task import BaseTask
from masjid_sign.plugins.announcements.service import get_eligible_announcements, to_dict

TASK_NAME = "announcements"


class AnnouncementsTask(BaseTask):
    def __init__(self, interval_seconds: Any = 300, timezone_name: Optional[str] = None):
        schedule_type, schedule_config = self.every(interval_seconds, 300)
        super().__init__(TASK_NAME, schedule_type, schedule_config)
        self.timezone_name = timezone_name

    def fetch(self, config: Dict[str, Any], config_data: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        today = datetime.now(timezone.utc).astimezone(get_zone(self.timezone_name)).date()
        rows = get_eligible_announcements(today)
        self.logger.debug(f"{len(rows)} eligible announcement(s)")
        return [to_dict(row) for row in rows]

    def to_snapshots(self, payload: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {"announcements": payload}
