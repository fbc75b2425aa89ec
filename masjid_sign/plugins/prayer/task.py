"""
Background task: fetch today's prayer times (daily disk cache in front of AlAdhan),
store them, and pair them with the current Iqamah times.
"""
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from masjid_sign.core.clock import get_zone
from masjid_sign.core.task import BaseTask
from masjid_sign.plugins.prayer.prayer_base import AladhanBackend
from masjid_sign.plugins.prayer.service import get_iqamah_times, save_prayer_times

TASK_NAME = "prayer_times"


class PrayerTimesTask(BaseTask):
    """Hourly poll; the AlAdhan request itself happens at most once per civil day."""

    def __init__(self, interval_seconds: Any = 3600, timezone_name: Optional[str] = None):
        schedule_type, schedule_config = self.every(interval_seconds, 3600)
        super().__init__(TASK_NAME, schedule_type, schedule_config)
        self.timezone_name = timezone_name

    def _today(self) -> date:
        return datetime.now(timezone.utc).astimezone(get_zone(self.timezone_name)).date()

    def fetch(self, config: Dict[str, Any], config_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        cache_dir = ((config_data or {}).get("cache") or {}).get("directory")
        backend = AladhanBackend(config, cache_dir)
        today = self._today()
        prayer_times = backend.get_prayer_times(today)
        save_prayer_times(
            today,
            prayer_times["timings"],
            readable_date=prayer_times.get("readable_date"),
            hijri_date=prayer_times.get("hijri_date"),
        )
        self.logger.info(f"Prayer times saved for {today}")
        return dict(prayer_times, iqamah_times=get_iqamah_times())

    def to_snapshots(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "adhan_times": payload.get("timings") or {},
            "iqamah_times": payload.get("iqamah_times") or {},
        }
