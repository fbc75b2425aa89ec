import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, Optional

import requests

from masjid_sign.core.cache_helper import CacheHelper
from masjid_sign.sign.resolver import DAILY_PRAYERS

ALADHAN_URL = "https://api.aladhan.com/v1/timingsByCity"


class PrayerBackend(ABC):
    """Base class for prayer time sources"""

    def __init__(self, config: Dict[str, Any], cache_dir: Optional[str] = None):
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)
        self.cache_helper = CacheHelper(cache_dir, "prayer_times")

    @abstractmethod
    def get_prayer_times(self, today: date, force_fetch: bool = False) -> Dict[str, Any]:
        """
        Return {"date", "timings", "readable_date", "hijri_date"} for today.
        timings maps the five daily prayers to "HH:MM". Raises on failure.
        """


class AladhanBackend(PrayerBackend):
    """Prayer times from api.aladhan.com, looked up by city."""

    def get_prayer_times(self, today: date, force_fetch: bool = False) -> Dict[str, Any]:
        params = self._params()
        cache_key = f"aladhan_{params['city']}_{params['country']}_{params['method']}_{today.isoformat()}"
        if not force_fetch:
            cached = self.cache_helper.get_cached_content(cache_key, today=today)
            if cached:
                self.logger.debug("Prayer times served from cache")
                return cached

        payload = self._fetch(today)
        self.cache_helper.save_to_cache(cache_key, payload, today=today)
        return payload

    def _params(self) -> Dict[str, Any]:
        return {
            "city": self.config.get("city", "Evansville"),
            "country": self.config.get("country", "US"),
            "method": self.config.get("method", 2),
        }

    def _fetch(self, today: date) -> Dict[str, Any]:
        params = self._params()
        self.logger.info(f"Making API request to {ALADHAN_URL} with params {params}")
        response = requests.get(ALADHAN_URL, params=params, timeout=self.config.get("timeout", 15))
        response.raise_for_status()
        data = response.json()["data"]

        timings = {}
        for prayer in DAILY_PRAYERS:
            value = data["timings"].get(prayer)
            if value:
                timings[prayer] = clean_timing(value)

        day = data.get("date") or {}
        hijri = day.get("hijri") or {}
        return {
            "date": today.isoformat(),
            "timings": timings,
            "readable_date": day.get("readable"),
            "hijri_date": hijri.get("date"),
        }


def clean_timing(value: str) -> str:
    """AlAdhan may append a zone label, e.g. "05:12 (CDT)"."""
    return str(value).strip().split(" ")[0]
