import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from masjid_sign.core.clock import get_zone

EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/{calendar_id}/events"


class GoogleCalendarBackend:
    """Upcoming events from public Google calendars via the v3 REST API and an API key."""

    def __init__(self, config: Dict[str, Any], timezone_name: Optional[str] = None):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.api_key = config.get("api_key") or ""
        calendar_ids = config.get("calendar_ids") or []
        if isinstance(calendar_ids, str):
            calendar_ids = [c.strip() for c in calendar_ids.split(",") if c.strip()]
        self.calendar_ids = list(calendar_ids)
        self.max_results = int(config.get("max_results") or 10)
        self.zone = get_zone(timezone_name)

    def get_events(self, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """Merged events from every calendar, sorted by start. Raises on any failed calendar."""
        if not self.calendar_ids:
            return []
        if not self.api_key:
            raise RuntimeError("Google Calendar API key not configured")
        now = now or datetime.now(timezone.utc)
        time_min = now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

        events: List[Dict[str, Any]] = []
        for calendar_id in self.calendar_ids:
            events.extend(self._fetch_calendar(calendar_id, time_min))
        events.sort(key=self._start_key)
        return events

    def _fetch_calendar(self, calendar_id: str, time_min: str) -> List[Dict[str, Any]]:
        url = EVENTS_URL.format(calendar_id=quote(calendar_id, safe=""))
        params = {
            "key": self.api_key,
            "timeMin": time_min,
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": self.max_results,
        }
        self.logger.info(f"Fetching events for calendar {calendar_id}")
        response = requests.get(url, params=params, timeout=15)
        if not response.ok:
            raise RuntimeError(f"Failed to fetch events from calendar {calendar_id}: {response.text}")

        seen = set()
        result = []
        for item in response.json().get("items") or []:
            if item.get("id") in seen:
                continue
            seen.add(item.get("id"))
            start = item.get("start") or {}
            end = item.get("end") or {}
            result.append({
                "id": item.get("id"),
                "title": item.get("summary") or "",
                "description": item.get("description"),
                "start": start.get("dateTime") or start.get("date"),
                "end": end.get("dateTime") or end.get("date"),
                "location": item.get("location"),
                "html_link": item.get("htmlLink"),
                "calendar_id": calendar_id,
            })
        return result

    def _start_key(self, event: Dict[str, Any]) -> datetime:
        return parse_event_time(event.get("start"), self.zone) or datetime.max.replace(tzinfo=timezone.utc)


def parse_event_time(value: Optional[str], zone) -> Optional[datetime]:
    """Aware datetime for a Google dateTime or all-day date string; all-day dates start at local midnight."""
    if not value:
        return None
    try:
        if len(value) == 10:
            return datetime.combine(date.fromisoformat(value), datetime.min.time(), tzinfo=zone)
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=zone)
