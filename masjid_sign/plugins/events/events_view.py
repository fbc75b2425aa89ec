import tkinter as tk
from typing import Any, List

from masjid_sign.core.view_base import SignViewWidget
from masjid_sign.plugins.events.calendar_backend import parse_event_time
from masjid_sign.plugins.events.task import TASK_NAME
from masjid_sign.sign.rotation import ViewKind, upcoming_events

MAX_ROWS = 6


class UpcomingEventsView(SignViewWidget):
    kind = ViewKind.UPCOMING_EVENTS
    task_name = TASK_NAME

    def build(self, frame: tk.Frame) -> None:
        colors = self.get_colors()
        pad = self.get_padding("large")
        self.create_label(frame, text="Upcoming Events", font_size="title", bold=True,
                          color=colors["accent"]).pack(pady=pad)
        self.list_frame = tk.Frame(frame, bg=colors["background"])
        self.list_frame.pack(fill=tk.BOTH, expand=True, padx=pad)
        self.rows: List[tk.Label] = []
        self._shown_key = None

    def _when(self, event: dict, zone) -> str:
        start = parse_event_time(event.get("start"), zone)
        if start is None:
            return ""
        start = start.astimezone(zone)
        day = f"{start.strftime('%a, %b')} {start.day}"
        if len(event.get("start") or "") == 10:
            return day
        return f"{day} · {start.strftime('%I:%M %p').lstrip('0')}"

    def render(self, state: Any) -> None:
        if self.frame is None or state is None:
            return
        engine = getattr(self.app, "engine", None)
        events = upcoming_events(engine.snapshots.events, state.now) if engine is not None else []
        key = (bool(self.error), tuple(event.get("id") for event in events[:MAX_ROWS]))
        if key == self._shown_key:
            return
        self._shown_key = key

        for row in self.rows:
            row.destroy()
        self.rows = []
        if self.error and not events:
            label = self.create_label(self.list_frame, text="Failed to load events.", font_size="heading",
                                      color=self.get_colors()["error"])
            label.pack()
            self.rows.append(label)
            return

        for event in events[:MAX_ROWS]:
            text = f"{self._when(event, state.now.tzinfo)}   {event.get('title') or ''}"
            if event.get("location"):
                text += f"  ({event['location']})"
            label = self.create_label(self.list_frame, text=text, font_size="heading", anchor="w")
            label.pack(fill=tk.X, pady=self.get_padding("small"))
            self.rows.append(label)
