import tkinter as tk
from typing import Any, Dict

from masjid_sign.core.clock import format_time_for_display
from masjid_sign.core.view_base import SignViewWidget
from masjid_sign.plugins.prayer.task import TASK_NAME
from masjid_sign.sign.resolver import DAILY_PRAYERS, WEEKLY_PRAYER
from masjid_sign.sign.rotation import ViewKind


class PrayerTimesView(SignViewWidget):
    """Adhan and Iqamah table for the five daily prayers plus the Jumu'ah row."""

    kind = ViewKind.PRAYER_TIMES
    task_name = TASK_NAME

    def build(self, frame: tk.Frame) -> None:
        colors = self.get_colors()
        pad = self.get_padding("medium")

        self.create_label(frame, text="Prayer Times", font_size="title", bold=True,
                          color=colors["accent"]).pack(pady=(pad, pad))

        self.error_label = self.create_label(frame, text="", font_size="heading", color=colors["error"])

        self.table = tk.Frame(frame, bg=colors["background"])
        self.table.pack(expand=True)
        for column, heading in enumerate(("Prayer", "Adhan", "Iqamah")):
            self.create_label(self.table, text=heading, font_size="heading", bold=True,
                              color=colors["muted"], width=10).grid(row=0, column=column, padx=pad, pady=pad)

        self.name_labels: Dict[str, tk.Label] = {}
        self.adhan_labels: Dict[str, tk.Label] = {}
        self.iqamah_labels: Dict[str, tk.Label] = {}
        for row, prayer in enumerate(DAILY_PRAYERS, 1):
            self.name_labels[prayer] = self.create_label(self.table, text=prayer, font_size="heading", bold=True, width=10)
            self.name_labels[prayer].grid(row=row, column=0, padx=pad, pady=self.get_padding("small"))
            self.adhan_labels[prayer] = self.create_label(self.table, text="N/A", font_size="heading", width=10)
            self.adhan_labels[prayer].grid(row=row, column=1, padx=pad)
            self.iqamah_labels[prayer] = self.create_label(self.table, text="N/A", font_size="heading",
                                                           color=colors["accent"], width=10)
            self.iqamah_labels[prayer].grid(row=row, column=2, padx=pad)

        jumuah_row = len(DAILY_PRAYERS) + 1
        self.create_label(self.table, text="Jumu'ah", font_size="heading", bold=True,
                          width=10).grid(row=jumuah_row, column=0, padx=pad, pady=(pad * 2, 0))
        self.iqamah_labels[WEEKLY_PRAYER] = self.create_label(self.table, text="N/A", font_size="heading",
                                                              color=colors["accent"], width=10)
        self.iqamah_labels[WEEKLY_PRAYER].grid(row=jumuah_row, column=2, padx=pad, pady=(pad * 2, 0))

        self.countdown_label = self.create_label(frame, text="", font_size="title", bold=True)
        self.countdown_label.pack(pady=pad * 2)

    def render(self, state: Any) -> None:
        if self.frame is None:
            return
        colors = self.get_colors()
        payload = self._latest_result
        if payload is None:
            if self.error:
                self.error_label.configure(text="Failed to load prayer times.")
                self.error_label.pack(before=self.table)
        else:
            self.error_label.pack_forget()
            timings = payload.get("timings") or {}
            iqamah = payload.get("iqamah_times") or {}
            for prayer in DAILY_PRAYERS:
                self.adhan_labels[prayer].configure(text=format_time_for_display(timings.get(prayer)))
            for prayer, label in self.iqamah_labels.items():
                label.configure(text=format_time_for_display(iqamah.get(prayer)))

        upcoming = state.resolution.next if state is not None else None
        for prayer, label in self.name_labels.items():
            is_next = upcoming is not None and upcoming.name == prayer
            label.configure(fg=colors["accent"] if is_next else colors["text"])
        if upcoming is not None:
            self.countdown_label.configure(text=f"{upcoming.name} in {upcoming.countdown}")
        else:
            self.countdown_label.configure(text="")
