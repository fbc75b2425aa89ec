import tkinter as tk
from datetime import date
from typing import Any, Optional

from PIL import Image, ImageTk

from masjid_sign.core.storage import BlobStorage
from masjid_sign.core.view_base import SignViewWidget
from masjid_sign.plugins.announcements.service import IMAGE_BUCKET
from masjid_sign.plugins.announcements.task import TASK_NAME
from masjid_sign.sign.rotation import ViewKind


class AnnouncementView(SignViewWidget):
    """One announcement per carousel slot; the slot carries the announcement itself."""

    kind = ViewKind.ANNOUNCEMENT
    task_name = TASK_NAME

    def __init__(self, app, config):
        super().__init__(app, config)
        self._photo: Optional[ImageTk.PhotoImage] = None
        self._shown_id = None

    def build(self, frame: tk.Frame) -> None:
        pad = self.get_padding("large")
        colors = self.get_colors()
        self.create_label(frame, text="Announcements", font_size="heading", bold=True,
                          color=colors["accent"]).pack(pady=(pad, 0))
        self.title_label = self.create_label(frame, text="", font_size="title", bold=True, wraplength=1400)
        self.title_label.pack(pady=pad)
        self.image_label = tk.Label(frame, bg=colors["background"])
        self.description_label = self.create_label(frame, text="", font_size="body", wraplength=1400,
                                                   justify=tk.CENTER)
        self.date_label = self.create_label(frame, text="", font_size="small", color=colors["muted"])
        self.date_label.pack(side=tk.BOTTOM, pady=pad)

    def _settings(self) -> dict:
        engine = getattr(self.app, "engine", None)
        return engine.snapshots.settings if engine is not None else {}

    def _load_image(self, announcement: dict) -> Optional[ImageTk.PhotoImage]:
        name = announcement.get("image_path")
        if not name:
            return None
        path = BlobStorage(self.app.config.section("storage")).path_for(IMAGE_BUCKET, name)
        try:
            with Image.open(path) as image:
                width, height = self._get_window_dimensions()
                image.thumbnail((int(width * 0.6), int(height * 0.45)))
                return ImageTk.PhotoImage(image)
        except (OSError, ValueError) as e:
            self.logger.warning(f"Could not load announcement image {path}: {e}")
            return None

    def render(self, state: Any) -> None:
        if self.frame is None or state is None or state.view.announcement is None:
            return
        announcement = state.view.announcement
        if announcement.get("id") == self._shown_id:
            return
        self._shown_id = announcement.get("id")
        settings = self._settings()

        self.title_label.configure(text=announcement.get("title") or "")

        self.image_label.pack_forget()
        self._photo = self._load_image(announcement) if settings.get("show_images", True) else None
        if self._photo is not None:
            self.image_label.configure(image=self._photo)
            self.image_label.pack(pady=self.get_padding("medium"))

        self.description_label.pack_forget()
        if settings.get("show_descriptions", True) and announcement.get("description"):
            self.description_label.configure(text=announcement["description"])
            self.description_label.pack(pady=self.get_padding("medium"))

        when = announcement.get("announcement_date")
        try:
            day = date.fromisoformat(when[:10]) if when else None
        except ValueError:
            day = None
        self.date_label.configure(text=f"{day.strftime('%B')} {day.day}, {day.year}" if day else "")

    def hide(self) -> None:
        super().hide()
        self._shown_id = None
