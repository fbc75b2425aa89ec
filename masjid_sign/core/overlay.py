import logging
import tkinter as tk
from typing import Optional

from masjid_sign.sign.reminders import Channel, Overlay


class ReminderOverlay:
    """Banner placed over the carousel while a reminder overlay is visible."""

    COLORS = {
        Channel.ONE_HOUR: "#1d4ed8",
        Channel.TEN_MINUTE: "#b45309",
        Channel.ADHAN: "#047857",
    }

    def __init__(self, root: tk.Tk, font_family: str = "Arial"):
        self.root = root
        self.logger = logging.getLogger(self.__class__.__name__)
        self.frame = tk.Frame(root, bd=0)
        self.title_label = tk.Label(self.frame, fg="#ffffff", font=(font_family, 56, "bold"))
        self.title_label.pack(padx=60, pady=(40, 10))
        self.message_label = tk.Label(self.frame, fg="#ffffff", font=(font_family, 40))
        self.message_label.pack(padx=60, pady=(0, 40))
        self._shown: Optional[Overlay] = None

    def show(self, overlay: Overlay) -> None:
        if overlay == self._shown:
            return
        color = self.COLORS.get(overlay.channel, "#047857")
        for widget in (self.frame, self.title_label, self.message_label):
            widget.configure(bg=color)
        self.title_label.configure(text=overlay.title)
        self.message_label.configure(text=overlay.message)
        self.frame.place(relx=0.5, rely=0.5, anchor=tk.CENTER)
        self.frame.lift()
        self._shown = overlay
        self.logger.info(f"Overlay shown: {overlay.title} {overlay.message}")

    def hide(self) -> None:
        if self._shown is None:
            return
        self.frame.place_forget()
        self._shown = None

    def update(self, overlay: Optional[Overlay]) -> None:
        if overlay is None:
            self.hide()
        else:
            self.show(overlay)
