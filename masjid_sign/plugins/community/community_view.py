import tkinter as tk
from pathlib import Path
from typing import Any, Optional

from PIL import Image, ImageTk

from masjid_sign.core.view_base import SignViewWidget
from masjid_sign.sign.rotation import ViewKind


class CommunityQRView(SignViewWidget):
    """Static page with the community group QR code from sign.qr_image."""

    kind = ViewKind.COMMUNITY_QR
    task_name = None

    def __init__(self, app, config):
        super().__init__(app, config)
        self._photo: Optional[ImageTk.PhotoImage] = None

    def build(self, frame: tk.Frame) -> None:
        pad = self.get_padding("large")
        colors = self.get_colors()
        sign = self.app.config.section("sign")
        self.create_label(frame, text=sign.get("qr_caption") or "", font_size="title", bold=True,
                          color=colors["accent"]).pack(pady=pad)
        self.image_label = tk.Label(frame, bg=colors["background"])
        self.image_label.pack(expand=True)
        self._photo = self._load(sign.get("qr_image"))
        if self._photo is not None:
            self.image_label.configure(image=self._photo)
        else:
            self.image_label.configure(text="Scan the QR code at the front desk", fg=colors["muted"],
                                       font=("Arial", self.scale_font(22)))
        if sign.get("website"):
            self.create_label(frame, text=sign["website"], font_size="heading").pack(pady=pad)

    def _load(self, path: Optional[str]) -> Optional[ImageTk.PhotoImage]:
        if not path:
            return None
        try:
            with Image.open(Path(path).expanduser()) as image:
                _, height = self._get_window_dimensions()
                side = int(height * 0.55)
                image.thumbnail((side, side))
                return ImageTk.PhotoImage(image)
        except (OSError, ValueError) as e:
            self.logger.warning(f"Could not load QR image {path}: {e}")
            return None

    def render(self, state: Any) -> None:
        pass
