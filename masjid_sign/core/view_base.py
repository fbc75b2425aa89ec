import logging
import tkinter as tk
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

# Base window dimensions for responsive scaling
BASE_WINDOW_WIDTH = 1280
BASE_WINDOW_HEIGHT = 720

_FONT_SIZES = {
    "display": 64,
    "title": 40,
    "heading": 30,
    "body": 22,
    "small": 16,
}


class SignViewWidget(ABC):
    """
    One full-screen carousel page. The app creates every registered view once,
    then shows one at a time and calls render() with the current SignState.
    """

    kind = None  # ViewKind the view renders

    def __init__(self, app, config: Dict[str, Any]):
        self.app = app
        self.config = config
        self.frame: Optional[tk.Frame] = None
        self.logger = logging.getLogger(self.__class__.__name__)
        self._latest_result = None
        self.error: Optional[str] = None

    def _get_window_dimensions(self) -> tuple:
        root = getattr(self.app, "root", None)
        if root is not None and root.winfo_exists():
            width = root.winfo_width()
            height = root.winfo_height()
            if width <= 1 or height <= 1:
                width = root.winfo_screenwidth()
                height = root.winfo_screenheight()
            return width, height
        return BASE_WINDOW_WIDTH, BASE_WINDOW_HEIGHT

    def _scale(self) -> float:
        width, height = self._get_window_dimensions()
        scale = (width / BASE_WINDOW_WIDTH + height / BASE_WINDOW_HEIGHT) / 2
        return max(0.5, min(3.0, scale))

    def scale_font(self, base_size: int) -> int:
        return max(8, int(base_size * self._scale()))

    def get_padding(self, size: str = "medium") -> int:
        base = {"small": 5, "medium": 10, "large": 20, "xlarge": 40}.get(size, 10)
        return max(3, int(base * self._scale()))

    def get_colors(self) -> Dict[str, str]:
        colors = {
            "background": self.config.get("background_color", "#111827"),
            "text": "#ffffff",
            "accent": "#34d399",
            "muted": "#9ca3af",
            "error": "#f87171",
        }
        colors.update(self.config.get("colors") or {})
        return colors

    def create_label(self, parent, text="", font_size="body", bold=False, color=None, **kwargs) -> tk.Label:
        """Label with a named (or numeric) font size scaled to the window."""
        if isinstance(font_size, str):
            size = self.scale_font(_FONT_SIZES.get(font_size, _FONT_SIZES["body"]))
        else:
            size = self.scale_font(font_size)
        family = kwargs.pop("font_family", self.config.get("font_family", "Arial"))
        font = (family, size, "bold") if bold else (family, size)
        colors = self.get_colors()
        kwargs.setdefault("fg", color or colors["text"])
        kwargs.setdefault("bg", colors["background"])
        return tk.Label(parent, text=text, font=font, **kwargs)

    def initialize(self, parent: tk.Frame) -> None:
        self.frame = tk.Frame(parent, bg=self.get_colors()["background"])
        self.build(self.frame)

    @abstractmethod
    def build(self, frame: tk.Frame) -> None:
        """Create the widgets once."""

    @abstractmethod
    def render(self, state: Any) -> None:
        """Refresh widgets for the current SignState."""

    def handle_background_result(self, result: Any) -> None:
        """Store the latest poll payload for this view."""
        self._latest_result = result

    def show(self) -> None:
        if self.frame is not None:
            self.frame.pack(fill=tk.BOTH, expand=True)

    def hide(self) -> None:
        if self.frame is not None:
            self.frame.pack_forget()

    def destroy(self) -> None:
        try:
            if self.frame is not None and self.frame.winfo_exists():
                self.frame.destroy()
            self.frame = None
            self.logger.debug(f"View {self.__class__.__name__} destroyed")
        except Exception as e:
            self.logger.error(f"Error destroying view {self.__class__.__name__}: {e}")
