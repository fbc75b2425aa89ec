import logging
import sys
import tkinter as tk
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .clock import get_zone
from .config import Config
from .db import dispose_db, init_db
from .overlay import ReminderOverlay
from .plugin_manager import PluginManager
from .task import TaskFailure
from .task_manager import TaskManager
from masjid_sign.plugins.prayer.audio_manager import AdhanPlayer
from masjid_sign.sign.engine import SignEngine

TICK_MS = 1000


class SignApp:
    """Full-screen kiosk: one engine tick per second, views rotate in the body area."""

    def __init__(self, config_path: Optional[str] = None):
        self.root = tk.Tk()
        self.logger = logging.getLogger(self.__class__.__name__)

        self.config = Config(root=self.root, config_path=config_path)
        self.config.register_change_callback(self.handle_config_change)
        self._setup_logging()
        self._configure_window()

        init_db(self.config.data)

        sign = self.config.section("sign")
        adhan = sign.get("adhan") or {}
        cache_dir = self.config.section("cache").get("directory")
        self.player = AdhanPlayer(adhan, cache_dir) if adhan.get("enabled", True) else None
        self.engine = SignEngine(
            timezone_name=sign.get("timezone"),
            player=self.player,
            fallback_margin_seconds=float(adhan.get("fallback_margin_seconds", 30)),
            default_fallback_seconds=float(adhan.get("fallback_seconds", 300)),
        )
        self.zone = get_zone(sign.get("timezone"))
        self.last_state = None
        self._audio_playing = False
        self._prayer_payload: Optional[Dict[str, Any]] = None

        self.task_manager = TaskManager()
        self.plugin_manager = PluginManager()

        self._build_layout()
        self.overlay = ReminderOverlay(self.root, self.config.section("window").get("font_family", "Arial"))
        self.views: Dict[Any, Any] = {}
        self._create_views()
        self._current_kind = None

        self._load_initial_snapshots()
        self.tasks: Dict[str, Any] = {}
        self._register_tasks()

        try:
            from masjid_sign.api import run_api_server
            run_api_server(self)
        except Exception as e:
            self.logger.warning(f"API server not started: {e}")

    def _setup_logging(self):
        """Configure logging to write to both file and stdout"""
        logging_config = self.config.section("logging")
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
        root_logger.setLevel(getattr(logging, str(logging_config.get("level", "INFO")).upper(), logging.INFO))

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
        )

        if logging_config.get("file"):
            file_handler = logging.FileHandler(logging_config["file"])
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        logging.info("Masjid sign starting...")

    def _configure_window(self) -> None:
        window_config = self.config.section("window")
        self.root.title(self.config.section("sign").get("mosque_name") or "Masjid Sign")

        if window_config.get("borderless"):
            self.root.overrideredirect(True)
        self.root.geometry(f"{window_config['width']}x{window_config['height']}")
        if window_config.get("fullscreen"):
            self.root.attributes('-fullscreen', True)
        self.root.bind('<Escape>', lambda e: self.root.quit())

        bg_color = window_config.get("background_color")
        if bg_color:
            self.root.configure(bg=bg_color)
            self.root.option_add('*background', bg_color)
            self.root.option_add('*Background', bg_color)
        self.root.configure(cursor="none")

    def _build_layout(self) -> None:
        bg = self.config.section("window").get("background_color")
        sign = self.config.section("sign")
        font = self.config.section("window").get("font_family", "Arial")

        header = tk.Frame(self.root, bg=bg)
        header.pack(side=tk.TOP, fill=tk.X, pady=(20, 0))
        tk.Label(header, text=sign.get("mosque_name") or "", fg="#ffffff", bg=bg,
                 font=(font, 44, "bold")).pack()
        self.date_label = tk.Label(header, text="", fg="#d1d5db", bg=bg, font=(font, 24))
        self.date_label.pack()
        self.clock_label = tk.Label(header, text="", fg="#34d399", bg=bg, font=(font, 28, "bold"))
        self.clock_label.pack()

        footer = tk.Frame(self.root, bg=bg)
        footer.pack(side=tk.BOTTOM, fill=tk.X, pady=(0, 20))
        line = " | ".join(part for part in (sign.get("mosque_name"), sign.get("address")) if part)
        tk.Label(footer, text=line, fg="#9ca3af", bg=bg, font=(font, 18)).pack()
        if sign.get("website"):
            tk.Label(footer, text=sign["website"], fg="#9ca3af", bg=bg, font=(font, 18)).pack()

        self.body = tk.Frame(self.root, bg=bg)
        self.body.pack(fill=tk.BOTH, expand=True)

    def _create_views(self) -> None:
        view_config = dict(self.config.section("window"))
        for kind in self.plugin_manager.views:
            view = self.plugin_manager.create_view(self, kind, view_config)
            if view is None:
                continue
            try:
                view.initialize(self.body)
                self.views[kind] = view
            except Exception as e:
                self.logger.error(f"Error initializing view {kind}: {e}", exc_info=True)

    def _load_initial_snapshots(self) -> None:
        """Seed the engine from the DB so the sign is useful before the first poll returns."""
        from masjid_sign.plugins.announcements.service import get_eligible_announcements, to_dict
        from masjid_sign.plugins.events.service import get_latest_events
        from masjid_sign.plugins.prayer.service import get_iqamah_times, get_latest_prayer_times_record
        from masjid_sign.plugins.sign_config.service import get_engine_rules, get_settings

        today = datetime.now(self.zone).date()
        try:
            iqamah = get_iqamah_times()
            record = get_latest_prayer_times_record()
            adhan_times = None
            if record is not None and record.prayer_date == today:
                adhan_times = dict(record.timings)
                self._apply_prayer_payload({
                    "date": record.prayer_date.isoformat(),
                    "timings": adhan_times,
                    "readable_date": record.readable_date,
                    "hijri_date": record.hijri_date,
                    "iqamah_times": iqamah,
                })
            self.engine.update(
                adhan_times=adhan_times,
                iqamah_times=iqamah,
                settings=get_settings(),
                rules=get_engine_rules(),
                announcements=[to_dict(row) for row in get_eligible_announcements(today)],
                events=get_latest_events(),
            )
        except Exception as e:
            self.logger.error(f"Error loading stored sign data: {e}", exc_info=True)

    def _register_tasks(self) -> None:
        for factory in self.plugin_manager.task_factories:
            try:
                task, task_config = factory(self)
                task.ensure_scheduled()
                self.tasks[task.task_name] = task
                self.task_manager.register_task(task.task_name, task.run)
                self.task_manager.schedule_registered_task(task.task_name, task_config, self.config.data)
            except Exception as e:
                self.logger.error(f"Error registering task: {e}", exc_info=True)

    def _apply_prayer_payload(self, payload: Dict[str, Any]) -> None:
        self._prayer_payload = payload
        readable = payload.get("readable_date")
        hijri = payload.get("hijri_date")
        text = readable or ""
        if hijri:
            text = f"{text} ({hijri} Hijri)"
        self.date_label.configure(text=text)

    def _drain_result_queue(self) -> None:
        """Apply finished polls on the Tk thread: engine snapshots plus per-view payloads."""
        while not self.task_manager.result_queue.empty():
            task_name, result = self.task_manager.result_queue.get_nowait()
            views = [v for v in self.views.values() if getattr(v, "task_name", None) == task_name]
            if isinstance(result, TaskFailure):
                self.logger.warning(f"{task_name} poll failed, keeping previous data: {result.message}")
                for view in views:
                    view.error = result.message
                continue
            task = self.tasks.get(task_name)
            if task is not None:
                self.engine.update(**task.to_snapshots(result))
            if task_name == "prayer_times":
                self._apply_prayer_payload(result)
            for view in views:
                view.error = None
                view.handle_background_result(result)

    def _check_audio(self, now: datetime) -> None:
        if self.player is None:
            return
        if self._audio_playing and not self.player.is_busy():
            self._audio_playing = False
            self.logger.info("Adhan playback finished")
            self.engine.audio_finished(now)

    def _render(self, state) -> None:
        self.clock_label.configure(text=state.now.strftime("%I:%M:%S %p").lstrip("0"))
        kind = state.view.kind
        view = self.views.get(kind)
        if kind != self._current_kind:
            previous = self.views.get(self._current_kind)
            if previous is not None:
                previous.hide()
            if view is not None:
                view.show()
            self._current_kind = kind
        if view is not None:
            view.render(state)
        self.overlay.update(state.overlay)

    def step(self, now: datetime):
        """One sign tick at now: apply finished polls, check the adhan audio, advance the engine, render."""
        self._drain_result_queue()
        self._check_audio(now)
        state = self.engine.tick(now)
        if state.audio_started:
            self._audio_playing = True
        self.last_state = state
        self._render(state)
        return state

    def _tick(self) -> None:
        try:
            self.step(datetime.now(timezone.utc))
        except Exception as e:
            self.logger.error(f"Error in sign tick: {e}", exc_info=True)
        finally:
            self.root.after(TICK_MS, self._tick)

    def handle_config_change(self, new_config: Dict[str, Any]) -> None:
        """Hot-reload what can change without a restart: adhan volume and poll cadence."""
        self.logger.info("Handling config change")
        try:
            adhan = self.config.section("sign").get("adhan") or {}
            if self.player is not None and "volume" in adhan:
                self.player.set_volume(float(adhan["volume"]))
            for factory in self.plugin_manager.task_factories:
                task, task_config = factory(self)
                task.ensure_scheduled()
                self.tasks[task.task_name] = task
                self.task_manager.register_task(task.task_name, task.run)
                self.task_manager.schedule_registered_task(task.task_name, task_config, self.config.data)
        except Exception as e:
            self.logger.error(f"Error handling config change: {e}", exc_info=True)

    def run(self):
        try:
            self.root.after(0, self._tick)
            self.root.mainloop()
        finally:
            self.task_manager.stop()
            if self.player is not None:
                self.player.stop()
            self.config.cleanup()
            dispose_db()
