import logging
import os
import re
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml
from watchdog.events import FileModifiedEvent, FileSystemEventHandler
from watchdog.observers import Observer

from masjid_sign.core.clock import DEFAULT_TIMEZONE


def default_config(config_dir: Path) -> Dict[str, Any]:
    return {
        "window": {
            "fullscreen": True,
            "borderless": True,
            "width": 1920,
            "height": 1080,
            "background_color": "#111827",
        },
        "sign": {
            "mosque_name": "Islamic Society",
            "address": "",
            "website": "",
            "timezone": DEFAULT_TIMEZONE,
            "qr_image": "",
            "qr_caption": "Join our community group",
            "adhan": {
                "enabled": True,
                "file": "",
                "url": "",
                "volume": 1.0,
                "fallback_seconds": 300,
                "fallback_margin_seconds": 30,
            },
        },
        "prayer_api": {
            "city": "Evansville",
            "country": "US",
            "method": 2,
        },
        "calendar": {
            "api_key": "${GOOGLE_CALENDAR_API_KEY}",
            "calendar_ids": [],
            "max_results": 10,
        },
        "polling": {
            "prayer_times_seconds": 3600,
            "announcements_seconds": 300,
            "sign_config_seconds": 300,
            "calendar_seconds": 3600,
        },
        "database": {
            "path": str(config_dir / "masjid_sign.db"),
        },
        "storage": {
            "directory": str(config_dir / "uploads"),
            "public_url": "http://127.0.0.1:8765/files",
        },
        "notifications": {
            "smtp_host": "${SMTP_HOST}",
            "smtp_port": 587,
            "smtp_username": "${SMTP_USERNAME}",
            "smtp_password": "${SMTP_PASSWORD}",
            "use_tls": True,
            "from_email": "${SMTP_FROM_EMAIL}",
            "from_name": "Islamic Society",
            "recipient": "${NOTIFY_RECIPIENT}",
            "sms": {
                "enabled": False,
                "service_plan_id": "${SINCH_SERVICE_PLAN_ID}",
                "api_key": "${SINCH_API_KEY}",
                "api_secret": "${SINCH_API_SECRET}",
                "from_number": "${SINCH_PHONE_NUMBER}",
                "to_number": "",
            },
        },
        "api": {
            "enabled": False,
            "host": "127.0.0.1",
            "port": 8765,
            "admin_token": "",
        },
        "cache": {
            "directory": str(config_dir / ".cache"),
        },
        "logging": {
            "level": "INFO",
            "file": str(config_dir / "masjid_sign.log"),
        },
    }


class ConfigChangeHandler(FileSystemEventHandler):
    def __init__(self, config):
        self.config = config
        self.last_modified = 0
        self.cooldown = 1.0

    def on_modified(self, event):
        if not isinstance(event, FileModifiedEvent):
            return

        current_time = time.time()
        if current_time - self.last_modified < self.cooldown:
            return

        if event.src_path == str(self.config.config_file):
            try:
                self.last_modified = current_time
                self.config.reload()
            except Exception as e:
                logging.error(f"Error handling config change: {e}")


class Config:
    """
    YAML-backed configuration with ${VAR} substitution and hot reload.
    root: optional Tk root; change callbacks are then run on the Tk thread.
    """

    def __init__(self, root: Any = None, config_path: Optional[str] = None, watch: bool = True):
        logging.debug("Initializing Config class")

        self.root = root
        self.change_callbacks: List[Callable] = []
        self._loading = False
        self.observer = None

        if config_path:
            self.config_file = Path(config_path).resolve()
            self.config_dir = self.config_file.parent
        else:
            self.config_dir = Path.cwd()
            self.config_file = self.config_dir / "config.yaml"

        logging.debug(f"Using config file: {self.config_file}")

        self._load_env_file()
        self._ensure_config_exists()
        self._load_config()

        if watch:
            self.observer = Observer()
            self.observer.schedule(ConfigChangeHandler(self), str(self.config_dir), recursive=False)
            self.observer.start()
            logging.info(f"Watching {self.config_dir} for config changes")

    def register_change_callback(self, callback: Callable) -> None:
        self.change_callbacks.append(callback)

    def section(self, name: str) -> Dict[str, Any]:
        """Config section merged over its defaults, so callers never miss a key."""
        defaults = default_config(self.config_dir).get(name, {})
        value = self.data.get(name) or {}
        if isinstance(defaults, dict) and isinstance(value, dict):
            merged = dict(defaults)
            merged.update(value)
            return merged
        return value or defaults

    def reload(self) -> None:
        """Reload config and notify listeners"""
        if self._loading:
            return

        self._loading = True
        try:
            logging.info("Config file change detected - reloading configuration")
            time.sleep(0.1)

            old_config = self.data.copy() if hasattr(self, "data") else {}
            self._load_config()
            self._log_config_changes(old_config, self.data)

            for callback in self.change_callbacks:
                try:
                    if self.root:
                        self.root.after_idle(lambda cb=callback: cb(self.data))
                    else:
                        callback(self.data)
                except Exception as e:
                    logging.error(f"Error in config change callback: {e}")

        except Exception as e:
            logging.error(f"Error reloading config: {e}")
            logging.exception(e)
        finally:
            self._loading = False

    def _log_config_changes(self, old_config: Dict, new_config: Dict) -> None:
        def compare_dict(path: str, dict1: Dict, dict2: Dict) -> None:
            for key in set(dict1.keys()) | set(dict2.keys()):
                current_path = f"{path}.{key}" if path else key
                if key in dict1 and key in dict2:
                    if isinstance(dict1[key], dict) and isinstance(dict2[key], dict):
                        compare_dict(current_path, dict1[key], dict2[key])
                    elif dict1[key] != dict2[key]:
                        logging.info(f"Config changed: {current_path}: {dict1[key]} -> {dict2[key]}")
                elif key in dict1:
                    logging.info(f"Config removed: {current_path}")
                else:
                    logging.info(f"Config added: {current_path}")

        compare_dict("", old_config, new_config)

    def cleanup(self) -> None:
        """Stop the file observer"""
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()

    def _ensure_config_exists(self) -> None:
        if not self.config_dir.exists():
            logging.info(f"Creating config directory: {self.config_dir}")
            self.config_dir.mkdir(parents=True)

        if not self.config_file.exists():
            logging.info(f"Creating default config file: {self.config_file}")
            self.config_file.write_text(yaml.dump(default_config(self.config_dir)))

    def _load_env_file(self) -> None:
        """Load KEY=VALUE pairs from the first .env found; existing env vars win."""
        env_files = [
            self.config_dir / ".env",
            self.config_dir.parent / ".env",
            Path.cwd() / ".env",
        ]
        env_file = next((path for path in env_files if path.exists()), None)
        if not env_file:
            logging.debug("No .env file found, skipping environment variable loading")
            return

        logging.info(f"Loading environment variables from: {env_file}")
        try:
            with open(env_file, "r") as f:
                for line in f:
                    line = line.strip()
                    if not line or line.startswith("#"):
                        continue
                    match = re.match(r"^([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*)$", line)
                    if match:
                        key, value = match.groups()
                        value = value.strip('"').strip("'")
                        if key not in os.environ:
                            os.environ[key] = value
        except Exception as e:
            logging.warning(f"Error loading .env file: {e}")

    def _substitute_env_vars(self, data: Any) -> Any:
        """${VAR} and $VAR strings become the variable's value; unset variables become ''."""
        if isinstance(data, dict):
            return {key: self._substitute_env_vars(value) for key, value in data.items()}
        if isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]
        if isinstance(data, str):
            if data.startswith("${") and data.endswith("}"):
                return os.environ.get(data[2:-1], "")
            if data.startswith("$") and len(data) > 1 and re.match(r"^\$[A-Za-z_][A-Za-z0-9_]*$", data):
                return os.environ.get(data[1:], "")
        return data

    def _load_config(self) -> None:
        try:
            with open(self.config_file) as f:
                new_data = yaml.safe_load(f)

            if not isinstance(new_data, dict):
                raise ValueError("Invalid config format: root must be a dictionary")

            self.data = self._substitute_env_vars(new_data)

            if "file" in self.data.get("logging", {}):
                self.data["logging"]["file"] = os.path.expanduser(self.data["logging"]["file"])

        except Exception as e:
            logging.error(f"Error loading config: {e}")
            if hasattr(self, "data"):
                logging.info("Keeping previous configuration")
            else:
                logging.info("Using default configuration")
                self.data = self._substitute_env_vars(default_config(self.config_dir))
