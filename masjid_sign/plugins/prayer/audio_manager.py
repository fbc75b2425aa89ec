import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional

import pygame
import requests


class AdhanPlayer:
    """
    Plays the single Adhan recording through pygame's mixer.
    Playback is fire-and-forget; the app polls is_busy() to detect the end.
    """

    def __init__(self, config: Dict[str, Any], cache_dir: Optional[str] = None):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.config = config
        self.volume = max(0.0, min(1.0, float(config.get("volume", 1.0))))
        self._duration: Optional[float] = None
        self.available = False

        configured = config.get("file")
        if configured:
            self.audio_file = Path(configured).expanduser()
        else:
            audio_dir = Path(cache_dir or ".cache").expanduser() / "adhan"
            audio_dir.mkdir(parents=True, exist_ok=True)
            self.audio_file = audio_dir / "adhan.mp3"

        try:
            pygame.mixer.init()
            pygame.mixer.music.set_volume(self.volume)
            self.available = True
        except pygame.error as e:
            self.logger.error(f"Audio output unavailable, adhan will be silent: {e}")

        if not self.audio_file.exists() and config.get("url"):
            self._start_background_download(config["url"])

    def _start_background_download(self, url: str) -> None:
        def download():
            try:
                self.download(url)
            except Exception as e:
                self.logger.error(f"Background adhan download failed: {e}")

        threading.Thread(target=download, daemon=True).start()

    def download(self, url: str) -> bool:
        self.logger.info(f"Downloading adhan from: {url} to {self.audio_file}")
        response = requests.get(url, stream=True, timeout=60)
        response.raise_for_status()
        with open(self.audio_file, "wb") as f:
            for chunk in response.iter_content(chunk_size=8192):
                f.write(chunk)
        self._duration = None
        self.logger.info(f"Adhan file downloaded to {self.audio_file}")
        return True

    def duration(self) -> Optional[float]:
        """Length of the recording in seconds, None if unknown."""
        if self._duration is None and self.available and self.audio_file.exists():
            try:
                self._duration = pygame.mixer.Sound(str(self.audio_file)).get_length()
            except pygame.error as e:
                self.logger.warning(f"Could not read adhan length: {e}")
        return self._duration

    def play_from_start(self) -> bool:
        """Restart the recording from zero, stopping any current playback."""
        if not self.available:
            return False
        if not self.audio_file.exists():
            self.logger.error(f"Adhan file missing: {self.audio_file}")
            return False
        try:
            pygame.mixer.music.stop()
            pygame.mixer.music.load(str(self.audio_file))
            pygame.mixer.music.set_volume(self.volume)
            pygame.mixer.music.play()
            self.logger.info("Adhan playback started")
            return True
        except pygame.error as e:
            self.logger.error(f"Error playing adhan: {e}", exc_info=True)
            return False

    def is_busy(self) -> bool:
        if not self.available:
            return False
        return bool(pygame.mixer.music.get_busy())

    def set_volume(self, volume: float) -> None:
        self.volume = max(0.0, min(1.0, volume))
        if self.available:
            pygame.mixer.music.set_volume(self.volume)

    def stop(self) -> None:
        if self.available:
            pygame.mixer.music.stop()
            pygame.mixer.quit()
            self.available = False
