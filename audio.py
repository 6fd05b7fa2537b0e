"""
Sound effects. The engine only names sound ids ("death", "kill", ...);
players here map them to wav files.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)


SOUND_FILES: Dict[str, str] = {
    "buy": "buy.wav",
    "sell": "money.wav",
    "door_open": "opendoor.wav",
    "door_close": "shutdoor.wav",
    "death": "death.wav",
    "kill": "kill.wav",
    "airport": "Airport.wav",
    "breath": "breath.wav",
    "dog": "dog.wav",
    "flee": "flee.wav",
    "vomit": "vomit.wav",
    "hos": "hos.wav",
    "harley": "harley.wav",
    "hit": "hit.wav",
    "el": "el.wav",
    "level": "level.wav",
    "lan": "lan.wav",
    "money": "money.wav",
}


class NullAudio:
    """Silent player; remembers what would have been played"""

    def __init__(self):
        self.enabled = True
        self.played = []

    def play(self, sound_id: str) -> None:
        if self.enabled:
            self.played.append(sound_id)

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled


class PygameAudio:
    """pygame.mixer backed player. Missing files or no audio device just mean silence."""

    def __init__(self, sound_dir: Union[str, Path], enabled: bool = True):
        import pygame

        self._pygame = pygame
        self.sound_dir = Path(sound_dir)
        self.enabled = enabled
        self._sounds: Dict[str, Optional[object]] = {}
        self._ready = False

        try:
            pygame.mixer.init()
            self._ready = True
        except pygame.error as e:
            logger.warning(f"Audio disabled, mixer init failed: {e}")

    def _load(self, sound_id: str):
        if sound_id in self._sounds:
            return self._sounds[sound_id]

        sound = None
        file_name = SOUND_FILES.get(sound_id, f"{sound_id}.wav")
        path = self.sound_dir / file_name
        if path.exists():
            try:
                sound = self._pygame.mixer.Sound(str(path))
            except self._pygame.error as e:
                logger.error(f"Failed to load sound {sound_id}: {e}")
        else:
            logger.debug(f"No sound file for {sound_id} at {path}")

        self._sounds[sound_id] = sound
        return sound

    def play(self, sound_id: str) -> None:
        if not self.enabled or not self._ready:
            return
        sound = self._load(sound_id)
        if sound is None:
            return
        try:
            sound.play()
        except self._pygame.error as e:
            logger.error(f"Failed to play sound {sound_id}: {e}")

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled
        if not enabled and self._ready:
            self._pygame.mixer.stop()
