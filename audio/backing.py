# audio/backing.py
import logging
import os
import pygame

class BackingTrack:
    """
    原曲播放（pygame.mixer.music）。
    get_pos() counts from the last play() call, so the transport keeps the
    start offset itself.
    """
    def __init__(self):
        self.path = None
        self.duration = 0.0
        self.loaded = False
        self.playing = False
        self._offset = 0.0
        self._paused_at = 0.0

    def _ensure_mixer(self):
        if not pygame.mixer.get_init():
            pygame.mixer.init()

    def load(self, path: str) -> float:
        self._ensure_mixer()
        self.stop()
        pygame.mixer.music.load(path)
        try:
            self.duration = pygame.mixer.Sound(path).get_length()
        except pygame.error:
            logging.warning("[Backing] length unknown for %s", path, exc_info=True)
            self.duration = 0.0
        self.path = path
        self.loaded = True
        self._offset = self._paused_at = 0.0
        logging.info("[Backing] loaded %s (%.1fs)", os.path.basename(path), self.duration)
        return self.duration

    def play(self, start: float = None):
        if not self.loaded: return
        start = self._paused_at if start is None else max(0.0, start)
        pygame.mixer.music.play(start=start)
        self._offset = start
        self.playing = True

    def pause(self):
        if not (self.loaded and self.playing): return
        self._paused_at = self.current_time()
        pygame.mixer.music.pause()
        self.playing = False

    def stop(self):
        if self.loaded:
            pygame.mixer.music.stop()
        self.playing = False
        self._paused_at = 0.0

    def seek(self, t: float):
        t = max(0.0, t)
        if self.duration > 0:
            t = min(t, max(0.0, self.duration - 0.1))
        if self.playing:
            self.play(t)
        else:
            self._paused_at = t

    def current_time(self) -> float:
        if not self.playing:
            return self._paused_at
        pos = pygame.mixer.music.get_pos()
        if pos < 0:
            return self._offset
        return self._offset + pos / 1000.0

    @property
    def ended(self) -> bool:
        return self.playing and self.duration > 0 and self.current_time() >= self.duration - 0.1

    def close(self):
        self.stop()
        if pygame.mixer.get_init():
            pygame.mixer.music.unload()
        self.loaded = False
