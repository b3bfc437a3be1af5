# audio/mic.py
import logging
import threading
from typing import Optional

import numpy as np
import sounddevice as sd

class MicInput:
    """Microphone frames via sounddevice; the stream callback fills a ring,
    the main loop copies the newest frame_size samples out."""
    def __init__(self, cfg):
        self.cfg = cfg
        self.sample_rate = int(cfg.sample_rate)
        self.frame_size = int(cfg.frame_size)
        self._ring = np.zeros(self.frame_size * 4, dtype=np.float32)
        self._filled = 0
        self._lock = threading.Lock()
        self.stream: Optional[sd.InputStream] = None

    @property
    def active(self) -> bool:
        return self.stream is not None and self.stream.active

    def start(self):
        if self.stream is not None: return
        self.stream = sd.InputStream(
            samplerate=self.sample_rate,
            channels=1,
            dtype="float32",
            device=self.cfg.input_device,
            callback=self._callback,
        )
        self.stream.start()
        logging.info("[Mic] listening: device=%r rate=%d frame=%d",
                     self.cfg.input_device, self.sample_rate, self.frame_size)

    def stop(self):
        if self.stream is None: return
        try:
            self.stream.stop()
            self.stream.close()
        finally:
            self.stream = None
            with self._lock:
                self._filled = 0

    def _callback(self, indata, frames, time_info, status):
        if status:
            logging.debug("[Mic] %s", status)
        self.push(indata[:, 0])

    def push(self, samples: np.ndarray):
        n = len(samples)
        size = len(self._ring)
        with self._lock:
            if n >= size:
                self._ring[:] = samples[-size:]
            else:
                self._ring[:-n] = self._ring[n:]
                self._ring[-n:] = samples
            self._filled = min(size, self._filled + n)

    def read_frame(self) -> Optional[np.ndarray]:
        with self._lock:
            if self._filled < self.frame_size:
                return None
            return self._ring[-self.frame_size:].copy()
