# pitch/estimator.py
import math
from typing import Optional, Sequence, Union

import numpy as np

RMS_GATE = 0.01       # below this the frame is treated as silence
MIN_FREQ = 40.0
MAX_FREQ = 20000.0

NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

Frame = Union[Sequence[float], np.ndarray]

def frame_rms(frame: Frame) -> float:
    x = np.asarray(frame, dtype=np.float64)
    if x.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(x * x)))

def autocorrelate(frame: Frame) -> np.ndarray:
    """c[i] = sum_j x[j] * x[j+i] for every lag i in [0, n)."""
    x = np.asarray(frame, dtype=np.float64)
    n = x.size
    return np.correlate(x, x, mode="full")[n - 1:]

def estimate_pitch(frame: Frame, sample_rate: float) -> Optional[float]:
    """
    Autocorrelation f0 estimate for one mono frame.
    Returns the frequency in Hz, or None when there is no usable pitch
    (silence, no period found, or outside 40..20000 Hz).
    """
    x = np.asarray(frame, dtype=np.float64)
    n = x.size
    if n < 2 or frame_rms(x) < RMS_GATE:
        return None

    c = autocorrelate(x)

    # 跳過 lag 0 的峰值，走到第一個局部最小
    d = 0
    while c[d] > c[d + 1] and d < n - 2:
        d += 1
    t0 = d + int(np.argmax(c[d:]))
    if t0 <= 0:
        return None

    freq = float(sample_rate) / t0
    if freq > MAX_FREQ or freq < MIN_FREQ:
        return None
    return freq

def frequency_to_midi(freq: float) -> int:
    # ties round half up
    return int(math.floor(12 * math.log2(freq / 440.0) + 69 + 0.5))

def midi_to_frequency(midi: float) -> float:
    return 440.0 * 2 ** ((midi - 69) / 12.0)

def midi_to_note_name(midi: int) -> str:
    return f"{NOTE_NAMES[midi % 12]}{midi // 12 - 1}"
