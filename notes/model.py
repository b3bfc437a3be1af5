# notes/model.py
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional

DEFAULT_DURATION = 0.1  # seconds, when the source gives none

@dataclass
class ReferenceNote:
    pitch: int          # MIDI note number
    start_time: float   # seconds
    duration: float     # seconds
    consumed: bool = False

    @property
    def center(self) -> float:
        return self.start_time + self.duration / 2

    @property
    def end(self) -> float:
        return self.start_time + self.duration

    def sounding_at(self, t: float) -> bool:
        return self.start_time <= t <= self.end


class TimingClass(Enum):
    EXACT = "just"
    LENIENT = "groove"
    MISS = "out"


class Reason(Enum):
    PITCH = "pitch"
    TIMING = "timing"


@dataclass(frozen=True)
class PitchSample:
    time_sec: float
    midi: Optional[int]            # None: no pitch detected
    hit: bool = False
    frequency: Optional[float] = None


@dataclass(frozen=True)
class JudgmentResult:
    hit: bool
    timing_class: TimingClass
    pitch_error_cents: Optional[float] = None
    note: Optional[ReferenceNote] = None
    timing_error_ms: Optional[float] = None


MISS = JudgmentResult(hit=False, timing_class=TimingClass.MISS)


@dataclass(frozen=True)
class WeakSpotRecord:
    time_sec: float
    target_pitch: int
    detected_pitch: int
    pitch_error_cents: float
    timing_error_ms: float
    tempo_bpm: float
    mode: str
    reasons: FrozenSet[Reason]


@dataclass(frozen=True)
class WeakSection:
    """Interval the performer marked with IN / OUT."""
    start_sec: float
    end_sec: float

    @property
    def length(self) -> float:
        return self.end_sec - self.start_sec
