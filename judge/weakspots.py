# judge/weakspots.py
import logging
from collections import deque
from typing import Deque, Optional, Tuple

from notes.model import PitchSample, ReferenceNote, JudgmentResult, WeakSpotRecord, Reason
from judge.engine import PracticeMode, PITCH_TOLERANCE_CENTS, pitch_error_cents

class WeakSpotRecorder:
    """
    Diagnostic log of notes played outside pitch or timing tolerance.
    Keeps the signed error of each failure; bounded ring buffer, oldest dropped first.
    """
    def __init__(self, capacity: int = 1000):
        self._records: Deque[WeakSpotRecord] = deque(maxlen=max(1, int(capacity)))

    @property
    def capacity(self) -> int:
        return self._records.maxlen

    @property
    def records(self) -> Tuple[WeakSpotRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def clear(self):
        self._records.clear()

    def evaluate(self, sample: PitchSample, target: ReferenceNote, judgment: Optional[JudgmentResult],
                 tempo_bpm: float, mode: PracticeMode) -> Optional[WeakSpotRecord]:
        if sample.midi is None:
            return None
        if judgment is not None and judgment.pitch_error_cents is not None:
            cents = judgment.pitch_error_cents
        else:
            cents = pitch_error_cents(sample.midi, target.pitch)
        timing_ms = (sample.time_sec - target.center) * 1000.0

        reasons = set()
        if abs(cents) > PITCH_TOLERANCE_CENTS:
            reasons.add(Reason.PITCH)
        if abs(timing_ms) > mode.timing_tolerance_ms(tempo_bpm):
            reasons.add(Reason.TIMING)
        if not reasons:
            return None
        return WeakSpotRecord(
            time_sec=sample.time_sec,
            target_pitch=target.pitch,
            detected_pitch=sample.midi,
            pitch_error_cents=cents,
            timing_error_ms=timing_ms,
            tempo_bpm=tempo_bpm,
            mode=mode.value,
            reasons=frozenset(reasons),
        )

    def record_if_weak(self, sample: PitchSample, target: ReferenceNote, judgment: Optional[JudgmentResult],
                       tempo_bpm: float, mode: PracticeMode) -> Optional[WeakSpotRecord]:
        rec = self.evaluate(sample, target, judgment, tempo_bpm, mode)
        if rec is not None:
            self._records.append(rec)
            logging.debug("weak spot @%.2fs target=%d got=%d (%+.0f cent, %+.1f ms) %s",
                          rec.time_sec, rec.target_pitch, rec.detected_pitch,
                          rec.pitch_error_cents, rec.timing_error_ms,
                          sorted(r.value for r in rec.reasons))
        return rec
