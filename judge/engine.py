# judge/engine.py
from enum import Enum
from typing import Optional, Sequence

from notes.model import ReferenceNote, JudgmentResult, TimingClass, MISS

TIMING_RATIO = 0.125        # 四分音符的 12.5%
LENIENT_WINDOW_MS = 40.0
PITCH_TOLERANCE_CENTS = 30.0
DEFAULT_BPM = 120.0

def quarter_note_ms(tempo_bpm: float) -> float:
    return (60.0 / tempo_bpm) * 1000.0

def timing_tolerance_ms(tempo_bpm: float) -> float:
    return quarter_note_ms(tempo_bpm) * TIMING_RATIO

def pitch_error_cents(detected_midi: int, target_midi: int) -> float:
    return float((detected_midi - target_midi) * 100)


class PracticeMode(Enum):
    STRICT = "strict"     # 照 MIDI 嚴格判定
    LENIENT = "lenient"   # 容許律動

    @property
    def timing_class(self) -> TimingClass:
        return TimingClass.EXACT if self is PracticeMode.STRICT else TimingClass.LENIENT

    def timing_tolerance_ms(self, tempo_bpm: float) -> float:
        if self is PracticeMode.STRICT:
            return timing_tolerance_ms(tempo_bpm)
        return LENIENT_WINDOW_MS

    def toggled(self) -> "PracticeMode":
        return PracticeMode.LENIENT if self is PracticeMode.STRICT else PracticeMode.STRICT


def judge(detected_midi: Optional[int], elapsed_seconds: float, notes: Sequence[ReferenceNote],
          mode: PracticeMode = PracticeMode.STRICT, tempo_bpm: float = DEFAULT_BPM,
          use_mode_window: bool = False) -> JudgmentResult:
    """
    Match one detected pitch against the pending reference notes.

    The first unconsumed note whose center lies within the timing window and
    whose pitch is within 30 cents is marked consumed. A note that is in the
    window but off pitch does not stop the scan.
    """
    if detected_midi is None:
        return MISS

    if use_mode_window:
        tol_ms = mode.timing_tolerance_ms(tempo_bpm)
    else:
        tol_ms = timing_tolerance_ms(tempo_bpm)
    horizon = elapsed_seconds + tol_ms / 1000.0

    for note in notes:
        if note.start_time > horizon:
            # sorted by start and center >= start: nothing later can be in the window
            break
        if note.consumed:
            continue
        delta_ms = (elapsed_seconds - note.center) * 1000.0
        if abs(delta_ms) > tol_ms:
            continue
        cents = pitch_error_cents(detected_midi, note.pitch)
        if abs(cents) <= PITCH_TOLERANCE_CENTS:
            note.consumed = True
            return JudgmentResult(hit=True, timing_class=mode.timing_class,
                                  pitch_error_cents=cents, note=note, timing_error_ms=delta_ms)
    return MISS

def reset_judgment_state(notes: Sequence[ReferenceNote]) -> None:
    for note in notes:
        note.consumed = False
