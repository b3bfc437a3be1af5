# session.py
import logging
from collections import deque
from typing import Deque, Dict, List, Optional, Tuple

from config import JudgeConfig
from notes.model import ReferenceNote, PitchSample, JudgmentResult, WeakSection, MISS
from notes.selection import BassLine, select_bass_track
from midi.parser import MidiFileData
from pitch.estimator import Frame, estimate_pitch, frequency_to_midi
from judge.engine import PracticeMode, judge, reset_judgment_state, timing_tolerance_ms
from judge.weakspots import WeakSpotRecorder

DEFAULT_RANGE = (30, 70)

class PracticeSession:
    """
    Per-session state: reference notes, tempo, mode, performer history and
    weak spots. process_frame() is called once per display frame with
    non-decreasing elapsed times; call seek() on any jump in playback time.
    """
    def __init__(self, cfg: Optional[JudgeConfig] = None):
        self.cfg = cfg or JudgeConfig()
        self.mode = PracticeMode(self.cfg.mode)

        self._notes: List[ReferenceNote] = []
        self.pitch_range: Tuple[int, int] = DEFAULT_RANGE
        self.reference_bpm: Optional[float] = None
        self.track_name = ""

        self.weak_spots = WeakSpotRecorder(self.cfg.weak_spot_capacity)
        self._history: Deque[PitchSample] = deque(maxlen=max(1, self.cfg.history_capacity))
        self._sections: List[WeakSection] = []
        self.mark_in_time: Optional[float] = None

        # id(note) -> (note, best attempt sample) for notes missed so far
        self._attempts: Dict[int, Tuple[ReferenceNote, PitchSample]] = {}
        self.last_elapsed = 0.0
        self.last_sample: Optional[PitchSample] = None
        self.last_judgment: JudgmentResult = MISS

    # ---------- views ----------
    @property
    def notes(self) -> Tuple[ReferenceNote, ...]:
        return tuple(self._notes)

    @property
    def history(self) -> Tuple[PitchSample, ...]:
        return tuple(self._history)

    @property
    def sections(self) -> Tuple[WeakSection, ...]:
        return tuple(self._sections)

    @property
    def tempo_bpm(self) -> float:
        return self.reference_bpm or self.cfg.default_bpm

    @property
    def loaded(self) -> bool:
        return bool(self._notes)

    # ---------- loading ----------
    def load_reference(self, midi: MidiFileData) -> BassLine:
        """Select the bass line; on NoBassTrackFound the session is left untouched."""
        line = select_bass_track(midi.tracks, midi.tempos)
        # snapshot-and-swap
        self._notes = line.notes
        self.pitch_range = line.pitch_range
        self.reference_bpm = line.tempo_bpm
        self.track_name = line.track_name
        self._history.clear()
        self._attempts.clear()
        self.weak_spots.clear()
        self.last_elapsed = 0.0
        self.last_sample = None
        self.last_judgment = MISS
        return line

    # ---------- mode ----------
    def set_mode(self, mode: PracticeMode):
        if mode is not self.mode:
            logging.info("practice mode: %s -> %s", self.mode.value, mode.value)
        self.mode = mode

    def toggle_mode(self) -> PracticeMode:
        self.set_mode(self.mode.toggled())
        return self.mode

    def judge_window_ms(self) -> float:
        """Timing window judge() applies in the current mode."""
        if self.cfg.mode_window:
            return self.mode.timing_tolerance_ms(self.tempo_bpm)
        return timing_tolerance_ms(self.tempo_bpm)

    # ---------- per frame ----------
    def process_frame(self, frame: Frame, sample_rate: float, elapsed: float) -> PitchSample:
        freq = estimate_pitch(frame, sample_rate)
        midi = frequency_to_midi(freq) if freq is not None else None
        result = self.judge_pitch(midi, elapsed)
        sample = PitchSample(time_sec=elapsed, midi=midi, hit=result.hit, frequency=freq)
        self.last_sample = sample
        if midi is not None:
            self._history.append(sample)
        return sample

    def judge_pitch(self, midi: Optional[int], elapsed: float) -> JudgmentResult:
        self.last_elapsed = elapsed
        result = judge(midi, elapsed, self._notes, self.mode, self.tempo_bpm,
                       use_mode_window=self.cfg.mode_window)
        self.last_judgment = result
        if midi is not None:
            sample = PitchSample(time_sec=elapsed, midi=midi, hit=result.hit)
            if result.hit:
                self._attempts.pop(id(result.note), None)
                self.weak_spots.record_if_weak(sample, result.note, result, self.tempo_bpm, self.mode)
            else:
                self._remember_attempt(sample)
        self._flush_attempts(elapsed)
        return result

    def _remember_attempt(self, sample: PitchSample):
        note = self.current_note(sample.time_sec)
        if note is None:
            return
        key = id(note)
        prev = self._attempts.get(key)
        if prev is None or self._attempt_rank(note, sample) < self._attempt_rank(note, prev[1]):
            self._attempts[key] = (note, sample)

    @staticmethod
    def _attempt_rank(note: ReferenceNote, sample: PitchSample) -> Tuple[float, float]:
        return abs(sample.midi - note.pitch), abs(sample.time_sec - note.center)

    def _flush_attempts(self, elapsed: float):
        """Record the best attempt of every note whose window has closed unmatched."""
        if not self._attempts:
            return
        grace = self.judge_window_ms() / 1000.0
        for key, (note, sample) in list(self._attempts.items()):
            if note.consumed:
                del self._attempts[key]
            elif elapsed > note.end + grace:
                del self._attempts[key]
                self.weak_spots.record_if_weak(sample, note, None, self.tempo_bpm, self.mode)

    def current_note(self, t: float) -> Optional[ReferenceNote]:
        for note in self._notes:
            if note.start_time > t:
                break
            if not note.consumed and note.sounding_at(t):
                return note
        return None

    # ---------- transport ----------
    def seek(self, t: float):
        if t < self.last_elapsed:
            logging.debug("seek back %.2fs -> %.2fs: judgment state reset", self.last_elapsed, t)
            reset_judgment_state(self._notes)
            self._attempts.clear()
        self.last_elapsed = t

    def reset(self):
        reset_judgment_state(self._notes)
        self._attempts.clear()
        self._history.clear()
        self.weak_spots.clear()
        self._sections.clear()
        self.mark_in_time = None
        self.last_elapsed = 0.0
        self.last_sample = None
        self.last_judgment = MISS

    # ---------- scoring ----------
    def score(self) -> Tuple[int, int, int]:
        total = len(self._notes)
        hits = sum(1 for n in self._notes if n.consumed)
        pct = 0 if total == 0 else int(hits * 100 / total + 0.5)
        return hits, total, pct

    # ---------- weak sections (IN / OUT) ----------
    def mark_in(self, t: float):
        self.mark_in_time = t

    def mark_out(self, t: float) -> WeakSection:
        if self.mark_in_time is None:
            raise ValueError("Press IN first")
        if t <= self.mark_in_time:
            raise ValueError("OUT must be after IN")
        sec = WeakSection(self.mark_in_time, t)
        self._sections.append(sec)
        self.mark_in_time = None
        logging.info("weak section %.2fs -> %.2fs", sec.start_sec, sec.end_sec)
        return sec
