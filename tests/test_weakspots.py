# tests/test_weakspots.py
import pytest

from notes.model import PitchSample, JudgmentResult, TimingClass, Reason
from judge.engine import PracticeMode
from judge.weakspots import WeakSpotRecorder

def _miss(cents=None):
    return JudgmentResult(hit=False, timing_class=TimingClass.MISS, pitch_error_cents=cents)

def test_pitch_only(bass_note):
    rec = WeakSpotRecorder()
    # 10 ms late, 50 cents off
    r = rec.record_if_weak(PitchSample(2.26, 40), bass_note, _miss(50.0), 120, PracticeMode.STRICT)
    assert r is not None
    assert r.reasons == {Reason.PITCH}
    assert r.pitch_error_cents == 50.0
    assert r.timing_error_ms == pytest.approx(10.0)
    assert rec.records == (r,)

def test_pitch_and_timing(bass_note):
    rec = WeakSpotRecorder()
    r = rec.record_if_weak(PitchSample(2.40, 41), bass_note, None, 120, PracticeMode.STRICT)
    assert r.reasons == {Reason.PITCH, Reason.TIMING}
    assert r.pitch_error_cents == 100.0
    assert r.timing_error_ms == pytest.approx(150.0)
    assert r.target_pitch == 40 and r.detected_pitch == 41
    assert r.mode == "strict" and r.tempo_bpm == 120

def test_early_is_negative(bass_note):
    r = WeakSpotRecorder().record_if_weak(PitchSample(2.10, 40), bass_note, None, 120, PracticeMode.STRICT)
    assert r.reasons == {Reason.TIMING}
    assert r.timing_error_ms == pytest.approx(-150.0)

def test_clean_pass_is_silent(bass_note):
    rec = WeakSpotRecorder()
    assert rec.record_if_weak(PitchSample(2.25, 40), bass_note, None, 120, PracticeMode.STRICT) is None
    assert len(rec) == 0

def test_lenient_uses_fixed_window(bass_note):
    sample = PitchSample(2.30, 40)  # 50 ms late
    assert WeakSpotRecorder().record_if_weak(sample, bass_note, None, 120, PracticeMode.STRICT) is None
    r = WeakSpotRecorder().record_if_weak(sample, bass_note, None, 120, PracticeMode.LENIENT)
    assert r.reasons == {Reason.TIMING}
    assert r.mode == "lenient"

def test_no_pitch_not_recorded(bass_note):
    rec = WeakSpotRecorder()
    assert rec.record_if_weak(PitchSample(2.25, None), bass_note, None, 120, PracticeMode.STRICT) is None
    assert len(rec) == 0

def test_ring_buffer_drops_oldest(bass_note):
    rec = WeakSpotRecorder(capacity=2)
    for t in (2.5, 2.6, 2.7):
        rec.record_if_weak(PitchSample(t, 47), bass_note, None, 120, PracticeMode.STRICT)
    assert rec.capacity == 2
    assert [r.time_sec for r in rec.records] == [2.6, 2.7]

def test_duplicates_are_kept_and_clear(bass_note):
    rec = WeakSpotRecorder()
    s = PitchSample(2.25, 45)
    rec.record_if_weak(s, bass_note, None, 120, PracticeMode.STRICT)
    rec.record_if_weak(s, bass_note, None, 120, PracticeMode.STRICT)
    assert len(rec) == 2
    rec.clear()
    assert rec.records == ()
