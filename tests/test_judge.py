# tests/test_judge.py
import pytest

from notes.model import ReferenceNote, TimingClass
from judge.engine import (judge, reset_judgment_state, timing_tolerance_ms, quarter_note_ms,
                          PracticeMode, LENIENT_WINDOW_MS)

def test_tolerance_follows_tempo():
    assert quarter_note_ms(120) == 500.0
    assert timing_tolerance_ms(120) == 62.5
    assert timing_tolerance_ms(60) == 125.0
    assert PracticeMode.STRICT.timing_tolerance_ms(120) == 62.5
    assert PracticeMode.LENIENT.timing_tolerance_ms(120) == LENIENT_WINDOW_MS

def test_no_pitch_never_touches_notes(bass_note):
    r = judge(None, 2.25, [bass_note])
    assert not r.hit
    assert r.timing_class is TimingClass.MISS
    assert r.pitch_error_cents is None
    assert not bass_note.consumed

def test_exact_hit_inside_window(bass_note):
    r = judge(40, 2.26, [bass_note], PracticeMode.STRICT, tempo_bpm=120)
    assert r.hit
    assert r.timing_class is TimingClass.EXACT
    assert r.pitch_error_cents == 0
    assert r.note is bass_note
    assert r.timing_error_ms == pytest.approx(10.0)
    assert bass_note.consumed

def test_outside_window(bass_note):
    r = judge(40, 2.40, [bass_note], PracticeMode.STRICT, tempo_bpm=120)
    assert not r.hit
    assert r.timing_class is TimingClass.MISS
    assert not bass_note.consumed

def test_semitone_off_is_not_a_match(bass_note):
    r = judge(41, 2.25, [bass_note], tempo_bpm=120)
    assert not r.hit
    assert r.pitch_error_cents is None
    assert not bass_note.consumed

def test_lenient_label(bass_note):
    r = judge(40, 2.25, [bass_note], PracticeMode.LENIENT, tempo_bpm=120)
    assert r.hit
    assert r.timing_class is TimingClass.LENIENT

def test_mode_window_is_opt_in():
    # 60 bpm: tempo window 125 ms, lenient fixed window 40 ms
    a = ReferenceNote(pitch=40, start_time=1.0, duration=1.0)
    b = ReferenceNote(pitch=40, start_time=1.0, duration=1.0)
    assert judge(40, 1.6, [a], PracticeMode.LENIENT, tempo_bpm=60).hit
    assert not judge(40, 1.6, [b], PracticeMode.LENIENT, tempo_bpm=60, use_mode_window=True).hit

def test_consumed_note_is_not_matched_again(bass_note):
    assert judge(40, 2.25, [bass_note]).hit
    assert not judge(40, 2.25, [bass_note]).hit
    assert not judge(40, 2.27, [bass_note]).hit
    reset_judgment_state([bass_note])
    assert not bass_note.consumed
    assert judge(40, 2.27, [bass_note]).hit

def test_wrong_pitch_in_window_keeps_scanning():
    low = ReferenceNote(pitch=40, start_time=2.0, duration=0.5)
    high = ReferenceNote(pitch=45, start_time=2.1, duration=0.3)
    r = judge(45, 2.25, [low, high], tempo_bpm=120)
    assert r.hit and r.note is high
    assert not low.consumed
    assert r.pitch_error_cents == 0

def test_first_matching_note_wins():
    a = ReferenceNote(pitch=40, start_time=2.0, duration=0.5)
    b = ReferenceNote(pitch=40, start_time=2.05, duration=0.4)
    r = judge(40, 2.25, [a, b], tempo_bpm=120)
    assert r.note is a
    assert not b.consumed

def test_later_notes_are_not_reached_early():
    notes = [ReferenceNote(pitch=40, start_time=float(i), duration=0.5) for i in range(10)]
    assert not judge(40, 0.0, notes, tempo_bpm=120).hit
    r = judge(40, 3.25, notes, tempo_bpm=120)
    assert r.note is notes[3]
    assert [n.consumed for n in notes].count(True) == 1
