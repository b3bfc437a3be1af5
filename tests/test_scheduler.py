# tests/test_scheduler.py
from notes.model import ReferenceNote
from timeline.scheduler import BassScheduler

def _notes():
    return [ReferenceNote(pitch=p, start_time=float(i), duration=0.5) for i, p in enumerate([40, 43, 40])]

def test_note_on_and_off_in_order():
    sch = BassScheduler(_notes())
    ons, offs = sch.advance(0.0)
    assert [n.pitch for n in ons] == [40] and offs == []
    ons, offs = sch.advance(0.6)
    assert ons == [] and offs == [40]
    ons, offs = sch.advance(1.0)
    assert [n.pitch for n in ons] == [43]
    sch.advance(2.0)
    ons, offs = sch.advance(3.0)
    assert offs == [40]
    assert sch.finished

def test_catch_up_after_long_frame():
    sch = BassScheduler(_notes())
    ons, offs = sch.advance(2.2)
    assert [n.pitch for n in ons] == [40, 43, 40]
    assert offs == []
    _, offs = sch.advance(2.2)
    assert sorted(offs) == [40, 43]

def test_rewind_returns_sounding_pitches():
    sch = BassScheduler(_notes())
    sch.advance(1.1)
    stopped = sch.rewind(0.0)
    # the first note has ended but no advance() has released it yet
    assert sorted(stopped) == [40, 43]
    ons, _ = sch.advance(0.0)
    assert [n.pitch for n in ons] == [40]

def test_unsorted_input_is_sorted():
    notes = list(reversed(_notes()))
    sch = BassScheduler(notes)
    assert [n.start_time for n in sch.notes] == [0.0, 1.0, 2.0]
