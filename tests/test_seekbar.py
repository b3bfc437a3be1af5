import pytest

from render.renderer import seek_x, seek_time
from session import PracticeSession
from midi.parser import MidiFileData
from conftest import track

def test_position_maps_to_bar():
    assert seek_x(0.0, 60.0, 10, 600) == 10
    assert seek_x(30.0, 60.0, 10, 600) == pytest.approx(310.0)
    assert seek_x(90.0, 60.0, 10, 600) == pytest.approx(610.0)
    assert seek_x(5.0, 0.0, 10, 600) == 10

def test_click_maps_back_to_time():
    assert seek_time(310, 60.0, 10, 600) == pytest.approx(30.0)
    assert seek_time(0, 60.0, 10, 600) == 0.0
    assert seek_time(900, 60.0, 10, 600) == pytest.approx(60.0)
    assert seek_time(100, 0.0, 10, 600) == 0.0
    t = 42.5
    assert seek_time(seek_x(t, 60.0, 10, 600), 60.0, 10, 600) == pytest.approx(t)

def test_click_behind_playhead_rearms_notes():
    s = PracticeSession()
    s.load_reference(MidiFileData(tracks=[track("bass", [40, 43], step=1.0, dur=0.5)], tempos=[120.0]))
    assert s.judge_pitch(40, 0.25).hit
    s.judge_pitch(None, 3.0)
    s.seek(seek_time(10, 3.0, 10, 600))
    assert not any(n.consumed for n in s.notes)
    assert s.judge_pitch(40, 0.25).hit
