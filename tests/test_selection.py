# tests/test_selection.py
import pytest

from midi.parser import MidiNote, MidiTrack
from notes.selection import select_bass_track, score_track, NoBassTrackFound
from conftest import track

def test_picks_bass_over_piano_and_drums(song):
    line = select_bass_track(song.tracks, song.tempos)
    assert line.track_name == "Fingered Bass"
    assert [n.pitch for n in line.notes] == [40, 43, 45, 40]
    assert all(not n.consumed for n in line.notes)

def test_selection_is_deterministic(song):
    a = select_bass_track(song.tracks, song.tempos)
    b = select_bass_track(song.tracks, song.tempos)
    assert a.track_name == b.track_name
    assert [(n.pitch, n.start_time) for n in a.notes] == [(n.pitch, n.start_time) for n in b.notes]

def test_bass_guitar_beats_piano_in_same_range():
    pitches = [35, 40, 45, 50, 55]
    piano = track("Piano", pitches)
    bass = track("Bass Guitar", pitches)
    # "guitar" costs 5 but "bass" earns 10
    assert score_track(bass) > score_track(piano)
    assert select_bass_track([piano, bass]).track_name == "Bass Guitar"

def test_drum_channel_never_selected():
    drums = track("Bass Drum", [35, 36, 35], channel=9)
    lead = track("Lead", [72, 76, 79], channel=0)
    assert score_track(drums) is None
    assert select_bass_track([drums, lead]).track_name == "Lead"

def test_only_drums_or_empty_raises():
    with pytest.raises(NoBassTrackFound):
        select_bass_track([track("Kit", [36, 38], channel=9), MidiTrack(name="Empty", channel=0)])
    with pytest.raises(NoBassTrackFound):
        select_bass_track([])

def test_score_terms():
    # in range +5, avg 40 -> +7.5
    assert score_track(track("", [40, 40])) == pytest.approx(12.5)
    # out of range, avg >= 55: no bonus and no penalty
    assert score_track(track("", [60, 80])) == 0
    # piano penalty, avg 50 -> +2.5, in range +5
    assert score_track(track("Piano", [50])) == pytest.approx(2.5)

def test_tie_keeps_first_seen():
    a = track("A", [40, 41])
    b = track("B", [40, 41])
    assert select_bass_track([a, b]).track_name == "A"

def test_notes_sorted_and_duration_fallback():
    t = MidiTrack(name="bass", channel=2, notes=[
        MidiNote(midi=43, time=1.0, duration=0.25),
        MidiNote(midi=40, time=0.0, duration=0.0),
        MidiNote(midi=45, time=0.5, duration=None),
    ])
    line = select_bass_track([t])
    assert [n.start_time for n in line.notes] == [0.0, 0.5, 1.0]
    assert [n.duration for n in line.notes] == [0.1, 0.1, 0.25]

def test_pitch_range_and_tempo(song):
    line = select_bass_track(song.tracks, song.tempos)
    assert line.pitch_range == (38, 47)
    assert line.tempo_bpm == 100.0

def test_no_tempo_declared():
    line = select_bass_track([track("bass", [40])])
    assert line.tempo_bpm is None
