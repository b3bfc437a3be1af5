# tests/conftest.py
import numpy as np
import pytest

from notes.model import ReferenceNote
from midi.parser import MidiNote, MidiTrack, MidiFileData

SR = 44100

def sine(freq: float, n: int = 2048, sr: int = SR, amp: float = 0.5) -> np.ndarray:
    t = np.arange(n) / sr
    return (amp * np.sin(2 * np.pi * freq * t)).astype(np.float32)

def track(name, pitches, channel=0, step=0.5, dur=0.4):
    return MidiTrack(name=name, channel=channel,
                     notes=[MidiNote(midi=p, time=i * step, duration=dur) for i, p in enumerate(pitches)])

@pytest.fixture
def bass_note():
    # center 2.25 s
    return ReferenceNote(pitch=40, start_time=2.0, duration=0.5)

@pytest.fixture
def song():
    return MidiFileData(
        tracks=[
            track("Drums", [36, 38, 36, 38], channel=9),
            track("Piano", [60, 64, 67, 72], channel=0),
            track("Fingered Bass", [40, 43, 45, 40], channel=1),
        ],
        tempos=[100.0, 140.0],
    )
