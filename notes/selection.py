# ========================= notes/selection.py =========================
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from notes.model import ReferenceNote, DEFAULT_DURATION
from midi.parser import MidiTrack

DRUM_CH = 9  # GM: ch10(索引9)為打擊，一律排除

BASS_LOW, BASS_HIGH = 30, 70
AVG_PIVOT = 55

class NoBassTrackFound(Exception):
    """Every track was empty or on the drum channel."""
    def __init__(self, msg: str = "No usable bass line in this file"):
        super().__init__(msg)

@dataclass
class TrackCandidate:
    index: int
    track: MidiTrack
    score: float

@dataclass
class BassLine:
    notes: List[ReferenceNote]
    pitch_range: Tuple[int, int]
    tempo_bpm: Optional[float]
    track_name: str = ""
    score: float = 0.0

def score_track(track: MidiTrack) -> Optional[float]:
    """Bass-likeness of one track; None when the track cannot be a candidate."""
    if not track.notes or track.channel == DRUM_CH:
        return None
    pitches = [n.midi for n in track.notes]
    lo, hi = min(pitches), max(pitches)
    avg = sum(pitches) / len(pitches)
    name = (track.name or "").lower()

    score = 0.0
    if lo >= BASS_LOW and hi <= BASS_HIGH:
        score += 5
    if "bass" in name:
        score += 10
    if avg < AVG_PIVOT:
        score += (AVG_PIVOT - avg) * 0.5
    if "guitar" in name or "piano" in name:
        score -= 5
    return score

def pick_candidate(tracks: Sequence[MidiTrack]) -> TrackCandidate:
    best: Optional[TrackCandidate] = None
    for i, track in enumerate(tracks):
        score = score_track(track)
        if score is None:
            continue
        logging.debug("track %d (%r ch=%r): score %.1f", i, track.name, track.channel, score)
        if best is None or score > best.score:
            best = TrackCandidate(index=i, track=track, score=score)
    if best is None:
        raise NoBassTrackFound()
    return best

def to_reference_notes(track: MidiTrack) -> List[ReferenceNote]:
    out = [ReferenceNote(pitch=int(n.midi), start_time=float(n.time),
                         duration=float(n.duration) if n.duration and n.duration > 0 else DEFAULT_DURATION)
           for n in track.notes]
    out.sort(key=lambda n: n.start_time)
    return out

def select_bass_track(tracks: Sequence[MidiTrack], tempos: Sequence[float] = ()) -> BassLine:
    best = pick_candidate(tracks)
    notes = to_reference_notes(best.track)
    pitches = [n.pitch for n in notes]
    tempo = float(tempos[0]) if tempos else None
    logging.info("bass track: #%d %r (score %.1f, %d notes, tempo=%s)",
                 best.index, best.track.name, best.score, len(notes), tempo)
    return BassLine(
        notes=notes,
        pitch_range=(min(pitches) - 2, max(pitches) + 2),
        tempo_bpm=tempo,
        track_name=best.track.name,
        score=best.score,
    )
