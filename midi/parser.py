# midi/parser.py
import logging
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import mido

DEFAULT_TEMPO = 500000  # µs per beat, 120 bpm

class MalformedMidiInput(Exception):
    """mido could not read the file."""

@dataclass
class MidiNote:
    midi: int
    time: float      # seconds
    duration: float  # seconds

@dataclass
class MidiTrack:
    name: str = ""
    channel: Optional[int] = None
    notes: List[MidiNote] = field(default_factory=list)

@dataclass
class MidiFileData:
    tracks: List[MidiTrack] = field(default_factory=list)
    tempos: List[float] = field(default_factory=list)  # bpm, file order
    length: float = 0.0


class TempoMap:
    """Tick -> seconds conversion over every set_tempo in the file."""
    def __init__(self, mid: mido.MidiFile):
        self.tpb = mid.ticks_per_beat
        changes: Dict[int, int] = {}
        for track in mid.tracks:
            tick = 0
            for msg in track:
                tick += msg.time
                if msg.type == 'set_tempo':
                    changes[tick] = msg.tempo
        self.changes: List[Tuple[int, int]] = sorted(changes.items())
        # 每段起點的 (tick, 秒, tempo)
        self._ticks: List[int] = [0]
        self._secs: List[float] = [0.0]
        self._tempos: List[int] = [DEFAULT_TEMPO]
        for tick, tempo in self.changes:
            sec = self.to_seconds(tick)
            if tick == self._ticks[-1]:
                self._tempos[-1] = tempo
                continue
            self._ticks.append(tick)
            self._secs.append(sec)
            self._tempos.append(tempo)

    def to_seconds(self, tick: int) -> float:
        i = bisect_right(self._ticks, tick) - 1
        return self._secs[i] + mido.tick2second(tick - self._ticks[i], self.tpb, self._tempos[i])

    @property
    def bpms(self) -> List[float]:
        return [mido.tempo2bpm(t) for _, t in self.changes]


def _track_notes(track: mido.MidiTrack, tempo_map: TempoMap) -> Dict[int, List[MidiNote]]:
    """Pair note on/off per (channel, pitch); returns notes grouped by channel."""
    tick = 0
    active: Dict[Tuple[int, int], int] = {}
    by_channel: Dict[int, List[MidiNote]] = {}

    def close(ch: int, pitch: int, start_tick: int, end_tick: int):
        st = tempo_map.to_seconds(start_tick)
        et = tempo_map.to_seconds(end_tick)
        by_channel.setdefault(ch, []).append(MidiNote(midi=pitch, time=st, duration=et - st))

    for msg in track:
        tick += msg.time
        if msg.is_meta:
            continue
        if msg.type == 'note_on' and msg.velocity > 0:
            key = (msg.channel, msg.note)
            if key in active:
                # 重複 note_on：先收掉前一發
                close(msg.channel, msg.note, active.pop(key), tick)
            active[key] = tick
        elif msg.type == 'note_off' or (msg.type == 'note_on' and msg.velocity == 0):
            key = (msg.channel, msg.note)
            if key in active:
                close(msg.channel, msg.note, active.pop(key), tick)
    # close dangling
    for (ch, p), st in active.items():
        close(ch, p, st, tick)
    for notes in by_channel.values():
        notes.sort(key=lambda n: (n.time, n.midi))
    return by_channel


def read_midi(mid: mido.MidiFile) -> MidiFileData:
    tempo_map = TempoMap(mid)
    data = MidiFileData(tempos=tempo_map.bpms)
    for track in mid.tracks:
        by_channel = _track_notes(track, tempo_map)
        if not by_channel:
            data.tracks.append(MidiTrack(name=track.name, channel=None, notes=[]))
            continue
        # type-0 style tracks carry several channels: one MidiTrack per channel
        for ch in sorted(by_channel):
            data.tracks.append(MidiTrack(name=track.name, channel=ch, notes=by_channel[ch]))
    data.length = max((n.time + n.duration for t in data.tracks for n in t.notes), default=0.0)
    return data


def parse_midi_file(path: str) -> MidiFileData:
    try:
        mid = mido.MidiFile(path)
    except (OSError, EOFError, ValueError, KeyError) as e:
        raise MalformedMidiInput(f"cannot read MIDI file {path!r}: {e}") from e
    data = read_midi(mid)
    logging.info("MIDI parsed: %s (%d tracks, tempos=%s)", path, len(data.tracks), data.tempos[:3])
    return data
