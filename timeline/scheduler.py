# timeline/scheduler.py
import heapq
from bisect import bisect_left
from typing import List, Sequence, Tuple
from notes.model import ReferenceNote

class BassScheduler:
    """Walks the reference notes with an index + min-heap of ends.
    advance(t) returns the notes to start and the pitches to stop;
    the synth subscribes to these events, nothing scans the whole song.
    """
    def __init__(self, notes: Sequence[ReferenceNote], tolerance: float = 0.003):
        self.tol = tolerance
        self.set_notes(notes)

    def set_notes(self, notes: Sequence[ReferenceNote]):
        self.notes = sorted(notes, key=lambda n: n.start_time)
        self.starts = [n.start_time for n in self.notes]
        self.i = 0
        self._active: List[Tuple[float, int, int]] = []  # (end, seq, pitch)
        self._seq = 0

    def advance(self, t: float) -> Tuple[List[ReferenceNote], List[int]]:
        ons: List[ReferenceNote] = []
        offs: List[int] = []
        # Note OFF first so a repeated pitch is re-struck
        while self._active and self._active[0][0] < t - self.tol:
            _, _, pitch = heapq.heappop(self._active)
            offs.append(pitch)
        while self.i < len(self.notes) and self.notes[self.i].start_time <= t + self.tol:
            n = self.notes[self.i]
            ons.append(n)
            heapq.heappush(self._active, (n.end, self._seq, n.pitch))
            self._seq += 1
            self.i += 1
        return ons, offs

    def rewind(self, t: float) -> List[int]:
        """Jump to t; returns the pitches that were sounding."""
        stopped = [p for _, _, p in self._active]
        self._active.clear()
        self.i = bisect_left(self.starts, t)
        return stopped

    @property
    def finished(self) -> bool:
        return self.i >= len(self.notes) and not self._active
