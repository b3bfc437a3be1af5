# render/renderer.py
import logging
import pygame
from bisect import bisect_left, bisect_right
from typing import Optional, Sequence, Tuple
from notes.model import ReferenceNote, PitchSample, JudgmentResult, TimingClass, WeakSpotRecord, WeakSection
from config import RenderConfig
from pitch.estimator import midi_to_note_name

STATUS_H = 36
PANEL_W = 300
BTN_PAD_X = 10
BTN_GAP = 8
MARGIN_Y = 30

BUTTONS = ["LOAD MIDI", "LOAD AUDIO", "PLAY/PAUSE", "MODE", "GUIDE", "HISTORY",
           "MARK IN", "MARK OUT", "RESET", "QUIT"]

C_BG = (12, 12, 14)
C_HIT = (46, 204, 113)
C_CURRENT = (255, 193, 7)
C_PENDING = (0, 123, 255)
C_MISS = (231, 76, 60)
C_GROOVE = (52, 152, 219)

SEEK_H = 8

def seek_x(t: float, duration: float, left: float, width: float) -> float:
    if duration <= 0:
        return float(left)
    return left + width * min(1.0, max(0.0, t / duration))

def seek_time(x: float, duration: float, left: float, width: float) -> float:
    """Inverse of seek_x, clamped to [0, duration]."""
    if duration <= 0 or width <= 0:
        return 0.0
    return duration * min(1.0, max(0.0, (x - left) / float(width)))

class Renderer:
    def __init__(self, cfg: RenderConfig):
        pygame.init()
        self.cfg = cfg
        self.screen = pygame.display.set_mode((cfg.window_w, cfg.window_h))
        pygame.display.set_caption("bass trainer")
        self.font = pygame.font.SysFont("consolas", 18)
        self.font_big = pygame.font.SysFont("consolas", 36, bold=True)
        self.font_small = pygame.font.SysFont("consolas", 14)
        self.clock = pygame.time.Clock()
        self.button_rects = {}

        self.marquee_offset = 0.0
        self.marquee_speed = 80.0
        self.marquee_gap = 48
        self._last_tick_ms = pygame.time.get_ticks()

        self.pitch_range: Tuple[int, int] = (30, 70)

    # ------- geometry -------
    @property
    def lane_rect(self) -> pygame.Rect:
        return pygame.Rect(0, STATUS_H + 1, self.cfg.window_w - PANEL_W, self.cfg.window_h - STATUS_H - 1)

    @property
    def seek_rect(self) -> pygame.Rect:
        lane = self.lane_rect
        return pygame.Rect(lane.x + 12, lane.bottom - SEEK_H - 10, lane.width - 24, SEEK_H)

    def seek_hit(self, pos) -> bool:
        return self.seek_rect.inflate(0, 14).collidepoint(pos)

    def seek_time_at(self, x: float, duration: float) -> float:
        bar = self.seek_rect
        return seek_time(x, duration, bar.x, bar.width)

    def set_pitch_range(self, rng: Tuple[int, int]):
        lo, hi = rng
        if hi <= lo:
            logging.warning("set_pitch_range: empty range %r, widening", rng)
            hi = lo + 1
        self.pitch_range = (lo, hi)

    def pitch_to_y(self, midi: float) -> float:
        lo, hi = self.pitch_range
        lane = self.lane_rect
        norm = 1 - (midi - lo) / float(hi - lo)
        return lane.y + norm * (lane.height - MARGIN_Y * 2) + MARGIN_Y

    def time_to_x(self, t: float, now: float) -> float:
        lane = self.lane_rect
        return lane.x + lane.width / 2 + (t - now) * self.cfg.pixels_per_second

    def tick(self, fps=60) -> float:
        return self.clock.tick(fps) / 1000.0

    def begin_frame(self):
        self.screen.fill(C_BG)

    def end_frame(self):
        pygame.display.flip()

    def draw_status_bar(self, right_info_text: str = "", song_title: str = ""):
        now = pygame.time.get_ticks()
        dt = (now - self._last_tick_ms) / 1000.0
        self._last_tick_ms = now
        self.marquee_offset = (self.marquee_offset + self.marquee_speed * dt) % 1_000_000

        pygame.draw.rect(self.screen, (24, 24, 28), (0, 0, self.cfg.window_w, STATUS_H))
        pygame.draw.line(self.screen, (60, 60, 66), (0, STATUS_H), (self.cfg.window_w, STATUS_H), 1)

        x = 10; self.button_rects.clear()
        for label in BUTTONS:
            surf = self.font_small.render(label, True, (220, 220, 230))
            rect = surf.get_rect(); rect.topleft = (x + BTN_PAD_X, (STATUS_H - rect.height)//2)
            box = pygame.Rect(x, 4, rect.width + BTN_PAD_X*2, STATUS_H - 8)
            pygame.draw.rect(self.screen, (40, 40, 46), box, border_radius=6)
            pygame.draw.rect(self.screen, (75, 75, 85), box, 1, border_radius=6)
            self.screen.blit(surf, rect)
            self.button_rects[label] = box
            x += box.width + BTN_GAP
        buttons_end_x = x

        right_w = 0
        if right_info_text:
            right = self.font_small.render(right_info_text, True, (180, 180, 190))
            right_w = right.get_width()
            self.screen.blit(right, (self.cfg.window_w - right_w - 10, (STATUS_H - right.get_height())//2))

        area_x = buttons_end_x + 6
        area_w = max(0, self.cfg.window_w - right_w - 20 - area_x)
        if area_w > 50 and song_title:
            area_rect = pygame.Rect(area_x, 4, area_w, STATUS_H - 8)
            pygame.draw.rect(self.screen, (34, 34, 40), area_rect, border_radius=6)
            pygame.draw.rect(self.screen, (70, 70, 80), area_rect, 1, border_radius=6)
            text = song_title + "   •   "
            surf = self.font_small.render(text, True, (220, 220, 230))
            tw = surf.get_width()
            if tw > 0:
                scroll = self.marquee_offset % (tw + self.marquee_gap)
                clip_prev = self.screen.get_clip()
                self.screen.set_clip(area_rect)
                x_draw = area_rect.x - scroll
                while x_draw < area_rect.right:
                    self.screen.blit(surf, (x_draw, (STATUS_H - surf.get_height())//2))
                    x_draw += tw + self.marquee_gap
                self.screen.set_clip(clip_prev)

    # ------- lane -------
    def draw_lane(self):
        lane = self.lane_rect
        pygame.draw.rect(self.screen, (20, 20, 24), lane)
        lo, hi = self.pitch_range
        for p in range(lo, hi + 1):
            if p % 12 == 0:  # C 線
                y = self.pitch_to_y(p)
                pygame.draw.line(self.screen, (40, 40, 48), (lane.x, y), (lane.right, y), 1)
                self.screen.blit(self.font_small.render(midi_to_note_name(p), True, (90, 90, 100)), (lane.x + 4, y - 16))
        cx = lane.x + lane.width / 2
        pygame.draw.line(self.screen, (150, 150, 150), (cx, lane.y), (cx, lane.bottom), 1)

    def draw_reference(self, notes: Sequence[ReferenceNote], note_starts: Sequence[float], now: float):
        if not notes or not self.cfg.show_reference:
            return
        lane = self.lane_rect
        half = (lane.width / 2) / max(1e-6, self.cfg.pixels_per_second)
        LOOKBACK = 8.0
        start_idx = bisect_left(note_starts, now - half - LOOKBACK)
        end_idx = bisect_right(note_starts, now + half)
        for i in range(start_idx, end_idx):
            n = notes[i]
            x = self.time_to_x(n.start_time, now)
            w = max(2.0, n.duration * self.cfg.pixels_per_second)
            if x + w < lane.x or x > lane.right:
                continue
            if n.consumed:
                color = C_HIT
            elif n.sounding_at(now):
                color = C_CURRENT
            else:
                color = C_PENDING
            y = self.pitch_to_y(n.pitch)
            pygame.draw.rect(self.screen, color, (x, y - 10, w, 20), border_radius=4)

    def draw_history(self, history: Sequence[PitchSample], now: float):
        if not self.cfg.show_history:
            return
        lane = self.lane_rect
        for s in reversed(history):
            x = self.time_to_x(s.time_sec, now)
            if x < lane.x:
                break
            if x > lane.right or s.midi is None:
                continue
            pygame.draw.circle(self.screen, C_HIT if s.hit else C_MISS, (int(x), int(self.pitch_to_y(s.midi))), 3)

    def draw_current(self, sample: Optional[PitchSample], judgment: Optional[JudgmentResult]):
        if sample is None or sample.midi is None:
            return
        color = C_MISS
        if judgment is not None and judgment.hit:
            color = C_HIT if judgment.timing_class is TimingClass.EXACT else C_GROOVE
        lane = self.lane_rect
        cx = lane.x + lane.width / 2
        y = self.pitch_to_y(sample.midi)
        pygame.draw.line(self.screen, color, (cx - 60, y), (cx + 60, y), 6)

    def draw_seek_bar(self, now: float, duration: float):
        bar = self.seek_rect
        pygame.draw.rect(self.screen, (44, 44, 52), bar, border_radius=4)
        if duration <= 0:
            return
        x = seek_x(now, duration, bar.x, bar.width)
        pygame.draw.rect(self.screen, C_PENDING, (bar.x, bar.y, x - bar.x, bar.height), border_radius=4)
        pygame.draw.circle(self.screen, (235, 235, 240), (int(x), bar.centery), SEEK_H)
        label = f"{int(duration // 60)}:{int(duration % 60):02d}"
        surf = self.font_small.render(label, True, (140, 140, 150))
        self.screen.blit(surf, (bar.right - surf.get_width(), bar.y - surf.get_height() - 4))

    # ------- side panel -------
    def draw_panel(self, sample: Optional[PitchSample], score_text: str,
                   weak: Sequence[WeakSpotRecord], sections: Sequence[WeakSection], mark_in: Optional[float]):
        x0 = self.cfg.window_w - PANEL_W
        pygame.draw.rect(self.screen, (26, 26, 30), (x0, STATUS_H + 1, PANEL_W, self.cfg.window_h - STATUS_H))
        y = STATUS_H + 12
        if sample is not None and sample.midi is not None:
            name = midi_to_note_name(sample.midi)
            freq = f"{sample.frequency:.1f} Hz" if sample.frequency else ""
        else:
            name, freq = "---", ""
        self.screen.blit(self.font_big.render(name, True, (235, 235, 240)), (x0 + 16, y))
        self.screen.blit(self.font.render(freq, True, (170, 170, 180)), (x0 + 150, y + 12))
        y += 50
        self.screen.blit(self.font.render(score_text, True, (200, 200, 210)), (x0 + 16, y))
        y += 34

        self.screen.blit(self.font.render(f"Weak spots ({len(weak)})", True, (230, 200, 120)), (x0 + 16, y))
        y += 24
        rows = list(weak)[-self.cfg.weak_rows:]
        if not rows:
            self.screen.blit(self.font_small.render("none yet", True, (140, 140, 150)), (x0 + 16, y)); y += 18
        for rec in reversed(rows):
            why = "/".join(sorted(r.value for r in rec.reasons))
            line = f"{rec.time_sec:6.2f}s {rec.pitch_error_cents:+5.0f}c {rec.timing_error_ms:+6.1f}ms {why}"
            self.screen.blit(self.font_small.render(line, True, (200, 200, 210)), (x0 + 16, y))
            y += 18
        y += 16

        self.screen.blit(self.font.render(f"Sections ({len(sections)})", True, (230, 200, 120)), (x0 + 16, y))
        y += 24
        if mark_in is not None:
            self.screen.blit(self.font_small.render(f"IN @ {mark_in:.2f}s ...", True, (255, 193, 7)), (x0 + 16, y))
            y += 18
        for i, sec in enumerate(sections[-6:], start=max(1, len(sections) - 5)):
            line = f"#{i} {sec.start_sec:.2f}s -> {sec.end_sec:.2f}s"
            self.screen.blit(self.font_small.render(line, True, (200, 200, 210)), (x0 + 16, y))
            y += 18

    def draw_help(self, rows: Sequence[str]):
        """Key bindings, bottom of the side panel; drops rows that would overlap the lists."""
        x0 = self.cfg.window_w - PANEL_W
        y = self.cfg.window_h - 18 * len(rows) - 10
        for row in rows:
            if y > STATUS_H + 420:
                self.screen.blit(self.font_small.render(row, True, (120, 120, 130)), (x0 + 16, y))
            y += 18
