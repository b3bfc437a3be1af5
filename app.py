# app.py
import os
import logging
import pygame
from typing import List, Optional
from config import AppConfig
from session import PracticeSession
from render.renderer import Renderer, STATUS_H
from audio.synth import BassSynth
from audio.backing import BackingTrack
from audio.mic import MicInput
from input.keymap import DEFAULT_KEYMAP, SEEK_STEP, describe_keymap
from midi.parser import parse_midi_file, MalformedMidiInput
from notes.selection import NoBassTrackFound
from timeline.scheduler import BassScheduler
from utils.crashlog import log_exception

END_PADDING = 2.0  # 沒有原曲時，最後一音之後再跑幾秒才停

def pick_file_dialog(title: str, patterns: list[tuple[str, str]]) -> Optional[str]:
    try:
        import tkinter as tk
        from tkinter import filedialog
        root = tk.Tk(); root.withdraw()
        file = filedialog.askopenfilename(title=title, filetypes=patterns)
        root.update(); root.destroy()
        return file or None
    except Exception:
        logging.warning("file dialog unavailable", exc_info=True)
        return None

class App:
    def __init__(self, cfg: AppConfig):
        self.cfg = cfg
        self.renderer = Renderer(cfg.render)
        self.synth = BassSynth(cfg.audio)
        self.backing = BackingTrack()
        self.mic = MicInput(cfg.audio)
        self.session = PracticeSession(cfg.judge)
        self.scheduler = BassScheduler([])
        self.keymap = dict(DEFAULT_KEYMAP)
        self.help_rows = describe_keymap(self.keymap)

        self.note_starts: List[float] = []
        self.time = 0.0
        self.is_playing = False
        self.current_midi: Optional[str] = None
        self.current_audio: Optional[str] = None

        # UI 訊息（toast）
        self._msg = ""
        self._msg_time = 0.0

    # ---------- UI 訊息 ----------
    def _toast(self, msg: str, secs: float = 4.0):
        self._msg = msg
        self._msg_time = max(self._msg_time, secs)

    # ---------- Loading ----------
    def load_midi(self, path: str) -> bool:
        try:
            data = parse_midi_file(path)
            line = self.session.load_reference(data)
        except NoBassTrackFound as e:
            logging.warning("no bass track in %s", path)
            self._toast(str(e), 6.0)
            return False
        except MalformedMidiInput as e:
            log_exception("load_midi", e)
            self._toast("Failed to load MIDI (see logs)", 6.0)
            return False

        self._pause()
        self.current_midi = path
        self.note_starts = [n.start_time for n in self.session.notes]
        self.scheduler.set_notes(self.session.notes)
        self.renderer.set_pitch_range(line.pitch_range)
        self._jump(0.0)
        self._toast(f"Loaded MIDI ✓ {len(line.notes)} notes, {self.session.tempo_bpm:.0f} BPM", 3.0)
        return True

    def load_audio(self, path: str) -> bool:
        try:
            dur = self.backing.load(path)
        except (pygame.error, OSError) as e:
            log_exception("load_audio", e)
            self._toast("Failed to load audio (see logs)", 6.0)
            return False
        self._pause()
        self.current_audio = path
        self._jump(0.0)
        self._toast(f"Loaded audio ✓ {dur:.1f}s", 3.0)
        return True

    def load_midi_interactive(self):
        path = pick_file_dialog("Select a MIDI file", [("MIDI files", "*.mid *.midi"), ("All files", "*.*")])
        return self.load_midi(path) if path else False

    def load_audio_interactive(self):
        path = pick_file_dialog("Select the backing track",
                                [("Audio", "*.wav *.mp3 *.ogg *.flac"), ("All files", "*.*")])
        return self.load_audio(path) if path else False

    # ---------- Transport ----------
    def _play(self):
        if self.is_playing: return
        if not self.session.loaded:
            self._toast("Load a MIDI file first", 4.0)
            return
        try:
            self.mic.start()
        except Exception as e:
            log_exception("mic.start", e)
            self._toast("Microphone unavailable (see logs)", 6.0)
            return
        self.backing.play(self.time)
        self.is_playing = True

    def _pause(self):
        if not self.is_playing: return
        self.is_playing = False
        self.backing.pause()
        self.mic.stop()
        self.synth.all_notes_off()

    def _jump(self, t: float):
        t = max(0.0, t)
        if self.backing.duration > 0:
            t = min(t, max(0.0, self.backing.duration - 0.1))
        self.backing.seek(t)
        for p in self.scheduler.rewind(t):
            self.synth.note_off(p)
        self.session.seek(t)
        self.time = t

    def seek_to(self, t: float):
        """Seek-bar click; works while playing or paused."""
        if not self.session.loaded:
            return
        self._jump(t)
        logging.debug("seek bar -> %.2fs", self.time)

    def _song_end(self) -> float:
        if self.backing.duration > 0:
            return self.backing.duration
        notes = self.session.notes
        return max((n.end for n in notes), default=0.0) + END_PADDING

    # ---------- Actions ----------
    def do(self, action: str) -> bool:
        """Run one UI action; returns False when the app should quit."""
        if action == "quit":
            return False
        if action == "play_pause":
            if self.is_playing: self._pause()
            else: self._play()
        elif action == "load_midi":
            self._pause(); self.load_midi_interactive()
        elif action == "load_audio":
            self._pause(); self.load_audio_interactive()
        elif action == "rewind":
            self._jump(self.time - SEEK_STEP)
        elif action == "forward":
            self._jump(self.time + SEEK_STEP)
        elif action == "mode":
            mode = self.session.toggle_mode()
            self._toast(f"Mode: {mode.value}", 2.0)
        elif action == "guide":
            self.renderer.cfg.show_reference = not self.renderer.cfg.show_reference
        elif action == "history":
            self.renderer.cfg.show_history = not self.renderer.cfg.show_history
        elif action == "mark_in":
            self.session.mark_in(self.time)
            self._toast(f"IN: {self.time:.2f}s", 2.0)
        elif action == "mark_out":
            try:
                sec = self.session.mark_out(self.time)
                self._toast(f"Section {sec.start_sec:.2f}s -> {sec.end_sec:.2f}s", 3.0)
            except ValueError as e:
                self._toast(str(e), 3.0)
        elif action == "reset":
            self.session.reset()
            self._toast("Session reset", 2.0)
        return True

    BUTTON_ACTIONS = {
        "LOAD MIDI": "load_midi", "LOAD AUDIO": "load_audio", "PLAY/PAUSE": "play_pause",
        "MODE": "mode", "GUIDE": "guide", "HISTORY": "history", "MARK IN": "mark_in",
        "MARK OUT": "mark_out", "RESET": "reset", "QUIT": "quit",
    }

    # ---------- Main loop ----------
    def run(self):
        if self.cfg.midi_path:
            self.load_midi(self.cfg.midi_path)
        if self.cfg.audio_path:
            self.load_audio(self.cfg.audio_path)

        running = True
        try:
            while running:
                dt = self.renderer.tick(60)
                for e in pygame.event.get():
                    if e.type == pygame.QUIT:
                        running = False
                    elif e.type == pygame.KEYDOWN and e.key in self.keymap:
                        running = self.do(self.keymap[e.key]) and running
                    elif e.type == pygame.MOUSEBUTTONDOWN and e.button == 1:
                        mx, my = e.pos
                        if my <= STATUS_H:
                            for label, rect in self.renderer.button_rects.items():
                                if rect.collidepoint(mx, my):
                                    running = self.do(self.BUTTON_ACTIONS[label]) and running
                        elif self.renderer.seek_hit(e.pos):
                            self.seek_to(self.renderer.seek_time_at(mx, self._song_end()))
                if not running: break

                # ===== 訊息倒數（toast） =====
                if self._msg_time > 0:
                    self._msg_time -= dt
                    if self._msg_time <= 0:
                        self._msg_time = 0
                        self._msg = ""

                if self.is_playing:
                    self._step(dt)

                self._draw()
        finally:
            self._pause()
            self.synth.close()
            self.backing.close()
            pygame.quit()

    def _step(self, dt: float):
        t = self.backing.current_time() if self.backing.loaded else self.time + dt
        if t < self.time:
            self.session.seek(t)
        self.time = t

        # 參考貝斯：指標＋最小堆，不掃全曲
        ons, offs = self.scheduler.advance(t)
        for p in offs:
            self.synth.note_off(p)
        for n in ons:
            self.synth.note_on(n.pitch, self.cfg.audio.bass_velocity)

        frame = self.mic.read_frame()
        if frame is not None:
            self.session.process_frame(frame, self.mic.sample_rate, t)

        if self.backing.ended or t >= self._song_end():
            self._pause()
            hits, total, pct = self.session.score()
            self._toast(f"Finished: {hits}/{total} ({pct}%)", 8.0)

    def _draw(self):
        r = self.renderer
        s = self.session
        r.begin_frame()
        title = " / ".join(os.path.basename(p) for p in (self.current_midi, self.current_audio) if p)
        if s.track_name:
            title += f"  [{s.track_name}]"
        right_fields = [
            f"PLAY: {'ON' if self.is_playing else 'OFF'}",
            f"MODE: {s.mode.value.upper()}",
            f"BPM: {s.tempo_bpm:.0f}",
            f"T: {int(self.time // 60)}:{int(self.time % 60):02d}",
        ]
        if self._msg: right_fields.append(self._msg)
        r.draw_status_bar(right_info_text="  |  ".join(right_fields), song_title=title)

        r.draw_lane()
        notes = s.notes
        r.draw_reference(notes, self.note_starts, self.time)
        r.draw_history(s.history, self.time)
        r.draw_seek_bar(self.time, self._song_end() if s.loaded else 0.0)
        if self.is_playing:
            r.draw_current(s.last_sample, s.last_judgment)
        hits, total, pct = s.score()
        r.draw_panel(s.last_sample if self.is_playing else None, f"Score: {hits}/{total} ({pct}%)",
                     s.weak_spots.records, s.sections, s.mark_in_time)
        r.draw_help(self.help_rows)
        r.end_frame()
