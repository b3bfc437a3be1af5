# audio/synth.py
import logging
import pygame.midi

BASS_CH = 0    # 貝斯固定用 ch1（索引0）

class BassSynth:
    """
    系統 MIDI 音源，單聲部貝斯：
    - note_on(p, v) 會先關掉正在響的音
    - note_off(p) 只關掉仍在響的同一個 pitch
    - 沒有輸出裝置時全部變成 no-op
    """
    def __init__(self, cfg):
        self.cfg = cfg
        self.midi_out = None
        self.use_midi_out = False
        self.channel = BASS_CH
        self.sounding = None

        if not cfg.play_bass:
            return
        try:
            pygame.midi.init()
            dev = pygame.midi.get_default_output_id()
            if dev != -1:
                self.midi_out = pygame.midi.Output(dev)
                self.midi_out.set_instrument(int(cfg.bass_program), self.channel)
                self.use_midi_out = True
                logging.info("[BassSynth] Using system MIDI out (device %d, program %d)", dev, cfg.bass_program)
            else:
                logging.warning("[BassSynth] No MIDI output device found")
        except Exception as e:
            logging.warning("[BassSynth] MIDI init failed: %s", e)

    def close(self):
        try:
            if self.midi_out:
                self.all_notes_off()
                self.midi_out.close()
        except Exception:
            logging.debug("[BassSynth] close failed", exc_info=True)
        if pygame.midi.get_init():
            pygame.midi.quit()
        self.midi_out = None
        self.use_midi_out = False

    def note_on(self, pitch: int, vel: int = 100):
        if not (self.use_midi_out and self.midi_out): return
        if self.sounding is not None:
            self.note_off(self.sounding)
        v = max(1, min(int(vel), 127))
        try:
            self.midi_out.note_on(int(pitch), v, self.channel)
            self.sounding = int(pitch)
        except Exception:
            logging.debug("[BassSynth] note_on %d failed", pitch, exc_info=True)

    def note_off(self, pitch: int):
        if not (self.use_midi_out and self.midi_out): return
        if self.sounding != int(pitch): return
        try: self.midi_out.note_off(int(pitch), 0, self.channel)
        except Exception: logging.debug("[BassSynth] note_off %d failed", pitch, exc_info=True)
        self.sounding = None

    def all_notes_off(self):
        if not (self.use_midi_out and self.midi_out): return
        for p in range(0, 128):
            try: self.midi_out.note_off(p, 0, self.channel)
            except Exception: pass
        self.sounding = None
