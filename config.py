# ========================= config.py =========================
from dataclasses import dataclass, field
from typing import Optional

@dataclass
class RenderConfig:
    window_w: int = 1280
    window_h: int = 720
    pixels_per_second: float = 200.0  # scroll speed
    show_reference: bool = True       # 參考音高條
    show_history: bool = True         # performer pitch dots
    weak_rows: int = 8                # rows in the weak-spot panel

@dataclass
class JudgeConfig:
    mode: str = "strict"              # or "lenient"
    default_bpm: float = 120.0        # used when the MIDI declares no tempo
    mode_window: bool = False         # lenient judging uses the fixed 40 ms window
    weak_spot_capacity: int = 1000
    history_capacity: int = 3600      # ~60 s of detections at 60 fps

@dataclass
class AudioConfig:
    sample_rate: int = 44100
    frame_size: int = 2048
    input_device: Optional[int] = None
    play_bass: bool = True
    bass_program: int = 33            # GM: Electric Bass (finger)
    bass_velocity: int = 100

@dataclass
class AppConfig:
    render: RenderConfig = field(default_factory=RenderConfig)
    judge: JudgeConfig = field(default_factory=JudgeConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    midi_path: Optional[str] = None
    audio_path: Optional[str] = None
