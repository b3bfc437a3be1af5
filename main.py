# main.py
import sys, os
sys.path.append(os.path.dirname(__file__))  # 確保能找到 config.py

from utils.crashlog import setup_crashlog, log_exception, log_dir

import argparse
from config import AppConfig, RenderConfig, JudgeConfig, AudioConfig
import logging, traceback

def _init_logging():
    logs = log_dir()
    os.makedirs(logs, exist_ok=True)
    log_path = os.path.join(logs, "app.log")

    if logging.getLogger().handlers:
        return

    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        encoding="utf-8"
    )
    try:
        from logging.handlers import RotatingFileHandler
        fh = RotatingFileHandler(log_path, maxBytes=2*1024*1024, backupCount=3, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logging.getLogger().addHandler(fh)
    except OSError:
        logging.warning("file logging disabled: cannot open %s", log_path)

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Bass practice trainer")
    ap.add_argument('--midi', help='reference MIDI file to load at start')
    ap.add_argument('--audio', help='backing track to load at start')
    ap.add_argument('--mode', default='strict', choices=['strict', 'lenient'])
    ap.add_argument('--mode-window', action='store_true',
                    help='lenient mode judges with the fixed 40 ms window')
    ap.add_argument('--bpm', type=float, default=120.0, help='tempo when the MIDI declares none')
    ap.add_argument('--pps', type=float, default=200.0)
    ap.add_argument('--sample-rate', type=int, default=44100)
    ap.add_argument('--frame-size', type=int, default=2048)
    ap.add_argument('--input-device', type=int, default=None)
    ap.add_argument('--no-bass', action='store_true', help='do not play the reference bass line')
    ap.add_argument('--bass-program', type=int, default=33)
    ap.add_argument('--weak-capacity', type=int, default=1000)
    ap.add_argument('--history-capacity', type=int, default=3600)
    return ap

def config_from_args(args: argparse.Namespace) -> AppConfig:
    return AppConfig(
        render=RenderConfig(pixels_per_second=args.pps),
        judge=JudgeConfig(
            mode=args.mode,
            default_bpm=args.bpm,
            mode_window=args.mode_window,
            weak_spot_capacity=args.weak_capacity,
            history_capacity=args.history_capacity,
        ),
        audio=AudioConfig(
            sample_rate=args.sample_rate,
            frame_size=args.frame_size,
            input_device=args.input_device,
            play_bass=not args.no_bass,
            bass_program=args.bass_program,
        ),
        midi_path=args.midi,
        audio_path=args.audio,
    )

def main(argv=None):
    setup_crashlog()
    _init_logging()
    logging.info("應用程式啟動")

    cfg = config_from_args(build_parser().parse_args(argv))

    from app import App
    App(cfg).run()

def run():
    try:
        main()
    except Exception as e:
        try:
            log_exception("Top-level exception", e)
        except OSError:
            pass
        logging.error("未捕捉的例外：%s", e, exc_info=True)
        print("程式發生錯誤，請到 logs/ 資料夾看 app.log 與 error-*.txt")
        traceback.print_exc()
        sys.exit(1)

if __name__ == '__main__':
    run()
