# ========================= input/keymap.py =========================
import logging
import pygame
from typing import Dict, List

# 預設配置：鍵 -> 動作名稱（可被程式內動態覆蓋）
DEFAULT_KEYMAP: Dict[int, str] = {
    pygame.K_SPACE: "play_pause",
    pygame.K_LEFT: "rewind",
    pygame.K_RIGHT: "forward",
    pygame.K_m: "mode",
    pygame.K_i: "mark_in",
    pygame.K_o: "mark_out",
    pygame.K_r: "reset",
    pygame.K_g: "guide",
    pygame.K_h: "history",
    pygame.K_l: "load_midi",
    pygame.K_a: "load_audio",
    pygame.K_ESCAPE: "quit",
}

SEEK_STEP = 15.0  # seconds per rewind / forward

def key_label(k: int) -> str:
    name = ""
    try:
        name = pygame.key.name(k)
    except pygame.error:
        logging.debug("no key name for %d", k)
    return name.upper() if name else f"#{k}"

def describe_keymap(kmap: Dict[int, str]) -> List[str]:
    """One 'SPACE  play_pause' row per binding, grouped in action order."""
    order = {a: i for i, a in enumerate(DEFAULT_KEYMAP.values())}
    rows = sorted(kmap.items(), key=lambda kv: (order.get(kv[1], len(order)), kv[1]))
    return [f"{key_label(k):<6} {action}" for k, action in rows]
