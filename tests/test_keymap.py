import pygame

from input.keymap import DEFAULT_KEYMAP, describe_keymap, key_label

def test_one_row_per_binding_in_action_order():
    rows = describe_keymap(DEFAULT_KEYMAP)
    assert len(rows) == len(DEFAULT_KEYMAP)
    actions = [r.split()[-1] for r in rows]
    assert actions == list(DEFAULT_KEYMAP.values())

def test_unknown_actions_sort_last():
    rows = describe_keymap({pygame.K_z: "zoom", pygame.K_SPACE: "play_pause"})
    assert [r.split()[-1] for r in rows] == ["play_pause", "zoom"]

def test_label_falls_back_to_keycode(monkeypatch):
    monkeypatch.setattr(pygame.key, "name", lambda k: "")
    assert key_label(12345) == "#12345"
    monkeypatch.setattr(pygame.key, "name", lambda k: "space")
    assert key_label(pygame.K_SPACE) == "SPACE"
