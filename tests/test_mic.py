import numpy as np
import pytest

from config import AudioConfig

try:
    from audio.mic import MicInput
except OSError:  # sounddevice raises when PortAudio is not installed
    pytest.skip("PortAudio library not available", allow_module_level=True)

def _mic(frame_size=4):
    # ring holds 4 frames = 16 samples; no stream is opened until start()
    return MicInput(AudioConfig(frame_size=frame_size))

def test_no_frame_until_enough_samples():
    mic = _mic()
    assert mic.read_frame() is None
    mic.push(np.array([1, 2, 3], dtype=np.float32))
    assert mic.read_frame() is None
    mic.push(np.array([4, 5], dtype=np.float32))
    np.testing.assert_array_equal(mic.read_frame(), [2, 3, 4, 5])

def test_small_pushes_shift_the_ring():
    mic = _mic()
    for start in range(0, 20, 3):
        mic.push(np.arange(start, start + 3, dtype=np.float32))
    # 21 samples pushed in total: 0..20
    np.testing.assert_array_equal(mic.read_frame(), [17, 18, 19, 20])
    assert mic._filled == 16

def test_push_larger_than_ring_keeps_newest():
    mic = _mic()
    mic.push(np.arange(40, dtype=np.float32))
    np.testing.assert_array_equal(mic.read_frame(), [36, 37, 38, 39])
    np.testing.assert_array_equal(mic._ring, np.arange(24, 40))

def test_frame_is_a_copy():
    mic = _mic()
    mic.push(np.ones(4, dtype=np.float32))
    frame = mic.read_frame()
    frame[:] = 0
    np.testing.assert_array_equal(mic.read_frame(), np.ones(4))

def test_stop_without_stream_is_noop():
    mic = _mic()
    mic.push(np.ones(8, dtype=np.float32))
    mic.stop()
    assert not mic.active
    assert mic.read_frame() is not None
