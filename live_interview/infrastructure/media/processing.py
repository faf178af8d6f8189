"""
Basic audio processing functions for turning device audio into recognizer input.
"""
from math import gcd

import numpy as np
from scipy.signal import resample_poly

from ...config import SAMPLE_RATE_TARGET


def stereo_to_mono(x: np.ndarray) -> np.ndarray:
    """Convert multi-channel audio to mono by averaging channels."""
    return np.mean(x, axis=1)


def remove_dc(x: np.ndarray) -> np.ndarray:
    """Remove DC offset from audio signal."""
    return x - np.mean(x)


def resample(mono: np.ndarray, sr_in: int, sr_out: int = SAMPLE_RATE_TARGET) -> np.ndarray:
    """Polyphase resample between arbitrary integer rates."""
    if sr_in == sr_out:
        return mono.astype(np.float32)
    factor = gcd(sr_in, sr_out)
    return resample_poly(mono, up=sr_out // factor, down=sr_in // factor).astype(np.float32)


def to_pcm16_mono(raw: bytes, channels: int, sr_in: int, sr_out: int = SAMPLE_RATE_TARGET) -> bytes:
    """
    Convert an interleaved int16 device buffer into mono PCM16 at sr_out.

    Args:
        raw: Interleaved little-endian int16 samples as read from the microphone
        channels: Number of interleaved channels in raw
        sr_in: Device sample rate
        sr_out: Rate expected by the speech recognizer

    Returns:
        Mono PCM16 bytes; empty bytes for an empty buffer
    """
    samples = np.frombuffer(raw, dtype=np.int16)
    if samples.size == 0:
        return b""
    audio = samples.astype(np.float32) / 32768.0
    if channels > 1:
        audio = stereo_to_mono(audio.reshape(-1, channels))
    audio = remove_dc(audio)
    audio = resample(audio, sr_in, sr_out)
    return np.clip(audio * 32767, -32768, 32767).astype(np.int16).tobytes()
