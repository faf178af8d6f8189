"""Camera and microphone capture plus audio conversion."""

from .processing import stereo_to_mono, remove_dc, resample, to_pcm16_mono
from .capture import MediaStream

__all__ = ["MediaStream", "stereo_to_mono", "remove_dc", "resample", "to_pcm16_mono"]
