"""
Camera and microphone acquisition for the live interview.
"""
import asyncio
import logging
import threading
from typing import Iterator, Optional, Any

import numpy as np

from ...config import Config, VIDEO_READY_POLL
from ...errors import MediaAcquisitionError
from .processing import to_pcm16_mono

logger = logging.getLogger("media_capture")


class MediaStream:
    """
    Owns the camera and microphone for the lifetime of one session.

    The controller is the only owner; everything else borrows frames through
    read_frame() or audio through audio_chunks(). release() must run on every
    exit path and is safe to call more than once.
    """

    def __init__(self, camera: Any, audio_interface: Any, audio_stream: Any,
                 channels: int, sr_capture: int, sr_target: int, frames_per_buffer: int):
        self._camera = camera
        self._audio_interface = audio_interface
        self._audio_stream = audio_stream
        self.channels = channels
        self.sr_capture = sr_capture
        self.sr_target = sr_target
        self.frames_per_buffer = frames_per_buffer
        self._camera_lock = threading.Lock()
        self._audio_lock = threading.Lock()
        self._released = False

    @classmethod
    def open(cls, config: Config) -> 'MediaStream':
        """
        Acquire camera and microphone.

        Raises:
            MediaAcquisitionError: If either device cannot be opened. Anything
                acquired before the failure is released first.
        """
        import cv2
        import pyaudio

        camera = cv2.VideoCapture(config.camera_index)
        if not camera.isOpened():
            camera.release()
            raise MediaAcquisitionError(f"Could not open camera {config.camera_index}")
        camera.set(cv2.CAP_PROP_FRAME_WIDTH, config.camera_width)
        camera.set(cv2.CAP_PROP_FRAME_HEIGHT, config.camera_height)
        logger.info(f"Camera {config.camera_index} opened ({config.camera_width}x{config.camera_height})")

        frames_per_buffer = int(config.sr_capture * config.frame_ms / 1000)
        pa = pyaudio.PyAudio()
        try:
            audio_stream = pa.open(
                format=pyaudio.paInt16,
                channels=config.channels,
                rate=config.sr_capture,
                input=True,
                input_device_index=config.mic_device,
                frames_per_buffer=frames_per_buffer,
            )
        except Exception as e:
            pa.terminate()
            camera.release()
            logger.error(f"Failed to open microphone: {e}")
            raise MediaAcquisitionError(f"Could not open microphone: {e}") from e

        logger.info(f"Microphone opened: {config.channels} channel(s) at {config.sr_capture} Hz")
        return cls(camera, pa, audio_stream, config.channels, config.sr_capture,
                   config.sr_target, frames_per_buffer)

    @property
    def active(self) -> bool:
        return not self._released

    def read_frame(self) -> Optional[np.ndarray]:
        """Latest BGR frame, or None when the camera has nothing to give."""
        if self._released:
            return None
        with self._camera_lock:
            ok, frame = self._camera.read()
        return frame if ok else None

    async def wait_until_ready(self, timeout: float, poll: float = VIDEO_READY_POLL) -> bool:
        """Poll until the camera delivers a frame or timeout elapses."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while self.active:
            frame = await asyncio.to_thread(self.read_frame)
            if frame is not None:
                return True
            if loop.time() >= deadline:
                logger.warning(f"Camera produced no frame within {timeout:.1f}s")
                return False
            await asyncio.sleep(poll)
        return False

    def audio_chunks(self) -> Iterator[bytes]:
        """
        Yield mono PCM16 chunks at sr_target until the stream is released.

        Meant to be consumed from a worker thread (the speech engine's).
        """
        while not self._released:
            with self._audio_lock:
                if self._released:
                    break
                try:
                    raw = self._audio_stream.read(self.frames_per_buffer, exception_on_overflow=False)
                except OSError as e:
                    logger.warning(f"Microphone read failed: {e}")
                    break
            chunk = to_pcm16_mono(raw, self.channels, self.sr_capture, self.sr_target)
            if chunk:
                yield chunk

    def release(self) -> None:
        """Stop camera and microphone. Idempotent."""
        if self._released:
            return
        self._released = True

        with self._audio_lock:
            try:
                self._audio_stream.stop_stream()
                self._audio_stream.close()
            except Exception as e:
                logger.warning(f"Error closing microphone: {e}")
            finally:
                self._audio_interface.terminate()

        with self._camera_lock:
            self._camera.release()
        logger.info("Media stream released")

    def __enter__(self) -> 'MediaStream':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
