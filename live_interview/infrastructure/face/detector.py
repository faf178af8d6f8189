"""
Facial expression detection on single video frames using DeepFace.
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Any

from ...config import FACE_DETECTOR_BACKEND
from ...errors import FaceModelError

logger = logging.getLogger("face_detector")

# DeepFace emotion label -> expression name used in metrics
DEEPFACE_EXPRESSIONS = {
    "happy": "happy",
    "sad": "sad",
    "angry": "angry",
    "surprise": "surprised",
    "neutral": "neutral",
    "fear": "fearful",
    "disgust": "disgusted",
}


class ExpressionDetector(ABC):
    """Detects the main face in a frame and scores its expressions in [0, 1]."""

    loaded: bool = False

    @abstractmethod
    def load(self) -> None:
        """Load model weights. Raises FaceModelError on failure."""

    @abstractmethod
    def detect(self, frame: Any) -> Optional[Dict[str, float]]:
        """Expression scores for the main face, or None when no face is found."""


class DeepFaceExpressionDetector(ExpressionDetector):
    """DeepFace emotion model with a fast OpenCV face detector."""

    def __init__(self, detector_backend: str = FACE_DETECTOR_BACKEND):
        self.detector_backend = detector_backend
        self.loaded = False
        self._deepface = None

    def load(self) -> None:
        if self.loaded:
            return
        try:
            from deepface import DeepFace
            DeepFace.build_model(model_name="Emotion", task="facial_attribute")
        except Exception as e:
            logger.error(f"Failed to load facial expression model: {e}")
            raise FaceModelError(f"Could not load facial expression model: {e}") from e
        self._deepface = DeepFace
        self.loaded = True
        logger.info(f"Facial expression model loaded (detector: {self.detector_backend})")

    def detect(self, frame: Any) -> Optional[Dict[str, float]]:
        if frame is None or not self.loaded:
            return None
        try:
            faces = self._deepface.analyze(
                img_path=frame,
                actions=["emotion"],
                enforce_detection=True,
                detector_backend=self.detector_backend,
                silent=True,
            )
        except ValueError:
            # enforce_detection raises ValueError when no face is in the frame
            return None

        if isinstance(faces, dict):
            faces = [faces]
        if not faces:
            return None

        main_face = max(faces, key=lambda f: f["region"]["w"] * f["region"]["h"])
        scores = main_face.get("emotion", {})
        return {
            name: min(1.0, max(0.0, float(scores.get(label, 0.0)) / 100.0))
            for label, name in DEEPFACE_EXPRESSIONS.items()
        }
