"""Facial expression detection and per-question metric sampling."""

from .detector import ExpressionDetector, DeepFaceExpressionDetector
from .sampler import FacialMetricSampler

__all__ = ["ExpressionDetector", "DeepFaceExpressionDetector", "FacialMetricSampler"]
