"""
Gesture Trainer Engine

Landmark normalization, sequential capture, recognition and practice of
hand gestures recorded as 21-point hand landmarks.
"""
from .config import Config, load_config
from .context import GestureApp, Mode
from .errors import (
    GestureError,
    InputRejected,
    QualityRejected,
    GestureNotFound,
    StorageError,
)
from .landmarks import Landmark, HandLandmarks, TrackerFrame
from .library import GestureLibrary, ImportPolicy
from .models import CapturedFrame, Gesture, ConsistencyReport
from .normalizer import LandmarkNormalizer, normalize

__all__ = [
    'Config',
    'load_config',
    'GestureApp',
    'Mode',
    'GestureError',
    'InputRejected',
    'QualityRejected',
    'GestureNotFound',
    'StorageError',
    'Landmark',
    'HandLandmarks',
    'TrackerFrame',
    'GestureLibrary',
    'ImportPolicy',
    'CapturedFrame',
    'Gesture',
    'ConsistencyReport',
    'LandmarkNormalizer',
    'normalize',
]
