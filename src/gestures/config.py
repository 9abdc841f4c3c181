"""
Config loader for the gesture trainer.
Loads YAML configuration with dataclass validation.
"""
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional
import yaml

from .errors import ConfigError


@dataclass
class CaptureConfig:
    max_frames_per_gesture: int = 10
    min_quality: float = 50.0      # Frames scoring below this are rejected
    min_hand_extent: float = 0.08  # Bounding box side below this is rejected


@dataclass
class RecognitionConfig:
    tolerance: float = 0.7         # 0-1, minimum similarity to accept a match
    buffer_capacity: int = 10
    min_buffer_to_match: int = 3


@dataclass
class PracticeConfig:
    similarity_threshold: float = 80.0  # Percent, 0-100
    check_interval_ms: int = 100


@dataclass
class MatchingConfig:
    similarity_scale: float = 1.5  # k in: similarity = 1 - avg_distance * k


@dataclass
class StorageConfig:
    path: str = "gestures.json"


@dataclass
class Config:
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    recognition: RecognitionConfig = field(default_factory=RecognitionConfig)
    practice: PracticeConfig = field(default_factory=PracticeConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    def to_dict(self) -> dict:
        return asdict(self)


def _dict_to_dataclass(cls, data: dict):
    """Convert a dict to a dataclass, ignoring unknown keys."""
    if data is None:
        return cls()
    field_names = {f.name for f in cls.__dataclass_fields__.values()}
    filtered = {k: v for k, v in data.items() if k in field_names}
    return cls(**filtered)


def validate_config(config: Config) -> Config:
    """Raise ConfigError if any setting is outside its allowed range."""
    rec = config.recognition
    if not 0.0 <= rec.tolerance <= 1.0:
        raise ConfigError(f"recognition.tolerance must be in [0, 1], got {rec.tolerance}")
    if rec.buffer_capacity < 1:
        raise ConfigError("recognition.buffer_capacity must be at least 1")
    if not 1 <= rec.min_buffer_to_match <= rec.buffer_capacity:
        raise ConfigError(
            "recognition.min_buffer_to_match must be between 1 and buffer_capacity"
        )

    practice = config.practice
    if not 0.0 <= practice.similarity_threshold <= 100.0:
        raise ConfigError(
            f"practice.similarity_threshold must be in [0, 100], got {practice.similarity_threshold}"
        )
    if practice.check_interval_ms < 0:
        raise ConfigError("practice.check_interval_ms must not be negative")

    if config.capture.max_frames_per_gesture < 1:
        raise ConfigError("capture.max_frames_per_gesture must be at least 1")
    if not 0.0 <= config.capture.min_quality <= 100.0:
        raise ConfigError("capture.min_quality must be in [0, 100]")
    if config.capture.min_hand_extent < 0:
        raise ConfigError("capture.min_hand_extent must not be negative")

    if config.matching.similarity_scale <= 0:
        raise ConfigError("matching.similarity_scale must be positive")
    return config


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default config.yaml
                    in project root.

    Returns:
        Config dataclass with all settings.

    Raises:
        ConfigError: if the file is not valid YAML or a value is out of range.
    """
    if config_path is None:
        # Default to config.yaml in project root
        config_path = Path(__file__).parent.parent.parent / "config.yaml"

    config_path = Path(config_path)

    if not config_path.exists():
        # Return defaults if no config file
        return Config()

    try:
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {config_path} must be a mapping")

    try:
        config = Config(
            capture=_dict_to_dataclass(CaptureConfig, data.get('capture')),
            recognition=_dict_to_dataclass(RecognitionConfig, data.get('recognition')),
            practice=_dict_to_dataclass(PracticeConfig, data.get('practice')),
            matching=_dict_to_dataclass(MatchingConfig, data.get('matching')),
            storage=_dict_to_dataclass(StorageConfig, data.get('storage')),
        )
    except (TypeError, AttributeError) as e:
        raise ConfigError(f"Malformed section in {config_path}: {e}") from e

    return validate_config(config)
