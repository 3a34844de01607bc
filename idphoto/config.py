"""Configuration management for the ID photo compliance engine.

Settings for detection, compliance limits and normalization come from
environment variables (optionally a .env file) and are validated once.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from idphoto.errors import ConfigurationError

# Load environment variables from .env file
load_dotenv()

VALID_DETECTORS = ["heuristic", "cascade"]
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _int_env(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def _float_env(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


@dataclass
class Config:
    """Application configuration loaded from environment variables.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        detector: External detector backend ("heuristic" = none, "cascade" = OpenCV Haar)
        analysis_size: Side of the square sample used by the heuristic detector
        target_size: Minimum canvas side for the normalizer
        margin_factor: Fraction of the canvas the fitted image may occupy (0-1]
        export_size: Side of the exported artifact
        brightness_threshold: Mean brightness below which the fix brightens
        min_resolution: Minimum accepted width and height in pixels
        max_file_size_kb: Maximum accepted file size in KB
        min_file_size_kb: Minimum accepted file size in KB
    """

    log_level: str
    detector: str
    analysis_size: int
    target_size: int
    margin_factor: float
    export_size: int
    brightness_threshold: float
    min_resolution: int
    max_file_size_kb: float
    min_file_size_kb: float

    @classmethod
    def from_env(cls) -> Config:
        """Load configuration from environment variables.

        Returns:
            Config instance with values from environment or defaults.

        Raises:
            ConfigurationError: If environment variables are invalid.
        """
        # Logging configuration
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        if log_level not in VALID_LOG_LEVELS:
            raise ConfigurationError(
                f"LOG_LEVEL must be one of {VALID_LOG_LEVELS}, got {log_level}"
            )

        # Detector backend
        detector = os.getenv("DETECTOR", "heuristic").lower()
        if detector not in VALID_DETECTORS:
            raise ConfigurationError(
                f"DETECTOR must be one of {VALID_DETECTORS}, got {detector}"
            )

        analysis_size = _int_env("ANALYSIS_SIZE", "200")
        if analysis_size < 10:
            raise ConfigurationError(f"ANALYSIS_SIZE must be >= 10, got {analysis_size}")

        # Normalization
        target_size = _int_env("TARGET_SIZE", "600")
        if target_size < 1:
            raise ConfigurationError(f"TARGET_SIZE must be >= 1, got {target_size}")

        margin_factor = _float_env("MARGIN_FACTOR", "0.90")
        if not 0.0 < margin_factor <= 1.0:
            raise ConfigurationError(
                f"MARGIN_FACTOR must be in (0.0, 1.0], got {margin_factor}"
            )

        export_size = _int_env("EXPORT_SIZE", "600")
        if export_size < 1:
            raise ConfigurationError(f"EXPORT_SIZE must be >= 1, got {export_size}")

        brightness_threshold = _float_env("BRIGHTNESS_THRESHOLD", "120")
        if not 0.0 <= brightness_threshold <= 255.0:
            raise ConfigurationError(
                f"BRIGHTNESS_THRESHOLD must be in [0, 255], got {brightness_threshold}"
            )

        # Compliance rules
        min_resolution = _int_env("MIN_RESOLUTION", "600")
        if min_resolution < 1:
            raise ConfigurationError(f"MIN_RESOLUTION must be >= 1, got {min_resolution}")

        max_file_size_kb = _float_env("MAX_FILE_SIZE_KB", "240")
        min_file_size_kb = _float_env("MIN_FILE_SIZE_KB", "54")
        if min_file_size_kb < 0 or max_file_size_kb < min_file_size_kb:
            raise ConfigurationError(
                "File size limits must satisfy 0 <= MIN_FILE_SIZE_KB <= MAX_FILE_SIZE_KB, "
                f"got {min_file_size_kb} and {max_file_size_kb}"
            )

        return cls(
            log_level=log_level,
            detector=detector,
            analysis_size=analysis_size,
            target_size=target_size,
            margin_factor=margin_factor,
            export_size=export_size,
            brightness_threshold=brightness_threshold,
            min_resolution=min_resolution,
            max_file_size_kb=max_file_size_kb,
            min_file_size_kb=min_file_size_kb,
        )

    def __repr__(self) -> str:
        """Return string representation of config."""
        return (
            f"Config(\n"
            f"  Log Level: {self.log_level},\n"
            f"  Detector: {self.detector},\n"
            f"  Analysis Size: {self.analysis_size},\n"
            f"  Target Size: {self.target_size},\n"
            f"  Margin: {self.margin_factor},\n"
            f"  Export Size: {self.export_size},\n"
            f"  File Size: {self.min_file_size_kb}-{self.max_file_size_kb} KB\n"
            f")"
        )


# Global config instance (lazy-loaded)
_config: Config | None = None


def get_config() -> Config:
    """Get global config instance (singleton pattern).

    Returns:
        Config instance loaded from environment.
    """
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config
