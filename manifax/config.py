"""Library-wide configuration for manifax."""

from dataclasses import dataclass, fields, replace
import os
import threading


@dataclass(frozen=True)
class ManifaxConfig:
    """Global settings.

    Attributes:
        log_level: Level for ``manifax.*`` loggers ('DEBUG', 'INFO', 'WARNING', ...).
        log_format: Format string for log records.
        tolerance: Threshold below which tangent vectors are treated as zero.
            ``None`` uses the machine epsilon of the coordinate dtype.
    """

    log_level: str = "WARNING"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    tolerance: float | None = None

    @classmethod
    def from_env(cls) -> "ManifaxConfig":
        """Create a configuration from ``MANIFAX_LOG_LEVEL`` and ``MANIFAX_LOG_FORMAT``."""
        defaults = cls()
        return cls(
            log_level=os.getenv("MANIFAX_LOG_LEVEL", defaults.log_level).upper(),
            log_format=os.getenv("MANIFAX_LOG_FORMAT", defaults.log_format),
        )


_config = ManifaxConfig.from_env()
_lock = threading.Lock()


def get_config() -> ManifaxConfig:
    return _config


def set_config(config: ManifaxConfig) -> None:
    global _config
    with _lock:
        _config = config


def update_config(**kwargs) -> ManifaxConfig:
    """Replace selected fields of the global configuration.

    Example:
        >>> update_config(log_level="DEBUG")
    """
    global _config
    known = {f.name for f in fields(ManifaxConfig)}
    unknown = set(kwargs) - known
    if unknown:
        raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
    with _lock:
        _config = replace(_config, **kwargs)
        return _config
