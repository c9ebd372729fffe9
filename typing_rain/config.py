import logging
from dataclasses import asdict, dataclass

from .matching import LANGS, TONE_MODES

logger = logging.getLogger(__name__)

# (min, max) for every numeric setting
SPAWN_INTERVAL_RANGE = (300, 5000)
FALL_SPEED_RANGE = (20, 300)
MAX_CONCURRENT_RANGE = (1, 9)
TIME_LIMIT_RANGE = (10, 3600)


def clamp(value, bounds):
    lo, hi = bounds
    return max(lo, min(hi, value))


@dataclass
class EngineConfig:
    """Player-adjustable settings. Numeric values are clamped on construction."""

    display_lang: str = "ko"
    tone_mode: str = "strict"
    fall_speed: float = 35
    spawn_interval_ms: float = 1800
    max_concurrent: int = 5
    time_limit: float = 120

    def __post_init__(self):
        if self.display_lang not in LANGS:
            raise ValueError(f"Unknown language code: {self.display_lang!r}")
        if self.tone_mode not in TONE_MODES:
            raise ValueError(f"Unknown tone mode: {self.tone_mode!r}")
        self.fall_speed = clamp(self.fall_speed, FALL_SPEED_RANGE)
        self.spawn_interval_ms = clamp(self.spawn_interval_ms, SPAWN_INTERVAL_RANGE)
        self.max_concurrent = int(clamp(self.max_concurrent, MAX_CONCURRENT_RANGE))
        self.time_limit = clamp(self.time_limit, TIME_LIMIT_RANGE)

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        """Rebuild from persisted settings, ignoring unknown keys and bad values."""
        config = cls()
        for name, value in (data or {}).items():
            if name not in config.__dataclass_fields__:
                continue
            try:
                config = cls(**{**config.to_dict(), name: value})
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid persisted setting %s=%r", name, value)
        return config
