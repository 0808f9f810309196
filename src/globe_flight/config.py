from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from globe_flight.exceptions import InvalidConfigError

# ============================================================================
# FLIGHT CONFIGURATION
# ============================================================================

@dataclass(frozen=True)
class FlightConfig:
    """Caller-supplied settings for one flying object"""
    globe_radius: float = 5.0
    cruise_radius: float = 5.5
    speed: float = 0.002              # progress per tick, ~500 ticks per leg
    trail_capacity: int = 50
    surface_offset: float = 1.01      # legs start and end at globe_radius * surface_offset

    def __post_init__(self):
        if self.globe_radius <= 0.0:
            raise InvalidConfigError(f"globe_radius must be positive, got {self.globe_radius}")
        if self.cruise_radius <= 0.0:
            raise InvalidConfigError(f"cruise_radius must be positive, got {self.cruise_radius}")
        if self.speed <= 0.0:
            raise InvalidConfigError(f"speed must be positive, got {self.speed}")
        if self.trail_capacity < 1:
            raise InvalidConfigError(f"trail_capacity must be at least 1, got {self.trail_capacity}")
        if self.surface_offset < 1.0:
            raise InvalidConfigError(f"surface_offset below 1 puts legs underground: {self.surface_offset}")

    @classmethod
    def from_dict(cls, values: Optional[Dict[str, Any]]) -> 'FlightConfig':
        """Build from a config mapping, ignoring keys this class does not know"""
        values = values or {}
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for name, value in values.items():
            if name not in known:
                continue
            try:
                kwargs[name] = int(value) if name == "trail_capacity" else float(value)
            except (TypeError, ValueError) as e:
                raise InvalidConfigError(f"bad value for {name}: {value!r}") from e
        return cls(**kwargs)
