"""
config.py

Authoring-side configuration for a ripple grid run.

RippleConfig holds the values a user sets; WaveParameters is the
validated, immutable form the simulation consumes, with the wave
lifetime derived from the grid geometry.
"""

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping, Tuple

from contracts.validation import ConfigurationError
from contracts.wave import WaveParameters


@dataclass
class RippleConfig:
    """Ripple grid configuration parameters."""

    grid_size: int = 32
    grid_spacing: float = 1.1

    wave_amplitude: float = 1.5
    wave_frequency: float = 6.0
    wave_damping: float = 0.8
    wave_speed: float = 12.0
    lifetime_offset: float = 0.1

    top_color: Tuple[float, float, float] = (0.95, 0.55, 0.2)
    bottom_color: Tuple[float, float, float] = (0.1, 0.2, 0.6)

    def to_parameters(self) -> WaveParameters:
        """
        Validate and convert to simulation parameters.

        Raises
        ------
        ConfigurationError
            If any value is out of range.
        """
        return WaveParameters(
            amplitude=self.wave_amplitude,
            frequency=self.wave_frequency,
            damping=self.wave_damping,
            speed=self.wave_speed,
            grid_size=self.grid_size,
            grid_spacing=self.grid_spacing,
            top_color=tuple(self.top_color),
            bottom_color=tuple(self.bottom_color),
            lifetime_offset=self.lifetime_offset,
        )

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "RippleConfig":
        """
        Build a config from a mapping, e.g. parsed JSON.

        Raises
        ------
        ConfigurationError
            On unknown keys, or if ``lifetime`` is supplied (it is derived).
        """
        if "lifetime" in values:
            raise ConfigurationError(
                "lifetime is derived from grid size, spacing, speed and lifetime_offset; "
                "set lifetime_offset instead"
            )

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")

        kwargs = dict(values)
        for key in ("top_color", "bottom_color"):
            if key in kwargs:
                kwargs[key] = tuple(kwargs[key])
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["top_color"] = list(self.top_color)
        out["bottom_color"] = list(self.bottom_color)
        return out
