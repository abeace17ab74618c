#!/usr/bin/env python3
"""
Port Observations
Immutable weather and shipping observations consumed by the prediction engine.

Observations are recorded once and never mutated. Parsing from raw records
(database rows, front-end payloads) lives in utils.data_processing.

Author: Port Weather Monitor Team
Version: 1.0.0
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from functools import total_ordering
from typing import Optional

from models.exceptions import InvalidObservationError


class WeatherType(Enum):
    """Observed weather conditions."""
    CLEAR = "clear"
    CLOUDY = "cloudy"
    RAINY = "rainy"
    STORMY = "stormy"
    FOGGY = "foggy"
    SNOWY = "snowy"


@total_ordering
class CongestionLevel(Enum):
    """Port congestion level, ordered low < moderate < high < severe."""
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    SEVERE = "severe"

    @property
    def ordinal(self) -> int:
        return _CONGESTION_ORDER[self]

    def __lt__(self, other):
        if not isinstance(other, CongestionLevel):
            return NotImplemented
        return self.ordinal < other.ordinal

    @classmethod
    def parse(cls, value) -> "CongestionLevel":
        """Coerce a level name (any case) or member into a CongestionLevel."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidObservationError(f"Unknown congestion level: {value!r}")


_CONGESTION_ORDER = {
    CongestionLevel.LOW: 0,
    CongestionLevel.MODERATE: 1,
    CongestionLevel.HIGH: 2,
    CongestionLevel.SEVERE: 3,
}


@dataclass(frozen=True)
class WeatherObservation:
    """A single weather reading at a port."""
    temperature: float  # Celsius
    humidity: float  # percent
    wind_speed: float  # km/h
    wind_direction: float  # degrees
    precipitation: float  # mm
    visibility: float  # meters
    weather_type: WeatherType
    timestamp: datetime
    wave_height: Optional[float] = None  # meters

    def __post_init__(self):
        if not isinstance(self.weather_type, WeatherType):
            try:
                object.__setattr__(self, 'weather_type', WeatherType(str(self.weather_type).lower()))
            except ValueError:
                raise InvalidObservationError(f"Unknown weather type: {self.weather_type!r}")
        if self.precipitation < 0:
            raise InvalidObservationError("precipitation must be non-negative")
        if self.visibility < 0:
            raise InvalidObservationError("visibility must be non-negative")
        if self.wind_speed < 0:
            raise InvalidObservationError("wind_speed must be non-negative")


@dataclass(frozen=True)
class ShippingObservation:
    """A snapshot of vessel traffic at a port."""
    port_id: str
    vessel_count: int
    avg_wait_time: float  # hours
    delayed_vessels: int
    congestion_level: CongestionLevel
    timestamp: datetime

    def __post_init__(self):
        object.__setattr__(self, 'congestion_level', CongestionLevel.parse(self.congestion_level))
        if self.vessel_count < 0:
            raise InvalidObservationError("vessel_count must be non-negative")
        if self.avg_wait_time < 0:
            raise InvalidObservationError("avg_wait_time must be non-negative")
        if not 0 <= self.delayed_vessels <= self.vessel_count:
            raise InvalidObservationError(
                f"delayed_vessels ({self.delayed_vessels}) must be between 0 and "
                f"vessel_count ({self.vessel_count})"
            )
