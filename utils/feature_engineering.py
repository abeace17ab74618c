"""Feature engineering utilities for port predictions.

This module turns current and historical weather/shipping observations into
the normalized feature vector consumed by the delay and congestion models.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import pandas as pd

from models.exceptions import InsufficientDataError
from models.observations import CongestionLevel, ShippingObservation, WeatherObservation
from utils.data_processing import observations_to_frame


@dataclass
class FeatureConfig:
    """Configuration for feature extraction."""
    max_precipitation_mm: float = 100.0  # precipitation that saturates intensity
    max_visibility_m: float = 10000.0  # visibility treated as perfectly clear
    delay_pattern_window: int = 7  # most recent shipping records for delay pattern
    max_delay_hours: float = 72.0  # normalizer for the delay pattern
    recent_window: int = 24  # records used for the real-time aggregates


@dataclass(frozen=True)
class WeatherFeatures:
    avg_temperature: float
    avg_wind_speed: float
    precipitation_intensity: float  # 0-1
    visibility_factor: float  # 0-1
    precipitation_frequency: float = 0.0  # share of recent records with rain
    recent_avg_wind_speed: float = 0.0  # mean over the recent window
    recent_visibility_factor: float = 1.0  # 0-1, mean over the recent window


@dataclass(frozen=True)
class PortFeatures:
    current_vessel_count: int
    vessel_capacity_ratio: float  # 0-1
    historical_delay_pattern: float  # 0-1+, 1.0 == 72h average wait
    recent_avg_wait_time: float = 0.0  # hours
    recent_avg_vessel_count: float = 0.0
    congestion_trend: float = 0.0  # mean ordinal 0 (low) .. 3 (severe)


@dataclass(frozen=True)
class FeatureVector:
    """Normalized features for a single prediction request."""
    weather: WeatherFeatures
    port: PortFeatures
    data_point_count: int = 0


class FeatureExtractor:
    """Feature extraction for port delay and congestion models."""

    def __init__(self, config: Optional[FeatureConfig] = None):
        """Initialize feature extractor.

        Args:
            config: Feature extraction configuration
        """
        self.config = config or FeatureConfig()
        self.logger = logging.getLogger(__name__)

    def extract(self,
                current_weather: WeatherObservation,
                historical_weather: Sequence[WeatherObservation],
                current_shipping: ShippingObservation,
                historical_shipping: Sequence[ShippingObservation]) -> FeatureVector:
        """Build the feature vector for one port.

        Args:
            current_weather: Latest weather observation
            historical_weather: Chronological weather history (at least one record)
            current_shipping: Latest shipping snapshot
            historical_shipping: Chronological shipping history (at least one record)

        Returns:
            FeatureVector

        Raises:
            InsufficientDataError: If either history is empty
        """
        if not historical_weather:
            raise InsufficientDataError(
                "At least one historical weather observation is required", required=1, available=0
            )
        if not historical_shipping:
            raise InsufficientDataError(
                "At least one historical shipping observation is required", required=1, available=0
            )

        weather_df = observations_to_frame(historical_weather)
        shipping_df = observations_to_frame(historical_shipping)

        weather = self.create_weather_features(current_weather, weather_df)
        port = self.create_port_features(current_shipping, shipping_df)

        features = FeatureVector(
            weather=weather,
            port=port,
            data_point_count=len(weather_df) + len(shipping_df),
        )

        self.logger.debug(f"Extracted features for {current_shipping.port_id}: {features}")
        return features

    def create_weather_features(self, current: WeatherObservation, history: pd.DataFrame) -> WeatherFeatures:
        """Weather sub-features from the current reading and history frame."""
        recent = history.tail(self.config.recent_window)

        return WeatherFeatures(
            avg_temperature=float(history['temperature'].mean()),
            avg_wind_speed=float(history['wind_speed'].mean()),
            precipitation_intensity=min(current.precipitation / self.config.max_precipitation_mm, 1.0),
            visibility_factor=min(current.visibility / self.config.max_visibility_m, 1.0),
            precipitation_frequency=float((recent['precipitation'] > 0).mean()),
            recent_avg_wind_speed=float(recent['wind_speed'].mean()),
            recent_visibility_factor=min(float(recent['visibility'].mean()) / self.config.max_visibility_m, 1.0),
        )

    def create_port_features(self, current: ShippingObservation, history: pd.DataFrame) -> PortFeatures:
        """Port sub-features from the current snapshot and history frame."""
        max_vessels = max(int(history['vessel_count'].max()), current.vessel_count)
        capacity_ratio = current.vessel_count / max_vessels if max_vessels > 0 else 0.0

        # tail() uses every record when fewer than the window exist
        recent_waits = history['avg_wait_time'].tail(self.config.delay_pattern_window)
        delay_pattern = float(recent_waits.mean()) / self.config.max_delay_hours

        recent = history.tail(self.config.recent_window)
        trend = recent['congestion_level'].map(lambda level: CongestionLevel(level).ordinal)

        return PortFeatures(
            current_vessel_count=current.vessel_count,
            vessel_capacity_ratio=capacity_ratio,
            historical_delay_pattern=delay_pattern,
            recent_avg_wait_time=float(recent['avg_wait_time'].mean()),
            recent_avg_vessel_count=float(recent['vessel_count'].mean()),
            congestion_trend=float(trend.mean()),
        )
