#!/usr/bin/env python3
"""
Port Delay Estimator
Regression-style model mapping port features to a predicted delay duration.

Features:
- Linear combination of weather and port features with fixed coefficients
- Simulated model variance through an injected jitter source
- Ranked impacting-factor breakdown
- Confidence derived from the amount of history behind the features

Author: Port Weather Monitor Team
Version: 1.0.0
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from models.jitter import JitterSource, RandomJitter
from models.predictions import ImpactingFactor
from utils.feature_engineering import FeatureVector

MIN_DELAY_HOURS = 2
MAX_DELAY_HOURS = 72


@dataclass(frozen=True)
class DelayCoefficients:
    """Coefficient set for the delay regression."""
    intercept: float = 4.2
    avg_wind_speed: float = 0.15
    precipitation_intensity: float = 18.5
    visibility_factor: float = -12.3  # applied to (1 - visibility_factor)
    vessel_capacity_ratio: float = 22.7
    historical_delay_pattern: float = 35.2
    jitter_spread: float = 0.05


@dataclass(frozen=True)
class DelayEstimate:
    """Raw estimator output before it is stamped into a DelayPrediction."""
    predicted_delay: int
    confidence_level: float
    impacting_factors: Tuple[ImpactingFactor, ...]


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up (12.5 -> 13)."""
    return int(math.floor(value + 0.5))


def clamp_delay(hours: float) -> int:
    """Round to whole hours and clamp to the physical delay range."""
    return max(MIN_DELAY_HOURS, min(MAX_DELAY_HOURS, round_half_up(hours)))


def rank_factors(factors: List[ImpactingFactor]) -> Tuple[ImpactingFactor, ...]:
    """Sort impacting factors by descending impact."""
    return tuple(sorted(factors, key=lambda f: f.impact, reverse=True))


class DelayEstimator:
    """Linear regression delay model with fixed coefficients."""

    def __init__(self, coefficients: Optional[DelayCoefficients] = None,
                 jitter: Optional[JitterSource] = None):
        """Initialize the delay estimator.

        Args:
            coefficients: Regression coefficients
            jitter: Source of multiplicative model variance
        """
        self.coefficients = coefficients or DelayCoefficients()
        self.jitter = jitter or RandomJitter()
        self.logger = logging.getLogger(__name__)

    def score(self, features: FeatureVector) -> float:
        """Unjittered, unclamped regression output in hours."""
        c = self.coefficients
        weather = features.weather
        port = features.port

        prediction = c.intercept
        prediction += c.avg_wind_speed * weather.avg_wind_speed
        prediction += c.precipitation_intensity * weather.precipitation_intensity
        prediction += c.visibility_factor * (1 - weather.visibility_factor)
        prediction += c.vessel_capacity_ratio * port.vessel_capacity_ratio
        prediction += c.historical_delay_pattern * port.historical_delay_pattern
        return prediction

    def predict_delay(self, features: FeatureVector) -> int:
        """Predicted delay in whole hours, clamped to [2, 72].

        Non-deterministic unless the estimator was built with a seeded or
        fixed jitter source.
        """
        raw = self.score(features) * self.jitter.factor(self.coefficients.jitter_spread)
        return clamp_delay(raw)

    def impacting_factors(self, features: FeatureVector) -> Tuple[ImpactingFactor, ...]:
        """Independent factor scores in [0, 1], sorted by descending impact."""
        weather = features.weather
        port = features.port

        factors = [
            ImpactingFactor(
                'Weather Conditions',
                min(1.0, weather.precipitation_intensity * 0.8 + (weather.avg_wind_speed / 60) * 0.2),
            ),
            ImpactingFactor('Port Capacity', port.vessel_capacity_ratio),
            ImpactingFactor('Vessel Traffic', min(1.0, port.current_vessel_count / 50)),
            ImpactingFactor('Historical Patterns', min(1.0, port.historical_delay_pattern)),
        ]
        return rank_factors(factors)

    @staticmethod
    def confidence(data_point_count: int) -> float:
        """Confidence grows with history, saturating at 60 data points."""
        data_quality = min(1.0, data_point_count / 60)
        return 0.7 + data_quality * 0.25

    def estimate(self, features: FeatureVector) -> DelayEstimate:
        """Run the full delay model on a feature vector."""
        estimate = DelayEstimate(
            predicted_delay=self.predict_delay(features),
            confidence_level=self.confidence(features.data_point_count),
            impacting_factors=self.impacting_factors(features),
        )
        self.logger.debug(f"Delay estimate: {estimate.predicted_delay}h "
                          f"(confidence {estimate.confidence_level:.2f})")
        return estimate
