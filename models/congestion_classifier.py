#!/usr/bin/env python3
"""
Port Congestion Classifier
Threshold classifier for congestion levels and the duration forecaster that
estimates how long a predicted level will persist.

Both models apply bounded jitter from an injected source; near a threshold
the jittered score may land on either side, so the level can flip between
calls. That variance is intended.

Author: Port Weather Monitor Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from models.delay_estimator import round_half_up
from models.jitter import JitterSource, RandomJitter
from models.observations import CongestionLevel
from utils.feature_engineering import FeatureVector


@dataclass(frozen=True)
class CongestionBand:
    """Score ceiling and confidence band for one congestion level."""
    level: CongestionLevel
    upper_score: float  # exclusive; inf for the last band
    confidence_low: float
    confidence_high: float


DEFAULT_BANDS: Tuple[CongestionBand, ...] = (
    CongestionBand(CongestionLevel.LOW, 20, 0.80, 0.95),
    CongestionBand(CongestionLevel.MODERATE, 40, 0.75, 0.90),
    CongestionBand(CongestionLevel.HIGH, 70, 0.70, 0.90),
    CongestionBand(CongestionLevel.SEVERE, float('inf'), 0.85, 0.97),
)


@dataclass(frozen=True)
class CongestionEstimate:
    """Raw classifier output."""
    level: CongestionLevel
    confidence: float
    score: float


@dataclass(frozen=True)
class CongestionWeights:
    precipitation_intensity: float = 30.0
    high_wind: float = 20.0
    high_wind_threshold: float = 30.0  # avg wind speed above which the penalty applies
    poor_visibility: float = 25.0
    vessel_capacity_ratio: float = 50.0
    historical_delay_pattern: float = 35.0
    jitter_spread: float = 0.1


def band_for_score(score: float, bands: Tuple[CongestionBand, ...] = DEFAULT_BANDS) -> CongestionBand:
    """First band whose ceiling lies above the score."""
    for band in bands:
        if score < band.upper_score:
            return band
    return bands[-1]


class CongestionClassifier:
    """Scores port features and maps the score onto congestion levels."""

    def __init__(self, weights: Optional[CongestionWeights] = None,
                 bands: Tuple[CongestionBand, ...] = DEFAULT_BANDS,
                 jitter: Optional[JitterSource] = None):
        self.weights = weights or CongestionWeights()
        self.bands = bands
        self.jitter = jitter or RandomJitter()
        self.logger = logging.getLogger(__name__)

    def score(self, features: FeatureVector) -> float:
        """Unjittered congestion score."""
        w = self.weights
        weather = features.weather
        port = features.port

        score = weather.precipitation_intensity * w.precipitation_intensity
        score += w.high_wind if weather.avg_wind_speed > w.high_wind_threshold else 0.0
        score += (1 - weather.visibility_factor) * w.poor_visibility
        score += port.vessel_capacity_ratio * w.vessel_capacity_ratio
        score += port.historical_delay_pattern * w.historical_delay_pattern
        return score

    def classify(self, features: FeatureVector) -> CongestionEstimate:
        """Classify congestion and draw a confidence within the level's band."""
        score = self.score(features) * self.jitter.factor(self.weights.jitter_spread)
        band = band_for_score(score, self.bands)
        confidence = self.jitter.uniform(band.confidence_low, band.confidence_high)

        self.logger.debug(f"Congestion score {score:.1f} -> {band.level.value} ({confidence:.2f})")
        return CongestionEstimate(level=band.level, confidence=confidence, score=score)


@dataclass
class DurationConfig:
    base_durations: Dict[CongestionLevel, float] = field(default_factory=lambda: {
        CongestionLevel.LOW: 24,
        CongestionLevel.MODERATE: 48,
        CongestionLevel.HIGH: 72,
        CongestionLevel.SEVERE: 96,
    })
    weather_weight: float = 0.3
    delay_pattern_weight: float = 0.2
    rounding_hours: int = 6
    jitter_spread: float = 0.1


class DurationForecaster:
    """Estimates how many hours a congestion level will persist."""

    def __init__(self, config: Optional[DurationConfig] = None,
                 jitter: Optional[JitterSource] = None):
        self.config = config or DurationConfig()
        self.jitter = jitter or RandomJitter()

    @staticmethod
    def weather_severity(features: FeatureVector) -> float:
        weather = features.weather
        return (
            weather.precipitation_intensity * 0.4 +
            (weather.avg_wind_speed / 60) * 0.3 +
            (1 - weather.visibility_factor) * 0.3
        )

    def forecast(self, features: FeatureVector, level) -> int:
        """Expected duration in hours, a positive multiple of 6.

        Args:
            features: Feature vector used for the classification
            level: Predicted congestion level (member or name)

        Returns:
            Duration in hours
        """
        cfg = self.config
        level = CongestionLevel.parse(level)

        duration = cfg.base_durations[level]
        duration *= 1 + self.weather_severity(features) * cfg.weather_weight
        duration *= 1 + features.port.historical_delay_pattern * cfg.delay_pattern_weight
        duration *= self.jitter.factor(cfg.jitter_spread)

        step = cfg.rounding_hours
        return int(max(step, round_half_up(duration / step) * step))
