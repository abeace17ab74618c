#!/usr/bin/env python3
"""
Prediction Model Registry
Lookup of model name -> concrete port prediction strategy.

Features:
- Pluggable strategies implementing delay estimation and congestion
  classification over a shared feature vector
- Built-in regression/classifier model and the real-time aggregate model
- Read-only metadata snapshots of the registered models

A registry entry may equally be a thin adapter around a remote model
service; the prediction service only sees the strategy interface.

Author: Port Weather Monitor Team
Version: 1.0.0
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from models.congestion_classifier import CongestionBand, CongestionClassifier, CongestionEstimate, band_for_score
from models.delay_estimator import DelayEstimate, DelayEstimator, clamp_delay, rank_factors
from models.exceptions import UnknownModelError
from models.jitter import JitterSource, RandomJitter
from models.observations import CongestionLevel
from models.predictions import ImpactingFactor
from utils.feature_engineering import FeatureVector

DEFAULT_MODEL_NAME = "standard"
REALTIME_MODEL_NAME = "realtime"


@dataclass(frozen=True)
class ModelInfo:
    """Descriptive metadata for a registered model."""
    key: str
    name: str
    version: str
    type: str  # 'regression', 'classification', 'timeSeries', 'ensemble'
    description: str
    accuracy: float
    last_trained: datetime

    def to_record(self) -> Dict[str, object]:
        return {
            'key': self.key,
            'name': self.name,
            'version': self.version,
            'type': self.type,
            'description': self.description,
            'accuracy': self.accuracy,
            'lastTrained': self.last_trained.isoformat(),
        }


class PortPredictionModel:
    """Strategy interface for a delay + congestion prediction backend."""

    info: ModelInfo
    delay_label: str
    congestion_label: str

    def estimate_delay(self, features: FeatureVector) -> DelayEstimate:
        raise NotImplementedError

    def classify_congestion(self, features: FeatureVector) -> CongestionEstimate:
        raise NotImplementedError


class StandardPortModel(PortPredictionModel):
    """Regression delay model paired with the threshold congestion classifier."""

    delay_label = "Port Delay Regression Model"
    congestion_label = "Congestion Level Classifier"

    def __init__(self, delay_estimator: Optional[DelayEstimator] = None,
                 congestion_classifier: Optional[CongestionClassifier] = None,
                 jitter: Optional[JitterSource] = None,
                 key: str = DEFAULT_MODEL_NAME):
        jitter = jitter or RandomJitter()
        self.delay_estimator = delay_estimator or DelayEstimator(jitter=jitter)
        self.congestion_classifier = congestion_classifier or CongestionClassifier(jitter=jitter)
        now = datetime.now(timezone.utc)
        self.info = ModelInfo(
            key=key,
            name="Port Operations Ensemble Model",
            version="3.0.1",
            type="ensemble",
            description="Multiple regression for delay duration combined with a "
                        "threshold classifier for congestion levels",
            accuracy=0.87,
            last_trained=now - timedelta(days=7),
        )

    def estimate_delay(self, features: FeatureVector) -> DelayEstimate:
        return self.delay_estimator.estimate(features)

    def classify_congestion(self, features: FeatureVector) -> CongestionEstimate:
        return self.congestion_classifier.classify(features)


REALTIME_BANDS = (
    CongestionBand(CongestionLevel.LOW, 20, 0.70, 0.90),
    CongestionBand(CongestionLevel.MODERATE, 40, 0.70, 0.90),
    CongestionBand(CongestionLevel.HIGH, 60, 0.70, 0.90),
    CongestionBand(CongestionLevel.SEVERE, float('inf'), 0.70, 0.90),
)


class RealtimePortModel(PortPredictionModel):
    """Aggregate model driven by the most recent day of observations.

    Wind, visibility, precipitation frequency, traffic and the congestion
    trend are all averaged over the recent window; the current reading is
    not used.
    """

    delay_label = "Real-time ML v1.0"
    congestion_label = "Real-time ML v1.0"

    def __init__(self, jitter: Optional[JitterSource] = None, key: str = REALTIME_MODEL_NAME):
        self.jitter = jitter or RandomJitter()
        self.info = ModelInfo(
            key=key,
            name="Real-time ML v1.0",
            version="1.0.0",
            type="ensemble",
            description="Weighted aggregates over the last 24 observations of weather and traffic",
            accuracy=0.79,
            last_trained=datetime.now(timezone.utc) - timedelta(days=21),
        )

    @staticmethod
    def weather_impact(features: FeatureVector) -> float:
        weather = features.weather
        return (
            min(1.0, weather.recent_avg_wind_speed / 60) * 0.3 +
            (1 - weather.recent_visibility_factor) * 0.2 +
            weather.precipitation_frequency * 0.5
        )

    @staticmethod
    def traffic_impact(features: FeatureVector) -> float:
        port = features.port
        return (
            min(1.0, port.recent_avg_vessel_count / 100) * 0.4 +
            min(1.0, port.recent_avg_wait_time / 24) * 0.3 +
            (port.congestion_trend / 3) * 0.3
        )

    def estimate_delay(self, features: FeatureVector) -> DelayEstimate:
        weather_impact = self.weather_impact(features)
        traffic_impact = self.traffic_impact(features)

        return DelayEstimate(
            predicted_delay=clamp_delay((weather_impact + traffic_impact) * 24),
            confidence_level=self.jitter.uniform(0.7, 0.9),
            impacting_factors=rank_factors([
                ImpactingFactor('Weather Conditions', min(1.0, weather_impact)),
                ImpactingFactor('Port Traffic', min(1.0, traffic_impact)),
            ]),
        )

    def classify_congestion(self, features: FeatureVector) -> CongestionEstimate:
        weather = features.weather
        port = features.port

        score = (
            weather.precipitation_frequency * 30 +
            (weather.recent_avg_wind_speed / 50) * 20 +
            (port.recent_avg_vessel_count / 100) * 30 +
            port.congestion_trend * 20
        )
        band = band_for_score(score, REALTIME_BANDS)
        confidence = self.jitter.uniform(band.confidence_low, band.confidence_high)
        return CongestionEstimate(level=band.level, confidence=confidence, score=score)


class ModelRegistry:
    """Registry of named port prediction models."""

    def __init__(self, default_model: str = DEFAULT_MODEL_NAME):
        self.default_model = default_model
        self._models: Dict[str, PortPredictionModel] = {}
        self._lock = threading.Lock()
        self.logger = logging.getLogger(__name__)

    def register(self, name: str, model: PortPredictionModel, replace: bool = False) -> None:
        """Register a model under a name.

        Raises:
            ValueError: If the name is taken and replace is False
        """
        with self._lock:
            if name in self._models and not replace:
                raise ValueError(f"Model '{name}' is already registered")
            self._models[name] = model
        self.logger.info(f"Registered prediction model '{name}' ({model.info.name})")

    def get(self, name: Optional[str] = None) -> PortPredictionModel:
        """Resolve a model by name, or the default model when name is None.

        Raises:
            UnknownModelError: If the name is not registered
        """
        key = name if name is not None else self.default_model
        model = self._models.get(key)
        if model is None:
            raise UnknownModelError(key, available=sorted(self._models))
        return model

    def names(self):
        return tuple(sorted(self._models))

    def snapshot(self) -> Mapping[str, ModelInfo]:
        """Read-only view of the registered models' metadata."""
        with self._lock:
            return MappingProxyType({name: model.info for name, model in self._models.items()})

    def __contains__(self, name) -> bool:
        return name in self._models

    def __len__(self) -> int:
        return len(self._models)


def build_default_registry(jitter: Optional[JitterSource] = None,
                           default_model: str = DEFAULT_MODEL_NAME) -> ModelRegistry:
    """Registry holding the built-in models, sharing one jitter source."""
    jitter = jitter or RandomJitter()
    registry = ModelRegistry(default_model=default_model)
    registry.register(DEFAULT_MODEL_NAME, StandardPortModel(jitter=jitter))
    registry.register(REALTIME_MODEL_NAME, RealtimePortModel(jitter=jitter))
    return registry
