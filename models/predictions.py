#!/usr/bin/env python3
"""
Prediction Records
Typed results produced by the prediction engine.

Records are created once per request and never updated in place; newer
predictions supersede older ones. Every record serializes to a flat
field-named dictionary through ``to_record()``.

Author: Port Weather Monitor Team
Version: 1.0.0
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from models.observations import CongestionLevel

FALLBACK_MODEL_LABEL = "Fallback (error)"


class AlertType(Enum):
    """Alert categories."""
    WEATHER = "weather"
    CONGESTION = "congestion"
    DELAY = "delay"


class AlertSeverity(Enum):
    """Alert severities."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class ImpactingFactor:
    """Named contributor to a delay prediction."""
    factor: str
    impact: float

    def to_record(self) -> Dict[str, Any]:
        return {'factor': self.factor, 'impact': self.impact}


@dataclass(frozen=True)
class DelayPrediction:
    """Predicted delay for a port."""
    port_id: str
    predicted_delay: int  # hours
    confidence_level: float
    impacting_factors: Tuple[ImpactingFactor, ...]
    timestamp: datetime
    model_used: str

    def to_record(self) -> Dict[str, Any]:
        return {
            'portId': self.port_id,
            'predictedDelay': self.predicted_delay,
            'confidenceLevel': self.confidence_level,
            'impactingFactors': [f.to_record() for f in self.impacting_factors],
            'timestamp': _isoformat(self.timestamp),
            'modelUsed': self.model_used,
        }


@dataclass(frozen=True)
class CongestionPrediction:
    """Predicted congestion level for a port."""
    port_id: str
    level: CongestionLevel
    confidence: float
    estimated_duration: int  # hours
    timestamp: datetime
    model_used: str

    def to_record(self) -> Dict[str, Any]:
        return {
            'portId': self.port_id,
            'level': self.level.value,
            'confidence': self.confidence,
            'estimatedDuration': self.estimated_duration,
            'timestamp': _isoformat(self.timestamp),
            'modelUsed': self.model_used,
        }


@dataclass(frozen=True)
class ConfidenceIntervals:
    """Lower/upper forecast bounds at a given confidence level."""
    lower_bound: Tuple[float, ...]
    upper_bound: Tuple[float, ...]
    confidence_level: float

    def to_record(self) -> Dict[str, Any]:
        return {
            'lowerBound': list(self.lower_bound),
            'upperBound': list(self.upper_bound),
            'confidenceLevel': self.confidence_level,
        }


@dataclass(frozen=True)
class TimeSeriesForecast:
    """Multi-day delay-hour forecast."""
    port_id: str
    forecast_dates: Tuple[date, ...]
    forecast_values: Tuple[float, ...]
    model_used: str
    timestamp: datetime
    confidence_intervals: Optional[ConfidenceIntervals] = None

    @property
    def is_fallback(self) -> bool:
        """True when the forecast is the zero-filled degraded result."""
        return self.model_used == FALLBACK_MODEL_LABEL

    def to_record(self) -> Dict[str, Any]:
        record = {
            'portId': self.port_id,
            'forecastDates': [d.isoformat() for d in self.forecast_dates],
            'forecastValues': list(self.forecast_values),
            'modelUsed': self.model_used,
            'timestamp': _isoformat(self.timestamp),
        }
        if self.confidence_intervals is not None:
            record['confidenceIntervals'] = self.confidence_intervals.to_record()
        return record


@dataclass(frozen=True)
class Alert:
    """User-facing alert derived from predictions."""
    id: str
    port_id: str
    type: AlertType
    severity: AlertSeverity
    message: str
    start_time: datetime
    end_time: Optional[datetime] = None

    def to_record(self) -> Dict[str, Any]:
        record = {
            'id': self.id,
            'portId': self.port_id,
            'type': self.type.value,
            'severity': self.severity.value,
            'message': self.message,
            'startTime': _isoformat(self.start_time),
        }
        if self.end_time is not None:
            record['endTime'] = _isoformat(self.end_time)
        return record


@dataclass(frozen=True)
class PortPrediction:
    """Bundle returned by the prediction service for a single request."""
    delay: DelayPrediction
    congestion: CongestionPrediction
    alerts: Tuple[Alert, ...] = field(default_factory=tuple)

    def to_record(self) -> Dict[str, Any]:
        return {
            'delay': self.delay.to_record(),
            'congestion': self.congestion.to_record(),
            'alerts': [a.to_record() for a in self.alerts],
        }
