#!/usr/bin/env python3
"""
Port Alert Generator
Derives user-facing alerts from delay and congestion predictions.

Author: Port Weather Monitor Team
Version: 1.0.0
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from models.delay_estimator import round_half_up
from models.observations import CongestionLevel
from models.predictions import Alert, AlertSeverity, AlertType, CongestionPrediction, DelayPrediction

CONGESTION_SEVERITY = {
    CongestionLevel.MODERATE: AlertSeverity.LOW,
    CongestionLevel.HIGH: AlertSeverity.MEDIUM,
    CongestionLevel.SEVERE: AlertSeverity.HIGH,
}


@dataclass
class AlertThresholds:
    """Delay thresholds in hours."""
    delay_alert: float = 12.0  # alerts fire strictly above this
    delay_medium: float = 18.0  # low severity up to and including this
    delay_high: float = 24.0  # medium severity up to and including this
    delay_window_hours: float = 24.0


class AlertGenerator:
    """Rule-based alert derivation."""

    def __init__(self, thresholds: Optional[AlertThresholds] = None):
        self.thresholds = thresholds or AlertThresholds()
        self.logger = logging.getLogger(__name__)

    def delay_severity(self, predicted_delay: float) -> AlertSeverity:
        if predicted_delay <= self.thresholds.delay_medium:
            return AlertSeverity.LOW
        if predicted_delay <= self.thresholds.delay_high:
            return AlertSeverity.MEDIUM
        return AlertSeverity.HIGH

    def generate(self, delay: DelayPrediction, congestion: CongestionPrediction,
                 now: Optional[datetime] = None) -> List[Alert]:
        """Derive alerts for a pair of predictions.

        Args:
            delay: Delay prediction
            congestion: Congestion prediction
            now: Alert start time (defaults to the current UTC time)

        Returns:
            Zero, one or two alerts: the delay alert first, then the
            congestion alert
        """
        now = now or datetime.now(timezone.utc)
        alerts = []

        if delay.predicted_delay > self.thresholds.delay_alert:
            hours = round_half_up(delay.predicted_delay)
            alerts.append(Alert(
                id=str(uuid.uuid4()),
                port_id=delay.port_id,
                type=AlertType.DELAY,
                severity=self.delay_severity(delay.predicted_delay),
                message=f"Expected vessel delays of {hours} hours at port {delay.port_id}",
                start_time=now,
                end_time=now + timedelta(hours=self.thresholds.delay_window_hours),
            ))

        level = CongestionLevel.parse(congestion.level)
        if level != CongestionLevel.LOW:
            hours = round_half_up(congestion.estimated_duration)
            alerts.append(Alert(
                id=str(uuid.uuid4()),
                port_id=congestion.port_id,
                type=AlertType.CONGESTION,
                severity=CONGESTION_SEVERITY[level],
                message=f"{level.value.capitalize()} congestion expected for approximately {hours} hours",
                start_time=now,
            ))

        if alerts:
            self.logger.info(f"Generated {len(alerts)} alert(s) for port {delay.port_id}")
        return alerts
