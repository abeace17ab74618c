#!/usr/bin/env python3
"""
Port Prediction Service
Orchestrates feature extraction, model selection and forecasting for a port.

Features:
- Delay and congestion predictions from a named registry model
- Congestion duration estimates
- Multi-day delay forecasts
- Optional alert generation
- Read-only listing of the available models

Author: Port Weather Monitor Team
Version: 1.0.0
"""

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence

from models.alert_generator import AlertGenerator, AlertThresholds
from models.congestion_classifier import DurationForecaster
from models.jitter import JitterSource, RandomJitter, create_jitter
from models.model_registry import ModelInfo, ModelRegistry, PortPredictionModel, build_default_registry
from models.observations import ShippingObservation, WeatherObservation
from models.predictions import CongestionPrediction, DelayPrediction, PortPrediction, TimeSeriesForecast
from models.time_series_forecaster import TimeSeriesForecaster
from utils.feature_engineering import FeatureConfig, FeatureExtractor, FeatureVector
from utils.logging_utils import log_prediction, performance_context


class PredictionService:
    """Entry point for port delay, congestion and forecast predictions."""

    def __init__(self,
                 registry: Optional[ModelRegistry] = None,
                 jitter: Optional[JitterSource] = None,
                 feature_extractor: Optional[FeatureExtractor] = None,
                 duration_forecaster: Optional[DurationForecaster] = None,
                 time_series_forecaster: Optional[TimeSeriesForecaster] = None,
                 alert_generator: Optional[AlertGenerator] = None,
                 default_horizon: int = 14,
                 use_seasonal_model: bool = False):
        """Initialize the prediction service.

        Args:
            registry: Model registry (built-in models when omitted)
            jitter: Jitter source shared by the default components
            feature_extractor: Feature extractor
            duration_forecaster: Congestion duration forecaster
            time_series_forecaster: Multi-day delay forecaster
            alert_generator: Alert generator
            default_horizon: Forecast horizon used when none is requested
            use_seasonal_model: Seasonal forecasting default
        """
        self.jitter = jitter or RandomJitter()
        self.registry = registry or build_default_registry(jitter=self.jitter)
        self.feature_extractor = feature_extractor or FeatureExtractor()
        self.duration_forecaster = duration_forecaster or DurationForecaster(jitter=self.jitter)
        self.time_series_forecaster = time_series_forecaster or TimeSeriesForecaster()
        self.alert_generator = alert_generator or AlertGenerator()
        self.default_horizon = default_horizon
        self.use_seasonal_model = use_seasonal_model
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config_manager) -> "PredictionService":
        """Build a service from a ConfigManager."""
        prediction = config_manager.prediction
        forecast = config_manager.forecast
        alerts = config_manager.alerts

        jitter = create_jitter(prediction.jitter_enabled, prediction.random_seed)

        return cls(
            registry=build_default_registry(jitter=jitter, default_model=prediction.default_model),
            jitter=jitter,
            feature_extractor=FeatureExtractor(FeatureConfig(
                recent_window=prediction.recent_window,
                delay_pattern_window=prediction.delay_pattern_window,
            )),
            time_series_forecaster=TimeSeriesForecaster(
                order=forecast.arima_order,
                seasonal_order=forecast.seasonal_order,
                confidence_level=forecast.confidence_level,
                min_history=forecast.min_history_days,
                min_seasonal_history=forecast.min_seasonal_history_days,
                min_horizon=forecast.min_horizon,
                max_horizon=forecast.max_horizon,
            ),
            alert_generator=AlertGenerator(AlertThresholds(
                delay_alert=alerts.delay_alert_threshold,
                delay_medium=alerts.delay_medium_threshold,
                delay_high=alerts.delay_high_threshold,
                delay_window_hours=alerts.delay_alert_window_hours,
            )),
            default_horizon=forecast.default_horizon,
            use_seasonal_model=forecast.use_seasonal_model,
        )

    def _resolve(self, model_name: Optional[str]) -> PortPredictionModel:
        try:
            return self.registry.get(model_name)
        except KeyError as e:
            self.logger.error(f"Prediction rejected: {e}")
            raise

    def _delay_prediction(self, port_id: str, model: PortPredictionModel,
                          features: FeatureVector, now: datetime) -> DelayPrediction:
        estimate = model.estimate_delay(features)
        return DelayPrediction(
            port_id=port_id,
            predicted_delay=estimate.predicted_delay,
            confidence_level=estimate.confidence_level,
            impacting_factors=estimate.impacting_factors,
            timestamp=now,
            model_used=model.delay_label,
        )

    def _congestion_prediction(self, port_id: str, model: PortPredictionModel,
                               features: FeatureVector, now: datetime) -> CongestionPrediction:
        estimate = model.classify_congestion(features)
        return CongestionPrediction(
            port_id=port_id,
            level=estimate.level,
            confidence=estimate.confidence,
            estimated_duration=self.duration_forecaster.forecast(features, estimate.level),
            timestamp=now,
            model_used=model.congestion_label,
        )

    def predict(self,
                port_id: str,
                current_weather: WeatherObservation,
                historical_weather: Sequence[WeatherObservation],
                current_shipping: ShippingObservation,
                historical_shipping: Sequence[ShippingObservation],
                model_name: Optional[str] = None,
                generate_alerts: bool = False) -> PortPrediction:
        """Predict delay and congestion for a port.

        Args:
            port_id: Port identifier
            current_weather: Latest weather observation
            historical_weather: Chronological weather history
            current_shipping: Latest shipping snapshot
            historical_shipping: Chronological shipping history
            model_name: Registry model name (registry default when None)
            generate_alerts: Also derive alerts from the predictions

        Returns:
            PortPrediction bundle

        Raises:
            UnknownModelError: If model_name is not registered
            InsufficientDataError: If either history is empty
        """
        model = self._resolve(model_name)

        with performance_context('port_prediction', {'port_id': port_id, 'model': model.info.key}):
            features = self.feature_extractor.extract(
                current_weather, historical_weather, current_shipping, historical_shipping
            )
            now = datetime.now(timezone.utc)

            delay = self._delay_prediction(port_id, model, features, now)
            congestion = self._congestion_prediction(port_id, model, features, now)

            alerts = ()
            if generate_alerts:
                alerts = tuple(self.alert_generator.generate(delay, congestion, now=now))

        prediction = PortPrediction(delay=delay, congestion=congestion, alerts=alerts)

        self.logger.info(
            f"Prediction for {port_id} ({model.info.key}): {delay.predicted_delay}h delay, "
            f"{congestion.level.value} congestion for {congestion.estimated_duration}h"
        )
        log_prediction('port', port_id, prediction.to_record())
        return prediction

    def predict_delay(self, port_id: str,
                      current_weather: WeatherObservation,
                      historical_weather: Sequence[WeatherObservation],
                      current_shipping: ShippingObservation,
                      historical_shipping: Sequence[ShippingObservation],
                      model_name: Optional[str] = None) -> DelayPrediction:
        """Delay prediction only."""
        model = self._resolve(model_name)

        with performance_context('delay_prediction', {'port_id': port_id, 'model': model.info.key}):
            features = self.feature_extractor.extract(
                current_weather, historical_weather, current_shipping, historical_shipping
            )
            delay = self._delay_prediction(port_id, model, features, datetime.now(timezone.utc))

        log_prediction('delay', port_id, delay.to_record())
        return delay

    def predict_congestion(self, port_id: str,
                           current_weather: WeatherObservation,
                           historical_weather: Sequence[WeatherObservation],
                           current_shipping: ShippingObservation,
                           historical_shipping: Sequence[ShippingObservation],
                           model_name: Optional[str] = None) -> CongestionPrediction:
        """Congestion prediction only."""
        model = self._resolve(model_name)

        with performance_context('congestion_prediction', {'port_id': port_id, 'model': model.info.key}):
            features = self.feature_extractor.extract(
                current_weather, historical_weather, current_shipping, historical_shipping
            )
            congestion = self._congestion_prediction(port_id, model, features, datetime.now(timezone.utc))

        log_prediction('congestion', port_id, congestion.to_record())
        return congestion

    def forecast(self, port_id: str, history: Any,
                 horizon: Optional[int] = None,
                 use_seasonal_model: Optional[bool] = None) -> TimeSeriesForecast:
        """Forecast daily delay hours.

        Args:
            port_id: Port identifier
            history: Daily delay-hour history
            horizon: Days to forecast (service default when None)
            use_seasonal_model: Seasonal model toggle (service default when None)

        Returns:
            TimeSeriesForecast; the fallback forecast when the history is
            unusable or the horizon is outside the supported range

        Raises:
            InvalidHorizonError: If horizon is not an integer
        """
        horizon = self.default_horizon if horizon is None else horizon
        seasonal = self.use_seasonal_model if use_seasonal_model is None else use_seasonal_model

        with performance_context('delay_forecast', {'port_id': port_id, 'horizon': horizon}):
            forecast = self.time_series_forecaster.forecast(
                port_id, history, horizon=horizon, use_seasonal_model=seasonal
            )

        log_prediction('forecast', port_id, forecast.to_record())
        return forecast

    def available_models(self) -> Mapping[str, ModelInfo]:
        """Read-only snapshot of the registered models."""
        return self.registry.snapshot()
