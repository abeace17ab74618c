#!/usr/bin/env python3
"""
Delay Time Series Forecaster
Multi-day delay-hour forecasts with confidence bands.

Features:
- ARIMA forecasts extrapolating trend from recent lags
- Seasonal SARIMA variant with a weekly cycle
- Confidence intervals bracketing every forecast point
- Zero-filled fallback forecast instead of raising on bad input

Author: Port Weather Monitor Team
Version: 1.0.0
"""

import logging
import warnings
from datetime import date, datetime, timezone
from typing import Any, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.metrics import mean_absolute_error
from statsmodels.tsa.arima.model import ARIMA

from models.exceptions import InsufficientDataError, InvalidHorizonError
from models.predictions import FALLBACK_MODEL_LABEL, ConfidenceIntervals, TimeSeriesForecast
from utils.data_processing import forecast_dates_after, to_daily_series, utc_today

MIN_HORIZON_DAYS = 7
MAX_HORIZON_DAYS = 30


def validate_horizon(horizon: Any, min_horizon: int = MIN_HORIZON_DAYS,
                     max_horizon: int = MAX_HORIZON_DAYS) -> int:
    """Return the horizon as an int, or raise InvalidHorizonError."""
    if isinstance(horizon, bool) or not isinstance(horizon, (int, np.integer)):
        raise InvalidHorizonError(horizon, min_horizon, max_horizon)
    if not min_horizon <= horizon <= max_horizon:
        raise InvalidHorizonError(horizon, min_horizon, max_horizon)
    return int(horizon)


def clamp_horizon(horizon: Any, min_horizon: int = MIN_HORIZON_DAYS,
                  max_horizon: int = MAX_HORIZON_DAYS) -> int:
    """Clamp an integer horizon into the supported range.

    Raises:
        InvalidHorizonError: If horizon is not an integer
    """
    if isinstance(horizon, bool) or not isinstance(horizon, (int, np.integer)):
        raise InvalidHorizonError(horizon, min_horizon, max_horizon)
    return int(min(max(horizon, min_horizon), max_horizon))


class TimeSeriesForecaster:
    """ARIMA/SARIMA forecaster for daily delay-hour series."""

    def __init__(self,
                 order: Sequence[int] = (1, 1, 1),
                 seasonal_order: Sequence[int] = (1, 0, 1, 7),
                 confidence_level: float = 0.95,
                 min_history: int = 10,
                 min_seasonal_history: int = 21,
                 min_horizon: int = MIN_HORIZON_DAYS,
                 max_horizon: int = MAX_HORIZON_DAYS):
        """Initialize the forecaster.

        Args:
            order: ARIMA (p, d, q) order
            seasonal_order: Seasonal (P, D, Q, s) order used by the seasonal model
            confidence_level: Coverage of the confidence intervals
            min_history: Days of history required by the non-seasonal model
            min_seasonal_history: Days of history required by the seasonal model
            min_horizon: Shortest supported horizon in days
            max_horizon: Longest supported horizon in days
        """
        self.order = tuple(order)
        self.seasonal_order = tuple(seasonal_order)
        self.confidence_level = confidence_level
        self.min_history = min_history
        self.min_seasonal_history = min_seasonal_history
        self.min_horizon = min_horizon
        self.max_horizon = max_horizon
        self.logger = logging.getLogger(__name__)

    def model_label(self, use_seasonal_model: bool) -> str:
        p, d, q = self.order
        if not use_seasonal_model:
            return f"ARIMA({p},{d},{q})"
        sp, sd, sq, period = self.seasonal_order
        return f"SARIMA({p},{d},{q})({sp},{sd},{sq})[{period}]"

    def forecast(self, port_id: str, history: Any, horizon: int = 14,
                 use_seasonal_model: bool = False,
                 as_of: Optional[date] = None) -> TimeSeriesForecast:
        """Forecast daily delay hours for a port.

        Args:
            port_id: Port identifier
            history: Daily delay-hour history (Series indexed by date or
                iterable of (date, value) pairs), chronologically ordered
            horizon: Number of days to forecast
            use_seasonal_model: Add a weekly seasonal component
            as_of: Reference date used for fallback dates when the history
                carries no usable dates (defaults to today, UTC)

        Returns:
            TimeSeriesForecast; a zero-filled fallback forecast when the
            history cannot support a genuine forecast or the horizon is out
            of range (the fallback then covers the clamped horizon)

        Raises:
            InvalidHorizonError: If horizon is not an integer
        """
        requested = horizon
        horizon = clamp_horizon(horizon, self.min_horizon, self.max_horizon)
        label = self.model_label(use_seasonal_model)
        last_day = as_of or utc_today()

        try:
            series = to_daily_series(history)
            if not series.empty:
                last_day = series.index[-1].date()

            if horizon != requested:
                raise InvalidHorizonError(requested, self.min_horizon, self.max_horizon)

            required = self.min_seasonal_history if use_seasonal_model else self.min_history
            if len(series) < required:
                raise InsufficientDataError(
                    f"{label} needs {required} days of history, got {len(series)}",
                    required=required, available=len(series),
                )

            values, lower, upper = self._fit_and_forecast(series, horizon, use_seasonal_model)

        except Exception as e:
            self.logger.error(f"Forecast failed for {port_id} with {label}, using fallback: {e}")
            return self._fallback(port_id, last_day, horizon)

        forecast = TimeSeriesForecast(
            port_id=port_id,
            forecast_dates=forecast_dates_after(last_day, horizon),
            forecast_values=values,
            model_used=label,
            timestamp=datetime.now(timezone.utc),
            confidence_intervals=ConfidenceIntervals(
                lower_bound=lower,
                upper_bound=upper,
                confidence_level=self.confidence_level,
            ),
        )

        self.logger.info(f"Generated {horizon}-day {label} forecast for {port_id}")
        return forecast

    def _fit_and_forecast(self, series: pd.Series, horizon: int,
                          use_seasonal_model: bool) -> Tuple[Tuple[float, ...], ...]:
        """Fit the model and return (values, lower, upper) bounded forecasts."""
        endog = series.to_numpy(dtype=float)

        kwargs = {'order': self.order}
        if use_seasonal_model:
            kwargs['seasonal_order'] = self.seasonal_order

        with warnings.catch_warnings():
            # Short port histories routinely trigger convergence warnings
            warnings.simplefilter('ignore')
            fitted = ARIMA(endog, **kwargs).fit()
            prediction = fitted.get_forecast(steps=horizon)
            mean = np.asarray(prediction.predicted_mean, dtype=float)
            intervals = np.asarray(prediction.conf_int(alpha=1 - self.confidence_level), dtype=float)

        if mean.shape != (horizon,) or intervals.shape != (horizon, 2):
            raise ValueError(f"Unexpected forecast shape {mean.shape} / {intervals.shape}")
        if not (np.all(np.isfinite(mean)) and np.all(np.isfinite(intervals))):
            raise ValueError("Model produced non-finite forecast values")

        self._log_fit_quality(endog, fitted)

        values = np.clip(mean, 0.0, None)
        lower = np.minimum(np.clip(intervals[:, 0], 0.0, None), values)
        upper = np.maximum(intervals[:, 1], values)

        # np.round is monotonic, so rounding keeps lower <= value <= upper
        return (
            tuple(float(v) for v in np.round(values, 2)),
            tuple(float(v) for v in np.round(lower, 2)),
            tuple(float(v) for v in np.round(upper, 2)),
        )

    def _log_fit_quality(self, endog: np.ndarray, fitted) -> None:
        fitted_values = np.asarray(fitted.fittedvalues, dtype=float)
        # skip the differencing burn-in
        skip = min(self.order[1], len(endog) - 1)
        if np.all(np.isfinite(fitted_values[skip:])):
            mae = mean_absolute_error(endog[skip:], fitted_values[skip:])
            self.logger.debug(f"In-sample MAE {mae:.3f} over {len(endog)} days")

    def _fallback(self, port_id: str, last_day: date, horizon: int) -> TimeSeriesForecast:
        """Zero-filled forecast tagged with the fallback model label."""
        return TimeSeriesForecast(
            port_id=port_id,
            forecast_dates=forecast_dates_after(last_day, horizon),
            forecast_values=tuple(0.0 for _ in range(horizon)),
            model_used=FALLBACK_MODEL_LABEL,
            timestamp=datetime.now(timezone.utc),
            confidence_intervals=None,
        )
