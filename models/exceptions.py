#!/usr/bin/env python3
"""
Prediction Engine Exceptions

Error taxonomy shared by feature extraction, the model registry and the
forecasting components.

Author: Port Weather Monitor Team
Version: 1.0.0
"""


class PortWeatherError(Exception):
    """Base class for all prediction engine errors."""


class InsufficientDataError(PortWeatherError):
    """Raised when historical observations are missing or too short."""

    def __init__(self, message: str, required: int = 1, available: int = 0):
        super().__init__(message)
        self.required = required
        self.available = available


class UnknownModelError(PortWeatherError, KeyError):
    """Raised when a model name is not present in the model registry."""

    def __init__(self, model_name: str, available=()):
        self.model_name = model_name
        self.available = tuple(available)
        message = f"Unknown prediction model '{model_name}'"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)

    def __str__(self):
        # KeyError would otherwise repr() the message
        return self.args[0]


class InvalidObservationError(PortWeatherError, ValueError):
    """Raised when an observation record is malformed or out of range."""


class InvalidHorizonError(PortWeatherError, ValueError):
    """Raised when a forecast horizon falls outside the supported range."""

    def __init__(self, horizon, min_horizon: int, max_horizon: int):
        super().__init__(
            f"Forecast horizon must be between {min_horizon} and {max_horizon} days, got {horizon}"
        )
        self.horizon = horizon
