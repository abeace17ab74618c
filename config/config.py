#!/usr/bin/env python3
"""
Configuration Management System

Centralized configuration management for the Port Weather Monitor
prediction engine.

Features:
- Environment-specific configurations (dev, staging, prod, testing)
- Prediction model selection and jitter settings
- Time series forecasting parameters
- Alert thresholds
- Logging configuration

Author: Port Weather Monitor Team
Version: 1.0.0
"""

import os
import yaml
from typing import Dict, Any, Optional, List
from pathlib import Path
from dataclasses import dataclass, asdict, field
from enum import Enum
import logging


class Environment(Enum):
    """Environment types."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


@dataclass
class PredictionConfig:
    """Delay and congestion prediction configuration."""
    default_model: str = "standard"

    # Simulated model variance; disable for reproducible output
    jitter_enabled: bool = True
    random_seed: Optional[int] = None

    # Feature extraction
    recent_window: int = 24
    delay_pattern_window: int = 7


@dataclass
class ForecastConfig:
    """Time series forecasting configuration."""
    default_horizon: int = 14
    min_horizon: int = 7
    max_horizon: int = 30
    use_seasonal_model: bool = False
    confidence_level: float = 0.95

    # statsmodels orders
    arima_order: List[int] = field(default_factory=lambda: [1, 1, 1])
    seasonal_order: List[int] = field(default_factory=lambda: [1, 0, 1, 7])

    min_history_days: int = 10
    min_seasonal_history_days: int = 21


@dataclass
class AlertConfig:
    """Alert generation thresholds (hours)."""
    delay_alert_threshold: float = 12.0
    delay_medium_threshold: float = 18.0
    delay_high_threshold: float = 24.0
    delay_alert_window_hours: float = 24.0


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "json"  # 'json' or 'text' for file output
    file_path: Optional[str] = "logs/port_weather.log"
    error_file_path: Optional[str] = "logs/errors.log"
    max_file_size: int = 10 * 1024 * 1024
    backup_count: int = 5

    console_logging: bool = True
    console_format: str = "colored"

    # Performance tracking
    track_execution_time: bool = True


class ConfigManager:
    """Configuration manager for the prediction engine."""

    def __init__(self, config_dir: Optional[str] = None, environment: Optional[Environment] = None):
        """
        Initialize configuration manager.

        Args:
            config_dir: Directory containing configuration files
            environment: Target environment (dev, staging, prod, testing)
        """
        self.config_dir = Path(config_dir) if config_dir else Path(__file__).parent
        self.environment = environment or self._detect_environment()

        # Configuration components
        self.prediction: PredictionConfig = PredictionConfig()
        self.forecast: ForecastConfig = ForecastConfig()
        self.alerts: AlertConfig = AlertConfig()
        self.logging: LoggingConfig = LoggingConfig()

        # Load configurations
        self._load_configurations()

    def _detect_environment(self) -> Environment:
        """Detect current environment from environment variables."""
        env_name = os.getenv('PORT_WEATHER_ENV', 'development').lower()

        env_mapping = {
            'dev': Environment.DEVELOPMENT,
            'development': Environment.DEVELOPMENT,
            'staging': Environment.STAGING,
            'stage': Environment.STAGING,
            'prod': Environment.PRODUCTION,
            'production': Environment.PRODUCTION,
            'test': Environment.TESTING,
            'testing': Environment.TESTING
        }

        return env_mapping.get(env_name, Environment.DEVELOPMENT)

    def _load_configurations(self):
        """Load configurations from files and environment variables."""
        # Load base configuration
        self._load_config_file('base.yaml')

        # Load environment-specific configuration
        env_file = f'{self.environment.value}.yaml'
        self._load_config_file(env_file)

        # Override with environment variables
        self._load_environment_variables()

    def _load_config_file(self, filename: str):
        """Load configuration from YAML file."""
        config_file = self.config_dir / filename

        if not config_file.exists():
            logging.debug(f"Configuration file {filename} not found, using defaults")
            return

        try:
            with open(config_file, 'r') as f:
                config_data = yaml.safe_load(f)

            if config_data:
                self._update_configurations(config_data)

        except Exception as e:
            logging.error(f"Error loading configuration file {filename}: {e}")

    def _update_configurations(self, config_data: Dict[str, Any]):
        """Update configuration objects with loaded data."""
        sections = {
            'prediction': self.prediction,
            'forecast': self.forecast,
            'alerts': self.alerts,
            'logging': self.logging,
        }

        for name, section in sections.items():
            if isinstance(config_data.get(name), dict):
                self._update_dataclass(section, config_data[name])

    def _update_dataclass(self, obj: Any, data: Dict[str, Any]):
        """Update dataclass object with dictionary data."""
        for key, value in data.items():
            if hasattr(obj, key):
                setattr(obj, key, value)

    def _load_environment_variables(self):
        """Load configuration from environment variables."""
        # Logging configuration
        if os.getenv('LOG_LEVEL'):
            self.logging.level = os.getenv('LOG_LEVEL')

        if os.getenv('LOG_FILE_PATH'):
            self.logging.file_path = os.getenv('LOG_FILE_PATH')

        # Prediction configuration
        if os.getenv('PORT_WEATHER_DEFAULT_MODEL'):
            self.prediction.default_model = os.getenv('PORT_WEATHER_DEFAULT_MODEL')

        integer_mapping = {
            'PORT_WEATHER_RANDOM_SEED': (self.prediction, 'random_seed'),
            'PORT_WEATHER_FORECAST_HORIZON': (self.forecast, 'default_horizon'),
        }

        for env_var, (section, attr_name) in integer_mapping.items():
            value = os.getenv(env_var)
            if not value:
                continue
            try:
                setattr(section, attr_name, int(value))
            except ValueError:
                logging.warning(f"Ignoring non-integer {env_var}={value!r}")

    def validate_configuration(self) -> Dict[str, list]:
        """Validate configuration and return any issues."""
        issues = {
            'errors': [],
            'warnings': []
        }

        # Validate forecast configuration
        fc = self.forecast
        if fc.min_horizon > fc.max_horizon:
            issues['errors'].append("Forecast min_horizon is greater than max_horizon")

        if not fc.min_horizon <= fc.default_horizon <= fc.max_horizon:
            issues['errors'].append(
                f"Default forecast horizon {fc.default_horizon} is outside "
                f"{fc.min_horizon}-{fc.max_horizon} days"
            )

        if not 0 < fc.confidence_level < 1:
            issues['errors'].append("Forecast confidence_level must be between 0 and 1")

        if len(fc.arima_order) != 3:
            issues['errors'].append("arima_order must have three terms (p, d, q)")

        if len(fc.seasonal_order) != 4:
            issues['errors'].append("seasonal_order must have four terms (P, D, Q, s)")

        if fc.min_history_days < 3:
            issues['warnings'].append("Less than 3 days of history makes ARIMA fits unstable")

        # Validate alert thresholds
        al = self.alerts
        if not al.delay_alert_threshold <= al.delay_medium_threshold <= al.delay_high_threshold:
            issues['errors'].append("Delay alert thresholds must be non-decreasing")

        # Validate prediction configuration
        if not self.prediction.default_model:
            issues['errors'].append("A default prediction model is required")

        if self.environment == Environment.PRODUCTION and self.prediction.random_seed is not None:
            issues['warnings'].append("A fixed random seed is configured in production")

        if self.logging.level.upper() not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            issues['warnings'].append(f"Unknown log level {self.logging.level}")

        return issues

    def export_configuration(self) -> Dict[str, Any]:
        """Export current configuration to dictionary."""
        return {
            'environment': self.environment.value,
            'prediction': asdict(self.prediction),
            'forecast': asdict(self.forecast),
            'alerts': asdict(self.alerts),
            'logging': asdict(self.logging)
        }

    def save_configuration(self, filename: str):
        """Save current configuration to a YAML file in the config directory."""
        config_dict = self.export_configuration()

        output_file = self.config_dir / filename

        try:
            with open(output_file, 'w') as f:
                yaml.safe_dump(config_dict, f, default_flow_style=False, indent=2)

            logging.info(f"Configuration saved to {output_file}")

        except Exception as e:
            logging.error(f"Error saving configuration: {e}")
            raise


# Global configuration instance
_config_manager: Optional[ConfigManager] = None


def get_config() -> ConfigManager:
    """Get global configuration manager instance."""
    global _config_manager

    if _config_manager is None:
        _config_manager = ConfigManager()

    return _config_manager


def initialize_config(config_dir: Optional[str] = None,
                      environment: Optional[Environment] = None) -> ConfigManager:
    """Initialize global configuration manager."""
    global _config_manager

    _config_manager = ConfigManager(config_dir, environment)
    return _config_manager
