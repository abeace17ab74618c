#!/usr/bin/env python3
"""
Unit Tests for Utility Modules

Tests for feature extraction, record parsing, logging and configuration.

Test Coverage:
- Feature extraction from observation histories
- Parsing of camelCase, snake_case and wrapped records
- Daily series construction for forecasting
- Logging utilities and performance tracking
- Configuration loading, overrides and validation

Author: Port Weather Monitor Team
Version: 1.0.0
"""

import json
import logging
import os
import random
import unittest
from datetime import date, datetime, timezone
from pathlib import Path
from unittest.mock import patch

import pandas as pd
import yaml

# Import test base classes
from tests.base_test import BASE_TIME, BaseTestCase

# Import modules to test
from config import config as config_module
from config.config import ConfigManager, Environment, get_config, initialize_config
from models.exceptions import InsufficientDataError, InvalidObservationError
from models.observations import CongestionLevel, WeatherType
from utils.data_processing import (
    build_delay_series, forecast_dates_after, load_forecast_request, load_port_snapshot,
    observations_to_frame, parse_shipping_record, parse_timestamp, parse_weather_record,
    to_daily_series, to_snake_case
)
from utils.feature_engineering import FeatureConfig, FeatureExtractor
from utils.logging_utils import LogConfig, PortWeatherLogger, PerformanceTracker


WEATHER_RECORD = {
    'temperature': 21.5,
    'humidity': 70,
    'windSpeed': 25,
    'windDirection': 90,
    'precipitation': 4.2,
    'visibility': 8000,
    'weatherType': 'rainy',
    'timestamp': 1709251200000,  # 2024-03-01T00:00:00Z
}

SHIPPING_RECORD = {
    'portId': 'PORT-001',
    'vesselCount': 40,
    'avgWaitTime': 12.5,
    'delayedVessels': 6,
    'congestionLevel': 'moderate',
    'timestamp': '2024-03-01T00:00:00Z',
}


class TestFeatureExtractor(BaseTestCase):
    """Test cases for FeatureExtractor."""

    def setUp(self):
        """Set up test fixtures."""
        super().setUp()
        self.extractor = FeatureExtractor()

    def extract(self, weather_history=None, shipping_history=None, current_weather=None,
                current_shipping=None):
        return self.extractor.extract(
            current_weather or self.mock_data.weather(),
            self.mock_data.weather_history() if weather_history is None else weather_history,
            current_shipping or self.mock_data.shipping(),
            self.mock_data.shipping_history() if shipping_history is None else shipping_history,
        )

    def test_empty_weather_history(self):
        with self.assertRaises(InsufficientDataError):
            self.extract(weather_history=[])

    def test_empty_shipping_history(self):
        with self.assertRaises(InsufficientDataError) as ctx:
            self.extract(shipping_history=[])
        self.assertEqual(ctx.exception.available, 0)

    def test_weather_features(self):
        history = [self.mock_data.weather(hours_ago=3 - i, wind_speed=w, temperature=t)
                   for i, (w, t) in enumerate([(10, 10), (20, 20), (30, 30)])]
        current = self.mock_data.weather(precipitation=25.0, visibility=5000.0)

        features = self.extract(weather_history=history, current_weather=current)

        self.assertAlmostEqual(features.weather.avg_wind_speed, 20.0)
        self.assertAlmostEqual(features.weather.avg_temperature, 20.0)
        self.assertAlmostEqual(features.weather.precipitation_intensity, 0.25)
        self.assertAlmostEqual(features.weather.visibility_factor, 0.5)

    def test_recent_weather_aggregates(self):
        """Only the last 24 records feed the recent wind and visibility means."""
        history = (self.mock_data.weather_history(count=6, wind_speed=50.0, visibility=10000.0)
                   + [self.mock_data.weather(hours_ago=0, wind_speed=20.0, visibility=2500.0)
                      for _ in range(24)])

        features = self.extract(weather_history=history)

        self.assertAlmostEqual(features.weather.recent_avg_wind_speed, 20.0)
        self.assertAlmostEqual(features.weather.recent_visibility_factor, 0.25)
        self.assertAlmostEqual(features.weather.avg_wind_speed, 26.0)
        self.assertEqual(features.weather.visibility_factor, 1.0)

    def test_single_weather_record(self):
        history = [self.mock_data.weather(hours_ago=1, temperature=23.7)]
        features = self.extract(weather_history=history)

        self.assertEqual(features.weather.avg_temperature, 23.7)

    def test_weather_features_saturate(self):
        current = self.mock_data.weather(precipitation=150.0, visibility=25000.0)
        features = self.extract(current_weather=current)

        self.assertEqual(features.weather.precipitation_intensity, 1.0)
        self.assertEqual(features.weather.visibility_factor, 1.0)

    def test_capacity_ratio(self):
        history = self.mock_data.shipping_history(count=5, vessel_count=60)

        features = self.extract(shipping_history=history,
                                current_shipping=self.mock_data.shipping(vessel_count=30))
        self.assertAlmostEqual(features.port.vessel_capacity_ratio, 0.5)

        features = self.extract(shipping_history=history,
                                current_shipping=self.mock_data.shipping(vessel_count=90))
        self.assertAlmostEqual(features.port.vessel_capacity_ratio, 1.0)

    def test_capacity_ratio_without_vessels(self):
        history = self.mock_data.shipping_history(count=5, vessel_count=0, delayed_vessels=0)
        current = self.mock_data.shipping(vessel_count=0, delayed_vessels=0)

        features = self.extract(shipping_history=history, current_shipping=current)

        self.assertEqual(features.port.vessel_capacity_ratio, 0.0)

    def test_delay_pattern_uses_last_seven_records(self):
        history = [self.mock_data.shipping(hours_ago=10 - i, avg_wait_time=float(i)) for i in range(10)]

        features = self.extract(shipping_history=history)

        # last seven waits are 3..9 hours
        self.assertAlmostEqual(features.port.historical_delay_pattern, 6.0 / 72)

    def test_delay_pattern_with_short_history(self):
        history = self.mock_data.shipping_history(count=3, avg_wait_time=72.0)
        features = self.extract(shipping_history=history)

        self.assertAlmostEqual(features.port.historical_delay_pattern, 1.0)

    def test_history_order_does_not_matter(self):
        history = [self.mock_data.shipping(hours_ago=10 - i, avg_wait_time=float(i)) for i in range(10)]
        shuffled = list(history)
        random.Random(1).shuffle(shuffled)

        self.assertEqual(self.extract(shipping_history=history).port,
                         self.extract(shipping_history=shuffled).port)

    def test_recent_aggregates(self):
        weather = [self.mock_data.weather(hours_ago=30 - i, precipitation=2.0 if i >= 18 else 0.0)
                   for i in range(30)]
        shipping = [self.mock_data.shipping(hours_ago=30 - i,
                                            congestion_level='severe' if i < 6 else 'high',
                                            vessel_count=10 if i < 6 else 50,
                                            avg_wait_time=24.0)
                    for i in range(30)]

        features = self.extract(weather_history=weather, shipping_history=shipping)

        self.assertAlmostEqual(features.weather.precipitation_frequency, 0.5)
        self.assertAlmostEqual(features.port.congestion_trend, 2.0)
        self.assertAlmostEqual(features.port.recent_avg_vessel_count, 50.0)
        self.assertAlmostEqual(features.port.recent_avg_wait_time, 24.0)
        self.assertEqual(features.data_point_count, 60)

    def test_custom_windows(self):
        extractor = FeatureExtractor(FeatureConfig(delay_pattern_window=2))
        history = [self.mock_data.shipping(hours_ago=5 - i, avg_wait_time=float(i)) for i in range(5)]

        features = extractor.extract(self.mock_data.weather(), self.mock_data.weather_history(),
                                     self.mock_data.shipping(), history)

        self.assertAlmostEqual(features.port.historical_delay_pattern, 3.5 / 72)


class TestDataProcessing(BaseTestCase):
    """Test cases for record parsing and series construction."""

    def test_to_snake_case(self):
        self.assertEqual(to_snake_case('windSpeed'), 'wind_speed')
        self.assertEqual(to_snake_case('avgWaitTime'), 'avg_wait_time')
        self.assertEqual(to_snake_case('port_id'), 'port_id')

    def test_parse_timestamp(self):
        expected = datetime(2024, 3, 1, tzinfo=timezone.utc)

        self.assertEqual(parse_timestamp(1709251200000), expected)
        self.assertEqual(parse_timestamp('2024-03-01T00:00:00Z'), expected)
        self.assertEqual(parse_timestamp('2024-03-01T01:00:00+01:00'), expected)
        self.assertEqual(parse_timestamp(datetime(2024, 3, 1)), expected)

        with self.assertRaises(InvalidObservationError):
            parse_timestamp('yesterday-ish')
        with self.assertRaises(InvalidObservationError):
            parse_timestamp(None)

    def test_parse_camel_case_weather(self):
        observation = parse_weather_record(WEATHER_RECORD)

        self.assertEqual(observation.wind_speed, 25.0)
        self.assertEqual(observation.weather_type, WeatherType.RAINY)
        self.assertEqual(observation.timestamp, BASE_TIME)
        self.assertIsNone(observation.wave_height)

    def test_parse_snake_case_weather(self):
        row = {to_snake_case(k): v for k, v in WEATHER_RECORD.items()}
        row['timestamp'] = '2024-03-01T00:00:00+00:00'
        row['wave_height'] = 1.5

        observation = parse_weather_record(row)

        self.assertEqual(observation.timestamp, BASE_TIME)
        self.assertEqual(observation.wave_height, 1.5)

    def test_parse_wrapped_records(self):
        weather = {k: v for k, v in WEATHER_RECORD.items() if k != 'timestamp'}
        shipping = {k: v for k, v in SHIPPING_RECORD.items() if k not in ('timestamp', 'portId')}

        observation = parse_weather_record({'date': '2024-02-28', 'weatherData': weather})
        self.assertEqual(observation.timestamp.date(), date(2024, 2, 28))

        snapshot = parse_shipping_record({'date': '2024-02-28', 'shippingData': shipping}, port_id='PORT-009')
        self.assertEqual(snapshot.port_id, 'PORT-009')
        self.assertEqual(snapshot.congestion_level, CongestionLevel.MODERATE)

    def test_missing_fields(self):
        record = dict(WEATHER_RECORD)
        del record['visibility']

        with self.assertRaises(InvalidObservationError) as ctx:
            parse_weather_record(record)
        self.assertIn('visibility', str(ctx.exception))

    def test_invalid_values(self):
        invalid = [
            dict(SHIPPING_RECORD, congestionLevel='gridlock'),
            dict(SHIPPING_RECORD, delayedVessels=41),
            dict(SHIPPING_RECORD, vesselCount='many'),
        ]
        for record in invalid:
            with self.assertRaises(InvalidObservationError):
                parse_shipping_record(record)

        with self.assertRaises(InvalidObservationError):
            parse_weather_record(dict(WEATHER_RECORD, precipitation=-1))
        with self.assertRaises(InvalidObservationError):
            parse_weather_record(dict(WEATHER_RECORD, weatherType='hail'))

    def test_invalid_observation_is_value_error(self):
        with self.assertRaises(ValueError):
            parse_weather_record(dict(WEATHER_RECORD, visibility=-5))

    def test_load_port_snapshot(self):
        payload = {
            'portId': 'PORT-001',
            'currentWeather': WEATHER_RECORD,
            'historicalWeather': [WEATHER_RECORD, WEATHER_RECORD],
            'currentShipping': SHIPPING_RECORD,
            'historicalShipping': [
                {'date': '2024-02-29', 'shippingData': {k: v for k, v in SHIPPING_RECORD.items()
                                                        if k != 'portId'}},
            ],
        }

        snapshot = load_port_snapshot(payload)

        self.assertEqual(snapshot.port_id, 'PORT-001')
        self.assertEqual(len(snapshot.historical_weather), 2)
        self.assertEqual(snapshot.historical_shipping[0].port_id, 'PORT-001')

        with self.assertRaises(InvalidObservationError):
            load_port_snapshot({'currentWeather': WEATHER_RECORD})

    def test_observations_to_frame(self):
        history = [self.mock_data.shipping(hours_ago=h) for h in (1, 3, 2)]
        frame = observations_to_frame(history)

        self.assertTrue(frame['timestamp'].is_monotonic_increasing)
        self.assertEqual(set(frame['congestion_level']), {'low'})
        self.assertTrue(observations_to_frame([]).empty)

    def test_to_daily_series(self):
        series = to_daily_series([
            ('2024-03-01T06:00:00Z', 4.0),
            ('2024-03-01T18:00:00Z', 6.0),
            ('2024-03-03', 9.0),
        ])

        self.assertEqual(list(series.index.strftime('%Y-%m-%d')), ['2024-03-01', '2024-03-02', '2024-03-03'])
        self.assertEqual(list(series.values), [5.0, 7.0, 9.0])

        self.assertTrue(to_daily_series([]).empty)
        self.assertTrue(to_daily_series(pd.Series(dtype=float)).empty)

    def test_build_delay_series(self):
        history = [self.mock_data.shipping(hours_ago=h, avg_wait_time=float(h)) for h in range(48, 0, -1)]
        series = build_delay_series(history)

        self.assertEqual(len(series), 2)
        self.assertTrue(build_delay_series([]).empty)

    def test_forecast_dates_after(self):
        dates = forecast_dates_after(date(2024, 2, 27), 3)
        self.assertEqual(dates, (date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)))

    def test_load_forecast_request(self):
        port_id, series = load_forecast_request({
            'portId': 'PORT-001',
            'history': [{'date': '2024-03-01', 'value': 4}, {'date': '2024-03-02', 'value': 6}],
        })
        self.assertEqual(port_id, 'PORT-001')
        self.assertEqual(list(series.values), [4.0, 6.0])

        _, series = load_forecast_request({'portId': 'PORT-001', 'history': {'2024-03-01': 3.0}})
        self.assertEqual(len(series), 1)

        _, series = load_forecast_request({'portId': 'PORT-001', 'historicalShipping': [SHIPPING_RECORD]})
        self.assertEqual(list(series.values), [12.5])

        with self.assertRaises(InvalidObservationError):
            load_forecast_request({'portId': 'PORT-001', 'history': [{'date': '2024-03-01'}]})


class TestPortWeatherLogger(BaseTestCase):
    """Test cases for PortWeatherLogger."""

    def setUp(self):
        """Set up test fixtures."""
        super().setUp()
        self.log_file = Path(self.temp_dir) / f'test_{self._testMethodName}.log'
        self.error_file = Path(self.temp_dir) / f'errors_{self._testMethodName}.log'
        self.log_config = LogConfig(
            log_level='DEBUG',
            log_file=str(self.log_file),
            error_file=str(self.error_file),
            console_logging=False,
            performance_logging=True,
        )
        self.logger = PortWeatherLogger(self.log_config)
        self.addCleanup(self.logger.shutdown)

    def read_records(self, path: Path):
        return [json.loads(line) for line in path.read_text().splitlines() if line.strip()]

    def test_initialization(self):
        self.assertIsInstance(self.logger.performance_tracker, PerformanceTracker)
        self.assertEqual(len(self.logger._handlers), 2)

    def test_structured_logging(self):
        self.logger.get_logger('port_weather.test').info(
            "Structured message", extra={'extra_data': {'port_id': 'PORT-001'}}
        )

        records = self.read_records(self.log_file)
        record = [r for r in records if r.get('message') == 'Structured message'][0]
        self.assertEqual(record['service_name'], 'port_weather_monitor')
        self.assertEqual(record['extra_data'], {'port_id': 'PORT-001'})
        self.assertIn('timestamp', record)

    def test_performance_tracking(self):
        with self.logger.performance_context('unit_operation', {'port_id': 'PORT-001'}):
            sum(range(1000))

        summary = self.logger.get_performance_summary()
        self.assertIn('unit_operation', summary['operations'])
        self.assertEqual(summary['operations']['unit_operation']['count'], 1)
        self.assertIn('overall_stats', summary)

    def test_error_in_performance_context(self):
        with self.assertRaises(RuntimeError):
            with self.logger.performance_context('failing_operation'):
                raise RuntimeError("boom")

        errors = self.read_records(self.error_file)
        self.assertTrue(any(r['message'] == 'Error in failing_operation' for r in errors))
        self.assertEqual(errors[-1]['exception']['type'], 'RuntimeError')

    def test_log_prediction(self):
        self.logger.log_prediction('delay', 'PORT-001', {'predictedDelay': 12})

        records = self.read_records(self.log_file)
        self.assertTrue(any(r.get('extra_data', {}).get('prediction_type') == 'delay' for r in records))

    def test_set_log_level(self):
        self.logger.set_log_level('warning')
        self.assertEqual(logging.getLogger().level, logging.WARNING)
        self.assertEqual(self.logger.config.log_level, 'WARNING')

    def test_shutdown_removes_handlers(self):
        installed = list(self.logger._handlers)
        self.logger.shutdown()

        for handler in installed:
            self.assertNotIn(handler, logging.getLogger().handlers)

    def test_excluded_modules_filtered(self):
        logging.getLogger('statsmodels.tsa').warning("noisy third-party message")

        messages = [r.get('message') for r in self.read_records(self.log_file)] if self.log_file.exists() else []
        self.assertNotIn("noisy third-party message", messages)


class TestConfigManager(BaseTestCase):
    """Test cases for ConfigManager."""

    def write_yaml(self, name: str, data) -> Path:
        config_dir = Path(self.temp_dir) / self._testMethodName
        config_dir.mkdir(exist_ok=True)
        (config_dir / name).write_text(yaml.safe_dump(data))
        return config_dir

    def test_packaged_defaults(self):
        config = ConfigManager(environment=Environment.DEVELOPMENT)

        self.assertEqual(config.prediction.default_model, 'standard')
        self.assertEqual(config.forecast.default_horizon, 14)
        self.assertEqual(config.forecast.arima_order, [1, 1, 1])
        self.assertEqual(config.alerts.delay_alert_threshold, 12)

    def test_testing_profile(self):
        config = ConfigManager(environment=Environment.TESTING)

        self.assertFalse(config.prediction.jitter_enabled)
        self.assertIsNone(config.logging.file_path)

    def test_yaml_overrides(self):
        config_dir = self.write_yaml('base.yaml', {'forecast': {'default_horizon': 21, 'unknown_key': 1}})
        (config_dir / 'staging.yaml').write_text(yaml.safe_dump({'prediction': {'default_model': 'realtime'}}))

        config = ConfigManager(str(config_dir), Environment.STAGING)

        self.assertEqual(config.forecast.default_horizon, 21)
        self.assertFalse(hasattr(config.forecast, 'unknown_key'))
        self.assertEqual(config.prediction.default_model, 'realtime')

    @patch.dict(os.environ, {
        'PORT_WEATHER_FORECAST_HORIZON': '10',
        'PORT_WEATHER_RANDOM_SEED': 'not-a-number',
        'PORT_WEATHER_DEFAULT_MODEL': 'realtime',
        'LOG_LEVEL': 'DEBUG',
    })
    def test_environment_variables(self):
        config = ConfigManager(str(Path(self.temp_dir)), Environment.DEVELOPMENT)

        self.assertEqual(config.forecast.default_horizon, 10)
        self.assertIsNone(config.prediction.random_seed)
        self.assertEqual(config.prediction.default_model, 'realtime')
        self.assertEqual(config.logging.level, 'DEBUG')

    @patch.dict(os.environ, {'PORT_WEATHER_ENV': 'prod'})
    def test_environment_detection(self):
        config = ConfigManager(str(Path(self.temp_dir)))
        self.assertEqual(config.environment, Environment.PRODUCTION)

    def test_validation(self):
        config = ConfigManager(str(Path(self.temp_dir)), Environment.DEVELOPMENT)
        self.assertEqual(config.validate_configuration()['errors'], [])

        config.forecast.default_horizon = 40
        config.alerts.delay_medium_threshold = 30
        errors = config.validate_configuration()['errors']

        self.assertEqual(len(errors), 2)

    def test_export_and_save(self):
        config_dir = self.write_yaml('base.yaml', {})
        config = ConfigManager(str(config_dir), Environment.TESTING)

        exported = config.export_configuration()
        self.assertEqual(exported['environment'], 'testing')
        self.assertEqual(set(exported), {'environment', 'prediction', 'forecast', 'alerts', 'logging'})

        config.save_configuration('saved.yaml')
        saved = yaml.safe_load((config_dir / 'saved.yaml').read_text())
        self.assertEqual(saved['forecast']['default_horizon'], 14)

    def test_global_config(self):
        self.addCleanup(setattr, config_module, '_config_manager', None)

        config = initialize_config(str(Path(self.temp_dir)), Environment.TESTING)
        self.assertIs(get_config(), config)


if __name__ == '__main__':
    unittest.main()
