#!/usr/bin/env python3
"""
Logging Utilities
Provides logging capabilities for the port weather prediction engine.

Features:
- Structured logging with JSON format
- Colored console output
- Rotating log files with a dedicated error log
- Performance tracking for prediction requests
- Prediction event logging

Author: Port Weather Monitor Team
Version: 1.0.0
"""

import logging
import logging.handlers
import sys
import threading
import time
import traceback
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import colorlog
from pythonjsonlogger import jsonlogger

ROOT_LOGGER_NAME = 'port_weather'


@dataclass
class LogConfig:
    """Logging configuration settings."""
    # Basic settings
    log_level: str = 'INFO'
    log_format: str = 'json'  # 'json', 'text', 'colored'

    # File logging
    log_file: Optional[str] = 'logs/port_weather.log'
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5

    # Console logging (written to stderr so CLI output stays parseable)
    console_logging: bool = True
    console_level: str = 'INFO'
    console_format: str = 'colored'

    # Performance logging
    performance_logging: bool = True

    # Error logging
    error_file: Optional[str] = 'logs/errors.log'

    # Structured logging
    include_timestamp: bool = True
    include_module: bool = True
    include_function: bool = True
    include_line_number: bool = True

    # Additional metadata
    service_name: str = 'port_weather_monitor'
    environment: str = 'development'
    version: str = '1.0.0'

    # Log filtering
    exclude_modules: List[str] = field(default_factory=lambda: ['statsmodels', 'urllib3'])


class PerformanceTracker:
    """Track performance metrics for logging."""

    def __init__(self):
        self.start_times = {}
        self.metrics = {}
        self.lock = threading.Lock()

    def start_timer(self, operation_name: str) -> str:
        """Start timing an operation.

        Args:
            operation_name: Name of the operation

        Returns:
            Timer ID
        """
        timer_id = f"{operation_name}_{time.perf_counter_ns()}_{threading.get_ident()}"
        with self.lock:
            self.start_times[timer_id] = (operation_name, time.perf_counter())
        return timer_id

    def end_timer(self, timer_id: str) -> float:
        """End timing an operation.

        Args:
            timer_id: Timer ID from start_timer

        Returns:
            Elapsed time in seconds
        """
        end_time = time.perf_counter()
        with self.lock:
            operation_name, start_time = self.start_times.pop(timer_id, (timer_id, end_time))
            elapsed = end_time - start_time

            if operation_name not in self.metrics:
                self.metrics[operation_name] = {
                    'count': 0,
                    'total_time': 0.0,
                    'min_time': float('inf'),
                    'max_time': 0.0,
                    'avg_time': 0.0
                }

            metrics = self.metrics[operation_name]
            metrics['count'] += 1
            metrics['total_time'] += elapsed
            metrics['min_time'] = min(metrics['min_time'], elapsed)
            metrics['max_time'] = max(metrics['max_time'], elapsed)
            metrics['avg_time'] = metrics['total_time'] / metrics['count']

            return elapsed

    def get_metrics(self) -> Dict[str, Dict[str, float]]:
        """Get a copy of the performance metrics."""
        with self.lock:
            return {name: dict(values) for name, values in self.metrics.items()}

    def reset_metrics(self):
        """Reset all performance metrics."""
        with self.lock:
            self.metrics.clear()
            self.start_times.clear()


class JSONFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter for structured logging."""

    def __init__(self, config: LogConfig):
        self.config = config

        fields = ['levelname', 'name', 'message']
        if config.include_module:
            fields.append('module')
        if config.include_function:
            fields.append('funcName')
        if config.include_line_number:
            fields.append('lineno')

        format_string = ' '.join([f'%({name})s' for name in fields])
        super().__init__(format_string)

    def add_fields(self, log_record, record, message_dict):
        """Add service metadata to the log record."""
        super().add_fields(log_record, record, message_dict)

        log_record['service_name'] = self.config.service_name
        log_record['environment'] = self.config.environment
        log_record['version'] = self.config.version

        if self.config.include_timestamp and 'timestamp' not in log_record:
            log_record['timestamp'] = datetime.fromtimestamp(record.created, timezone.utc).isoformat()

        if record.exc_info and record.exc_info[0] is not None:
            log_record['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': traceback.format_exception(*record.exc_info)
            }

        if hasattr(record, 'extra_data'):
            log_record['extra_data'] = record.extra_data

        if hasattr(record, 'performance_data'):
            log_record['performance_data'] = record.performance_data


class ColoredFormatter(colorlog.ColoredFormatter):
    """Custom colored formatter for console output."""

    def __init__(self, config: LogConfig):
        self.config = config

        format_parts = []
        if config.include_timestamp:
            format_parts.append('%(asctime)s')
        format_parts.append('%(log_color)s%(levelname)-8s%(reset)s')
        if config.include_module:
            format_parts.append('%(cyan)s%(module)s%(reset)s')
        if config.include_function:
            format_parts.append('%(blue)s%(funcName)s%(reset)s')
        format_parts.append('%(message)s')

        super().__init__(
            ' - '.join(format_parts),
            datefmt='%Y-%m-%d %H:%M:%S',
            log_colors={
                'DEBUG': 'cyan',
                'INFO': 'green',
                'WARNING': 'yellow',
                'ERROR': 'red',
                'CRITICAL': 'red,bg_white',
            }
        )


class LogFilter(logging.Filter):
    """Excludes records emitted by noisy third-party loggers."""

    def __init__(self, exclude_modules: List[str]):
        super().__init__()
        self.exclude_modules = exclude_modules

    def filter(self, record):
        top_level = record.name.split('.', 1)[0]
        return top_level not in self.exclude_modules and record.module not in self.exclude_modules


class PortWeatherLogger:
    """Main logger facade for the prediction engine."""

    def __init__(self, config: Optional[LogConfig] = None):
        """Initialize logger.

        Args:
            config: Logging configuration
        """
        self.config = config or LogConfig()
        self.performance_tracker = PerformanceTracker()
        self.loggers = {}
        self._handlers: List[logging.Handler] = []

        self._setup_logging()

        self.logger = self.get_logger(ROOT_LOGGER_NAME)
        self.logger.debug("Port weather logging initialized", extra={
            'extra_data': {'config': asdict(self.config)}
        })

    def _file_handler(self, path: str, level: int) -> logging.Handler:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=self.config.max_file_size,
            backupCount=self.config.backup_count
        )
        handler.setLevel(level)
        return handler

    def _setup_logging(self):
        """Attach handlers to the root logger."""
        root_logger = logging.getLogger()
        level = getattr(logging, self.config.log_level.upper())
        root_logger.setLevel(level)

        log_filter = LogFilter(self.config.exclude_modules) if self.config.exclude_modules else None

        if self.config.log_file:
            file_handler = self._file_handler(self.config.log_file, level)
            if self.config.log_format == 'json':
                file_handler.setFormatter(JSONFormatter(self.config))
            else:
                file_handler.setFormatter(logging.Formatter(
                    '%(asctime)s - %(levelname)s - %(module)s - %(funcName)s:%(lineno)d - %(message)s'
                ))
            self._handlers.append(file_handler)

        if self.config.console_logging:
            console_handler = logging.StreamHandler(sys.stderr)
            if self.config.console_format == 'colored':
                console_handler.setFormatter(ColoredFormatter(self.config))
            elif self.config.console_format == 'json':
                console_handler.setFormatter(JSONFormatter(self.config))
            else:
                console_handler.setFormatter(logging.Formatter(
                    '%(asctime)s - %(levelname)s - %(module)s - %(message)s'
                ))
            console_handler.setLevel(getattr(logging, self.config.console_level.upper()))
            self._handlers.append(console_handler)

        if self.config.error_file:
            error_handler = self._file_handler(self.config.error_file, logging.ERROR)
            error_handler.setFormatter(JSONFormatter(self.config))
            self._handlers.append(error_handler)

        for handler in self._handlers:
            if log_filter is not None:
                handler.addFilter(log_filter)
            root_logger.addHandler(handler)

    def shutdown(self):
        """Detach and close the handlers installed by this logger."""
        root_logger = logging.getLogger()
        for handler in self._handlers:
            root_logger.removeHandler(handler)
            handler.close()
        self._handlers.clear()

    def get_logger(self, name: str) -> logging.Logger:
        """Get or create a logger for a specific module.

        Args:
            name: Logger name (usually module name)

        Returns:
            Logger instance
        """
        if name not in self.loggers:
            self.loggers[name] = logging.getLogger(name)
        return self.loggers[name]

    def log_performance(self, operation: str, duration: float,
                        extra_data: Optional[Dict[str, Any]] = None):
        """Log performance metrics.

        Args:
            operation: Operation name
            duration: Duration in seconds
            extra_data: Additional performance data
        """
        if not self.config.performance_logging:
            return

        performance_data = {
            'operation': operation,
            'duration_seconds': duration,
        }
        if extra_data:
            performance_data.update(extra_data)

        self.get_logger(f'{ROOT_LOGGER_NAME}.performance').info(
            f"Performance: {operation} took {duration * 1000:.2f}ms",
            extra={'performance_data': performance_data}
        )

    def log_error(self, message: str, exception: Optional[Exception] = None,
                  extra_data: Optional[Dict[str, Any]] = None):
        """Log error with detailed information.

        Args:
            message: Error message
            exception: Exception object
            extra_data: Additional error context
        """
        error_data = {'error_message': message}

        if exception:
            error_data.update({
                'exception_type': type(exception).__name__,
                'exception_message': str(exception),
            })

        if extra_data:
            error_data.update(extra_data)

        exc_info = (type(exception), exception, exception.__traceback__) if exception else None
        self.logger.error(message, exc_info=exc_info, extra={'extra_data': error_data})

    @contextmanager
    def performance_context(self, operation_name: str,
                            extra_data: Optional[Dict[str, Any]] = None):
        """Context manager for performance tracking.

        Args:
            operation_name: Name of the operation
            extra_data: Additional performance data
        """
        timer_id = self.performance_tracker.start_timer(operation_name)

        try:
            yield
        except Exception as e:
            self.log_error(f"Error in {operation_name}", e, extra_data)
            raise
        finally:
            duration = self.performance_tracker.end_timer(timer_id)

            perf_data = {'operation_name': operation_name}
            if extra_data:
                perf_data.update(extra_data)

            self.log_performance(operation_name, duration, perf_data)

    def log_prediction(self, prediction_type: str, port_id: str,
                       prediction_data: Dict[str, Any]):
        """Log a generated prediction.

        Args:
            prediction_type: 'delay', 'congestion', 'forecast' or 'alerts'
            port_id: Port identifier
            prediction_data: Serialized prediction record
        """
        self.get_logger(f'{ROOT_LOGGER_NAME}.predictions').info(
            f"Prediction: {prediction_type} - {port_id}",
            extra={'extra_data': {
                'prediction_type': prediction_type,
                'port_id': port_id,
                'prediction_data': prediction_data,
            }}
        )

    def get_performance_summary(self) -> Dict[str, Any]:
        """Get performance metrics summary.

        Returns:
            Dictionary with performance summary
        """
        metrics = self.performance_tracker.get_metrics()

        summary = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'total_operations': len(metrics),
            'operations': metrics
        }

        if metrics:
            all_avg_times = [op['avg_time'] for op in metrics.values()]
            summary['overall_stats'] = {
                'fastest_avg_operation': min(all_avg_times),
                'slowest_avg_operation': max(all_avg_times),
                'mean_avg_time': sum(all_avg_times) / len(all_avg_times)
            }

        return summary

    def set_log_level(self, level: str):
        """Change log level at runtime.

        Args:
            level: New log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        """
        new_level = getattr(logging, level.upper(), None)
        if not isinstance(new_level, int):
            self.log_error(f"Invalid log level: {level}")
            return

        logging.getLogger().setLevel(new_level)
        for handler in self._handlers:
            if handler.level != logging.ERROR:
                handler.setLevel(new_level)

        self.config.log_level = level.upper()
        self.logger.info(f"Log level changed to {level.upper()}")


# Global logger instance
_global_logger: Optional[PortWeatherLogger] = None


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Get a logger instance, configuring defaults on first use.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = PortWeatherLogger()

    return _global_logger.get_logger(name)


def setup_logging(config: Optional[LogConfig] = None) -> PortWeatherLogger:
    """Setup global logging configuration.

    Replaces the handlers of a previously configured global logger.

    Args:
        config: Logging configuration

    Returns:
        PortWeatherLogger instance
    """
    global _global_logger
    if _global_logger is not None:
        _global_logger.shutdown()
    _global_logger = PortWeatherLogger(config)
    return _global_logger


def shutdown_logging():
    """Detach the global logger's handlers."""
    global _global_logger
    if _global_logger is not None:
        _global_logger.shutdown()
        _global_logger = None


def log_prediction(prediction_type: str, port_id: str, prediction_data: Dict[str, Any]):
    """Log a prediction through the global logger, if configured."""
    if _global_logger:
        _global_logger.log_prediction(prediction_type, port_id, prediction_data)


@contextmanager
def performance_context(operation_name: str,
                        extra_data: Optional[Dict[str, Any]] = None):
    """Context manager for performance tracking using the global logger.

    A no-op when logging has not been set up, so library callers pay nothing.

    Args:
        operation_name: Name of the operation
        extra_data: Additional performance data
    """
    if _global_logger:
        with _global_logger.performance_context(operation_name, extra_data):
            yield
    else:
        yield
