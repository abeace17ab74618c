#!/usr/bin/env python3
"""
Port Weather Monitor
Command line entry point for the port weather prediction engine.

This tool:
1. Predicts vessel delays and congestion from weather and shipping observations
2. Estimates how long predicted congestion will last
3. Forecasts daily delay hours over a multi-day horizon
4. Derives alerts from the predictions

Author: Port Weather Monitor Team
Date: 2024
"""

import json
import sys
from pathlib import Path
from typing import Any, Dict

import click
from dotenv import load_dotenv
from loguru import logger

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from config.config import ConfigManager, Environment
from models.exceptions import PortWeatherError
from models.prediction_service import PredictionService
from utils.data_processing import load_forecast_request, load_port_snapshot
from utils.logging_utils import LogConfig, setup_logging, shutdown_logging


def setup_cli_logging(config: ConfigManager, verbose: bool) -> None:
    """Configure loguru for CLI messages and the package loggers.

    Console output is only enabled with --verbose so stdout carries nothing
    but the JSON result.
    """
    log_config = config.logging

    logger.remove()  # Remove default handler
    if verbose:
        logger.add(
            sys.stderr,
            level=log_config.level.upper(),
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
        )

    setup_logging(LogConfig(
        log_level=log_config.level.upper(),
        log_format=log_config.format,
        log_file=log_config.file_path,
        error_file=log_config.error_file_path,
        max_file_size=log_config.max_file_size,
        backup_count=log_config.backup_count,
        console_logging=verbose and log_config.console_logging,
        console_level=log_config.level.upper(),
        console_format=log_config.console_format,
        performance_logging=log_config.track_execution_time,
        environment=config.environment.value,
    ))


def read_payload(stream) -> Dict[str, Any]:
    """Read a JSON object from an open file."""
    try:
        payload = json.load(stream)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON input: {e}")

    if not isinstance(payload, dict):
        raise click.ClickException("Input must be a JSON object")
    return payload


def emit(record: Any) -> None:
    click.echo(json.dumps(record, indent=2))


@click.group()
@click.option('--config-dir', default=None, type=click.Path(file_okay=False),
              help='Directory containing base.yaml and environment overrides')
@click.option('--env', 'env_name', default=None,
              type=click.Choice([e.value for e in Environment]),
              help='Configuration environment (defaults to PORT_WEATHER_ENV)')
@click.option('--verbose', '-v', is_flag=True, help='Log to stderr')
@click.pass_context
def cli(ctx, config_dir, env_name, verbose):
    """Port Weather Monitor prediction CLI."""
    ctx.ensure_object(dict)

    environment = Environment(env_name) if env_name else None
    config = ConfigManager(config_dir, environment)
    setup_cli_logging(config, verbose)
    ctx.call_on_close(shutdown_logging)

    ctx.obj['config'] = config


def build_service(config: ConfigManager, seed, deterministic: bool) -> PredictionService:
    if seed is not None:
        config.prediction.random_seed = seed
    if deterministic:
        config.prediction.jitter_enabled = False
    return PredictionService.from_config(config)


@cli.command()
@click.option('--input', '-i', 'input_file', type=click.File('r'), default='-',
              help='JSON prediction request (default: stdin)')
@click.option('--model', '-m', 'model_name', default=None, help='Registry model name')
@click.option('--only', type=click.Choice(['delay', 'congestion']), default=None,
              help='Produce a single prediction instead of the full bundle')
@click.option('--alerts', is_flag=True, help='Include generated alerts')
@click.option('--seed', type=int, default=None, help='Seed for the model jitter')
@click.option('--deterministic', is_flag=True, help='Disable model jitter')
@click.pass_context
def predict(ctx, input_file, model_name, only, alerts, seed, deterministic):
    """Predict delay and congestion for a port."""
    config = ctx.obj['config']
    service = build_service(config, seed, deterministic)

    try:
        snapshot = load_port_snapshot(read_payload(input_file))
        args = (
            snapshot.port_id,
            snapshot.current_weather,
            snapshot.historical_weather,
            snapshot.current_shipping,
            snapshot.historical_shipping,
        )

        if only == 'delay':
            result = service.predict_delay(*args, model_name=model_name)
        elif only == 'congestion':
            result = service.predict_congestion(*args, model_name=model_name)
        else:
            result = service.predict(*args, model_name=model_name, generate_alerts=alerts)

    except PortWeatherError as e:
        logger.error(f"Prediction failed: {e}")
        raise click.ClickException(str(e))

    logger.info(f"Prediction generated for {snapshot.port_id}")
    emit(result.to_record())


@cli.command()
@click.option('--input', '-i', 'input_file', type=click.File('r'), default='-',
              help='JSON forecast request (default: stdin)')
@click.option('--horizon', type=int, default=None, help='Days to forecast (7-30)')
@click.option('--seasonal/--no-seasonal', default=None, help='Use the weekly seasonal model')
@click.pass_context
def forecast(ctx, input_file, horizon, seasonal):
    """Forecast daily delay hours for a port."""
    config = ctx.obj['config']
    service = PredictionService.from_config(config)

    try:
        port_id, history = load_forecast_request(read_payload(input_file))
        result = service.forecast(port_id, history, horizon=horizon, use_seasonal_model=seasonal)
    except PortWeatherError as e:
        logger.error(f"Forecast failed: {e}")
        raise click.ClickException(str(e))

    if result.is_fallback:
        logger.warning(f"Forecast for {port_id} fell back to zeros")
    emit(result.to_record())


@cli.command()
@click.pass_context
def models(ctx):
    """List the available prediction models."""
    service = PredictionService.from_config(ctx.obj['config'])
    emit({name: info.to_record() for name, info in service.available_models().items()})


@cli.command()
@click.pass_context
def validate_config(ctx):
    """Validate the active configuration."""
    config = ctx.obj['config']
    issues = config.validate_configuration()

    emit({'environment': config.environment.value, **issues})
    if issues['errors']:
        ctx.exit(1)


def main():
    # Load environment variables
    load_dotenv()

    # Run CLI
    cli()


if __name__ == '__main__':
    main()
