#!/usr/bin/env python3
"""
Data Processing Utilities
Converts raw port records into observations and pandas structures.

Features:
- Parsing of weather and shipping records in camelCase (front-end payloads),
  snake_case (database rows) or wrapped historical shape
  ({"date": ..., "weatherData": {...}})
- Timestamp normalization (datetimes, epoch milliseconds, ISO strings)
- Observation frames for feature extraction
- Daily delay-hour series for time series forecasting

Author: Port Weather Monitor Team
Version: 1.0.0
"""

import logging
import re
from dataclasses import asdict, dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from models.exceptions import InvalidObservationError
from models.observations import ShippingObservation, WeatherObservation

logger = logging.getLogger(__name__)

WEATHER_FIELDS = (
    'temperature', 'humidity', 'wind_speed', 'wind_direction',
    'precipitation', 'visibility', 'weather_type', 'timestamp',
)
SHIPPING_FIELDS = (
    'port_id', 'vessel_count', 'avg_wait_time', 'delayed_vessels',
    'congestion_level', 'timestamp',
)

_CAMEL_PATTERN = re.compile(r'(?<!^)(?=[A-Z])')


@dataclass(frozen=True)
class PortSnapshot:
    """Fully materialized inputs for one prediction request."""
    port_id: str
    current_weather: WeatherObservation
    historical_weather: Tuple[WeatherObservation, ...]
    current_shipping: ShippingObservation
    historical_shipping: Tuple[ShippingObservation, ...]


def to_snake_case(name: str) -> str:
    """Convert a camelCase key to snake_case."""
    return _CAMEL_PATTERN.sub('_', name).lower()


def normalize_keys(record: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of a record with snake_case keys."""
    return {to_snake_case(str(key)): value for key, value in record.items()}


def parse_timestamp(value: Any) -> datetime:
    """Normalize a timestamp to a timezone-aware UTC datetime.

    Args:
        value: datetime, date, epoch milliseconds, or ISO-8601 string

    Returns:
        UTC datetime
    """
    if value is None:
        raise InvalidObservationError("timestamp is required")

    try:
        if isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, bool):
            stamp = pd.Timestamp(int(value), unit='ms', tz='UTC')
        else:
            stamp = pd.Timestamp(value)
            if stamp.tzinfo is None:
                stamp = stamp.tz_localize('UTC')
            else:
                stamp = stamp.tz_convert('UTC')
    except (TypeError, ValueError) as e:
        raise InvalidObservationError(f"Unparseable timestamp {value!r}: {e}")

    if pd.isna(stamp):
        raise InvalidObservationError(f"Unparseable timestamp {value!r}")

    return stamp.to_pydatetime()


def _unwrap(record: Mapping[str, Any], wrapper_key: str) -> Dict[str, Any]:
    """Flatten the historical {"date", "<kind>Data"} wrapper if present."""
    data = normalize_keys(record)
    inner = data.get(wrapper_key)
    if isinstance(inner, Mapping):
        flattened = normalize_keys(inner)
        if 'timestamp' not in flattened and 'date' in data:
            flattened['timestamp'] = data['date']
        return flattened
    return data


def _require(data: Dict[str, Any], fields: Sequence[str], kind: str):
    missing = [name for name in fields if data.get(name) is None]
    if missing:
        raise InvalidObservationError(f"{kind} record missing fields: {', '.join(missing)}")


def parse_weather_record(record: Mapping[str, Any]) -> WeatherObservation:
    """Build a WeatherObservation from a raw record."""
    if isinstance(record, WeatherObservation):
        return record

    data = _unwrap(record, 'weather_data')
    _require(data, WEATHER_FIELDS, 'Weather')

    try:
        wave_height = data.get('wave_height')
        return WeatherObservation(
            temperature=float(data['temperature']),
            humidity=float(data['humidity']),
            wind_speed=float(data['wind_speed']),
            wind_direction=float(data['wind_direction']),
            precipitation=float(data['precipitation']),
            visibility=float(data['visibility']),
            weather_type=data['weather_type'],
            timestamp=parse_timestamp(data['timestamp']),
            wave_height=float(wave_height) if wave_height is not None else None,
        )
    except (TypeError, ValueError) as e:
        if isinstance(e, InvalidObservationError):
            raise
        raise InvalidObservationError(f"Invalid weather record: {e}")


def parse_shipping_record(record: Mapping[str, Any], port_id: Optional[str] = None) -> ShippingObservation:
    """Build a ShippingObservation from a raw record.

    Args:
        record: Raw shipping record
        port_id: Port identifier used when the record does not carry one

    Returns:
        ShippingObservation
    """
    if isinstance(record, ShippingObservation):
        return record

    data = _unwrap(record, 'shipping_data')
    if data.get('port_id') is None and port_id is not None:
        data['port_id'] = port_id
    _require(data, SHIPPING_FIELDS, 'Shipping')

    try:
        return ShippingObservation(
            port_id=str(data['port_id']),
            vessel_count=int(data['vessel_count']),
            avg_wait_time=float(data['avg_wait_time']),
            delayed_vessels=int(data['delayed_vessels']),
            congestion_level=data['congestion_level'],
            timestamp=parse_timestamp(data['timestamp']),
        )
    except (TypeError, ValueError) as e:
        if isinstance(e, InvalidObservationError):
            raise
        raise InvalidObservationError(f"Invalid shipping record: {e}")


def parse_weather_records(records: Iterable[Mapping[str, Any]]) -> List[WeatherObservation]:
    """Parse a sequence of weather records, preserving order."""
    return [parse_weather_record(record) for record in records or []]


def parse_shipping_records(records: Iterable[Mapping[str, Any]],
                           port_id: Optional[str] = None) -> List[ShippingObservation]:
    """Parse a sequence of shipping records, preserving order."""
    return [parse_shipping_record(record, port_id) for record in records or []]


def load_port_snapshot(payload: Mapping[str, Any]) -> PortSnapshot:
    """Parse a complete prediction request payload.

    Expected keys (camelCase or snake_case): portId, currentWeather,
    historicalWeather, currentShipping, historicalShipping.
    """
    data = normalize_keys(payload)

    port_id = data.get('port_id')
    if not port_id:
        raise InvalidObservationError("Payload is missing portId")
    if data.get('current_weather') is None or data.get('current_shipping') is None:
        raise InvalidObservationError("Payload requires currentWeather and currentShipping")

    snapshot = PortSnapshot(
        port_id=str(port_id),
        current_weather=parse_weather_record(data['current_weather']),
        historical_weather=tuple(parse_weather_records(data.get('historical_weather'))),
        current_shipping=parse_shipping_record(data['current_shipping'], port_id),
        historical_shipping=tuple(parse_shipping_records(data.get('historical_shipping'), port_id)),
    )

    logger.debug(
        f"Loaded snapshot for {snapshot.port_id}: {len(snapshot.historical_weather)} weather, "
        f"{len(snapshot.historical_shipping)} shipping records"
    )
    return snapshot


def observations_to_frame(observations: Sequence[Union[WeatherObservation, ShippingObservation]]) -> pd.DataFrame:
    """Load observations into a DataFrame sorted chronologically.

    Enum fields are stored by value. Sorting is stable so records sharing a
    timestamp keep their input order.
    """
    if not observations:
        return pd.DataFrame()

    rows = []
    for observation in observations:
        row = asdict(observation)
        for key, value in row.items():
            if isinstance(value, Enum):
                row[key] = value.value
        rows.append(row)

    frame = pd.DataFrame(rows)
    frame = frame.sort_values('timestamp', kind='stable').reset_index(drop=True)
    return frame


def to_daily_series(history: Any) -> pd.Series:
    """Normalize a historical series to one float value per calendar day.

    Args:
        history: pandas Series indexed by dates, a mapping of date -> value,
            or an iterable of (date, value) pairs

    Returns:
        Series with a daily DatetimeIndex (naive, UTC calendar days). Duplicate
        days are averaged and gaps are linearly interpolated.
    """
    if isinstance(history, pd.Series):
        series = history.copy()
    elif isinstance(history, Mapping):
        series = pd.Series(dict(history))
    else:
        pairs = list(history or [])
        if not pairs:
            return pd.Series(dtype=float)
        dates, values = zip(*pairs)
        series = pd.Series(list(values), index=list(dates))

    if series.empty:
        return pd.Series(dtype=float)

    index = pd.DatetimeIndex([parse_timestamp(value) for value in series.index])
    series = pd.Series(pd.to_numeric(series.values, errors='coerce'), index=index.tz_localize(None).normalize())
    series = series.dropna()
    if series.empty:
        return pd.Series(dtype=float)

    series = series.groupby(level=0).mean().sort_index()
    series = series.asfreq('D').interpolate(method='linear')
    return series.astype(float)


def build_delay_series(shipping_history: Sequence[ShippingObservation]) -> pd.Series:
    """Derive the daily average wait-time series from shipping observations."""
    frame = observations_to_frame(shipping_history)
    if frame.empty:
        return pd.Series(dtype=float)

    return to_daily_series(zip(frame['timestamp'], frame['avg_wait_time']))


def forecast_dates_after(last_day: Union[date, datetime], horizon: int) -> Tuple[date, ...]:
    """Consecutive calendar dates starting the day after ``last_day``."""
    start = pd.Timestamp(last_day).normalize() + pd.Timedelta(days=1)
    return tuple(ts.date() for ts in pd.date_range(start=start, periods=horizon, freq='D'))


def utc_today() -> date:
    """Current UTC calendar date."""
    return datetime.now(timezone.utc).date()


def load_forecast_request(payload: Mapping[str, Any]) -> Tuple[str, pd.Series]:
    """Parse a forecast request payload into (port_id, daily delay series).

    The history is taken from ``history`` (a list of {"date", "value"}
    records or a date -> value mapping) or, failing that, derived from
    ``historicalShipping`` average wait times.
    """
    data = normalize_keys(payload)

    port_id = data.get('port_id')
    if not port_id:
        raise InvalidObservationError("Payload is missing portId")

    history = data.get('history')
    if isinstance(history, Mapping):
        return str(port_id), to_daily_series(history)

    if history is not None:
        pairs = []
        for entry in history:
            entry = normalize_keys(entry)
            if entry.get('date') is None or entry.get('value') is None:
                raise InvalidObservationError("History entries require date and value")
            pairs.append((entry['date'], entry['value']))
        return str(port_id), to_daily_series(pairs)

    shipping = parse_shipping_records(data.get('historical_shipping'), str(port_id))
    return str(port_id), build_delay_series(shipping)
