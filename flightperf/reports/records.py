"""
Result records consumed by the dashboard.

Field names are snake_case in Python; to_dict() emits the camelCase
keys the presentation layer reads.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

NOT_AVAILABLE = 'N/A'


def _round(value: Optional[float], digits: int = 2) -> Optional[float]:
    return round(value, digits) if value is not None else None


@dataclass
class OverviewStats:
    """Headline numbers for the whole dataset."""
    total_flights: int = 0
    delayed_flights: int = 0
    delay_percentage: float = 0.0
    cancelled_flights: int = 0
    cancellation_percentage: float = 0.0
    avg_delay: float = 0.0
    worst_route: str = NOT_AVAILABLE
    best_airline: str = NOT_AVAILABLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalFlights': self.total_flights,
            'delayedFlights': self.delayed_flights,
            'delayPercentage': _round(self.delay_percentage),
            'cancelledFlights': self.cancelled_flights,
            'cancellationPercentage': _round(self.cancellation_percentage),
            'avgDelay': _round(self.avg_delay),
            'worstRoute': self.worst_route,
            'bestAirline': self.best_airline,
        }


@dataclass
class DelayInfo:
    airline: str
    route: str
    avg_delay: Optional[float]
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'airline': self.airline,
            'route': self.route,
            'avgDelay': _round(self.avg_delay),
            'count': self.count,
        }


@dataclass
class RoutePerformance:
    route: str
    flight_count: int
    avg_delay: Optional[float]
    cancellation_rate: float
    on_time_percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'route': self.route,
            'flightCount': self.flight_count,
            'avgDelay': _round(self.avg_delay),
            'cancellationRate': _round(self.cancellation_rate),
            'onTimePercentage': _round(self.on_time_percentage),
        }


@dataclass
class WeatherImpact:
    condition: str
    flight_count: int
    avg_delay: Optional[float]
    cancellation_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'condition': self.condition,
            'flightCount': self.flight_count,
            'avgDelay': _round(self.avg_delay),
            'cancellationRate': _round(self.cancellation_rate),
        }


@dataclass
class AirlinePerformance:
    airline: str
    flight_count: int
    avg_delay: Optional[float]
    cancellation_rate: float
    on_time_percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'airline': self.airline,
            'flightCount': self.flight_count,
            'avgDelay': _round(self.avg_delay),
            'cancellationRate': _round(self.cancellation_rate),
            'onTimePercentage': _round(self.on_time_percentage),
        }


ReportRecord = Union[OverviewStats, DelayInfo, RoutePerformance, WeatherImpact, AirlinePerformance]
