"""
Result records produced by the ranked analyses and trend queries.

Plain dataclasses, one per analysis. to_dict() turns them into JSON-ready
dicts: enums become their labels, floats are rounded for display and
undefined metrics stay None.
"""

from dataclasses import dataclass, fields
from datetime import date
from enum import Enum
from typing import Any, Optional

from flightperf.analytics.scoring import CongestionLevel, HubClass, RiskLevel


def _plain(value: Any, precision: int) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, float):
        return round(value, precision)
    if isinstance(value, date):
        return value.isoformat()
    return value


class ResultRecord:
    """Mixin giving dataclass results a JSON-friendly to_dict()."""

    precision = 2

    def to_dict(self) -> dict:
        return {f.name: _plain(getattr(self, f.name), self.precision) for f in fields(self)}


# -------------------------------------------------------------------------
# Scoring-based rankings
# -------------------------------------------------------------------------

@dataclass
class AirlineRanking(ResultRecord):
    """Composite performance ranking of one airline."""
    rank: int
    airline: str
    airline_name: str
    total_flights: int
    avg_delay: Optional[float]
    delay_variability: Optional[float]
    on_time_pct: float
    cancel_pct: float
    avg_positive_delay: Optional[float]
    performance_score: float


@dataclass
class RouteRisk(ResultRecord):
    """Delay risk of one airline on one route over the trailing window."""
    airline: str
    route: str
    total_flights: int
    avg_historical_delay: Optional[float]
    severe_delay_rate: Optional[float]
    weather_risk: Optional[float]
    delay_risk_score: float
    risk_category: RiskLevel


@dataclass
class CongestionSlot(ResultRecord):
    """Departure load and delay of one airport hour."""
    airport: str
    departure_hour: int
    scheduled_departures: int
    avg_delay: Optional[float]
    severe_delays: int
    congestion_level: CongestionLevel


@dataclass
class HubProfile(ResultRecord):
    """Operational footprint of one airport."""
    airport_code: str
    airport_name: Optional[str]
    city: Optional[str]
    total_operations: int
    departures: int
    arrivals: int
    unique_destinations: int
    airlines_operating: int
    avg_dep_delay: Optional[float]
    avg_arr_delay: Optional[float]
    hub_classification: HubClass


@dataclass
class RouteReliability(ResultRecord):
    """Delay consistency of one route."""
    precision = 3

    route: str
    total_flights: int
    avg_delay: Optional[float]
    delay_std_dev: Optional[float]
    min_delay: Optional[float]
    max_delay: Optional[float]
    q1_delay: Optional[float]
    median_delay: Optional[float]
    q3_delay: Optional[float]
    coefficient_variation: Optional[float]


@dataclass
class RouteAirlinePerformance(ResultRecord):
    """One airline's record on one route."""
    route: str
    airline: str
    total_flights: int
    avg_delay: Optional[float]
    cancelled_count: int
    on_time_percentage: float


@dataclass
class MostDelayedRoute(ResultRecord):
    """Delay distribution of a route's late departures."""
    route: str
    flight_count: int
    avg_delay_minutes: Optional[float]
    median_delay: Optional[float]
    max_delay: Optional[float]


# -------------------------------------------------------------------------
# Delay patterns
# -------------------------------------------------------------------------

@dataclass
class TimeOfDayDelay(ResultRecord):
    """Delayed flights of one route within one time-of-day bucket."""
    route: str
    time_period: str
    total_flights: int
    avg_delay: Optional[float]
    percentile_75_delay: Optional[float]


@dataclass
class HourlyPattern(ResultRecord):
    departure_hour: int
    total_flights: int
    avg_delay: Optional[float]
    delay_percentage: Optional[float]


@dataclass
class DayOfWeekPattern(ResultRecord):
    day_of_week: str
    dow_num: int
    total_flights: int
    avg_delay: Optional[float]
    delay_pct: Optional[float]
    cancel_pct: float
    avg_distance: Optional[float]


@dataclass
class DelayCauseBreakdown(ResultRecord):
    """Delay minutes of one airline split by cause."""
    precision = 1

    airline: str
    airline_name: str
    total_delayed_flights: int
    total_carrier_delay: float
    total_weather_delay: float
    total_nas_delay: float
    total_security_delay: float
    total_late_aircraft_delay: float
    carrier_pct: Optional[float]
    weather_pct: Optional[float]
    nas_pct: Optional[float]
    security_pct: Optional[float]
    late_aircraft_pct: Optional[float]


@dataclass
class CancellationPattern(ResultRecord):
    cancellation_code: Optional[str]
    cancellation_reason: str
    total_cancellations: int
    percentage: Optional[float]
    most_affected_route: Optional[str]
    most_affected_airline: Optional[str]


@dataclass
class AirportWeatherImpact(ResultRecord):
    airport: str
    total_flights: int
    total_weather_delay_minutes: float
    avg_weather_delay: Optional[float]
    weather_affected_flights: int
    weather_impact_percentage: Optional[float]


# -------------------------------------------------------------------------
# Trends
# -------------------------------------------------------------------------

@dataclass
class YearOverYear(ResultRecord):
    """One airline-month with the change against the previous year."""
    airline: str
    year: int
    month: int
    total_flights: int
    avg_delay: Optional[float]
    cancel_rate: float
    prev_year_delay: Optional[float]
    yoy_change: Optional[float]


@dataclass
class CascadeStep(ResultRecord):
    """Delay at one position of a carrier's daily flight sequence."""
    precision = 3

    airline: str
    flight_seq: int
    flights_in_sequence: int
    avg_delay: Optional[float]
    avg_late_aircraft_delay: Optional[float]
    correlation_seq_delay: Optional[float]


@dataclass
class RegionWeatherImpact(ResultRecord):
    region: str
    airports_in_region: int
    total_flights: int
    total_weather_delay: float
    avg_weather_delay_per_airport: Optional[float]
    weather_impact_pct: Optional[float]


@dataclass
class LateAircraftMonth(ResultRecord):
    """Share of an airline's monthly delay caused by late inbound aircraft."""
    airline: str
    year: int
    month: int
    total_late_aircraft_delay: float
    late_aircraft_percentage: Optional[float]
    flights_affected: int


@dataclass
class DailyStatistics(ResultRecord):
    """Operating counts and cause-split delay minutes of one airline-day."""
    flight_date: date
    airline: str
    total_flights: int
    cancelled_flights: int
    delayed_flights: int
    avg_delay: Optional[float]
    total_carrier_delay: float
    total_weather_delay: float
    total_nas_delay: float
    total_security_delay: float
    total_late_aircraft_delay: float


# -------------------------------------------------------------------------
# Flight listings
# -------------------------------------------------------------------------

@dataclass
class DelayedFlight(ResultRecord):
    """A delayed departure with the cause it is attributed to."""
    flight_date: date
    airline: str
    airline_name: str
    flight_number: str
    origin: str
    dest: str
    dep_delay: float
    carrier_delay: Optional[float]
    weather_delay: Optional[float]
    nas_delay: Optional[float]
    security_delay: Optional[float]
    late_aircraft_delay: Optional[float]
    primary_delay_cause: str
