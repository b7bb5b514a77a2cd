"""
Immutable domain records handed from the store to the analytics core.

The ORM rows never leave the store adapter; everything above it works on
these frozen dataclasses so that analyses cannot mutate source data and
can run against any backing store.
"""

from dataclasses import dataclass
from datetime import date, time
from typing import Optional

# A departure more than this many minutes late counts as delayed
DELAY_THRESHOLD_MINUTES = 15

# A departure more than this many minutes late counts as a severe delay
SEVERE_DELAY_MINUTES = 30

ROUTE_SEPARATOR = ' → '

DELAY_CAUSE_FIELDS = (
    'carrier_delay',
    'weather_delay',
    'nas_delay',
    'security_delay',
    'late_aircraft_delay',
)

# Every field a delay statistic can be computed over
DELAY_FIELDS = ('dep_delay', 'arr_delay') + DELAY_CAUSE_FIELDS


def format_route(origin: str, dest: str) -> str:
    """Display form of a route, e.g. 'JFK → LAX'."""
    return f'{origin}{ROUTE_SEPARATOR}{dest}'


@dataclass(frozen=True)
class FlightRecord:
    """
    One scheduled flight from the historical dataset.

    Delay values are minutes; a negative departure delay means the
    flight left early. Delay fields of a cancelled flight are ignored
    by every statistic.
    """
    flight_date: date
    airline: str
    flight_number: str
    origin: str
    dest: str
    scheduled_dep_time: Optional[time] = None
    actual_dep_time: Optional[time] = None
    scheduled_arr_time: Optional[time] = None
    actual_arr_time: Optional[time] = None
    dep_delay: Optional[float] = 0
    arr_delay: Optional[float] = 0
    cancelled: bool = False
    cancellation_code: Optional[str] = None
    distance: Optional[float] = None
    carrier_delay: Optional[float] = 0
    weather_delay: Optional[float] = 0
    nas_delay: Optional[float] = 0
    security_delay: Optional[float] = 0
    late_aircraft_delay: Optional[float] = 0

    @property
    def route(self) -> str:
        return format_route(self.origin, self.dest)

    @property
    def departure_hour(self) -> Optional[int]:
        """Hour of the scheduled departure, or None when unscheduled."""
        if self.scheduled_dep_time is None:
            return None
        return self.scheduled_dep_time.hour

    @property
    def day_of_week(self) -> int:
        """Day of week with Sunday as 0 and Saturday as 6."""
        return (self.flight_date.weekday() + 1) % 7

    @property
    def is_delayed(self) -> bool:
        return (
            not self.cancelled
            and self.dep_delay is not None
            and self.dep_delay > DELAY_THRESHOLD_MINUTES
        )

    @property
    def is_on_time(self) -> bool:
        return (
            not self.cancelled
            and self.dep_delay is not None
            and self.dep_delay <= DELAY_THRESHOLD_MINUTES
        )

    @property
    def is_severely_delayed(self) -> bool:
        return (
            not self.cancelled
            and self.dep_delay is not None
            and self.dep_delay > SEVERE_DELAY_MINUTES
        )


@dataclass(frozen=True)
class AirportRef:
    """Static airport reference data."""
    code: str
    name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def display_name(self) -> str:
        return self.name or self.code


@dataclass(frozen=True)
class AirlineRef:
    """Static airline reference data."""
    code: str
    name: Optional[str] = None
    country: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.code
