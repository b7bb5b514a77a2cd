"""
Row predicates for record store queries.

A FlightFilter is evaluated in memory by matches() and translated to
SQL by the relational adapter, so both backends agree on which flights
a query sees.
"""

from dataclasses import dataclass, fields
from datetime import date
from typing import Any, Dict, Mapping, Optional

from flightperf.errors import UnknownFilterKey
from flightperf.models.records import FlightRecord, DELAY_FIELDS


@dataclass(frozen=True)
class FlightFilter:
    """
    Row predicate for a store query. All set conditions must hold.

    Attributes:
        positive_field: Delay field that must be > 0.
        min_dep_delay: dep_delay must be strictly greater than this.
        cancelled: True keeps only cancelled flights, False only operated ones.
        since: Earliest flight_date (inclusive).
        until: Latest flight_date (inclusive).
        origin: Origin airport code.
        dest: Destination airport code.
        airline: Carrier code.
        has_schedule: Require a scheduled departure time.
    """
    positive_field: Optional[str] = None
    min_dep_delay: Optional[float] = None
    cancelled: Optional[bool] = None
    since: Optional[date] = None
    until: Optional[date] = None
    origin: Optional[str] = None
    dest: Optional[str] = None
    airline: Optional[str] = None
    has_schedule: bool = False

    # Keys accepted from request parameters
    PARAM_KEYS = ('origin', 'dest', 'airline', 'since', 'until', 'cancelled')

    def __post_init__(self):
        if self.positive_field is not None and self.positive_field not in DELAY_FIELDS:
            raise UnknownFilterKey(self.positive_field, 'delay field', DELAY_FIELDS)

    def matches(self, record: FlightRecord) -> bool:
        """Evaluate the predicate against one record."""
        if self.positive_field is not None:
            value = getattr(record, self.positive_field)
            if value is None or value <= 0:
                return False
        if self.min_dep_delay is not None:
            if record.dep_delay is None or record.dep_delay <= self.min_dep_delay:
                return False
        if self.cancelled is not None and record.cancelled != self.cancelled:
            return False
        if self.since is not None and record.flight_date < self.since:
            return False
        if self.until is not None and record.flight_date > self.until:
            return False
        if self.origin is not None and record.origin != self.origin:
            return False
        if self.dest is not None and record.dest != self.dest:
            return False
        if self.airline is not None and record.airline != self.airline:
            return False
        if self.has_schedule and record.scheduled_dep_time is None:
            return False
        return True

    def merge(self, other: 'FlightFilter') -> 'FlightFilter':
        """Combine with another filter; the other filter's set fields win."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        for f in fields(other):
            value = getattr(other, f.name)
            if f.name == 'has_schedule':
                values[f.name] = self.has_schedule or other.has_schedule
            elif value is not None:
                values[f.name] = value
        return FlightFilter(**values)

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> 'FlightFilter':
        """
        Build a filter from request parameters.

        Accepts origin, dest, airline (codes), since/until (ISO dates)
        and cancelled (true/false). Raises UnknownFilterKey for any other
        key or an unparseable value.
        """
        values: Dict[str, Any] = {}
        for key, raw in params.items():
            if key not in cls.PARAM_KEYS:
                raise UnknownFilterKey(key, 'filter key', cls.PARAM_KEYS)
            text = str(raw).strip()
            if key in ('origin', 'dest', 'airline'):
                values[key] = text.upper()
            elif key in ('since', 'until'):
                try:
                    values[key] = date.fromisoformat(text)
                except ValueError:
                    raise UnknownFilterKey(raw, f'{key} date (expected YYYY-MM-DD)') from None
            else:
                lowered = text.lower()
                if lowered in ('1', 'true', 'yes'):
                    values[key] = True
                elif lowered in ('0', 'false', 'no'):
                    values[key] = False
                else:
                    raise UnknownFilterKey(raw, 'cancelled flag (expected true/false)')
        return cls(**values)
