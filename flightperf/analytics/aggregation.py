"""
Aggregation engine: group flight records and summarise each group.

Given a set of grouping keys and a filtered record set, produces one
AggregateRow per distinct key combination. Every row carries the same
core statistics of the chosen delay field (count, mean, sample stddev,
quartiles, range) plus cancellation and on-time rates; callers ask for
anything else by name through the METRICS registry.

Rules shared by every query:
- Delay samples skip cancelled flights and missing values.
- Rates are percentages of the whole group, cancelled flights included.
- A group must have strictly more flights than `min_support` to appear.
- Ordering is stable: groups with equal sort values keep the order in
  which they first appeared in the input.

Usage:
    rows = aggregate(records, ('origin', 'dest'), metrics=('severe_delay_rate',),
                     min_support=50, order_by='avg_delay')
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from flightperf.analytics.scoring import weather_condition
from flightperf.analytics.statistics import mean, percentage, summarize
from flightperf.errors import UnknownDelayType, UnknownFilterKey
from flightperf.models.records import (
    FlightRecord,
    DELAY_CAUSE_FIELDS,
    DELAY_FIELDS,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_SEQUENCE_POSITION = 20


class TimeOfDay(str, Enum):
    """Fixed partition of the departure hour."""
    MORNING = 'Morning'
    AFTERNOON = 'Afternoon'
    EVENING = 'Evening'


def time_of_day(hour: Optional[int]) -> TimeOfDay:
    """Hours 5-11 are Morning, 12-17 Afternoon, anything else Evening."""
    if hour is not None and 5 <= hour <= 11:
        return TimeOfDay.MORNING
    if hour is not None and 12 <= hour <= 17:
        return TimeOfDay.AFTERNOON
    return TimeOfDay.EVENING


# -------------------------------------------------------------------------
# Delay fields
# -------------------------------------------------------------------------

# Delay type label -> record field
DELAY_TYPES: Dict[str, str] = {
    'All Delays': 'dep_delay',
    'Weather': 'weather_delay',
    'Carrier': 'carrier_delay',
    'NAS': 'nas_delay',
    'Security': 'security_delay',
    'Late Aircraft': 'late_aircraft_delay',
}

_DELAY_TYPE_ALIASES = {'all': 'dep_delay'}
for _label, _field_name in DELAY_TYPES.items():
    _DELAY_TYPE_ALIASES[_label.lower()] = _field_name
    _DELAY_TYPE_ALIASES[_label.lower().replace(' ', '_')] = _field_name


def resolve_delay_field(delay_type: Optional[str]) -> str:
    """
    Map a delay type label ('Weather', 'late_aircraft', ...) to its field.

    None selects all departure delays. Raises UnknownDelayType otherwise.
    """
    if delay_type is None:
        return 'dep_delay'
    field_name = _DELAY_TYPE_ALIASES.get(str(delay_type).strip().lower())
    if field_name is None:
        raise UnknownDelayType(delay_type, DELAY_TYPES.keys())
    return field_name


# -------------------------------------------------------------------------
# Grouping keys
# -------------------------------------------------------------------------

GROUP_KEYS: Dict[str, Callable[[FlightRecord], Any]] = {
    'origin': lambda r: r.origin,
    'dest': lambda r: r.dest,
    'route': lambda r: r.route,
    'airline': lambda r: r.airline,
    'year': lambda r: r.flight_date.year,
    'month': lambda r: r.flight_date.month,
    'flight_date': lambda r: r.flight_date,
    'hour': lambda r: r.departure_hour,
    'time_of_day': lambda r: time_of_day(r.departure_hour).value,
    'day_of_week': lambda r: r.day_of_week,
    'cancellation_code': lambda r: r.cancellation_code,
    'weather_condition': lambda r: weather_condition(r.weather_delay).value,
}

# Position of a flight within its carrier's day; computed per query
SEQUENCE_KEY = 'sequence'


def assign_sequence_positions(
    records: Iterable[FlightRecord],
    max_position: int = DEFAULT_MAX_SEQUENCE_POSITION,
) -> List[Tuple[int, FlightRecord]]:
    """
    Rank each carrier's non-cancelled flights within a calendar day.

    Flights are ordered by scheduled departure (unscheduled flights last,
    ties in input order) and numbered from 1. Positions beyond
    max_position are dropped.
    """
    by_day: Dict[Tuple[str, Any], List[FlightRecord]] = {}
    for record in records:
        if record.cancelled:
            continue
        by_day.setdefault((record.airline, record.flight_date), []).append(record)

    positioned = []
    for day_flights in by_day.values():
        ordered = sorted(
            day_flights,
            key=lambda r: (r.scheduled_dep_time is None, r.scheduled_dep_time or 0),
        )
        for position, record in enumerate(ordered[:max_position], start=1):
            positioned.append((position, record))
    return positioned


# -------------------------------------------------------------------------
# Named metrics
# -------------------------------------------------------------------------

def _values(records: Sequence[FlightRecord], field_name: str) -> List[float]:
    """Non-missing values of a delay field, cancelled flights skipped."""
    values = []
    for record in records:
        if record.cancelled:
            continue
        value = getattr(record, field_name)
        if value is not None:
            values.append(float(value))
    return values


def _avg_of(field_name: str) -> Callable[[Sequence[FlightRecord]], Optional[float]]:
    return lambda records: mean(_values(records, field_name))


def _sum_of(field_name: str) -> Callable[[Sequence[FlightRecord]], float]:
    return lambda records: float(sum(_values(records, field_name)))


def _count_where(predicate: Callable[[FlightRecord], bool]) -> Callable[[Sequence[FlightRecord]], int]:
    return lambda records: sum(1 for r in records if predicate(r))


def _rate_where(predicate: Callable[[FlightRecord], bool]) -> Callable[[Sequence[FlightRecord]], Optional[float]]:
    return lambda records: percentage(sum(1 for r in records if predicate(r)), len(records))


def _distinct(attr: str) -> Callable[[Sequence[FlightRecord]], int]:
    return lambda records: len({getattr(r, attr) for r in records})


def _mode(attr: str) -> Callable[[Sequence[FlightRecord]], Optional[str]]:
    """Most frequent value; ties resolve to the smallest value."""
    def compute(records: Sequence[FlightRecord]) -> Optional[str]:
        counts = Counter(getattr(r, attr) for r in records)
        if not counts:
            return None
        top = max(counts.values())
        return min(value for value, n in counts.items() if n == top)
    return compute


def _positive(field_name: str) -> Callable[[FlightRecord], bool]:
    def check(record: FlightRecord) -> bool:
        value = getattr(record, field_name)
        return not record.cancelled and value is not None and value > 0
    return check


METRICS: Dict[str, Callable[[Sequence[FlightRecord]], Any]] = {
    'delay_rate': _rate_where(lambda r: r.is_delayed),
    'severe_delay_rate': _rate_where(lambda r: r.is_severely_delayed),
    'severe_delays': _count_where(lambda r: r.is_severely_delayed),
    'delayed_flights': _count_where(lambda r: r.is_delayed),
    'cancelled_flights': _count_where(lambda r: r.cancelled),
    'avg_abs_delay': lambda records: mean([abs(v) for v in _values(records, 'dep_delay')]),
    'avg_positive_delay': lambda records: mean([v for v in _values(records, 'dep_delay') if v > 0]),
    'avg_arr_delay': _avg_of('arr_delay'),
    'avg_distance': _avg_of('distance'),
    'avg_weather_delay': _avg_of('weather_delay'),
    'avg_late_aircraft_delay': _avg_of('late_aircraft_delay'),
    'sum_dep_delay': _sum_of('dep_delay'),
    'weather_affected': _count_where(_positive('weather_delay')),
    'late_aircraft_affected': _count_where(_positive('late_aircraft_delay')),
    'unique_destinations': _distinct('dest'),
    'airlines_operating': _distinct('airline'),
    'mode_route': _mode('route'),
    'mode_airline': _mode('airline'),
}
for _cause in DELAY_CAUSE_FIELDS:
    METRICS[f'sum_{_cause}'] = _sum_of(_cause)


# -------------------------------------------------------------------------
# Aggregate rows
# -------------------------------------------------------------------------

@dataclass
class AggregateRow:
    """
    Statistics for one group of flights.

    Created fresh per query and never persisted; its only identity is
    the key tuple. Delay statistics refer to the query's delay field.
    """
    key_fields: Tuple[str, ...]
    key: Tuple[Any, ...]
    count: int
    avg_delay: Optional[float] = None
    stddev_delay: Optional[float] = None
    q1_delay: Optional[float] = None
    median_delay: Optional[float] = None
    q3_delay: Optional[float] = None
    min_delay: Optional[float] = None
    max_delay: Optional[float] = None
    cancel_rate: float = 0.0
    on_time_rate: float = 0.0
    metrics: Dict[str, Any] = field(default_factory=dict)

    # Delay sample behind the statistics, for derived measures
    delays: Tuple[float, ...] = field(default=(), repr=False)

    def key_dict(self) -> Dict[str, Any]:
        return dict(zip(self.key_fields, self.key))

    def get(self, name: str, default: Any = None) -> Any:
        """Look up a key field, a core statistic or a named metric."""
        if name in self.key_fields:
            return self.key[self.key_fields.index(name)]
        if name in _ROW_STATISTICS:
            return getattr(self, name)
        return self.metrics.get(name, default)


_ROW_STATISTICS = frozenset((
    'count', 'avg_delay', 'stddev_delay', 'q1_delay', 'median_delay',
    'q3_delay', 'min_delay', 'max_delay', 'cancel_rate', 'on_time_rate',
))


def validate_query(
    group_keys: Sequence[str],
    metrics: Sequence[str] = (),
    delay_field: str = 'dep_delay',
    order_by: Optional[str] = None,
) -> None:
    """
    Reject unknown keys, metrics or fields before any data is touched.

    Raises UnknownFilterKey.
    """
    known_keys = set(GROUP_KEYS) | {SEQUENCE_KEY}
    for key in group_keys:
        if key not in known_keys:
            raise UnknownFilterKey(key, 'group key', known_keys)
    for name in metrics:
        if name not in METRICS:
            raise UnknownFilterKey(name, 'metric', METRICS.keys())
    if delay_field not in DELAY_FIELDS:
        raise UnknownFilterKey(delay_field, 'delay field', DELAY_FIELDS)
    if order_by is not None:
        orderable = _ROW_STATISTICS | set(group_keys) | set(metrics)
        if order_by not in orderable:
            raise UnknownFilterKey(order_by, 'order field', orderable)


def _build_row(
    key_fields: Tuple[str, ...],
    key: Tuple[Any, ...],
    records: List[FlightRecord],
    metrics: Sequence[str],
    delay_field: str,
    clip_negative: bool,
) -> AggregateRow:
    delays = _values(records, delay_field)
    if clip_negative:
        delays = [max(d, 0.0) for d in delays]

    summary = summarize(delays)
    count = len(records)

    return AggregateRow(
        key_fields=key_fields,
        key=key,
        count=count,
        avg_delay=summary.mean,
        stddev_delay=summary.stddev,
        q1_delay=summary.q1,
        median_delay=summary.median,
        q3_delay=summary.q3,
        min_delay=summary.min_val,
        max_delay=summary.max_val,
        cancel_rate=percentage(sum(1 for r in records if r.cancelled), count) or 0.0,
        on_time_rate=percentage(sum(1 for r in records if r.is_on_time), count) or 0.0,
        metrics={name: METRICS[name](records) for name in metrics},
        delays=tuple(delays),
    )


def sort_rows(rows: List[AggregateRow], order_by: str, descending: bool = True) -> List[AggregateRow]:
    """
    Stable sort on one field; rows where the field is None go last.
    """
    present = [r for r in rows if r.get(order_by) is not None]
    missing = [r for r in rows if r.get(order_by) is None]
    present.sort(key=lambda r: r.get(order_by), reverse=descending)
    return present + missing


def aggregate(
    records: Iterable[FlightRecord],
    group_keys: Sequence[str],
    metrics: Sequence[str] = (),
    delay_field: str = 'dep_delay',
    min_support: int = 0,
    order_by: Optional[str] = None,
    descending: bool = True,
    limit: Optional[int] = None,
    clip_negative: bool = False,
    max_sequence_position: int = DEFAULT_MAX_SEQUENCE_POSITION,
) -> List[AggregateRow]:
    """
    Group records and compute per-group statistics.

    Args:
        records: Flights that already passed the query's filter.
        group_keys: Names from GROUP_KEYS, or 'sequence'.
        metrics: Extra named metrics from METRICS.
        delay_field: Field the delay statistics describe.
        min_support: Groups need strictly more flights than this.
        order_by: Key field, core statistic or requested metric to sort by.
        descending: Sort direction for order_by.
        limit: Keep at most this many rows after sorting.
        clip_negative: Count early departures as zero delay.
        max_sequence_position: Highest position kept when grouping by sequence.

    Returns:
        AggregateRow list; empty when nothing qualifies.
    """
    group_keys = tuple(group_keys)
    metrics = tuple(metrics)
    validate_query(group_keys, metrics, delay_field, order_by)

    if SEQUENCE_KEY in group_keys:
        positioned = assign_sequence_positions(records, max_sequence_position)
    else:
        positioned = [(None, r) for r in records]

    groups: Dict[Tuple[Any, ...], List[FlightRecord]] = {}
    for position, record in positioned:
        key = tuple(
            position if name == SEQUENCE_KEY else GROUP_KEYS[name](record)
            for name in group_keys
        )
        groups.setdefault(key, []).append(record)

    rows = [
        _build_row(group_keys, key, members, metrics, delay_field, clip_negative)
        for key, members in groups.items()
        if len(members) > min_support
    ]

    if order_by is not None:
        rows = sort_rows(rows, order_by, descending)
    if limit is not None:
        rows = rows[:max(limit, 0)]

    logger.debug(f'Aggregated {len(positioned)} flights by {group_keys} into {len(rows)} groups')
    return rows
