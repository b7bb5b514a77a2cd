"""
Analytics API endpoints.

Provides endpoints for:
- GET /api/analytics/rankings - Airline performance ranking
- GET /api/analytics/risk?as_of= - Route/airline delay risk
- GET /api/analytics/congestion?min_flights= - Airport hour congestion
- GET /api/analytics/hubs - Hub classification
- GET /api/analytics/reliability - Most consistent routes
- GET /api/analytics/routes/airlines - Per-airline performance on each route
- GET /api/analytics/routes/most-delayed - Routes with the longest late departures
- GET /api/analytics/time-of-day - Delayed routes by time of day
- GET /api/analytics/hourly - Delay by departure hour
- GET /api/analytics/day-of-week - Delay by day of week
- GET /api/analytics/causes - Delay cause distribution per airline
- GET /api/analytics/cancellations - Cancellation reasons
- GET /api/analytics/weather/airports - Weather impact per airport
- GET /api/analytics/weather/regions?include_unmapped= - Weather impact per state
- GET /api/analytics/delayed-flights?limit= - Delayed flights with their primary cause
- GET /api/analytics/trends/yoy - Year-over-year delay change
- GET /api/analytics/trends/cascade - Delay along daily flight sequences
- GET /api/analytics/trends/late-aircraft - Late aircraft share per month
- GET /api/analytics/trends/daily - Daily statistics per airline
- GET /api/analytics/aggregate - Ad-hoc grouped statistics
"""

import logging
import time
from datetime import date
from enum import Enum

from flask import Blueprint, request

from flightperf.analytics import PerformanceAnalyzer, TrendAnalyzer, resolve_delay_field
from flightperf.api.helpers import (
    date_arg,
    get_store,
    int_arg,
    list_arg,
    results_response,
    scope_from_request,
)
from flightperf.errors import UnknownFilterKey

logger = logging.getLogger(__name__)

analytics_bp = Blueprint('analytics', __name__, url_prefix='/api/analytics')

AGGREGATE_PARAMS = ('group_by', 'metrics', 'min_support', 'order_by', 'ascending', 'limit', 'delay_type')


def _performance(*reserved: str) -> PerformanceAnalyzer:
    return PerformanceAnalyzer(get_store(), scope=scope_from_request(*reserved))


def _trends(*reserved: str) -> TrendAnalyzer:
    return TrendAnalyzer(get_store(), scope=scope_from_request(*reserved))


# -------------------------------------------------------------------------
# Rankings and classifications
# -------------------------------------------------------------------------

@analytics_bp.route('/rankings', methods=['GET'])
def get_airline_rankings():
    start_time = time.perf_counter()
    return results_response(_performance().airline_rankings(), start_time)


@analytics_bp.route('/risk', methods=['GET'])
def get_delay_risk():
    """
    Delay risk per route and airline over the trailing window.

    Query params:
    - as_of: Last day of the window, YYYY-MM-DD (default: today)
    """
    start_time = time.perf_counter()
    as_of = date_arg('as_of')
    return results_response(_performance('as_of').delay_risk(as_of), start_time)


@analytics_bp.route('/congestion', methods=['GET'])
def get_congestion():
    start_time = time.perf_counter()
    min_flights = int_arg('min_flights')
    return results_response(_performance('min_flights').congestion(min_flights), start_time)


@analytics_bp.route('/hubs', methods=['GET'])
def get_hubs():
    start_time = time.perf_counter()
    return results_response(_performance().hub_analysis(), start_time)


@analytics_bp.route('/reliability', methods=['GET'])
def get_route_reliability():
    start_time = time.perf_counter()
    return results_response(_performance().route_reliability(), start_time)


@analytics_bp.route('/routes/airlines', methods=['GET'])
def get_route_airline_performance():
    start_time = time.perf_counter()
    return results_response(_performance().route_airline_performance(), start_time)


@analytics_bp.route('/routes/most-delayed', methods=['GET'])
def get_most_delayed_routes():
    start_time = time.perf_counter()
    return results_response(_performance().most_delayed_routes(), start_time)


# -------------------------------------------------------------------------
# Delay patterns
# -------------------------------------------------------------------------

@analytics_bp.route('/time-of-day', methods=['GET'])
def get_delayed_routes_by_time_of_day():
    start_time = time.perf_counter()
    return results_response(_performance().delayed_routes_by_time_of_day(), start_time)


@analytics_bp.route('/hourly', methods=['GET'])
def get_hourly_patterns():
    start_time = time.perf_counter()
    return results_response(_performance().delay_patterns_by_hour(), start_time)


@analytics_bp.route('/day-of-week', methods=['GET'])
def get_day_of_week_patterns():
    start_time = time.perf_counter()
    return results_response(_performance().day_of_week_patterns(), start_time)


@analytics_bp.route('/causes', methods=['GET'])
def get_delay_causes():
    start_time = time.perf_counter()
    return results_response(_performance().delay_cause_distribution(), start_time)


@analytics_bp.route('/cancellations', methods=['GET'])
def get_cancellations():
    start_time = time.perf_counter()
    return results_response(_performance().cancellation_patterns(), start_time)


@analytics_bp.route('/weather/airports', methods=['GET'])
def get_weather_by_airport():
    start_time = time.perf_counter()
    return results_response(_performance().weather_impact_by_airport(), start_time)


@analytics_bp.route('/weather/regions', methods=['GET'])
def get_weather_by_region():
    """
    Weather impact per state.

    Query params:
    - include_unmapped: true to report airports without a state as 'Unmapped'
    """
    start_time = time.perf_counter()
    include_unmapped = None
    raw = request.args.get('include_unmapped')
    if raw is not None:
        include_unmapped = raw.strip().lower() in ('1', 'true', 'yes')

    results = _trends('include_unmapped').weather_impact_by_region(include_unmapped)
    return results_response(results, start_time)


@analytics_bp.route('/delayed-flights', methods=['GET'])
def get_delayed_flights():
    """
    Flights departing more than 15 minutes late with their primary cause.

    Query params:
    - limit: Maximum flights (default 100)
    """
    start_time = time.perf_counter()
    limit = int_arg('limit')
    if limit is not None and limit < 1:
        raise UnknownFilterKey(limit, 'limit (expected a positive integer)')
    return results_response(_performance('limit').delayed_flights(limit), start_time)


# -------------------------------------------------------------------------
# Trends
# -------------------------------------------------------------------------

@analytics_bp.route('/trends/yoy', methods=['GET'])
def get_year_over_year():
    start_time = time.perf_counter()
    return results_response(_trends().year_over_year(), start_time)


@analytics_bp.route('/trends/cascade', methods=['GET'])
def get_cascade():
    start_time = time.perf_counter()
    return results_response(_trends().cascade_analysis(), start_time)


@analytics_bp.route('/trends/late-aircraft', methods=['GET'])
def get_late_aircraft():
    start_time = time.perf_counter()
    return results_response(_trends().late_aircraft_by_month(), start_time)


@analytics_bp.route('/trends/daily', methods=['GET'])
def get_daily_statistics():
    start_time = time.perf_counter()
    return results_response(_trends().daily_statistics(), start_time)


# -------------------------------------------------------------------------
# Ad-hoc aggregation
# -------------------------------------------------------------------------

def _jsonable(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, float):
        return round(value, 2)
    if isinstance(value, date):
        return value.isoformat()
    return value


def _row_payload(row) -> dict:
    payload = {name: _jsonable(value) for name, value in row.key_dict().items()}
    payload.update({
        'count': row.count,
        'avg_delay': _jsonable(row.avg_delay),
        'stddev_delay': _jsonable(row.stddev_delay),
        'q1_delay': _jsonable(row.q1_delay),
        'median_delay': _jsonable(row.median_delay),
        'q3_delay': _jsonable(row.q3_delay),
        'min_delay': _jsonable(row.min_delay),
        'max_delay': _jsonable(row.max_delay),
        'cancel_rate': _jsonable(row.cancel_rate),
        'on_time_rate': _jsonable(row.on_time_rate),
    })
    payload.update({name: _jsonable(value) for name, value in row.metrics.items()})
    return payload


@analytics_bp.route('/aggregate', methods=['GET'])
def get_aggregate():
    """
    Grouped delay statistics over any supported keys.

    Query params:
    - group_by: Comma-separated group keys (required), e.g. origin,dest
    - metrics: Comma-separated extra metrics, e.g. severe_delay_rate
    - min_support: Groups need more flights than this (default 0)
    - order_by: Field to sort by; ascending=true flips the direction
    - limit: Maximum rows
    - delay_type: Delay field the statistics describe (default All Delays)
    """
    start_time = time.perf_counter()

    group_keys = list_arg('group_by')
    if not group_keys:
        raise UnknownFilterKey('', 'group_by (at least one group key required)')

    options = {
        'delay_field': resolve_delay_field(request.args.get('delay_type')),
        'min_support': int_arg('min_support', 0),
        'order_by': request.args.get('order_by') or None,
        'descending': request.args.get('ascending', '').strip().lower() not in ('1', 'true', 'yes'),
        'limit': int_arg('limit'),
    }
    flt = scope_from_request(*AGGREGATE_PARAMS)

    rows = get_store().query_aggregate(group_keys, flt, list_arg('metrics'), **options)
    logger.debug(f'Ad-hoc aggregate by {group_keys}: {len(rows)} rows')
    return results_response([_row_payload(row) for row in rows], start_time)
