"""
Dashboard report endpoints.

Provides endpoints for:
- GET /api/reports/overview - Headline statistics
- GET /api/reports/delays?type= - Worst airline/route pairs by delay type
- GET /api/reports/routes?origin=&dest= - Performance of one route
- GET /api/reports/routes/top?limit= - Busiest routes
- GET /api/reports/weather - Flights by weather condition
- GET /api/reports/airlines - Airline comparison

Every endpoint also accepts the filter parameters origin, dest, airline,
since, until and cancelled to narrow the dataset.
"""

import logging
import time

from flask import Blueprint, jsonify, request

from flightperf.api.helpers import get_store, int_arg, results_response, scope_from_request
from flightperf.errors import UnknownFilterKey
from flightperf.reports import ReportAssembler

logger = logging.getLogger(__name__)

reports_bp = Blueprint('reports', __name__, url_prefix='/api/reports')


def _assembler(*reserved: str) -> ReportAssembler:
    return ReportAssembler(get_store(), scope=scope_from_request(*reserved))


@reports_bp.route('/overview', methods=['GET'])
def get_overview():
    """Totals, delay and cancellation shares, worst route and best airline."""
    start_time = time.perf_counter()
    overview = _assembler().overview()

    payload = overview.to_dict()
    payload['query_time_ms'] = round((time.perf_counter() - start_time) * 1000, 2)
    return jsonify(payload)


@reports_bp.route('/delays', methods=['GET'])
def get_delay_analysis():
    """
    Worst airline/route pairs for one delay type.

    Query params:
    - type: All Delays (default), Weather, Carrier, NAS, Security, Late Aircraft
    """
    start_time = time.perf_counter()
    delay_type = request.args.get('type')
    results = _assembler('type').delay_analysis(delay_type)
    return results_response(results, start_time)


@reports_bp.route('/routes', methods=['GET'])
def get_route_performance():
    """Performance of the route given by origin and dest."""
    start_time = time.perf_counter()

    origin = request.args.get('origin', '').strip()
    dest = request.args.get('dest', '').strip()
    if not origin or not dest:
        return jsonify({'error': 'origin and dest required'}), 400

    results = _assembler('origin', 'dest').route_performance(origin, dest)
    return results_response(results, start_time)


@reports_bp.route('/routes/top', methods=['GET'])
def get_top_routes():
    start_time = time.perf_counter()
    limit = int_arg('limit')
    if limit is not None and limit < 1:
        raise UnknownFilterKey(limit, 'limit (expected a positive integer)')

    results = _assembler('limit').top_routes(limit)
    return results_response(results, start_time)


@reports_bp.route('/weather', methods=['GET'])
def get_weather_impact():
    start_time = time.perf_counter()
    return results_response(_assembler().weather_impact(), start_time)


@reports_bp.route('/airlines', methods=['GET'])
def get_airline_comparison():
    start_time = time.perf_counter()
    return results_response(_assembler().airline_comparison(), start_time)
