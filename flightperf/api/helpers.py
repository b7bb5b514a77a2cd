"""
Request helpers shared by the API blueprints.
"""

import time
from datetime import date
from typing import Any, Iterable, Optional

from flask import current_app, jsonify, request

from flightperf.errors import UnknownFilterKey
from flightperf.store.filters import FlightFilter


def get_store():
    """Record store injected by the application factory."""
    return current_app.config['RECORD_STORE']


def scope_from_request(*reserved: str) -> FlightFilter:
    """
    FlightFilter from the query string, ignoring the endpoint's own parameters.

    Raises UnknownFilterKey for anything else that is not a filter key.
    """
    params = {k: v for k, v in request.args.items() if k not in reserved}
    return FlightFilter.from_params(params)


def int_arg(name: str, default: Optional[int] = None) -> Optional[int]:
    raw = request.args.get(name)
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise UnknownFilterKey(raw, f'{name} (expected an integer)') from None


def date_arg(name: str) -> Optional[date]:
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise UnknownFilterKey(raw, f'{name} date (expected YYYY-MM-DD)') from None


def list_arg(name: str) -> tuple:
    """Comma-separated list parameter, e.g. group_by=origin,dest."""
    raw = request.args.get(name, '')
    return tuple(part.strip() for part in raw.split(',') if part.strip())


def results_response(results: Iterable[Any], start_time: float):
    """Standard list envelope: results, count and query time."""
    payload = [r.to_dict() if hasattr(r, 'to_dict') else r for r in results]
    query_time_ms = (time.perf_counter() - start_time) * 1000
    return jsonify({
        'results': payload,
        'count': len(payload),
        'query_time_ms': round(query_time_ms, 2),
    })
