"""
API module for FlightPerf.

Provides REST endpoints for:
- Dashboard reports (overview, delays, routes, weather, airlines)
- Analytics (rankings, risk, congestion, hubs, patterns, trends)
"""

from flightperf.api.reports import reports_bp
from flightperf.api.analytics import analytics_bp

__all__ = ['reports_bp', 'analytics_bp']
