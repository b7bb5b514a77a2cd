"""
Dashboard reports: the overview, delay analysis, route, weather and
airline comparison tabs.
"""

from flightperf.reports.records import (
    NOT_AVAILABLE,
    OverviewStats,
    DelayInfo,
    RoutePerformance,
    WeatherImpact,
    AirlinePerformance,
)
from flightperf.reports.assembler import ReportAssembler

__all__ = [
    'NOT_AVAILABLE',
    'OverviewStats',
    'DelayInfo',
    'RoutePerformance',
    'WeatherImpact',
    'AirlinePerformance',
    'ReportAssembler',
]
