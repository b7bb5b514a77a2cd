"""
Analytics module for FlightPerf.

Turns raw flight records into summarized, ranked and categorized
performance metrics using NumPy:
- Grouped delay statistics (mean, sample stddev, quartiles)
- Composite scores and classification rules
- Ranked analyses (airline rankings, delay risk, congestion, hubs)
- Trends (year-over-year, within-day delay cascades)
"""

from flightperf.analytics.statistics import DelaySummary, summarize, percentile, pearson
from flightperf.analytics.scoring import (
    RiskLevel,
    CongestionLevel,
    HubClass,
    WeatherCondition,
    WEATHER_CONDITION_ORDER,
    ScoredResult,
    performance_score,
    assess_delay_risk,
    congestion_level,
    hub_classification,
    coefficient_of_variation,
    weather_condition,
    primary_delay_cause,
)
from flightperf.analytics.aggregation import (
    AggregateRow,
    TimeOfDay,
    DELAY_TYPES,
    GROUP_KEYS,
    METRICS,
    aggregate,
    resolve_delay_field,
    time_of_day,
)
from flightperf.analytics.performance import PerformanceAnalyzer
from flightperf.analytics.trends import TrendAnalyzer

__all__ = [
    'DelaySummary',
    'summarize',
    'percentile',
    'pearson',
    'RiskLevel',
    'CongestionLevel',
    'HubClass',
    'WeatherCondition',
    'WEATHER_CONDITION_ORDER',
    'ScoredResult',
    'performance_score',
    'assess_delay_risk',
    'congestion_level',
    'hub_classification',
    'coefficient_of_variation',
    'weather_condition',
    'primary_delay_cause',
    'AggregateRow',
    'TimeOfDay',
    'DELAY_TYPES',
    'GROUP_KEYS',
    'METRICS',
    'aggregate',
    'resolve_delay_field',
    'time_of_day',
    'PerformanceAnalyzer',
    'TrendAnalyzer',
]
