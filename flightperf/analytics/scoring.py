"""
Composite scores and classification rules.

Every function in this module is pure and total over its numeric domain:
inputs are clamped, missing values are treated as zero, and ratios with
a zero divisor come back as None. The same function feeds both the
numeric score and its category so the two can never disagree.

Weights and thresholds:

    performance  = on_time% * 0.4
                 + (100 - min(cancel% * 10, 100)) * 0.3
                 + (100 - min(avg_delay, 100)) * 0.3

    delay risk   = min(avg_delay, 60) / 60 * 40
                 + severe_delay% * 0.4
                 + min(avg_weather_delay, 30) / 30 * 20
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, TYPE_CHECKING

from flightperf.analytics.statistics import sample_stddev, mean, safe_ratio

if TYPE_CHECKING:
    from flightperf.analytics.aggregation import AggregateRow
    from flightperf.models.records import FlightRecord


class RiskLevel(str, Enum):
    """Delay risk tier of a route/airline pair."""
    HIGH = 'High Risk'
    MODERATE = 'Moderate Risk'
    LOW = 'Low Risk'


class CongestionLevel(str, Enum):
    """Congestion level of an airport departure hour."""
    HIGH = 'High Congestion'
    MODERATE = 'Moderate Congestion'
    NORMAL = 'Normal'


class HubClass(str, Enum):
    """Network role of an airport."""
    MAJOR = 'Major Hub'
    REGIONAL = 'Regional Hub'
    STANDARD = 'Standard Airport'


class WeatherCondition(str, Enum):
    """Weather bucket derived from a flight's weather delay."""
    SEVERE = 'Severe Weather'
    MODERATE = 'Moderate Weather'
    MINOR = 'Minor Weather'
    CLEAR = 'Clear'


# Display order for weather summaries, independent of the counts
WEATHER_CONDITION_ORDER = (
    WeatherCondition.SEVERE,
    WeatherCondition.MODERATE,
    WeatherCondition.MINOR,
    WeatherCondition.CLEAR,
)

CANCELLATION_REASONS = {
    'A': 'Carrier',
    'B': 'Weather',
    'C': 'NAS',
    'D': 'Security',
}

# Cause labels in attribution priority order
DELAY_CAUSE_LABELS = (
    ('carrier_delay', 'Carrier'),
    ('weather_delay', 'Weather'),
    ('nas_delay', 'NAS'),
    ('security_delay', 'Security'),
    ('late_aircraft_delay', 'Late Aircraft'),
)


def _clamp(value: Optional[float], low: float, high: float) -> float:
    if value is None:
        return low
    return max(low, min(high, float(value)))


@dataclass(frozen=True)
class RiskAssessment:
    """Delay risk score and its tier."""
    score: float
    level: RiskLevel


@dataclass
class ScoredResult:
    """
    An aggregate row with its derived scores attached.

    Only the fields relevant to the producing analysis are populated.
    """
    row: 'AggregateRow'
    performance_score: Optional[float] = None
    delay_risk_score: Optional[float] = None
    risk_level: Optional[RiskLevel] = None
    congestion_level: Optional[CongestionLevel] = None
    hub_classification: Optional[HubClass] = None
    reliability: Optional[float] = None


def performance_score(
    on_time_pct: Optional[float],
    cancel_pct: Optional[float],
    avg_delay: Optional[float],
) -> float:
    """
    Composite airline performance score in [0, 100], higher is better.

    Each component is clamped to its cap before weighting, so negative
    average delays (early departures) cannot push the score past 100.
    """
    on_time = _clamp(on_time_pct, 0.0, 100.0)
    cancel_penalty = _clamp(_clamp(cancel_pct, 0.0, 100.0) * 10, 0.0, 100.0)
    delay_penalty = _clamp(avg_delay, 0.0, 100.0)

    return (
        on_time * 0.4
        + (100.0 - cancel_penalty) * 0.3
        + (100.0 - delay_penalty) * 0.3
    )


def classify_risk(score: float) -> RiskLevel:
    """Tiers: above 60 High, 30 through 60 Moderate, below 30 Low."""
    if score > 60:
        return RiskLevel.HIGH
    if score >= 30:
        return RiskLevel.MODERATE
    return RiskLevel.LOW


def assess_delay_risk(
    avg_delay: Optional[float],
    severe_delay_rate: Optional[float],
    avg_weather_delay: Optional[float],
) -> RiskAssessment:
    """
    Delay risk score (0-100, higher is riskier) and its tier.

    Args:
        avg_delay: Historical mean departure delay in minutes.
        severe_delay_rate: Percentage of flights more than 30 minutes late.
        avg_weather_delay: Mean weather delay in minutes.
    """
    score = (
        _clamp(avg_delay, 0.0, 60.0) / 60.0 * 40.0
        + _clamp(severe_delay_rate, 0.0, 100.0) * 0.4
        + _clamp(avg_weather_delay, 0.0, 30.0) / 30.0 * 20.0
    )
    return RiskAssessment(score=score, level=classify_risk(score))


def delay_risk_score(
    avg_delay: Optional[float],
    severe_delay_rate: Optional[float],
    avg_weather_delay: Optional[float],
) -> float:
    return assess_delay_risk(avg_delay, severe_delay_rate, avg_weather_delay).score


def congestion_level(count: int, avg_delay: Optional[float]) -> CongestionLevel:
    """First matching rule wins: High before Moderate before Normal."""
    delay = avg_delay if avg_delay is not None else 0.0
    if count > 100 and delay > 30:
        return CongestionLevel.HIGH
    if count > 50 and delay > 15:
        return CongestionLevel.MODERATE
    return CongestionLevel.NORMAL


def hub_classification(unique_destinations: int, airlines_operating: int) -> HubClass:
    if unique_destinations > 50 and airlines_operating > 5:
        return HubClass.MAJOR
    if unique_destinations > 25:
        return HubClass.REGIONAL
    return HubClass.STANDARD


def coefficient_of_variation(delays: Sequence[float]) -> Optional[float]:
    """
    Sample stddev of the delays divided by the mean of their absolute values.

    Lower means more predictable. None when the sample is too small for a
    deviation or every delay is zero.
    """
    stddev = sample_stddev(delays)
    if stddev is None:
        return None
    return safe_ratio(stddev, mean([abs(d) for d in delays]))


def weather_condition(weather_delay: Optional[float]) -> WeatherCondition:
    if weather_delay is None or weather_delay <= 0:
        return WeatherCondition.CLEAR
    if weather_delay > 60:
        return WeatherCondition.SEVERE
    if weather_delay > 30:
        return WeatherCondition.MODERATE
    return WeatherCondition.MINOR


def cancellation_reason(code: Optional[str]) -> str:
    return CANCELLATION_REASONS.get((code or '').upper(), 'Unknown')


def primary_delay_cause(record: 'FlightRecord') -> str:
    """First cause with positive minutes in DELAY_CAUSE_LABELS order, else 'Unknown'."""
    for field_name, label in DELAY_CAUSE_LABELS:
        value = getattr(record, field_name)
        if value is not None and value > 0:
            return label
    return 'Unknown'


# -------------------------------------------------------------------------
# Row scorers: AggregateRow -> ScoredResult
# -------------------------------------------------------------------------

def score_performance(row: 'AggregateRow') -> ScoredResult:
    return ScoredResult(
        row=row,
        performance_score=performance_score(row.on_time_rate, row.cancel_rate, row.avg_delay),
    )


def score_delay_risk(row: 'AggregateRow') -> ScoredResult:
    """Needs the severe_delay_rate and avg_weather_delay metrics on the row."""
    risk = assess_delay_risk(
        row.avg_delay,
        row.get('severe_delay_rate'),
        row.get('avg_weather_delay'),
    )
    return ScoredResult(row=row, delay_risk_score=risk.score, risk_level=risk.level)


def score_congestion(row: 'AggregateRow') -> ScoredResult:
    return ScoredResult(row=row, congestion_level=congestion_level(row.count, row.avg_delay))


def score_hub(row: 'AggregateRow') -> ScoredResult:
    """Needs the unique_destinations and airlines_operating metrics on the row."""
    return ScoredResult(
        row=row,
        hub_classification=hub_classification(
            row.get('unique_destinations', 0),
            row.get('airlines_operating', 0),
        ),
    )


def score_reliability(row: 'AggregateRow') -> ScoredResult:
    return ScoredResult(row=row, reliability=coefficient_of_variation(row.delays))
