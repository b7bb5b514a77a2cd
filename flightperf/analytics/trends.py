"""
Time-ordered comparisons and within-day cascade effects.

Year-over-year deltas follow each (airline, month) series in year order
and compare against the previous year actually observed in that series.
Cascade analysis ranks each carrier's flights within a day and measures
how departure delay grows along that rotation.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

from flightperf.analytics.aggregation import AggregateRow, aggregate, assign_sequence_positions
from flightperf.analytics.results import (
    YearOverYear,
    CascadeStep,
    RegionWeatherImpact,
    LateAircraftMonth,
    DailyStatistics,
)
from flightperf.analytics.statistics import mean, pearson, percentage
from flightperf.config import AnalyticsConfig, config
from flightperf.models.records import DELAY_CAUSE_FIELDS
from flightperf.store.filters import FlightFilter

if TYPE_CHECKING:
    from flightperf.store.base import RecordStore

logger = logging.getLogger(__name__)

UNMAPPED_REGION = 'Unmapped'


@dataclass
class _RegionTotals:
    """Running sums for one region of the weather roll-up."""
    airports: int = 0
    flights: int = 0
    weather: float = 0.0
    affected: int = 0
    airport_averages: List[float] = field(default_factory=list)

    def add(self, row: AggregateRow) -> None:
        self.airports += 1
        self.flights += row.count
        self.weather += row.get('sum_weather_delay')
        self.affected += row.get('weather_affected')
        if row.get('avg_weather_delay') is not None:
            self.airport_averages.append(row.get('avg_weather_delay'))


class TrendAnalyzer:
    """
    Trend and sequence analyses over the flight dataset.

    Same construction as PerformanceAnalyzer: an injected store, optional
    settings, an optional scope filter and an optional cancel token.
    """

    def __init__(
        self,
        store: 'RecordStore',
        settings: Optional[AnalyticsConfig] = None,
        scope: Optional[FlightFilter] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.store = store
        self.settings = settings or config.analytics
        self.scope = scope or FlightFilter()
        self.cancel_event = cancel_event

    def _filter(self, **conditions) -> FlightFilter:
        return self.scope.merge(FlightFilter(**conditions))

    def _fetch(self, flt: Optional[FlightFilter] = None):
        return self.store.fetch_records(flt or self.scope, cancel_event=self.cancel_event)

    def year_over_year(self) -> List[YearOverYear]:
        """
        Monthly delay per airline with the change against the prior year.

        The first year of each (airline, month) series has no prior value,
        so its prev_year_delay and yoy_change are None rather than zero.
        """
        rows = self.store.query_aggregate(
            ('airline', 'year', 'month'),
            self.scope,
            cancel_event=self.cancel_event,
        )
        rows.sort(key=lambda r: (r.get('airline'), r.get('month'), r.get('year')))

        results = []
        previous: Dict[Tuple[str, int], Optional[float]] = {}
        for row in rows:
            series = (row.get('airline'), row.get('month'))
            has_prior = series in previous
            prev_delay = previous.get(series)
            change = None
            if has_prior and prev_delay is not None and row.avg_delay is not None:
                change = row.avg_delay - prev_delay
            results.append(YearOverYear(
                airline=row.get('airline'),
                year=row.get('year'),
                month=row.get('month'),
                total_flights=row.count,
                avg_delay=row.avg_delay,
                cancel_rate=row.cancel_rate,
                prev_year_delay=prev_delay,
                yoy_change=change,
            ))
            previous[series] = row.avg_delay

        results.sort(key=lambda r: (r.airline, r.year, r.month))
        logger.debug(f'Year-over-year: {len(results)} airline-months')
        return results

    def cascade_analysis(self) -> List[CascadeStep]:
        """
        Delay by position in each carrier's daily flight sequence.

        The correlation between position and departure delay is computed
        once per airline over every positioned flight and repeated on each
        of that airline's rows; None when either side never varies.
        """
        max_position = self.settings.max_sequence_position
        records = self._fetch(self._filter(cancelled=False))

        pairs: Dict[str, Tuple[List[float], List[float]]] = {}
        for position, record in assign_sequence_positions(records, max_position):
            if record.dep_delay is None:
                continue
            positions, delays = pairs.setdefault(record.airline, ([], []))
            positions.append(position)
            delays.append(record.dep_delay)
        correlations = {airline: pearson(xs, ys) for airline, (xs, ys) in pairs.items()}

        rows = aggregate(
            records,
            ('airline', 'sequence'),
            metrics=('avg_late_aircraft_delay',),
            max_sequence_position=max_position,
        )
        rows.sort(key=lambda r: (r.get('airline'), r.get('sequence')))

        return [
            CascadeStep(
                airline=row.get('airline'),
                flight_seq=row.get('sequence'),
                flights_in_sequence=row.count,
                avg_delay=row.avg_delay,
                avg_late_aircraft_delay=row.get('avg_late_aircraft_delay'),
                correlation_seq_delay=correlations.get(row.get('airline')),
            )
            for row in rows
        ]

    def weather_impact_by_region(self, include_unmapped: Optional[bool] = None) -> List[RegionWeatherImpact]:
        """
        Weather delay rolled up from airports to their state.

        Airports missing from the reference table (or without a state) are
        dropped unless include_unmapped is set, in which case they are
        reported together under the 'Unmapped' region.

        avg_weather_delay_per_airport is the mean of each airport's own
        per-flight weather delay. Regions are ordered by weather_impact_pct,
        highest first.
        """
        if include_unmapped is None:
            include_unmapped = self.settings.include_unmapped_regions

        rows = self.store.query_aggregate(
            ('origin',),
            self.scope,
            metrics=('sum_weather_delay', 'avg_weather_delay', 'weather_affected'),
            cancel_event=self.cancel_event,
        )
        airports = self.store.airports()

        regions: Dict[str, _RegionTotals] = {}
        dropped = 0
        for row in rows:
            ref = airports.get(row.get('origin'))
            region = ref.state if ref is not None else None
            if region is None:
                if not include_unmapped:
                    dropped += 1
                    continue
                region = UNMAPPED_REGION
            regions.setdefault(region, _RegionTotals()).add(row)

        if dropped:
            logger.debug(f'Skipped {dropped} airports without a region')

        impacts = [
            RegionWeatherImpact(
                region=region,
                airports_in_region=totals.airports,
                total_flights=totals.flights,
                total_weather_delay=totals.weather,
                avg_weather_delay_per_airport=mean(totals.airport_averages),
                weather_impact_pct=percentage(totals.affected, totals.flights),
            )
            for region, totals in regions.items()
            if totals.flights > self.settings.region_min_flights
        ]
        ranked = [i for i in impacts if i.weather_impact_pct is not None]
        ranked.sort(key=lambda i: i.weather_impact_pct, reverse=True)
        return ranked + [i for i in impacts if i.weather_impact_pct is None]

    def late_aircraft_by_month(self) -> List[LateAircraftMonth]:
        """
        Share of each airline's monthly departure delay due to late inbound aircraft.

        Most recent month first; within a month the largest late-aircraft
        total leads.
        """
        rows = self.store.query_aggregate(
            ('airline', 'year', 'month'),
            self._filter(positive_field='dep_delay'),
            metrics=('sum_dep_delay', 'sum_late_aircraft_delay', 'late_aircraft_affected'),
            cancel_event=self.cancel_event,
        )
        rows.sort(key=lambda r: (r.get('year'), r.get('month'), r.get('sum_late_aircraft_delay')), reverse=True)

        return [
            LateAircraftMonth(
                airline=row.get('airline'),
                year=row.get('year'),
                month=row.get('month'),
                total_late_aircraft_delay=row.get('sum_late_aircraft_delay'),
                late_aircraft_percentage=percentage(
                    row.get('sum_late_aircraft_delay'),
                    row.get('sum_dep_delay'),
                ),
                flights_affected=row.get('late_aircraft_affected'),
            )
            for row in rows
        ]

    def daily_statistics(self) -> List[DailyStatistics]:
        """Per-day, per-airline operating counts and delay minutes by cause, oldest day first."""
        cause_metrics = tuple(f'sum_{cause}' for cause in DELAY_CAUSE_FIELDS)
        rows = self.store.query_aggregate(
            ('flight_date', 'airline'),
            self.scope,
            metrics=('cancelled_flights', 'delayed_flights', 'avg_positive_delay') + cause_metrics,
            cancel_event=self.cancel_event,
        )
        rows.sort(key=lambda r: (r.get('flight_date'), r.get('airline')))

        return [
            DailyStatistics(
                flight_date=row.get('flight_date'),
                airline=row.get('airline'),
                total_flights=row.count,
                cancelled_flights=row.get('cancelled_flights'),
                delayed_flights=row.get('delayed_flights'),
                avg_delay=row.get('avg_positive_delay'),
                total_carrier_delay=row.get('sum_carrier_delay'),
                total_weather_delay=row.get('sum_weather_delay'),
                total_nas_delay=row.get('sum_nas_delay'),
                total_security_delay=row.get('sum_security_delay'),
                total_late_aircraft_delay=row.get('sum_late_aircraft_delay'),
            )
            for row in rows
        ]
