"""
Report assembler for the dashboard tabs.

Each method runs the aggregate query behind one tab and selects the
fields of its result record. An empty dataset yields an empty list, or
'N/A' for the overview's scalar lookups; only store failures and
unknown delay types raise.
"""

import logging
import threading
from typing import List, Optional, TYPE_CHECKING

from flightperf.analytics.aggregation import aggregate, resolve_delay_field
from flightperf.analytics.scoring import WEATHER_CONDITION_ORDER
from flightperf.analytics.statistics import percentage
from flightperf.config import AnalyticsConfig, config
from flightperf.models.records import format_route
from flightperf.reports.records import (
    NOT_AVAILABLE,
    OverviewStats,
    DelayInfo,
    RoutePerformance,
    WeatherImpact,
    AirlinePerformance,
)
from flightperf.store.filters import FlightFilter

if TYPE_CHECKING:
    from flightperf.store.base import RecordStore

logger = logging.getLogger(__name__)


class ReportAssembler:
    """
    Builds the five dashboard result records from a record store.

    Route and airline averages count early departures as zero delay,
    matching what the dashboard has always shown.
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

    def _query(self, group_keys, flt: Optional[FlightFilter] = None, metrics=(), **options):
        return self.store.query_aggregate(
            group_keys,
            self.scope.merge(flt) if flt is not None else self.scope,
            metrics,
            cancel_event=self.cancel_event,
            **options,
        )

    def _airline_name(self, code: Optional[str]) -> str:
        if code is None:
            return NOT_AVAILABLE
        return self.store.lookup_reference('airline', code) or code

    def overview(self) -> OverviewStats:
        """Totals, delay/cancellation shares, worst route and best airline."""
        records = self.store.fetch_records(self.scope, cancel_event=self.cancel_event)
        if not records:
            return OverviewStats()

        totals = aggregate(records, (), metrics=('delayed_flights', 'cancelled_flights', 'avg_positive_delay'))[0]
        worst = aggregate(
            records, ('origin', 'dest'),
            metrics=('avg_positive_delay',),
            order_by='avg_positive_delay',
            limit=1,
        )
        best = aggregate(records, ('airline',), order_by='on_time_rate', limit=1)

        worst_route = NOT_AVAILABLE
        if worst and worst[0].get('avg_positive_delay') is not None:
            worst_route = format_route(worst[0].get('origin'), worst[0].get('dest'))

        delayed = totals.get('delayed_flights')
        cancelled = totals.get('cancelled_flights')
        return OverviewStats(
            total_flights=totals.count,
            delayed_flights=delayed,
            delay_percentage=percentage(delayed, totals.count) or 0.0,
            cancelled_flights=cancelled,
            cancellation_percentage=percentage(cancelled, totals.count) or 0.0,
            avg_delay=totals.get('avg_positive_delay') or 0.0,
            worst_route=worst_route,
            best_airline=self._airline_name(best[0].get('airline')) if best else NOT_AVAILABLE,
        )

    def delay_analysis(self, delay_type: Optional[str] = None) -> List[DelayInfo]:
        """
        Worst airline/route pairs for one delay type.

        Only flights with a positive value of the chosen delay field count.
        Raises UnknownDelayType before touching the store.
        """
        field_name = resolve_delay_field(delay_type)
        rows = self._query(
            ('airline', 'origin', 'dest'),
            FlightFilter(positive_field=field_name),
            delay_field=field_name,
            order_by='avg_delay',
            limit=self.settings.delay_analysis_limit,
        )
        logger.debug(f'Delay analysis for {field_name}: {len(rows)} rows')
        return [
            DelayInfo(
                airline=self._airline_name(row.get('airline')),
                route=format_route(row.get('origin'), row.get('dest')),
                avg_delay=row.avg_delay,
                count=row.count,
            )
            for row in rows
        ]

    def route_performance(self, origin: str, dest: str) -> List[RoutePerformance]:
        """Performance of a single route; empty when it has no flights."""
        rows = self._query(
            ('origin', 'dest'),
            FlightFilter(origin=origin.strip().upper(), dest=dest.strip().upper()),
            clip_negative=True,
        )
        return [self._route_record(row) for row in rows]

    def top_routes(self, limit: Optional[int] = None) -> List[RoutePerformance]:
        """Busiest routes by flight count."""
        if limit is None:
            limit = self.settings.top_routes_limit
        rows = self._query(
            ('origin', 'dest'),
            min_support=self.settings.top_routes_min_flights,
            order_by='count',
            limit=limit,
            clip_negative=True,
        )
        return [self._route_record(row) for row in rows]

    def weather_impact(self) -> List[WeatherImpact]:
        """Flights per weather condition, always Severe, Moderate, Minor, Clear."""
        rows = {row.get('weather_condition'): row for row in self._query(('weather_condition',))}
        return [
            WeatherImpact(
                condition=condition.value,
                flight_count=rows[condition.value].count,
                avg_delay=rows[condition.value].avg_delay,
                cancellation_rate=rows[condition.value].cancel_rate,
            )
            for condition in WEATHER_CONDITION_ORDER
            if condition.value in rows
        ]

    def airline_comparison(self) -> List[AirlinePerformance]:
        """Airlines above the support threshold, best on-time share first."""
        rows = self._query(
            ('airline',),
            min_support=self.settings.airline_min_flights,
            order_by='on_time_rate',
            clip_negative=True,
        )
        return [
            AirlinePerformance(
                airline=self._airline_name(row.get('airline')),
                flight_count=row.count,
                avg_delay=row.avg_delay,
                cancellation_rate=row.cancel_rate,
                on_time_percentage=row.on_time_rate,
            )
            for row in rows
        ]

    @staticmethod
    def _route_record(row) -> RoutePerformance:
        return RoutePerformance(
            route=format_route(row.get('origin'), row.get('dest')),
            flight_count=row.count,
            avg_delay=row.avg_delay,
            cancellation_rate=row.cancel_rate,
            on_time_percentage=row.on_time_rate,
        )
