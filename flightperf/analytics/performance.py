"""
Ranked performance analyses over the flight dataset.

Each method is one request-scoped read: it asks the record store for the
flights it needs, aggregates them, applies the scoring rules and returns
fresh result records. Nothing is cached between calls, so one analyzer
can serve concurrent requests.

Support thresholds come from AnalyticsConfig; a group at or below its
threshold is left out of the output rather than reported with an
unstable statistic.
"""

import logging
import threading
from datetime import date, timedelta
from typing import List, Optional, TYPE_CHECKING

from flightperf.analytics.aggregation import aggregate
from flightperf.analytics.results import (
    AirlineRanking,
    RouteRisk,
    CongestionSlot,
    HubProfile,
    RouteReliability,
    TimeOfDayDelay,
    HourlyPattern,
    DayOfWeekPattern,
    DelayCauseBreakdown,
    CancellationPattern,
    AirportWeatherImpact,
    RouteAirlinePerformance,
    MostDelayedRoute,
    DelayedFlight,
)
from flightperf.analytics.scoring import (
    cancellation_reason,
    primary_delay_cause,
    score_congestion,
    score_delay_risk,
    score_hub,
    score_performance,
    score_reliability,
)
from flightperf.analytics.statistics import percentage
from flightperf.config import AnalyticsConfig, config
from flightperf.models.records import DELAY_CAUSE_FIELDS, DELAY_THRESHOLD_MINUTES, format_route
from flightperf.store.filters import FlightFilter

if TYPE_CHECKING:
    from flightperf.store.base import RecordStore

logger = logging.getLogger(__name__)

DAY_NAMES = ('Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday')


class PerformanceAnalyzer:
    """
    Rankings, classifications and delay patterns.

    Args:
        store: Record store to query.
        settings: Thresholds and limits (defaults to the loaded config).
        scope: Optional filter applied underneath every query, e.g. a date
               range or a single airline chosen by the caller.
        cancel_event: Optional token; setting it aborts in-flight queries.
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

    def _query(self, group_keys, flt: Optional[FlightFilter] = None, metrics=(), **options):
        return self.store.query_aggregate(
            group_keys,
            flt or self.scope,
            metrics,
            cancel_event=self.cancel_event,
            **options,
        )

    def _airline_name(self, code: str) -> str:
        return self.store.lookup_reference('airline', code) or code

    # -------------------------------------------------------------------------
    # Scored rankings
    # -------------------------------------------------------------------------

    def airline_rankings(self) -> List[AirlineRanking]:
        """
        Rank airlines by composite performance score.

        Higher score ranks first; equal scores fall back to the higher
        on-time percentage, then to first appearance.
        """
        rows = self._query(
            ('airline',),
            metrics=('avg_positive_delay',),
            min_support=self.settings.ranking_min_flights,
        )
        scored = [score_performance(row) for row in rows]
        scored.sort(key=lambda s: (s.performance_score, s.row.on_time_rate), reverse=True)

        rankings = []
        for rank, result in enumerate(scored, start=1):
            row = result.row
            code = row.get('airline')
            rankings.append(AirlineRanking(
                rank=rank,
                airline=code,
                airline_name=self._airline_name(code),
                total_flights=row.count,
                avg_delay=row.avg_delay,
                delay_variability=row.stddev_delay,
                on_time_pct=row.on_time_rate,
                cancel_pct=row.cancel_rate,
                avg_positive_delay=row.get('avg_positive_delay'),
                performance_score=result.performance_score,
            ))

        logger.info(f'Ranked {len(rankings)} airlines')
        return rankings

    def delay_risk(self, as_of: Optional[date] = None) -> List[RouteRisk]:
        """
        Delay risk per (route, airline) over the trailing risk window.

        Args:
            as_of: Last day of the window (defaults to today).
        """
        as_of = as_of or date.today()
        since = as_of - timedelta(days=self.settings.risk_window_days)

        rows = self._query(
            ('origin', 'dest', 'airline'),
            self._filter(since=since, until=as_of),
            metrics=('severe_delay_rate', 'avg_weather_delay'),
            min_support=self.settings.risk_min_flights,
        )
        scored = [score_delay_risk(row) for row in rows]
        scored.sort(key=lambda s: s.delay_risk_score, reverse=True)

        risks = []
        for result in scored[:self.settings.risk_limit]:
            row = result.row
            risks.append(RouteRisk(
                airline=row.get('airline'),
                route=format_route(row.get('origin'), row.get('dest')),
                total_flights=row.count,
                avg_historical_delay=row.avg_delay,
                severe_delay_rate=row.get('severe_delay_rate'),
                weather_risk=row.get('avg_weather_delay'),
                delay_risk_score=result.delay_risk_score,
                risk_category=result.risk_level,
            ))

        logger.info(f'Scored delay risk for {len(scored)} route/airline pairs since {since}')
        return risks

    def congestion(self, min_flights: Optional[int] = None) -> List[CongestionSlot]:
        """Congestion level of every airport departure hour, by airport then hour."""
        if min_flights is None:
            min_flights = self.settings.congestion_min_flights
        rows = self._query(
            ('origin', 'hour'),
            self._filter(has_schedule=True),
            metrics=('severe_delays',),
            min_support=min_flights,
        )
        rows.sort(key=lambda r: (r.get('origin'), r.get('hour')))

        return [
            CongestionSlot(
                airport=row.get('origin'),
                departure_hour=row.get('hour'),
                scheduled_departures=row.count,
                avg_delay=row.avg_delay,
                severe_delays=row.get('severe_delays'),
                congestion_level=result.congestion_level,
            )
            for row, result in ((r, score_congestion(r)) for r in rows)
        ]

    def hub_analysis(self) -> List[HubProfile]:
        """
        Departures, arrivals and network reach of each mapped airport.

        Airports missing from the reference table are skipped.
        """
        records = self.store.fetch_records(self.scope, cancel_event=self.cancel_event)
        departures = aggregate(records, ('origin',), metrics=('unique_destinations', 'airlines_operating'))
        arrivals = {
            row.get('dest'): row
            for row in aggregate(records, ('dest',), delay_field='arr_delay')
        }
        airports = self.store.airports()

        profiles = []
        for row in departures:
            code = row.get('origin')
            ref = airports.get(code)
            if ref is None:
                continue
            arrival = arrivals.get(code)
            arrival_count = arrival.count if arrival is not None else 0
            profiles.append(HubProfile(
                airport_code=code,
                airport_name=ref.name,
                city=ref.city,
                total_operations=row.count + arrival_count,
                departures=row.count,
                arrivals=arrival_count,
                unique_destinations=row.get('unique_destinations'),
                airlines_operating=row.get('airlines_operating'),
                avg_dep_delay=row.avg_delay,
                avg_arr_delay=arrival.avg_delay if arrival is not None else None,
                hub_classification=score_hub(row).hub_classification,
            ))

        profiles.sort(key=lambda p: p.total_operations, reverse=True)
        return profiles[:self.settings.hub_limit]

    def route_reliability(self) -> List[RouteReliability]:
        """
        Most consistent routes by coefficient of variation, ascending.

        Routes whose coefficient is undefined (every delay zero) are left out.
        """
        rows = self._query(
            ('origin', 'dest'),
            self._filter(cancelled=False),
            min_support=self.settings.reliability_min_flights,
        )
        scored = [s for s in (score_reliability(row) for row in rows) if s.reliability is not None]
        scored.sort(key=lambda s: s.reliability)

        return [
            RouteReliability(
                route=format_route(s.row.get('origin'), s.row.get('dest')),
                total_flights=s.row.count,
                avg_delay=s.row.avg_delay,
                delay_std_dev=s.row.stddev_delay,
                min_delay=s.row.min_delay,
                max_delay=s.row.max_delay,
                q1_delay=s.row.q1_delay,
                median_delay=s.row.median_delay,
                q3_delay=s.row.q3_delay,
                coefficient_variation=s.reliability,
            )
            for s in scored[:self.settings.reliability_limit]
        ]

    def route_airline_performance(self) -> List[RouteAirlinePerformance]:
        """
        Each airline's delay and cancellation record per route.

        Groups need more than route_min_flights flights. Ordered by route,
        then airline.
        """
        rows = self._query(
            ('origin', 'dest', 'airline'),
            metrics=('cancelled_flights',),
            min_support=self.settings.route_min_flights,
        )
        rows.sort(key=lambda r: (r.get('origin'), r.get('dest'), r.get('airline')))

        return [
            RouteAirlinePerformance(
                route=format_route(row.get('origin'), row.get('dest')),
                airline=row.get('airline'),
                total_flights=row.count,
                avg_delay=row.avg_delay,
                cancelled_count=row.get('cancelled_flights'),
                on_time_percentage=row.on_time_rate,
            )
            for row in rows
        ]

    def most_delayed_routes(self) -> List[MostDelayedRoute]:
        """Routes with the longest average late departure, early and on-time departures excluded."""
        rows = self._query(
            ('origin', 'dest'),
            self._filter(positive_field='dep_delay'),
            min_support=self.settings.delayed_routes_min_flights,
            order_by='avg_delay',
            limit=self.settings.delayed_routes_limit,
        )
        return [
            MostDelayedRoute(
                route=format_route(row.get('origin'), row.get('dest')),
                flight_count=row.count,
                avg_delay_minutes=row.avg_delay,
                median_delay=row.median_delay,
                max_delay=row.max_delay,
            )
            for row in rows
        ]

    # -------------------------------------------------------------------------
    # Delay patterns
    # -------------------------------------------------------------------------

    def delayed_routes_by_time_of_day(self) -> List[TimeOfDayDelay]:
        """Worst route/time-of-day combinations among delayed flights."""
        rows = self._query(
            ('origin', 'dest', 'time_of_day'),
            self._filter(min_dep_delay=DELAY_THRESHOLD_MINUTES),
            min_support=self.settings.delayed_routes_min_flights,
            order_by='avg_delay',
            limit=self.settings.delayed_routes_limit,
        )
        return [
            TimeOfDayDelay(
                route=format_route(row.get('origin'), row.get('dest')),
                time_period=row.get('time_of_day'),
                total_flights=row.count,
                avg_delay=row.avg_delay,
                percentile_75_delay=row.q3_delay,
            )
            for row in rows
        ]

    def delay_patterns_by_hour(self) -> List[HourlyPattern]:
        rows = self._query(('hour',), self._filter(has_schedule=True), metrics=('delay_rate',))
        rows.sort(key=lambda r: r.get('hour'))
        return [
            HourlyPattern(
                departure_hour=row.get('hour'),
                total_flights=row.count,
                avg_delay=row.avg_delay,
                delay_percentage=row.get('delay_rate'),
            )
            for row in rows
        ]

    def day_of_week_patterns(self) -> List[DayOfWeekPattern]:
        rows = self._query(('day_of_week',), metrics=('delay_rate', 'avg_distance'))
        rows.sort(key=lambda r: r.get('day_of_week'))
        return [
            DayOfWeekPattern(
                day_of_week=DAY_NAMES[row.get('day_of_week')],
                dow_num=row.get('day_of_week'),
                total_flights=row.count,
                avg_delay=row.avg_delay,
                delay_pct=row.get('delay_rate'),
                cancel_pct=row.cancel_rate,
                avg_distance=row.get('avg_distance'),
            )
            for row in rows
        ]

    def delay_cause_distribution(self) -> List[DelayCauseBreakdown]:
        """
        Delay minutes per cause for each airline's delayed flights.

        Percentages are shares of total departure delay; None when the
        airline's delayed flights carry no delay minutes at all.
        """
        cause_metrics = tuple(f'sum_{cause}' for cause in DELAY_CAUSE_FIELDS)
        rows = self._query(
            ('airline',),
            self._filter(min_dep_delay=DELAY_THRESHOLD_MINUTES),
            metrics=('sum_dep_delay',) + cause_metrics,
            order_by='count',
        )

        breakdowns = []
        for row in rows:
            total = row.get('sum_dep_delay')
            code = row.get('airline')
            breakdowns.append(DelayCauseBreakdown(
                airline=code,
                airline_name=self._airline_name(code),
                total_delayed_flights=row.count,
                total_carrier_delay=row.get('sum_carrier_delay'),
                total_weather_delay=row.get('sum_weather_delay'),
                total_nas_delay=row.get('sum_nas_delay'),
                total_security_delay=row.get('sum_security_delay'),
                total_late_aircraft_delay=row.get('sum_late_aircraft_delay'),
                carrier_pct=percentage(row.get('sum_carrier_delay'), total),
                weather_pct=percentage(row.get('sum_weather_delay'), total),
                nas_pct=percentage(row.get('sum_nas_delay'), total),
                security_pct=percentage(row.get('sum_security_delay'), total),
                late_aircraft_pct=percentage(row.get('sum_late_aircraft_delay'), total),
            ))
        return breakdowns

    def cancellation_patterns(self) -> List[CancellationPattern]:
        """Cancellations by reason code with the most affected route and airline."""
        rows = self._query(
            ('cancellation_code',),
            self._filter(cancelled=True),
            metrics=('mode_route', 'mode_airline'),
            order_by='count',
        )
        total = sum(row.count for row in rows)

        return [
            CancellationPattern(
                cancellation_code=row.get('cancellation_code'),
                cancellation_reason=cancellation_reason(row.get('cancellation_code')),
                total_cancellations=row.count,
                percentage=percentage(row.count, total),
                most_affected_route=row.get('mode_route'),
                most_affected_airline=row.get('mode_airline'),
            )
            for row in rows
        ]

    def weather_impact_by_airport(self) -> List[AirportWeatherImpact]:
        """Share of each airport's departures hit by weather delay, highest first."""
        rows = self._query(
            ('origin',),
            metrics=('sum_weather_delay', 'avg_weather_delay', 'weather_affected'),
            min_support=self.settings.weather_airport_min_flights,
        )
        impacts = [
            AirportWeatherImpact(
                airport=row.get('origin'),
                total_flights=row.count,
                total_weather_delay_minutes=row.get('sum_weather_delay'),
                avg_weather_delay=row.get('avg_weather_delay'),
                weather_affected_flights=row.get('weather_affected'),
                weather_impact_percentage=percentage(row.get('weather_affected'), row.count),
            )
            for row in rows
        ]
        impacts.sort(key=lambda i: i.weather_impact_percentage or 0.0, reverse=True)
        return impacts

    # -------------------------------------------------------------------------
    # Flight listings
    # -------------------------------------------------------------------------

    def delayed_flights(self, limit: Optional[int] = None) -> List[DelayedFlight]:
        """
        Departures more than 15 minutes late, each tagged with its primary cause.

        Flights keep storage order. limit defaults to delayed_flights_limit.
        """
        if limit is None:
            limit = self.settings.delayed_flights_limit
        records = self.store.fetch_records(
            self._filter(min_dep_delay=DELAY_THRESHOLD_MINUTES),
            cancel_event=self.cancel_event,
        )

        flights = []
        for record in records[:max(limit, 0)]:
            flights.append(DelayedFlight(
                flight_date=record.flight_date,
                airline=record.airline,
                airline_name=self._airline_name(record.airline),
                flight_number=record.flight_number,
                origin=record.origin,
                dest=record.dest,
                dep_delay=record.dep_delay,
                carrier_delay=record.carrier_delay,
                weather_delay=record.weather_delay,
                nas_delay=record.nas_delay,
                security_delay=record.security_delay,
                late_aircraft_delay=record.late_aircraft_delay,
                primary_delay_cause=primary_delay_cause(record),
            ))

        logger.debug(f'Listed {len(flights)} of {len(records)} delayed flights')
        return flights
