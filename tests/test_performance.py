"""Tests for the ranked performance analyses."""
from datetime import date

import pytest

from flightperf.analytics import CongestionLevel, HubClass, PerformanceAnalyzer, RiskLevel
from flightperf.store import FlightFilter


@pytest.fixture
def analyzer(memory_store, open_settings):
    return PerformanceAnalyzer(memory_store, open_settings)


def test_airline_rankings(analyzer):
    rankings = analyzer.airline_rankings()

    assert [(r.rank, r.airline) for r in rankings] == [(1, 'AA'), (2, 'DL')]
    aa = rankings[0]
    assert aa.airline_name == 'American Airlines'
    assert aa.total_flights == 3
    assert aa.on_time_pct == pytest.approx(100 / 3)
    # 33.33*0.4 + 100*0.3 + (100-40)*0.3
    assert aa.performance_score == pytest.approx(100 / 3 * 0.4 + 30 + 18)
    assert rankings[1].cancel_pct == pytest.approx(100 / 3)


def test_airline_rankings_respect_support_threshold(memory_store):
    # Default threshold needs more than 1000 flights per airline
    assert PerformanceAnalyzer(memory_store).airline_rankings() == []


def test_scope_narrows_every_query(memory_store, open_settings):
    scoped = PerformanceAnalyzer(memory_store, open_settings, scope=FlightFilter(airline='DL'))
    assert [r.airline for r in scoped.airline_rankings()] == ['DL']


def test_delay_risk(analyzer):
    risks = analyzer.delay_risk(as_of=date(2024, 1, 31))

    assert [(r.route, r.airline) for r in risks] == [
        ('ORD → DEN', 'DL'),
        ('JFK → LAX', 'AA'),
        ('JFK → ORD', 'DL'),
    ]
    assert risks[0].delay_risk_score == pytest.approx(80.0)
    assert risks[0].risk_category == RiskLevel.HIGH
    assert risks[1].delay_risk_score == pytest.approx(40.0)
    assert risks[1].risk_category == RiskLevel.MODERATE
    assert risks[2].risk_category == RiskLevel.LOW
    assert risks[0].to_dict()['risk_category'] == 'High Risk'


def test_delay_risk_window_excludes_old_flights(analyzer):
    assert analyzer.delay_risk(as_of=date(2024, 6, 1)) == []


def test_congestion(analyzer):
    slots = analyzer.congestion(min_flights=0)

    assert [(s.airport, s.departure_hour) for s in slots] == [
        ('JFK', 6), ('JFK', 8), ('JFK', 12), ('JFK', 18), ('ORD', 9), ('ORD', 14),
    ]
    assert all(s.congestion_level == CongestionLevel.NORMAL for s in slots)
    assert slots[4].severe_delays == 1
    assert slots[5].avg_delay is None


def test_hub_analysis_skips_unmapped_airports(analyzer):
    hubs = analyzer.hub_analysis()

    assert [h.airport_code for h in hubs] == ['JFK', 'ORD']
    jfk = hubs[0]
    assert jfk.departures == 4
    assert jfk.arrivals == 0
    assert jfk.unique_destinations == 2
    assert jfk.airlines_operating == 2
    assert jfk.avg_arr_delay is None
    assert jfk.hub_classification == HubClass.STANDARD
    assert hubs[1].total_operations == 3


def test_route_reliability_excludes_undefined(analyzer):
    routes = analyzer.route_reliability()

    assert [r.route for r in routes] == ['JFK → LAX']
    assert routes[0].coefficient_variation == pytest.approx(1900 ** 0.5 / 40)
    assert routes[0].q1_delay <= routes[0].median_delay <= routes[0].q3_delay


def test_delayed_routes_by_time_of_day(analyzer):
    rows = analyzer.delayed_routes_by_time_of_day()

    assert [(r.route, r.time_period, r.avg_delay) for r in rows] == [
        ('JFK → LAX', 'Evening', 90.0),
        ('ORD → DEN', 'Morning', 70.0),
        ('JFK → LAX', 'Afternoon', 20.0),
    ]


def test_delay_patterns_by_hour(analyzer):
    hours = analyzer.delay_patterns_by_hour()
    assert [h.departure_hour for h in hours] == [6, 8, 9, 12, 14, 18]
    assert hours[-1].delay_percentage == pytest.approx(100.0)
    assert hours[0].delay_percentage == 0.0


def test_day_of_week_patterns(analyzer):
    days = analyzer.day_of_week_patterns()
    assert len(days) == 1
    assert days[0].day_of_week == 'Monday'
    assert days[0].dow_num == 1
    assert days[0].delay_pct == pytest.approx(50.0)
    assert days[0].cancel_pct == pytest.approx(100 / 6)


def test_delay_cause_distribution(analyzer):
    causes = analyzer.delay_cause_distribution()

    assert [c.airline for c in causes] == ['AA', 'DL']
    aa, dl = causes
    assert aa.total_delayed_flights == 2
    assert aa.late_aircraft_pct == pytest.approx(60 / 110 * 100)
    assert aa.carrier_pct == pytest.approx(30 / 110 * 100)
    assert dl.weather_pct == pytest.approx(65 / 70 * 100)
    assert dl.airline_name == 'Delta Air Lines'


def test_cancellation_patterns(analyzer):
    patterns = analyzer.cancellation_patterns()

    assert len(patterns) == 1
    pattern = patterns[0]
    assert pattern.cancellation_code == 'B'
    assert pattern.cancellation_reason == 'Weather'
    assert pattern.percentage == pytest.approx(100.0)
    assert pattern.most_affected_route == 'ORD → DEN'
    assert pattern.most_affected_airline == 'DL'


def test_weather_impact_by_airport(analyzer):
    impacts = analyzer.weather_impact_by_airport()

    assert [i.airport for i in impacts] == ['ORD', 'JFK']
    assert impacts[0].weather_affected_flights == 1
    assert impacts[0].weather_impact_percentage == pytest.approx(50.0)
    assert impacts[1].total_weather_delay_minutes == 0.0


def test_route_airline_performance(analyzer):
    rows = analyzer.route_airline_performance()

    assert [(r.route, r.airline) for r in rows] == [
        ('JFK → LAX', 'AA'),
        ('JFK → ORD', 'DL'),
        ('ORD → DEN', 'DL'),
    ]
    jfk_lax, jfk_ord, ord_den = rows
    assert jfk_lax.total_flights == 3
    assert jfk_lax.avg_delay == pytest.approx(40.0)
    assert jfk_lax.on_time_percentage == pytest.approx(100 / 3)
    # Early departures are not clipped
    assert jfk_ord.avg_delay == pytest.approx(-5.0)
    assert ord_den.cancelled_count == 1
    assert ord_den.on_time_percentage == 0.0


def test_route_airline_performance_respects_support_threshold(memory_store):
    # Default threshold needs more than 10 flights per route and airline
    assert PerformanceAnalyzer(memory_store).route_airline_performance() == []


def test_most_delayed_routes(analyzer):
    routes = analyzer.most_delayed_routes()

    assert [r.route for r in routes] == ['ORD → DEN', 'JFK → LAX']
    jfk_lax = routes[1]
    assert jfk_lax.flight_count == 3
    assert jfk_lax.avg_delay_minutes == pytest.approx(40.0)
    assert jfk_lax.median_delay == pytest.approx(20.0)
    assert jfk_lax.max_delay == pytest.approx(90.0)


def test_most_delayed_routes_respects_support_threshold(memory_store):
    assert PerformanceAnalyzer(memory_store).most_delayed_routes() == []


def test_delayed_flights(analyzer):
    flights = analyzer.delayed_flights()

    assert [(f.flight_number, f.dep_delay, f.primary_delay_cause) for f in flights] == [
        ('102', 20, 'Unknown'),
        ('104', 90, 'Carrier'),
        ('200', 70, 'Weather'),
    ]
    assert flights[2].airline_name == 'Delta Air Lines'
    assert flights[0].to_dict()['flight_date'] == '2024-01-15'


def test_delayed_flights_limit(analyzer):
    assert [f.flight_number for f in analyzer.delayed_flights(limit=1)] == ['102']
