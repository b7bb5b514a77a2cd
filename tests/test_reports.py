"""Tests for the dashboard report assembler."""
import pytest

from flightperf.errors import UnknownDelayType
from flightperf.reports import NOT_AVAILABLE, ReportAssembler
from flightperf.store import MemoryRecordStore


@pytest.fixture
def assembler(memory_store, open_settings):
    return ReportAssembler(memory_store, open_settings)


def test_overview(assembler):
    overview = assembler.overview()

    assert overview.total_flights == 6
    assert overview.delayed_flights == 3
    assert overview.delay_percentage == pytest.approx(50.0)
    assert overview.cancelled_flights == 1
    assert overview.cancellation_percentage == pytest.approx(100 / 6)
    assert overview.avg_delay == pytest.approx(47.5)
    assert overview.worst_route == 'ORD → DEN'
    assert overview.best_airline == 'American Airlines'


def test_overview_to_dict_uses_presentation_keys(assembler):
    payload = assembler.overview().to_dict()
    assert list(payload) == [
        'totalFlights', 'delayedFlights', 'delayPercentage', 'cancelledFlights',
        'cancellationPercentage', 'avgDelay', 'worstRoute', 'bestAirline',
    ]
    assert payload['cancellationPercentage'] == 16.67


def test_overview_of_empty_store():
    overview = ReportAssembler(MemoryRecordStore()).overview()
    assert overview.total_flights == 0
    assert overview.avg_delay == 0.0
    assert overview.worst_route == NOT_AVAILABLE
    assert overview.best_airline == NOT_AVAILABLE


def test_delay_analysis_all_delays(assembler):
    rows = assembler.delay_analysis()

    assert [(r.airline, r.route, r.avg_delay, r.count) for r in rows] == [
        ('Delta Air Lines', 'ORD → DEN', 70.0, 1),
        ('American Airlines', 'JFK → LAX', 40.0, 3),
    ]
    assert rows[0].to_dict() == {
        'airline': 'Delta Air Lines', 'route': 'ORD → DEN', 'avgDelay': 70.0, 'count': 1,
    }


def test_delay_analysis_by_type(assembler):
    rows = assembler.delay_analysis('Weather')
    assert [(r.route, r.avg_delay) for r in rows] == [('ORD → DEN', 65.0)]

    rows = assembler.delay_analysis('Late Aircraft')
    assert [(r.route, r.avg_delay) for r in rows] == [('JFK → LAX', 60.0)]

    assert assembler.delay_analysis('Security') == []


def test_unknown_delay_type_fails_before_query(open_settings):
    class ExplodingStore(MemoryRecordStore):
        def fetch_records(self, flt=None, cancel_event=None):
            raise AssertionError('store should not be queried')

    with pytest.raises(UnknownDelayType):
        ReportAssembler(ExplodingStore(), open_settings).delay_analysis('Volcano')


def test_route_performance(assembler):
    rows = assembler.route_performance('jfk', 'lax')

    assert len(rows) == 1
    row = rows[0]
    assert row.route == 'JFK → LAX'
    assert row.flight_count == 3
    assert row.avg_delay == pytest.approx(40.0)
    assert row.cancellation_rate == 0.0
    assert row.on_time_percentage == pytest.approx(33.33, abs=0.01)
    assert row.to_dict()['onTimePercentage'] == 33.33


def test_route_performance_unknown_route_is_empty(assembler):
    assert assembler.route_performance('BOS', 'SFO') == []


def test_top_routes(assembler):
    rows = assembler.top_routes(limit=2)
    assert [(r.route, r.flight_count) for r in rows] == [('JFK → LAX', 3), ('ORD → DEN', 2)]


def test_top_routes_respects_support(memory_store):
    assert ReportAssembler(memory_store).top_routes() == []


def test_weather_impact_fixed_order(assembler):
    rows = assembler.weather_impact()

    assert [r.condition for r in rows] == ['Severe Weather', 'Clear']
    severe, clear = rows
    assert severe.flight_count == 1
    assert severe.avg_delay == pytest.approx(70.0)
    assert clear.flight_count == 5
    assert clear.avg_delay == pytest.approx(28.75)
    assert clear.cancellation_rate == pytest.approx(20.0)


def test_airline_comparison(assembler):
    rows = assembler.airline_comparison()

    assert [r.airline for r in rows] == ['American Airlines', 'Delta Air Lines']
    dl = rows[1]
    assert dl.flight_count == 3
    # Early departure counts as zero delay
    assert dl.avg_delay == pytest.approx(35.0)
    assert dl.cancellation_rate == pytest.approx(100 / 3)
    assert set(dl.to_dict()) == {'airline', 'flightCount', 'avgDelay', 'cancellationRate', 'onTimePercentage'}
