"""Tests for the HTTP surface."""
import pytest

from flightperf.app import create_app
from flightperf.errors import StoreUnavailable
from flightperf.store import MemoryRecordStore


def test_health(client):
    r = client.get('/health')
    assert r.status_code == 200
    assert r.get_json() == {'status': 'ok'}


def test_overview(client):
    r = client.get('/api/reports/overview')
    assert r.status_code == 200
    data = r.get_json()
    assert data['totalFlights'] == 6
    assert data['worstRoute'] == 'ORD → DEN'
    assert 'query_time_ms' in data


def test_overview_with_filter(client):
    data = client.get('/api/reports/overview?airline=aa').get_json()
    assert data['totalFlights'] == 3
    assert data['cancelledFlights'] == 0


def test_delay_analysis_envelope(client):
    r = client.get('/api/reports/delays?type=Weather')
    assert r.status_code == 200
    data = r.get_json()
    assert data['count'] == 1
    assert data['results'][0]['route'] == 'ORD → DEN'
    assert data['results'][0]['avgDelay'] == 65.0
    assert 'query_time_ms' in data


def test_unknown_delay_type_is_rejected(client):
    r = client.get('/api/reports/delays?type=Volcano')
    assert r.status_code == 400
    assert 'Volcano' in r.get_json()['error']


def test_unknown_filter_key_is_rejected(client):
    r = client.get('/api/reports/overview?tail=N123')
    assert r.status_code == 400


def test_route_performance(client):
    data = client.get('/api/reports/routes?origin=JFK&dest=LAX').get_json()
    assert data['count'] == 1
    assert data['results'][0]['flightCount'] == 3


def test_route_performance_requires_both_airports(client):
    r = client.get('/api/reports/routes?origin=JFK')
    assert r.status_code == 400


def test_top_routes_rejects_bad_limit(client):
    assert client.get('/api/reports/routes/top?limit=abc').status_code == 400
    assert client.get('/api/reports/routes/top?limit=0').status_code == 400


def test_weather_impact(client):
    data = client.get('/api/reports/weather').get_json()
    assert [r['condition'] for r in data['results']] == ['Severe Weather', 'Clear']


def test_rankings_respect_default_threshold(client):
    data = client.get('/api/analytics/rankings').get_json()
    assert data == {'results': [], 'count': 0, 'query_time_ms': data['query_time_ms']}


def test_delay_risk(client):
    data = client.get('/api/analytics/risk?as_of=2024-01-31').get_json()
    assert data['count'] == 3
    assert data['results'][0]['risk_category'] == 'High Risk'
    assert data['results'][0]['delay_risk_score'] == 80.0


def test_delay_risk_rejects_bad_date(client):
    assert client.get('/api/analytics/risk?as_of=soon').status_code == 400


def test_congestion_min_flights(client):
    data = client.get('/api/analytics/congestion?min_flights=0').get_json()
    assert data['count'] == 6
    assert data['results'][0]['congestion_level'] == 'Normal'


def test_delayed_flights_endpoint(client):
    data = client.get('/api/analytics/delayed-flights?limit=2&airline=AA').get_json()
    assert data['count'] == 2
    assert [f['primary_delay_cause'] for f in data['results']] == ['Unknown', 'Carrier']


def test_delayed_flights_rejects_bad_limit(client):
    assert client.get('/api/analytics/delayed-flights?limit=0').status_code == 400
    assert client.get('/api/analytics/delayed-flights?limit=many').status_code == 400


def test_daily_statistics_endpoint(client):
    data = client.get('/api/analytics/trends/daily').get_json()
    assert data['count'] == 2
    assert data['results'][0]['flight_date'] == '2024-01-15'
    assert data['results'][1]['cancelled_flights'] == 1


@pytest.mark.parametrize('path', [
    '/api/analytics/hubs',
    '/api/analytics/reliability',
    '/api/analytics/routes/airlines',
    '/api/analytics/routes/most-delayed',
    '/api/analytics/delayed-flights',
    '/api/analytics/trends/daily',
    '/api/analytics/time-of-day',
    '/api/analytics/hourly',
    '/api/analytics/day-of-week',
    '/api/analytics/causes',
    '/api/analytics/cancellations',
    '/api/analytics/weather/airports',
    '/api/analytics/weather/regions?include_unmapped=true',
    '/api/analytics/trends/yoy',
    '/api/analytics/trends/cascade',
    '/api/analytics/trends/late-aircraft',
    '/api/reports/airlines',
    '/api/reports/routes/top',
])
def test_list_endpoints_return_envelope(client, path):
    r = client.get(path)
    assert r.status_code == 200
    data = r.get_json()
    assert set(data) == {'results', 'count', 'query_time_ms'}
    assert data['count'] == len(data['results'])


def test_aggregate(client):
    r = client.get('/api/analytics/aggregate?group_by=origin,dest&metrics=severe_delay_rate&order_by=count')
    assert r.status_code == 200
    data = r.get_json()
    assert data['count'] == 3
    first = data['results'][0]
    assert (first['origin'], first['dest'], first['count']) == ('JFK', 'LAX', 3)
    assert first['avg_delay'] == 40.0
    assert first['severe_delay_rate'] == 33.33


def test_aggregate_with_filter_and_support(client):
    data = client.get('/api/analytics/aggregate?group_by=airline&min_support=2&origin=ORD').get_json()
    assert data['count'] == 0


@pytest.mark.parametrize('query', [
    'group_by=tail_number',
    'group_by=origin&metrics=nonsense',
    'group_by=origin&min_support=lots',
    'metrics=delay_rate',
    'group_by=origin&delay_type=Volcano',
])
def test_aggregate_rejects_bad_requests(client, query):
    assert client.get(f'/api/analytics/aggregate?{query}').status_code == 400


def test_store_failure_is_503():
    class DownStore(MemoryRecordStore):
        def fetch_records(self, flt=None, cancel_event=None):
            raise StoreUnavailable('database unreachable')

    client = create_app(store=DownStore()).test_client()
    r = client.get('/api/reports/overview')
    assert r.status_code == 503
    assert r.get_json() == {'error': 'database unreachable'}


def test_not_found(client):
    r = client.get('/api/does-not-exist')
    assert r.status_code == 404
    assert r.get_json() == {'error': 'Not found'}
