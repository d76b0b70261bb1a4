"""
Tests for rate limiting and request size limiting.
"""

from vdicost.middleware.rate_limiter import RATE_LIMITS, RateLimiter
from vdicost.middleware.request_size_limiter import MAX_ESTIMATE_LINE_ITEMS, MAX_REQUEST_BODY_SIZE


DEMAND = {
    'region': 'eastus',
    'concurrent_users': 100,
    'workload_intensity': 'medium',
    'storage_service_tier': 'Standard',
}


def test_rate_limiter_allows_up_to_limit():
    limiter = RateLimiter()

    assert all(limiter.is_allowed('ip:1.2.3.4', '/api/calculate', 3) for _ in range(3))
    assert not limiter.is_allowed('ip:1.2.3.4', '/api/calculate', 3)
    assert limiter.is_allowed('ip:5.6.7.8', '/api/calculate', 3)


def test_refresh_endpoint_rate_limited(client, monkeypatch):
    class FakeRefresher:
        def __init__(self, catalog):
            pass

        async def refresh_all(self):
            from vdicost.pricing.catalog_refresh import RefreshResult
            return RefreshResult()

    monkeypatch.setattr('vdicost.api.prices.CatalogRefresher', FakeRefresher)
    limit = RATE_LIMITS[('POST', '/api/prices/refresh')]

    statuses = [client.post('/api/prices/refresh').status_code for _ in range(limit + 1)]

    assert statuses[:limit] == [200] * limit
    assert statuses[-1] == 429


def test_unlimited_routes_pass_through(client):
    for _ in range(20):
        assert client.get('/api/prices').status_code == 200


def test_oversized_body_rejected(client):
    body = {**DEMAND, 'padding': 'x' * (MAX_REQUEST_BODY_SIZE + 1)}

    response = client.post('/api/calculate', json=body)

    assert response.status_code == 413
    assert response.json()['error'] == 'request_too_large'


def test_estimate_with_too_many_line_items_rejected(client):
    line_item = {'name': 'VM', 'sku': 'x', 'quantity': 1, 'unit_price': 1.0}
    estimate = {
        'line_items': [line_item] * (MAX_ESTIMATE_LINE_ITEMS + 1),
        'metadata': {'vm_count': 1, 'users_per_vm': 1, 'storage_capacity_tib': 1},
    }

    response = client.post('/api/scenarios', json={'name': 'Big', 'demand': DEMAND, 'estimate': estimate})

    assert response.status_code == 413


def test_body_still_readable_after_size_check(client):
    response = client.post('/api/calculate', json=DEMAND)

    assert response.status_code == 200
    assert response.json()['status'] == 'ok'
