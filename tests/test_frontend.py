import pytest
import requests

from frontend import app as frontend


class FakeResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload


@pytest.fixture
def client():
    frontend.app.config['TESTING'] = True
    with frontend.app.test_client() as c:
        yield c


def test_submit_relays_verdict(client, monkeypatch):
    payload = {
        'scan_id': 'abc', 'domain': 'training.proofpoint.com', 'verdict': 'simulation',
        'score': 50, 'screen': 'SimulationDetected',
        'result': {'threat': {
            'simulation': {'isSimulation': True, 'campaignId': 'campaign-2024'},
            'destination': {'redirectsTo': 'https://training.proofpoint.com/phish-sim/campaign-2024'},
        }},
    }
    seen = {}

    def fake_post(url, json=None, headers=None, timeout=None):
        seen['url'] = url
        seen['json'] = json
        return FakeResponse(200, payload)

    monkeypatch.setattr(frontend.requests, 'post', fake_post)
    rv = client.post('/submit', json={'url': 'https://training.proofpoint.com/x'})
    assert rv.status_code == 200
    d = rv.get_json()
    assert seen['url'].endswith('/scan')
    assert d['screen'] == 'SimulationDetected'
    assert d['simulation']['campaignId'] == 'campaign-2024'
    assert d['redirects_to'].endswith('campaign-2024')


def test_submit_backend_rejection_routes_to_scanner(client, monkeypatch):
    monkeypatch.setattr(frontend.requests, 'post',
                        lambda *a, **kw: FakeResponse(500, {'error': 'scanner_failed'}))
    rv = client.post('/submit', json={'url': 'https://a.test'})
    assert rv.status_code == 500
    assert rv.get_json()['screen'] == 'Scanner'


def test_submit_backend_unreachable(client, monkeypatch):
    def down(*a, **kw):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(frontend.requests, 'post', down)
    rv = client.post('/submit', json={'url': 'https://a.test'})
    assert rv.status_code == 502


def test_submit_requires_url(client):
    assert client.post('/submit', json={}).status_code == 400
