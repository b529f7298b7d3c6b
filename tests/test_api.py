import pytest

from safescan import api
from safescan.app.scanner import PHASES
from safescan.app.threat_intel import SCENARIOS
from safescan.store import ScanSession


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(api, "session", ScanSession())
    api.app.config['TESTING'] = True
    api.limiter.enabled = False
    with api.app.test_client() as c:
        yield c


def test_health(client):
    rv = client.get('/health')
    assert rv.status_code == 200
    assert rv.get_json()['status'] == 'ok'


@pytest.mark.parametrize("body", [None, {}, {"url": "   "}])
def test_scan_rejects_missing_url(client, body):
    rv = client.post('/scan', json=body) if body is not None else client.post('/scan')
    assert rv.status_code == 400


def test_scan_simulation(client):
    rv = client.post('/scan', json={'url': 'https://training.proofpoint.com/landing'})
    assert rv.status_code == 200
    d = rv.get_json()
    assert d['verdict'] == 'simulation'
    assert d['screen'] == 'SimulationDetected'
    assert d['domain'] == 'training.proofpoint.com'
    assert d['phases'] == ['url', 'reputation', 'patterns']
    assert d['result']['threat']['simulation']['source'] == 'Proofpoint Training'
    assert [s['status'] for s in d['steps']] == ['complete'] * 3


def test_scan_then_proceed_on_malicious(client):
    d = client.post('/scan', json={'url': 'http://malicious-site-example.xyz/login'}).get_json()
    assert d['screen'] == 'MaliciousPhish'
    assert d['score'] < 20

    rv = client.post(f"/scan/{d['scan_id']}/action", json={'action': 'proceeded'})
    assert rv.status_code == 200
    body = rv.get_json()
    assert body['result']['userAction'] == 'proceeded'
    assert body['profile']['score'] == 80
    assert body['screen'] == 'IsolatedBrowser'

    item = client.get(f"/history/{d['scan_id']}").get_json()
    assert item['userAction'] == 'proceeded'


@pytest.mark.parametrize("body", [['url'], 'https://a.test', 42])
def test_scan_rejects_non_object_body(client, body):
    rv = client.post('/scan', json=body)
    assert rv.status_code == 400
    assert not api.session.in_progress


def test_action_validation(client):
    d = client.post('/scan', json={'url': 'example-company.com'}).get_json()
    assert client.post(f"/scan/{d['scan_id']}/action", json={'action': 'shrug'}).status_code == 400
    assert client.post("/scan/nope/action", json={'action': 'blocked'}).status_code == 404
    assert client.post(f"/scan/{d['scan_id']}/action", json={}).status_code == 400
    assert client.post(f"/scan/{d['scan_id']}/action", json=['proceeded']).status_code == 400


def test_scan_in_progress_conflict(client):
    api.session.start_scan('https://a.test')
    rv = client.post('/scan', json={'url': 'example-company.com'})
    assert rv.status_code == 409
    assert client.post('/scan/reset').status_code == 200
    assert client.post('/scan', json={'url': 'example-company.com'}).status_code == 200


def test_scanner_failure_resets_session(client, monkeypatch):
    def boom(url):
        raise RuntimeError("provider down")

    monkeypatch.setattr(api, "_analyze", boom)
    rv = client.post('/scan', json={'url': 'https://a.test'})
    assert rv.status_code == 500
    assert rv.get_json()['error'] == 'scanner_failed'
    assert rv.get_json()['screen'] == 'Scanner'
    assert api.session.current_url is None
    assert not api.session.in_progress
    assert api.session.scan_history == []


def test_history_and_profile(client):
    for url in ['example-company.com', 'https://training.proofpoint.com/x']:
        client.post('/scan', json={'url': url})
    rows = client.get('/history?limit=10').get_json()['rows']
    assert [r['threat']['level'] for r in rows] == ['simulation', 'safe']
    assert client.get('/history?limit=x').status_code == 400
    assert client.get('/history/missing').status_code == 404

    profile = client.get('/profile').get_json()
    assert profile['totalScans'] == 2
    assert profile['simulationsCaught'] == 1
    assert profile['score'] == 87


def test_api_key_enforced(client, monkeypatch):
    monkeypatch.setattr(api, "API_KEY", "s3cret")
    assert client.get('/profile').status_code == 401
    assert client.get('/profile', headers={'X-API-Key': 's3cret'}).status_code == 200


def test_reset_during_scan_drops_verdict(client, monkeypatch):
    scenario = next(s for s in SCENARIOS if s.pattern == 'malicious-site-example.xyz')

    def reset_midway(url):
        api.session.reset_scan()
        return scenario.build(url, 'malicious-site-example.xyz'), list(PHASES)

    monkeypatch.setattr(api, "_analyze", reset_midway)
    rv = client.post('/scan', json={'url': 'http://malicious-site-example.xyz/login'})
    assert rv.status_code == 409
    assert rv.get_json()['error'] == 'scan_cancelled'
    assert api.session.scan_history == []
    assert api.session.current_result is None
    assert client.post('/scan', json={'url': 'example-company.com'}).status_code == 200
