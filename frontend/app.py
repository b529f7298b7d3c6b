"""Thin relay between the scanner client and the SafeScan backend.

Forwards raw QR text to `/scan` and returns the verdict summary plus the
screen the client should show.
"""

from flask import Flask, request, jsonify
import os, requests

app = Flask(__name__)

BACKEND_URL = os.getenv('BACKEND_URL', 'http://127.0.0.1:5050')
BACKEND_API_KEY = os.getenv('SAFESCAN_API_KEY')


def _headers():
    return {'X-API-Key': BACKEND_API_KEY} if BACKEND_API_KEY else {}


@app.route('/submit', methods=['POST'])
def submit():
    data = request.form or request.get_json(silent=True) or {}
    url = data.get('url')
    if not url:
        return jsonify({'error': 'missing url'}), 400

    try:
        r = requests.post(f'{BACKEND_URL}/scan', json={'url': url}, headers=_headers(), timeout=15)
        scan = r.json()
    except (requests.RequestException, ValueError) as e:
        return jsonify({'error': f'backend scan failed: {e}', 'screen': 'Scanner'}), 502

    if r.status_code != 200:
        # any rejection means: alert, reset, back to the camera
        return jsonify({
            'error': scan.get('error', 'scan_failed'),
            'message': 'Failed to analyze URL. Please try again.',
            'screen': 'Scanner',
        }), r.status_code

    result = scan.get('result', {}).get('threat', {})
    resp = {
        'scan_id': scan.get('scan_id'),
        'url': url,
        'domain': scan.get('domain'),
        'verdict': scan.get('verdict'),
        'score': scan.get('score'),
        'screen': scan.get('screen'),
        'simulation': result.get('simulation'),
        'redirects_to': result.get('destination', {}).get('redirectsTo'),
    }
    return jsonify(resp)


@app.route('/action', methods=['POST'])
def action():
    data = request.get_json(silent=True) or {}
    scan_id = data.get('scan_id')
    if not scan_id or not data.get('action'):
        return jsonify({'error': 'missing scan_id or action'}), 400
    try:
        r = requests.post(f'{BACKEND_URL}/scan/{scan_id}/action',
                          json={'action': data['action']}, headers=_headers(), timeout=15)
        return jsonify(r.json()), r.status_code
    except (requests.RequestException, ValueError) as e:
        return jsonify({'error': f'backend action failed: {e}'}), 502


if __name__ == '__main__':
    port = int(os.getenv('PORT', '8080'))
    app.run(host='0.0.0.0', port=port)
