"""Main Flask API for SafeScan.

Run: python -m safescan.api
"""

import asyncio
import os
import logging
import threading

from flask import Flask, request, jsonify, abort
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import redis as redis_lib

from safescan import __version__
from safescan.app.domain import normalize_url
from safescan.app.scanner import run_phased_analysis
from safescan.app.models import UserAction
from safescan.store import ScanSession, SCREEN_SCANNER, route_after_action, route_for_level

# Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("api")

# Flask app
app = Flask(__name__)

# Rate limiter: prefer Redis storage in production when REDIS_URL is set
REDIS_URL = os.getenv("REDIS_URL")
if REDIS_URL:
    try:
        redis_lib.from_url(REDIS_URL).ping()
        limiter = Limiter(get_remote_address, app=app,
                          default_limits=["60 per minute"], storage_uri=REDIS_URL)
        logger.info("Using Redis at %s for rate limiting", REDIS_URL)
    except redis_lib.RedisError:
        logger.exception("Failed to connect to Redis, falling back to in-memory limiter")
        limiter = Limiter(get_remote_address, app=app, default_limits=["60 per minute"])
else:
    limiter = Limiter(get_remote_address, app=app, default_limits=["60 per minute"])

# API key
API_KEY = os.getenv("SAFESCAN_API_KEY", None)
if API_KEY:
    logger.info("API key enabled")

# One scanner client per process; the lock makes it the single writer.
session = ScanSession()
session_lock = threading.Lock()


def require_api_key() -> None:
    if not API_KEY:
        return
    key = request.headers.get("X-API-Key") or request.args.get("api_key")
    if not key or key != API_KEY:
        abort(401, description="Invalid or missing API key")


def _still_current(url: str) -> bool:
    """False once the scan for `url` was reset or replaced. Caller holds the lock."""
    return session.in_progress and session.current_url == url


def _analyze(url: str):
    """Drive one phased scan, reporting progress into the session.

    Returns the verdict and the phase ids in the order they fired.
    """
    phases = []

    def on_phase_complete(phase_id: str) -> None:
        phases.append(phase_id)
        with session_lock:
            if _still_current(url):
                session.on_phase_complete(phase_id)

    verdict = asyncio.run(run_phased_analysis(url, on_phase_complete))
    return verdict, phases


@app.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok", "version": __version__})


@app.route("/scan", methods=["POST"])
@limiter.limit("30 per minute")
def scan():
    require_api_key()
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or "url" not in data:
        return jsonify({"error": "missing 'url' in JSON body"}), 400

    url = str(data["url"]).strip()
    if not url:
        return jsonify({"error": "empty url"}), 400

    with session_lock:
        if session.in_progress:
            return jsonify({"error": "scan_in_progress"}), 409
        session.start_scan(url)
        session.begin_analysis()

    try:
        verdict, phases = _analyze(url)
    except Exception as e:
        logger.exception("Scanner failed: %s", e)
        with session_lock:
            session.fail_scan(e)
        return jsonify({
            "error": "scanner_failed",
            "detail": "Failed to analyze URL. Please try again.",
            "screen": SCREEN_SCANNER,
        }), 500

    with session_lock:
        if not _still_current(url):
            logger.info("Scan of %s was reset before it finished; dropping verdict", url)
            return jsonify({"error": "scan_cancelled", "screen": SCREEN_SCANNER}), 409
        result = session.complete_scan(verdict, original_url=url)
        steps = [s.to_dict() for s in session.analyzing_steps]

    return jsonify({
        "scan_id": result.id,
        "url": url,
        "normalized_url": normalize_url(url),
        "domain": verdict.destination.domain,
        "verdict": verdict.level.value,
        "score": verdict.score,
        "screen": route_for_level(verdict.level),
        "phases": phases,
        "steps": steps,
        "result": result.to_dict(),
    }), 200


@app.route("/scan/<scan_id>/action", methods=["POST"])
@limiter.limit("30 per minute")
def scan_action(scan_id: str):
    require_api_key()
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or "action" not in data:
        return jsonify({"error": "missing 'action' in JSON body"}), 400
    try:
        action = UserAction(data["action"])
    except ValueError:
        allowed = [a.value for a in UserAction]
        return jsonify({"error": "invalid action", "allowed": allowed}), 400

    with session_lock:
        try:
            session.get_result(scan_id)
        except KeyError:
            return jsonify({"error": "not_found"}), 404
        current = session.current_result
        if current is None or current.id != scan_id:
            return jsonify({"error": "not_current_scan"}), 409
        updated = session.record_user_action(action)
        profile = session.user_profile.to_dict()

    return jsonify({
        "result": updated.to_dict(),
        "profile": profile,
        "screen": route_after_action(updated.threat.level, updated.user_action),
    }), 200


@app.route("/scan/reset", methods=["POST"])
def scan_reset():
    require_api_key()
    with session_lock:
        session.reset_scan()
    return jsonify({"status": "idle"}), 200


@app.route("/history", methods=["GET"])
@limiter.limit("20 per minute")
def history():
    require_api_key()
    try:
        limit = int(request.args.get("limit", 50))
    except ValueError:
        return jsonify({"error": "limit must be integer"}), 400
    limit = min(50, max(1, limit))
    with session_lock:
        rows = [r.to_dict() for r in session.scan_history[:limit]]
    return jsonify({"count": len(rows), "rows": rows})


@app.route("/history/<scan_id>", methods=["GET"])
@limiter.limit("20 per minute")
def get_history_item(scan_id: str):
    require_api_key()
    with session_lock:
        try:
            item = session.get_result(scan_id)
        except KeyError:
            return jsonify({"error": "not_found"}), 404
    return jsonify(item.to_dict())


@app.route("/profile", methods=["GET"])
def profile():
    require_api_key()
    with session_lock:
        return jsonify(session.user_profile.to_dict())


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", 5050)), debug=False)
