"""
Quick local smoke test: run the phased analysis on a few sample QR payloads
and print the phases that fired, the verdict level, score and routed screen.

Run: python3 tools/run_local_smoke.py
"""
import json

from safescan.app.scanner import scan_url
from safescan.app.models import ThreatLevel
from safescan.store import route_for_level

SAMPLES = [
    "https://training.proofpoint.com/landing?id=42",
    "https://phish-sim.corp.example/qr",
    "http://malicious-site-example.xyz/login",
    "example-company.com/menu",
    "https://random-cafe.test/menu",
    "not a url at all",
]


def main():
    for u in SAMPLES:
        res = scan_url(u, fast=True)
        verdict = res["result"]
        print(json.dumps({
            "url": u,
            "phases": res["phases"],
            "level": verdict["level"],
            "score": verdict["score"],
            "domain": verdict["destination"]["domain"],
            "screen": route_for_level(ThreatLevel(verdict["level"])),
        }))


if __name__ == '__main__':
    main()
