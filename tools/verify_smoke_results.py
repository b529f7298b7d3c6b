"""
Run the fallback classifier N times on a URL that matches no known scenario
and report the level distribution and per-level score statistics
(min/max/mean/stdev). Exits non-zero when a score falls outside its band.

Run: PYTHONPATH=. python3 tools/verify_smoke_results.py [N]
"""
import asyncio
import sys
from collections import defaultdict
from statistics import mean, stdev

from safescan.app.classifier import Classifier, no_sleep
from safescan.app.models import ThreatLevel

URL = 'https://qr-7f3a9c.unlisted-host.test/p?x=1'

BANDS = {
    ThreatLevel.SAFE: (85, 100),
    ThreatLevel.SUSPICIOUS: (40, 70),
    ThreatLevel.MALICIOUS: (0, 20),
    ThreatLevel.SIMULATION: (50, 51),
}


async def collect(n):
    classifier = Classifier(sleep=no_sleep)
    return [await classifier.classify(URL) for _ in range(n)]


def main():
    n = int(sys.argv[1]) if len(sys.argv) > 1 else 1000
    verdicts = asyncio.run(collect(n))

    scores = defaultdict(list)
    out_of_band = 0
    for v in verdicts:
        scores[v.level].append(v.score)
        lo, hi = BANDS[v.level]
        if not lo <= v.score < hi:
            out_of_band += 1

    for level in ThreatLevel:
        vals = scores.get(level, [])
        if not vals:
            print(f'{level.value:<11} count=0')
            continue
        spread = stdev(vals) if len(vals) > 1 else 0.0
        print(f'{level.value:<11} count={len(vals):<5} share={len(vals) / n:.3f} '
              f'min={min(vals)} max={max(vals)} mean={mean(vals):.1f} stdev={spread:.1f}')

    if out_of_band:
        print('FAIL:', out_of_band, 'scores outside their band')
        sys.exit(1)
    print('OK: all scores within their band')


if __name__ == '__main__':
    main()
