"""
scanner.py
Phased orchestration of the classification pipeline.

    url         -> simulated extraction delay
    reputation  -> simulated domain reputation delay
    patterns    -> classifier verdict

`on_phase_complete` fires once per phase, in that order, before the verdict
is returned. Classifier and callback errors propagate to the caller.
"""

import asyncio
import logging
import os
from typing import Callable, List, Optional, Tuple

from .classifier import SIMULATE_LATENCY, Classifier, Sleep, no_sleep
from .models import ThreatIntelligence

logger = logging.getLogger("scanner")

PHASE_URL = "url"
PHASE_REPUTATION = "reputation"
PHASE_PATTERNS = "patterns"
PHASES = (PHASE_URL, PHASE_REPUTATION, PHASE_PATTERNS)

PHASE_LABELS = {
    PHASE_URL: "URL extracted",
    PHASE_REPUTATION: "Domain reputation check",
    PHASE_PATTERNS: "Phishing pattern analysis",
}

URL_PHASE_DELAY = float(os.getenv("SAFESCAN_URL_PHASE_DELAY", "0.4"))
REPUTATION_PHASE_DELAY = float(os.getenv("SAFESCAN_REPUTATION_PHASE_DELAY", "0.6"))

PhaseCallback = Callable[[str], None]


async def run_phased_analysis(
    raw_url: str,
    on_phase_complete: PhaseCallback,
    *,
    classifier: Optional[Classifier] = None,
    sleep: Optional[Sleep] = None,
) -> ThreatIntelligence:
    """
    Run the three analysis phases for one scanned URL and return its verdict.

    `sleep` drives the two simulated phase delays; when omitted the
    classifier's own sleep is used so one injected clock covers the scan.
    """
    classifier = classifier or Classifier(sleep=sleep)
    if sleep is None:
        sleep = classifier.sleep

    await sleep(URL_PHASE_DELAY)
    on_phase_complete(PHASE_URL)

    await sleep(REPUTATION_PHASE_DELAY)
    on_phase_complete(PHASE_REPUTATION)

    verdict = await classifier.classify(raw_url)
    on_phase_complete(PHASE_PATTERNS)

    logger.info("Scan of %s complete: %s", verdict.destination.domain, verdict.level.value)
    return verdict


async def scan_with_progress(raw_url: str, **kwargs) -> Tuple[ThreatIntelligence, List[str]]:
    """Run the phased analysis and also return the phase ids in the order they fired."""
    seen: List[str] = []
    verdict = await run_phased_analysis(raw_url, seen.append, **kwargs)
    return verdict, seen


def scan_url(url: str, fast: bool = not SIMULATE_LATENCY) -> dict:
    """
    Blocking wrapper for synchronous callers (the Flask API, CLI tools).
    Returns the wire-shaped verdict plus the phases that fired.
    """
    kwargs = {"sleep": no_sleep} if fast else {}
    verdict, phases = asyncio.run(scan_with_progress(url, **kwargs))
    return {"url": url, "phases": phases, "result": verdict.to_dict()}


# CLI testing
if __name__ == "__main__":
    test_urls = [
        "https://example-company.com/menu",
        "https://training.proofpoint.com/landing",
    ]
    for u in test_urls:
        print("=" * 80)
        res = scan_url(u, fast=True)
        print(res)
