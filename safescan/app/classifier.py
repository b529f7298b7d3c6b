"""
classifier.py

URL threat classifier.

Public coroutine:
    classify(raw_url: str) -> ThreatIntelligence

A known scenario (see threat_intel.py) wins when its pattern occurs in the
URL. Anything else goes through the stochastic fallback, which only exists
to exercise clients with arbitrary input until real provider calls replace
it.
"""

import asyncio
import logging
import os
import random
from typing import Awaitable, Callable, Optional

from .domain import extract_domain
from .models import (
    Destination,
    DetailKind,
    DomainAge,
    Severity,
    SimulationInfo,
    ThreatDetail,
    ThreatFlags,
    ThreatIntelligence,
    ThreatLevel,
)
from .threat_intel import find_matching_scenario

logger = logging.getLogger("classifier")

Sleep = Callable[[float], Awaitable[None]]
RandomSource = Callable[[], float]

# Simulated provider latency (seconds). SAFESCAN_SIMULATE_LATENCY=0 disables it.
SIMULATE_LATENCY = os.getenv("SAFESCAN_SIMULATE_LATENCY", "1") != "0"
SCENARIO_DELAY = float(os.getenv("SAFESCAN_SCENARIO_DELAY", "0.8"))
FALLBACK_DELAY = float(os.getenv("SAFESCAN_FALLBACK_DELAY", "1.2"))

# Cumulative thresholds over a uniform [0, 1) draw.
LEVEL_THRESHOLDS = (
    (0.70, ThreatLevel.SAFE),
    (0.85, ThreatLevel.SUSPICIOUS),
    (0.95, ThreatLevel.MALICIOUS),
    (1.00, ThreatLevel.SIMULATION),
)

# level -> (base, width); score = base + floor(r * width)
SCORE_BANDS = {
    ThreatLevel.SAFE: (85, 15),
    ThreatLevel.SUSPICIOUS: (40, 30),
    ThreatLevel.MALICIOUS: (0, 20),
}
SIMULATION_SCORE = 50

FALLBACK_DETAILS = {
    ThreatLevel.MALICIOUS: ThreatDetail(
        DetailKind.GOOGLE_SAFEBROWSING, "Google SafeBrowsing",
        "Potential phishing site detected", Severity.CRITICAL),
    ThreatLevel.SUSPICIOUS: ThreatDetail(
        DetailKind.DOMAIN, "Domain Analysis",
        "Recently registered domain", Severity.WARNING),
    ThreatLevel.SAFE: ThreatDetail(
        DetailKind.GOOGLE_SAFEBROWSING, "Google SafeBrowsing",
        "No threats detected", Severity.INFO),
}

UNATTRIBUTED_SIMULATION = SimulationInfo(
    campaign_id="unknown",
    training_message="This link looks like a security awareness exercise. Report it to your security team.",
    source="Threat Intelligence",
)


async def no_sleep(_seconds: float) -> None:
    return None


def pick_level(r: float) -> ThreatLevel:
    for threshold, level in LEVEL_THRESHOLDS:
        if r < threshold:
            return level
    return ThreatLevel.SIMULATION


def score_for_level(level: ThreatLevel, r: float) -> int:
    """Draw a score inside the band for `level` using r in [0, 1)."""
    if level == ThreatLevel.SIMULATION:
        return SIMULATION_SCORE
    base, width = SCORE_BANDS[level]
    # clamp guards against sources that return exactly 1.0
    return base + min(width - 1, int(r * width))


def flags_for_level(level: ThreatLevel) -> ThreatFlags:
    malicious = level == ThreatLevel.MALICIOUS
    return ThreatFlags(
        google_safe_browsing=malicious,
        proofpoint_intelligence=malicious,
        ssl_valid=not malicious,
        domain_age=DomainAge.ESTABLISHED if level == ThreatLevel.SAFE else DomainAge.NEW,
    )


def heuristic_verdict(url: str, domain: str, rand: RandomSource) -> ThreatIntelligence:
    """Build the fallback verdict for a URL that matched no known scenario."""
    level = pick_level(rand())
    score = score_for_level(level, rand())
    detail = FALLBACK_DETAILS.get(level)
    return ThreatIntelligence(
        level=level,
        score=score,
        source="Verified" if level == ThreatLevel.SAFE else "Threat Intelligence",
        details=(detail,) if detail else (),
        destination=Destination(url=url, domain=domain),
        flags=flags_for_level(level),
        simulation=UNATTRIBUTED_SIMULATION if level == ThreatLevel.SIMULATION else None,
    )


class Classifier:
    """
    Classifier bound to a sleep coroutine and a random source.

    Tests pass a no-op sleep and a scripted random source to get
    deterministic verdicts without wall-clock waiting.
    """

    def __init__(self, sleep: Optional[Sleep] = None, rand: Optional[RandomSource] = None,
                 scenario_delay: float = SCENARIO_DELAY, fallback_delay: float = FALLBACK_DELAY):
        if sleep is None:
            sleep = asyncio.sleep if SIMULATE_LATENCY else no_sleep
        self.sleep = sleep
        self.rand = rand or random.random
        self.scenario_delay = scenario_delay
        self.fallback_delay = fallback_delay

    async def classify(self, raw_url: str) -> ThreatIntelligence:
        domain = extract_domain(raw_url)

        scenario = find_matching_scenario(raw_url)
        if scenario is not None:
            await self.sleep(self.scenario_delay)
            verdict = scenario.build(raw_url, domain)
            logger.info("Scenario hit '%s' for %s -> %s", scenario.pattern, domain, verdict.level.value)
            return verdict

        await self.sleep(self.fallback_delay)
        verdict = heuristic_verdict(raw_url, domain, self.rand)
        logger.debug("Fallback verdict for %s: %s (%d)", domain, verdict.level.value, verdict.score)
        return verdict


_default = Classifier()


async def classify(raw_url: str, *, sleep: Optional[Sleep] = None,
                   rand: Optional[RandomSource] = None) -> ThreatIntelligence:
    """Classify one scanned URL with the default (or the given) sleep and random source."""
    if sleep is None and rand is None:
        return await _default.classify(raw_url)
    return await Classifier(sleep=sleep, rand=rand).classify(raw_url)


if __name__ == "__main__":
    test_urls = [
        "https://training.proofpoint.com/landing",
        "http://malicious-site-example.xyz/login",
        "example-company.com/menu",
        "https://random-cafe.test/menu",
    ]
    for u in test_urls:
        res = asyncio.run(classify(u, sleep=no_sleep))
        print("=" * 80)
        print("URL:", u)
        print("Level:", res.level.value, "Score:", res.score, "Source:", res.source)
        for d in res.details:
            print(f"- {d.kind.value}: {d.severity.value} -> {d.description}")
