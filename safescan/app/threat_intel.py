"""
threat_intel.py

Known-scenario lookup standing in for threat intelligence providers
(Google SafeBrowsing, Proofpoint). Each entry maps a literal substring to
an explicit verdict builder.

Public functions:
    - find_matching_scenario(url) -> Scenario or None
    - build_verdict(url, domain, ...) -> ThreatIntelligence
"""

from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

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

TRAINING_LANDING_URL = "https://training.proofpoint.com/phish-sim/campaign-2024"

VerdictBuilder = Callable[[str, str], ThreatIntelligence]


@dataclass(frozen=True)
class Scenario:
    pattern: str
    build: VerdictBuilder

    def matches(self, url: str) -> bool:
        return self.pattern.lower() in url.lower()


def build_verdict(
    url: str,
    domain: str,
    level: Optional[ThreatLevel] = None,
    score: Optional[int] = None,
    source: Optional[str] = None,
    details: Sequence[ThreatDetail] = (),
    flags: Optional[ThreatFlags] = None,
    simulation: Optional[SimulationInfo] = None,
) -> ThreatIntelligence:
    """
    Assemble a verdict, filling unset fields with their defaults:
    level safe, score 50, source "Unknown", no details, clear flags.

    Simulation verdicts redirect to the training landing page.
    """
    level = level or ThreatLevel.SAFE
    return ThreatIntelligence(
        level=level,
        score=50 if score is None else score,
        source=source or "Unknown",
        details=tuple(details),
        destination=Destination(
            url=url,
            domain=domain,
            redirects_to=TRAINING_LANDING_URL if level == ThreatLevel.SIMULATION else None,
        ),
        flags=flags or ThreatFlags(),
        simulation=simulation,
    )


def _training_campaign(url: str, domain: str) -> ThreatIntelligence:
    return build_verdict(
        url, domain,
        level=ThreatLevel.SIMULATION,
        score=50,
        source="Proofpoint Training",
        simulation=SimulationInfo(
            campaign_id="campaign-2024",
            training_message=(
                "This QR code was created by your security team to test your awareness. "
                "Great job scanning it safely!"
            ),
            source="Proofpoint Training",
        ),
    )


def _phish_sim(url: str, domain: str) -> ThreatIntelligence:
    return build_verdict(
        url, domain,
        level=ThreatLevel.SIMULATION,
        score=50,
        source="Proofpoint Training",
        simulation=SimulationInfo(
            campaign_id="sim-2024-q1",
            training_message="This is a simulated phishing attempt from your IT security team.",
            source="Security Awareness Training",
        ),
    )


def _known_credential_harvester(url: str, domain: str) -> ThreatIntelligence:
    return build_verdict(
        url, domain,
        level=ThreatLevel.MALICIOUS,
        score=5,
        source="Google SafeBrowsing",
        details=(
            ThreatDetail(DetailKind.GOOGLE_SAFEBROWSING, "Google SafeBrowsing",
                         "Flagged as malicious", Severity.CRITICAL),
            ThreatDetail(DetailKind.PROOFPOINT, "Proofpoint Intelligence",
                         "Known credential harvester", Severity.CRITICAL),
            ThreatDetail(DetailKind.SSL, "SSL Certificate",
                         "Invalid or self-signed certificate", Severity.WARNING),
        ),
        flags=ThreatFlags(
            google_safe_browsing=True,
            proofpoint_intelligence=True,
            ssl_valid=False,
            domain_age=DomainAge.NEW,
        ),
    )


def _verified_business(url: str, domain: str) -> ThreatIntelligence:
    return build_verdict(
        url, domain,
        level=ThreatLevel.SAFE,
        score=95,
        source="Verified Business",
        details=(
            ThreatDetail(DetailKind.GOOGLE_SAFEBROWSING, "Google SafeBrowsing",
                         "No threats detected", Severity.INFO),
            ThreatDetail(DetailKind.SSL, "SSL Certificate",
                         "Valid certificate from trusted CA", Severity.INFO),
            ThreatDetail(DetailKind.DOMAIN, "Domain Reputation",
                         "Established business domain", Severity.INFO),
        ),
        flags=ThreatFlags(
            google_safe_browsing=False,
            proofpoint_intelligence=False,
            ssl_valid=True,
            domain_age=DomainAge.ESTABLISHED,
        ),
    )


# Order matters: the first matching pattern wins.
SCENARIOS: Tuple[Scenario, ...] = (
    Scenario("training.proofpoint.com", _training_campaign),
    Scenario("phish-sim", _phish_sim),
    Scenario("malicious-site-example.xyz", _known_credential_harvester),
    Scenario("example-company.com", _verified_business),
)


def find_matching_scenario(url: str, scenarios: Sequence[Scenario] = SCENARIOS) -> Optional[Scenario]:
    """Return the first scenario whose pattern occurs in `url`, case-insensitively."""
    for scenario in scenarios:
        if scenario.matches(url):
            return scenario
    return None
