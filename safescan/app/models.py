"""
models.py

Value types shared by the classifier, the orchestrator and the session store.

Every model renders the camelCase wire shape consumed by the scanner
client through `to_dict()`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple


class ThreatLevel(str, enum.Enum):
    """Verdict category. Categorical, not ranked; use `score` to order."""
    SAFE = "safe"
    SUSPICIOUS = "suspicious"
    MALICIOUS = "malicious"
    SIMULATION = "simulation"


class DetailKind(str, enum.Enum):
    GOOGLE_SAFEBROWSING = "google_safebrowsing"
    PROOFPOINT = "proofpoint"
    SSL = "ssl"
    DOMAIN = "domain"
    PATTERN = "pattern"


class Severity(str, enum.Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class DomainAge(str, enum.Enum):
    NEW = "new"
    ESTABLISHED = "established"
    UNKNOWN = "unknown"


class ScanStatus(str, enum.Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    ANALYZING = "analyzing"
    URL_EXTRACTED = "url_extracted"
    CHECKING_REPUTATION = "checking_reputation"
    CHECKING_PATTERNS = "checking_patterns"
    COMPLETE = "complete"


class StepStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETE = "complete"
    ERROR = "error"


class UserAction(str, enum.Enum):
    PROCEEDED = "proceeded"
    BLOCKED = "blocked"
    REPORTED = "reported"


@dataclass(frozen=True)
class ThreatDetail:
    """One piece of evidence attached to a verdict."""

    kind: DetailKind
    title: str
    description: str
    severity: Severity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind.value,
            "title": self.title,
            "description": self.description,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class Destination:
    url: str  # as scanned, never normalized
    domain: str
    redirects_to: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {"url": self.url, "domain": self.domain}
        if self.redirects_to is not None:
            out["redirectsTo"] = self.redirects_to
        return out


@dataclass(frozen=True)
class ThreatFlags:
    google_safe_browsing: bool = False
    proofpoint_intelligence: bool = False
    ssl_valid: bool = True
    domain_age: DomainAge = DomainAge.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "googleSafeBrowsing": self.google_safe_browsing,
            "proofpointIntelligence": self.proofpoint_intelligence,
            "sslValid": self.ssl_valid,
            "domainAge": self.domain_age.value,
        }


@dataclass(frozen=True)
class SimulationInfo:
    """Marks a security-awareness training phish."""

    campaign_id: str
    training_message: str
    source: str

    @property
    def is_simulation(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isSimulation": True,
            "campaignId": self.campaign_id,
            "trainingMessage": self.training_message,
            "source": self.source,
        }


@dataclass(frozen=True)
class ThreatIntelligence:
    """
    The verdict for one scanned URL.

    `score` runs 0..100 where 0 is the most dangerous and 100 the safest.
    `simulation` is present if and only if `level` is SIMULATION; both
    rules are checked at construction.
    """

    level: ThreatLevel
    score: int
    source: str
    details: Tuple[ThreatDetail, ...]
    destination: Destination
    flags: ThreatFlags
    simulation: Optional[SimulationInfo] = None

    def __post_init__(self):
        if not 0 <= self.score <= 100:
            raise ValueError(f"score must be within 0..100, got {self.score}")
        if (self.simulation is not None) != (self.level == ThreatLevel.SIMULATION):
            raise ValueError(
                f"simulation info must be present iff level is simulation (level={self.level.value})"
            )
        # accept any sequence but store an immutable tuple
        if not isinstance(self.details, tuple):
            object.__setattr__(self, "details", tuple(self.details))

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "level": self.level.value,
            "score": self.score,
            "source": self.source,
            "details": [d.to_dict() for d in self.details],
            "destination": self.destination.to_dict(),
            "flags": self.flags.to_dict(),
        }
        if self.simulation is not None:
            out["simulation"] = self.simulation.to_dict()
        return out


@dataclass(frozen=True)
class AnalyzingStep:
    id: str
    label: str
    status: StepStatus = StepStatus.PENDING

    def with_status(self, status: StepStatus) -> "AnalyzingStep":
        return replace(self, status=status)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "label": self.label, "status": self.status.value}


@dataclass(frozen=True)
class ScanResult:
    id: str
    timestamp: datetime
    original_url: str
    threat: ThreatIntelligence
    user_action: Optional[UserAction] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "originalUrl": self.original_url,
            "threat": self.threat.to_dict(),
        }
        if self.user_action is not None:
            out["userAction"] = self.user_action.value
        return out


@dataclass(frozen=True)
class ScoreEvent:
    """One applied change to the profile score. Appended, never rewritten."""

    scan_id: str
    delta: int
    reason: str
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scanId": self.scan_id,
            "delta": self.delta,
            "reason": self.reason,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class UserSecurityProfile:
    score: int = 85
    total_scans: int = 0
    threats_blocked: int = 0
    simulations_caught: int = 0
    simulations_missed: int = 0
    last_scan_date: Optional[datetime] = None
    score_events: List[ScoreEvent] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "totalScans": self.total_scans,
            "threatsBlocked": self.threats_blocked,
            "simulationsCaught": self.simulations_caught,
            "simulationsMissed": self.simulations_missed,
            "lastScanDate": self.last_scan_date.isoformat() if self.last_scan_date else None,
            "scoreEvents": [e.to_dict() for e in self.score_events],
        }
