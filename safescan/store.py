"""
store.py

Caller-owned scan session: in-progress scan state, the user security
profile and the recent scan history.

One ScanSession per user/device. It is not thread-safe; the owner is the
single writer (the API wraps it in a lock).
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from safescan.app.models import (
    AnalyzingStep,
    ScanResult,
    ScanStatus,
    ScoreEvent,
    StepStatus,
    ThreatIntelligence,
    ThreatLevel,
    UserAction,
    UserSecurityProfile,
)
from safescan.app.scanner import PHASE_LABELS, PHASES

logger = logging.getLogger("store")

HISTORY_LIMIT = 50
MAX_SCORE = 100
MIN_SCORE = 0

SIMULATION_CAUGHT_BONUS = 2
PROCEEDED_MALICIOUS_PENALTY = 5
PROCEEDED_SIMULATION_PENALTY = 3

# Screen names used by the scanner client.
SCREEN_SCANNER = "Scanner"
SCREEN_SIMULATION = "SimulationDetected"
SCREEN_SUCCESS = "Success"
SCREEN_HIGH_RISK = "MaliciousPhish"
SCREEN_SAFE = "SafeLink"
SCREEN_ISOLATED_BROWSER = "IsolatedBrowser"

# status reached once each phase completes
PHASE_STATUS = {
    "url": ScanStatus.URL_EXTRACTED,
    "reputation": ScanStatus.CHECKING_REPUTATION,
    "patterns": ScanStatus.CHECKING_PATTERNS,
}


def route_for_level(level: ThreatLevel) -> str:
    """Result screen for a verdict. Suspicious shares the high-risk screen."""
    if level == ThreatLevel.SIMULATION:
        return SCREEN_SIMULATION
    if level in (ThreatLevel.MALICIOUS, ThreatLevel.SUSPICIOUS):
        return SCREEN_HIGH_RISK
    return SCREEN_SAFE


def route_after_action(level: ThreatLevel, action: UserAction) -> str:
    if level == ThreatLevel.SIMULATION and action == UserAction.BLOCKED:
        return SCREEN_SUCCESS
    if level != ThreatLevel.SIMULATION and action == UserAction.PROCEEDED and level != ThreatLevel.SAFE:
        return SCREEN_ISOLATED_BROWSER
    return SCREEN_SCANNER


def initial_steps() -> List[AnalyzingStep]:
    return [AnalyzingStep(id=p, label=PHASE_LABELS[p]) for p in PHASES]


def _clamp(score: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, score))


class ScanSession:
    """
    State of one scanner client.

    Transitions: start_scan -> (on_phase_complete x3) -> complete_scan
    -> record_user_action -> reset_scan. fail_scan resets from any point.
    """

    def __init__(self, profile: Optional[UserSecurityProfile] = None):
        self.status = ScanStatus.IDLE
        self.current_url: Optional[str] = None
        self.current_result: Optional[ScanResult] = None
        self.analyzing_steps = initial_steps()
        self.user_profile = profile or UserSecurityProfile()
        self.scan_history: List[ScanResult] = []
        # score credit applied per simulation scan, so a later reversal undoes exactly that
        self._simulation_credit: Dict[str, int] = {}

    @property
    def in_progress(self) -> bool:
        return self.status not in (ScanStatus.IDLE, ScanStatus.COMPLETE)

    def start_scan(self, url: str) -> None:
        self.status = ScanStatus.SCANNING
        self.current_url = url
        self.current_result = None
        self.analyzing_steps = initial_steps()

    def update_status(self, status: ScanStatus) -> None:
        self.status = status

    def update_step(self, step_id: str, status: StepStatus) -> None:
        if step_id not in PHASES:
            raise ValueError(f"unknown analysis step: {step_id}")
        self.analyzing_steps = [
            step.with_status(status) if step.id == step_id else step
            for step in self.analyzing_steps
        ]

    def begin_analysis(self) -> None:
        self.update_status(ScanStatus.ANALYZING)
        self.update_step(PHASES[0], StepStatus.ACTIVE)

    def on_phase_complete(self, phase_id: str) -> None:
        """Progress callback for run_phased_analysis."""
        self.update_step(phase_id, StepStatus.COMPLETE)
        self.update_status(PHASE_STATUS[phase_id])
        idx = PHASES.index(phase_id)
        if idx + 1 < len(PHASES):
            self.update_step(PHASES[idx + 1], StepStatus.ACTIVE)

    def complete_scan(self, threat: ThreatIntelligence, original_url: Optional[str] = None) -> ScanResult:
        result = ScanResult(
            id=uuid.uuid4().hex,
            timestamp=datetime.now(timezone.utc),
            original_url=original_url if original_url is not None else (self.current_url or threat.destination.url),
            threat=threat,
        )

        profile = self.user_profile
        profile.total_scans += 1
        profile.last_scan_date = result.timestamp

        if threat.level == ThreatLevel.MALICIOUS:
            profile.threats_blocked += 1

        if threat.simulation is not None:
            profile.simulations_caught += 1
            applied = self._apply_score(result.id, SIMULATION_CAUGHT_BONUS, "simulation_caught")
            self._simulation_credit[result.id] = applied

        self.status = ScanStatus.COMPLETE
        self.current_result = result
        self.scan_history = [result] + self.scan_history[:HISTORY_LIMIT - 1]
        self._simulation_credit = {
            k: v for k, v in self._simulation_credit.items()
            if any(r.id == k for r in self.scan_history)
        }
        logger.info("Scan %s completed: %s (score %d)", result.id, threat.level.value, threat.score)
        return result

    def fail_scan(self, error: Optional[BaseException] = None) -> None:
        """Drop every piece of in-progress state; no partial verdict survives."""
        if error is not None:
            logger.warning("Scan of %s failed: %s", self.current_url, error)
        self.reset_scan()

    def reset_scan(self) -> None:
        self.status = ScanStatus.IDLE
        self.current_url = None
        self.current_result = None
        self.analyzing_steps = initial_steps()

    def record_user_action(self, action) -> Optional[ScanResult]:
        """
        Record what the user did with the current result and apply the
        profile rules. No-op (returns None) when there is no current result.
        Only the first action on a result counts; repeats return it unchanged.
        """
        action = UserAction(action)
        current = self.current_result
        if current is None:
            return None
        if current.user_action is not None:
            logger.info("Scan %s already recorded as %s; ignoring %s",
                        current.id, current.user_action.value, action.value)
            return current

        updated = ScanResult(
            id=current.id,
            timestamp=current.timestamp,
            original_url=current.original_url,
            threat=current.threat,
            user_action=action,
        )
        profile = self.user_profile

        if action == UserAction.PROCEEDED and current.threat.level == ThreatLevel.MALICIOUS:
            self._apply_score(current.id, -PROCEEDED_MALICIOUS_PENALTY, "proceeded_malicious")

        if action == UserAction.PROCEEDED and current.threat.simulation is not None:
            profile.simulations_missed += 1
            profile.simulations_caught -= 1
            credit = self._simulation_credit.pop(current.id, 0)
            if credit:
                self._apply_score(current.id, -credit, "simulation_credit_reversed")
            self._apply_score(current.id, -PROCEEDED_SIMULATION_PENALTY, "proceeded_simulation")

        self.current_result = updated
        self.scan_history = [updated if r.id == updated.id else r for r in self.scan_history]
        return updated

    def update_profile(self, **updates) -> UserSecurityProfile:
        for key, value in updates.items():
            if not hasattr(self.user_profile, key):
                raise ValueError(f"unknown profile field: {key}")
            setattr(self.user_profile, key, value)
        return self.user_profile

    def get_result(self, scan_id: str) -> ScanResult:
        for result in self.scan_history:
            if result.id == scan_id:
                return result
        raise KeyError(scan_id)

    def _apply_score(self, scan_id: str, delta: int, reason: str) -> int:
        """Apply a clamped score change, log it as an event, return the delta actually applied."""
        profile = self.user_profile
        new_score = _clamp(profile.score + delta)
        applied = new_score - profile.score
        profile.score = new_score
        profile.score_events.append(ScoreEvent(scan_id, applied, reason, datetime.now(timezone.utc)))
        return applied
