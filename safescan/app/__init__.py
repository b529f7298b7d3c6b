"""
Threat classification engine.

Exposes:

    classify(raw_url) -> ThreatIntelligence
    run_phased_analysis(raw_url, on_phase_complete) -> ThreatIntelligence
    extract_domain(url) -> str
"""

from .classifier import Classifier, classify
from .domain import extract_domain
from .models import ThreatIntelligence, ThreatLevel
from .scanner import PHASES, run_phased_analysis
