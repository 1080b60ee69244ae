"""intuition_trust — Attestation retrieval and trust scoring over the Intuition graph."""

__version__ = "0.1.0"

from intuition_trust.models import (
    Attestation, AttestationFilters, TrustBreakdown, TrustScore,
    VerificationResult, Expert,
)
from intuition_trust.errors import (
    IntuitionTrustError, ValidationError, RetrievalError, UnknownOperationError,
    error_envelope,
)
from intuition_trust.config import Settings
from intuition_trust.client import GraphClient
from intuition_trust.scoring import KeywordPolicy, TrustScoringEngine
from intuition_trust.service import TrustService
from intuition_trust.dispatch import Dispatcher, TOOL_NAMES, list_tools

__all__ = [
    "__version__",
    "Attestation",
    "AttestationFilters",
    "TrustBreakdown",
    "TrustScore",
    "VerificationResult",
    "Expert",
    "IntuitionTrustError",
    "ValidationError",
    "RetrievalError",
    "UnknownOperationError",
    "error_envelope",
    "Settings",
    "GraphClient",
    "KeywordPolicy",
    "TrustScoringEngine",
    "TrustService",
    "Dispatcher",
    "TOOL_NAMES",
    "list_tools",
]
