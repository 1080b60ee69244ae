"""
intuition_trust.models — Attestation records and the trust signals derived from them.

All types are plain dataclasses. ``to_dict()`` produces the wire shape used by
the HTTP endpoints and the agent session (camelCase keys).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

DEFAULT_LIMIT = 100


@dataclass(frozen=True)
class Attestation:
    """A single subject–predicate–object claim with provenance."""
    id: str
    creator: str
    subject: str
    predicate: str
    object: str
    timestamp: int  # Unix seconds
    confidence: float
    stake: Optional[str] = None
    metadata: Optional[dict] = None

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "id": self.id,
            "creator": self.creator,
            "subject": self.subject,
            "predicate": self.predicate,
            "object": self.object,
            "timestamp": self.timestamp,
            "confidence": self.confidence,
        }
        if self.stake is not None:
            d["stake"] = self.stake
        if self.metadata is not None:
            d["metadata"] = dict(self.metadata)
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "Attestation":
        return cls(
            id=str(d.get("id", "")),
            creator=str(d.get("creator", "")),
            subject=str(d.get("subject", "")),
            predicate=str(d.get("predicate", "")),
            object=str(d.get("object", "")),
            timestamp=int(d.get("timestamp", 0)),
            confidence=float(d.get("confidence", 0.0)),
            stake=d.get("stake"),
            metadata=d.get("metadata"),
        )


@dataclass
class TrustBreakdown:
    credibility: float = 0.0
    expertise: float = 0.0
    reliability: float = 0.0
    reputation: float = 0.0

    def to_dict(self) -> dict:
        return {
            "credibility": self.credibility,
            "expertise": self.expertise,
            "reliability": self.reliability,
            "reputation": self.reputation,
        }


@dataclass
class TrustScore:
    """Aggregate 0-100 trust score for one address, computed per request."""
    address: str
    score: float
    attestation_count: int
    positive_attestations: int
    negative_attestations: int
    last_updated: float
    breakdown: TrustBreakdown = field(default_factory=TrustBreakdown)

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "score": self.score,
            "attestationCount": self.attestation_count,
            "positiveAttestations": self.positive_attestations,
            "negativeAttestations": self.negative_attestations,
            "lastUpdated": self.last_updated,
            "breakdown": self.breakdown.to_dict(),
        }


@dataclass
class VerificationResult:
    verified: bool
    attestations: list[Attestation]
    confidence: float
    message: str

    def to_dict(self) -> dict:
        return {
            "verified": self.verified,
            "attestations": [a.to_dict() for a in self.attestations],
            "confidence": self.confidence,
            "message": self.message,
        }


@dataclass
class Expert:
    address: str
    trust_score: float
    attestation_count: int
    specializations: list[str]
    recent_activity: int

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "trustScore": self.trust_score,
            "attestationCount": self.attestation_count,
            "specializations": list(self.specializations),
            "recentActivity": self.recent_activity,
        }


@dataclass
class AttestationFilters:
    """Sparse predicate set over attestations. Unset fields impose no constraint."""
    creator: Optional[str] = None
    subject: Optional[str] = None
    predicate: Optional[str] = None
    object: Optional[str] = None
    min_confidence: Optional[float] = None
    from_timestamp: Optional[int] = None
    to_timestamp: Optional[int] = None
    limit: Optional[int] = None
    offset: Optional[int] = None

    _TEXT_FIELDS = ("creator", "subject", "predicate", "object")

    def matches(self, att: Attestation) -> bool:
        for name in self._TEXT_FIELDS:
            wanted = getattr(self, name)
            if wanted and wanted.lower() not in getattr(att, name).lower():
                return False
        if self.min_confidence is not None and att.confidence < self.min_confidence:
            return False
        if self.from_timestamp is not None and att.timestamp < self.from_timestamp:
            return False
        if self.to_timestamp is not None and att.timestamp > self.to_timestamp:
            return False
        return True

    @property
    def has_predicates(self) -> bool:
        return any(getattr(self, n) for n in self._TEXT_FIELDS) or any(
            v is not None for v in (self.min_confidence, self.from_timestamp, self.to_timestamp)
        )

    def to_dict(self) -> dict:
        """Echo only the constraints that were set, in wire (camelCase) form."""
        wire = {
            "creator": self.creator,
            "subject": self.subject,
            "predicate": self.predicate,
            "object": self.object,
            "minConfidence": self.min_confidence,
            "fromTimestamp": self.from_timestamp,
            "toTimestamp": self.to_timestamp,
            "limit": self.limit,
            "offset": self.offset,
        }
        return {k: v for k, v in wire.items() if v is not None}
