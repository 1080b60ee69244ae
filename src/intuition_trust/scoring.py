"""
Trust Scoring Engine — deterministic heuristics over normalized attestations.

Trust score (per address):
  relevant  = attestations whose subject, creator or object contains the address
  sentiment = keyword polarity of "predicate object" (at most one per attestation)
  score     = clamp(((positive - 2 * negative) / relevant) * 100 + 50, 0, 100)

Breakdown:
  credibility / expertise / reliability — same formula over the relevant
      attestations whose predicate carries a category keyword
  reputation — equals the overall score

Expert ranking groups subjects case-insensitively (first-seen spelling is
reported) and uses its own saturating function, min(50 + 10 * matches, 100),
and is not expected to agree with the trust score for the same address.

Pure functions, no I/O. Never raises on empty input.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

from .models import Attestation, Expert, TrustBreakdown, TrustScore, VerificationResult

NEGATIVE_WEIGHT = 2
NEUTRAL_BASELINE = 50

DEFAULT_POLARITY: dict[str, int] = {
    "expert": 1,
    "trusted": 1,
    "verified": 1,
    "credible": 1,
    "reliable": 1,
    "scam": -1,
    "fraud": -1,
    "untrusted": -1,
    "suspicious": -1,
}

DEFAULT_CATEGORIES: dict[str, tuple[str, ...]] = {
    "credibility": ("credib", "trust"),
    "expertise": ("expert", "skill"),
    "reliability": ("reliab", "verified"),
}


def clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return min(max(value, lo), hi)


def sentiment_score(positive: int, negative: int, total: int) -> float:
    """Base score for a set of ``total`` attestations; 0 for an empty set."""
    if total <= 0:
        return 0.0
    base = ((positive - NEGATIVE_WEIGHT * negative) / total) * 100
    return clamp(base + NEUTRAL_BASELINE)


def expert_trust_score(match_count: int) -> float:
    return float(min(50 + 10 * match_count, 100))


def _contains(haystack: str, needle: str) -> bool:
    return needle.lower() in haystack.lower()


def is_relevant(att: Attestation, address: str) -> bool:
    """Substring match of ``address`` against subject, creator or object.

    An address that is a substring of another address matches it too; this
    accepts truncated or embedded addresses at the cost of precision.
    """
    if not address:
        return False
    return (_contains(att.subject, address)
            or _contains(att.creator, address)
            or _contains(att.object, address))


@dataclass(frozen=True)
class KeywordPolicy:
    """Keyword configuration for sentiment and breakdown categories.

    ``polarity`` maps keyword -> +1 (positive) or -1 (negative).
    ``categories`` maps breakdown name -> predicate keywords.
    """
    polarity: Mapping[str, int] = field(default_factory=lambda: dict(DEFAULT_POLARITY))
    categories: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: dict(DEFAULT_CATEGORIES))

    def __post_init__(self):
        for kw, sign in self.polarity.items():
            if sign not in (1, -1):
                raise ValueError(f"polarity for {kw!r} must be 1 or -1, got {sign!r}")
        missing = {"credibility", "expertise", "reliability"} - set(self.categories)
        if missing:
            raise ValueError(f"missing categories: {sorted(missing)}")

    @property
    def positive(self) -> tuple[str, ...]:
        return tuple(k for k, s in self.polarity.items() if s > 0)

    @property
    def negative(self) -> tuple[str, ...]:
        return tuple(k for k, s in self.polarity.items() if s < 0)

    def classify(self, att: Attestation) -> int:
        """Return +1, -1 or 0. Negative wins when both polarities match."""
        text = f"{att.predicate} {att.object}".lower()
        if any(kw.lower() in text for kw in self.negative):
            return -1
        if any(kw.lower() in text for kw in self.positive):
            return 1
        return 0

    def in_category(self, att: Attestation, category: str) -> bool:
        predicate = att.predicate.lower()
        return any(kw.lower() in predicate for kw in self.categories[category])


class TrustScoringEngine:
    """Compute trust scores, credential checks and expert rankings."""

    def __init__(self, policy: Optional[KeywordPolicy] = None, clock=time.time):
        self.policy = policy or KeywordPolicy()
        self._clock = clock

    def _tally(self, attestations: list[Attestation]) -> tuple[int, int]:
        positive = negative = 0
        for att in attestations:
            polarity = self.policy.classify(att)
            if polarity > 0:
                positive += 1
            elif polarity < 0:
                negative += 1
        return positive, negative

    def _category_score(self, attestations: list[Attestation], category: str) -> float:
        subset = [a for a in attestations if self.policy.in_category(a, category)]
        positive, negative = self._tally(subset)
        return sentiment_score(positive, negative, len(subset))

    def compute_trust_score(self, attestations: Iterable[Attestation], address: str) -> TrustScore:
        relevant = [a for a in attestations if is_relevant(a, address)]
        now = self._clock()
        if not relevant:
            return TrustScore(
                address=address,
                score=0.0,
                attestation_count=0,
                positive_attestations=0,
                negative_attestations=0,
                last_updated=now,
            )

        positive, negative = self._tally(relevant)
        score = sentiment_score(positive, negative, len(relevant))
        return TrustScore(
            address=address,
            score=score,
            attestation_count=len(relevant),
            positive_attestations=positive,
            negative_attestations=negative,
            last_updated=now,
            breakdown=TrustBreakdown(
                credibility=self._category_score(relevant, "credibility"),
                expertise=self._category_score(relevant, "expertise"),
                reliability=self._category_score(relevant, "reliability"),
                reputation=score,
            ),
        )

    def verify_credential(self, attestations: Iterable[Attestation], address: str, claim: str) -> VerificationResult:
        matching = [
            a for a in attestations
            if is_relevant(a, address)
            and claim
            and (_contains(a.predicate, claim) or _contains(a.object, claim))
        ]
        verified = bool(matching)
        confidence = sum(a.confidence for a in matching) / len(matching) if verified else 0.0
        if verified:
            message = f'Found {len(matching)} attestation(s) for "{claim}"'
        else:
            message = f'No attestations found for "{claim}"'
        return VerificationResult(
            verified=verified,
            attestations=matching,
            confidence=confidence,
            message=message,
        )

    def find_trusted_experts(self, attestations: Iterable[Attestation], topic: str, limit: int = 10) -> list[Expert]:
        if not topic or limit <= 0:
            return []

        # dicts keep first-seen order, and sorted() is stable
        counts: dict[str, int] = {}
        latest: dict[str, int] = {}
        spelling: dict[str, str] = {}
        for att in attestations:
            if not (_contains(att.predicate, topic) or _contains(att.object, topic)):
                continue
            if not att.subject:
                continue
            key = att.subject.lower()
            spelling.setdefault(key, att.subject)
            counts[key] = counts.get(key, 0) + 1
            latest[key] = max(latest.get(key, 0), att.timestamp)

        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        return [
            Expert(
                address=spelling[key],
                trust_score=expert_trust_score(count),
                attestation_count=count,
                specializations=[topic],
                recent_activity=latest[key],
            )
            for key, count in ranked[:limit]
        ]
