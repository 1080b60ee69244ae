"""Trust service — one retrieval per operation, then scoring in memory."""

from __future__ import annotations

import logging
from typing import Optional

from .client import GraphClient
from .models import Attestation, AttestationFilters, Expert, TrustScore, VerificationResult
from .scoring import TrustScoringEngine

logger = logging.getLogger(__name__)

SCORE_FETCH_LIMIT = 1000
SEARCH_FETCH_LIMIT = 500


class TrustService:
    """Binds a GraphClient to a TrustScoringEngine."""

    def __init__(self, client: GraphClient, engine: Optional[TrustScoringEngine] = None):
        self.client = client
        self.engine = engine or TrustScoringEngine()

    async def get_attestations(self, filters: AttestationFilters) -> list[Attestation]:
        return await self.client.get_attestations(filters)

    async def get_trust_score(self, address: str) -> TrustScore:
        attestations = await self.client.get_attestations(AttestationFilters(limit=SCORE_FETCH_LIMIT))
        result = self.engine.compute_trust_score(attestations, address)
        logger.info("Trust score for %s: %.1f from %d attestation(s)",
                    address, result.score, result.attestation_count)
        return result

    async def verify_credential(self, address: str, claim: str) -> VerificationResult:
        attestations = await self.client.get_attestations(AttestationFilters(limit=SEARCH_FETCH_LIMIT))
        return self.engine.verify_credential(attestations, address, claim)

    async def find_trusted_experts(self, topic: str, limit: int = 10) -> list[Expert]:
        attestations = await self.client.get_attestations(AttestationFilters(limit=SEARCH_FETCH_LIMIT))
        return self.engine.find_trusted_experts(attestations, topic, limit)

    async def aclose(self) -> None:
        await self.client.aclose()
