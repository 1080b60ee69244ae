"""
intuition_trust.dispatch — Protocol-agnostic tool dispatch.

A static table maps each operation name to its parameter model and engine
call. The HTTP tool endpoint, the stdio agent session and the CLI all route
through one ``Dispatcher``, so every call shape behaves the same.

Usage:
    dispatcher = Dispatcher(service)
    status, envelope = await dispatcher.call("getTrustScore", {"address": "0x..."})
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Type

from pydantic import BaseModel

from .errors import IntuitionTrustError, UnknownOperationError, error_envelope
from .service import TrustService
from .validation import (
    FindTrustedExpertsParams,
    GetAttestationsParams,
    GetTrustScoreParams,
    VerifyCredentialParams,
    validate_params,
)

logger = logging.getLogger(__name__)

EXAMPLE_ADDRESS = "0x1234567890123456789012345678901234567890"

_ADDRESS_SCHEMA = {"type": "string", "pattern": "^0x[a-fA-F0-9]{40}$"}


async def _get_trust_score(service: TrustService, p: GetTrustScoreParams) -> dict:
    return (await service.get_trust_score(p.address)).to_dict()


async def _get_attestations(service: TrustService, p: GetAttestationsParams) -> list[dict]:
    return [a.to_dict() for a in await service.get_attestations(p.to_filters())]


async def _verify_credential(service: TrustService, p: VerifyCredentialParams) -> dict:
    return (await service.verify_credential(p.address, p.claim)).to_dict()


async def _find_trusted_experts(service: TrustService, p: FindTrustedExpertsParams) -> list[dict]:
    return [e.to_dict() for e in await service.find_trusted_experts(p.topic, p.limit)]


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    params_model: Type[BaseModel]
    input_schema: dict
    params: dict  # human-readable parameter summary
    example: dict
    handler: Callable[[TrustService, Any], Awaitable[Any]]

    def describe(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
            "params": self.params,
            "example": {"tool": self.name, "params": self.example},
        }


TOOLS: tuple[ToolSpec, ...] = (
    ToolSpec(
        name="getTrustScore",
        description=(
            "Get the trust score for an Ethereum address based on Intuition attestations. "
            "Returns a trust score with breakdown by credibility, expertise, reliability "
            "and reputation."
        ),
        params_model=GetTrustScoreParams,
        input_schema={
            "type": "object",
            "properties": {
                "address": {**_ADDRESS_SCHEMA, "description": "Ethereum address to score (0x...)"},
            },
            "required": ["address"],
        },
        params={"address": "string (Ethereum address)"},
        example={"address": EXAMPLE_ADDRESS},
        handler=_get_trust_score,
    ),
    ToolSpec(
        name="getAttestations",
        description=(
            "Query attestations from the Intuition graph with optional filters. "
            "Returns attestations (triples) that match the criteria."
        ),
        params_model=GetAttestationsParams,
        input_schema={
            "type": "object",
            "properties": {
                "creator": {"type": "string", "description": "Filter by attestation creator address"},
                "subject": {"type": "string", "description": "Filter by subject (the entity attested about)"},
                "predicate": {"type": "string", "description": "Filter by predicate (the claim type)"},
                "object": {"type": "string", "description": "Filter by object (the claim value)"},
                "minConfidence": {"type": "number", "minimum": 0, "maximum": 1,
                                  "description": "Minimum confidence score (0-1)"},
                "fromTimestamp": {"type": "integer", "description": "From this Unix timestamp (seconds)"},
                "toTimestamp": {"type": "integer", "description": "Until this Unix timestamp (seconds)"},
                "limit": {"type": "integer", "minimum": 1, "maximum": 1000,
                          "description": "Maximum results (default 100, max 1000)"},
                "offset": {"type": "integer", "minimum": 0, "description": "Results to skip (pagination)"},
            },
        },
        params={
            "creator": "string (optional)",
            "subject": "string (optional)",
            "predicate": "string (optional)",
            "object": "string (optional)",
            "minConfidence": "number 0-1 (optional)",
            "fromTimestamp": "number (optional)",
            "toTimestamp": "number (optional)",
            "limit": "number 1-1000 (optional)",
            "offset": "number (optional)",
        },
        example={"subject": EXAMPLE_ADDRESS, "limit": 50},
        handler=_get_attestations,
    ),
    ToolSpec(
        name="verifyCredential",
        description=(
            "Verify whether an address holds a specific credential or claim on the "
            "Intuition network. Returns verification status with supporting attestations."
        ),
        params_model=VerifyCredentialParams,
        input_schema={
            "type": "object",
            "properties": {
                "address": {**_ADDRESS_SCHEMA, "description": "Ethereum address to verify"},
                "claim": {"type": "string", "minLength": 1,
                          "description": 'Credential to verify (e.g. "expert-in-defi")'},
            },
            "required": ["address", "claim"],
        },
        params={"address": "string (Ethereum address)", "claim": "string"},
        example={"address": EXAMPLE_ADDRESS, "claim": "expert-in-defi"},
        handler=_verify_credential,
    ),
    ToolSpec(
        name="findTrustedExperts",
        description=(
            "Find the most trusted experts in a topic based on Intuition attestations. "
            "Returns a ranked list of experts with their trust scores."
        ),
        params_model=FindTrustedExpertsParams,
        input_schema={
            "type": "object",
            "properties": {
                "topic": {"type": "string", "minLength": 1,
                          "description": 'Topic to find experts in (e.g. "solidity", "defi")'},
                "limit": {"type": "integer", "minimum": 1, "maximum": 100,
                          "description": "Maximum experts to return (default 10, max 100)"},
            },
            "required": ["topic"],
        },
        params={"topic": "string", "limit": "number 1-100 (optional, default: 10)"},
        example={"topic": "solidity", "limit": 10},
        handler=_find_trusted_experts,
    ),
)

TOOL_TABLE: dict[str, ToolSpec] = {t.name: t for t in TOOLS}
TOOL_NAMES: tuple[str, ...] = tuple(TOOL_TABLE)


def list_tools() -> list[dict]:
    """Static tool metadata: name, description, schema, parameter summary, example."""
    return [t.describe() for t in TOOLS]


class Dispatcher:
    """Route an operation name to validation and the engine call."""

    def __init__(self, service: TrustService):
        self.service = service

    def lookup(self, name: Any) -> ToolSpec:
        spec = TOOL_TABLE.get(name) if isinstance(name, str) else None
        if spec is None:
            raise UnknownOperationError(str(name), TOOL_NAMES)
        return spec

    async def dispatch(self, name: Any, params: Mapping[str, Any] | None) -> Any:
        """Validate and run one operation. Raises the typed errors."""
        spec = self.lookup(name)
        validated = validate_params(spec.params_model, params)
        return await spec.handler(self.service, validated)

    async def call(self, name: Any, params: Mapping[str, Any] | None) -> tuple[int, dict]:
        """Run one operation and wrap the outcome in an envelope.

        Returns ``(http_status, envelope)``.
        """
        try:
            data = await self.dispatch(name, params)
        except Exception as e:
            status, envelope = error_envelope(e)
            if status >= 500:
                logger.error("Tool %s failed: %s", name, e, exc_info=not isinstance(e, IntuitionTrustError))
            else:
                logger.info("Tool %s rejected: %s", name, e)
            return status, envelope
        return 200, {"success": True, "tool": name, "data": data}
