"""
intuition_trust.validation — Parameter models for the four tool operations.

Caller input is untyped (JSON bodies, query strings, agent arguments). Each
operation has a pydantic model; ``validate_params`` rejects non-object payloads
first, then reports every violated field at once.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional, Type, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ValidationError
from .models import AttestationFilters

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")

M = TypeVar("M", bound=BaseModel)


def _check_address(v: str) -> str:
    v = v.strip()
    if not ADDRESS_PATTERN.match(v):
        raise ValueError("Invalid Ethereum address")
    return v


class _Params(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class GetTrustScoreParams(_Params):
    address: str

    @field_validator("address")
    @classmethod
    def address_format(cls, v: str) -> str:
        return _check_address(v)


class GetAttestationsParams(_Params):
    creator: Optional[str] = None
    subject: Optional[str] = None
    predicate: Optional[str] = None
    object: Optional[str] = None
    min_confidence: Optional[float] = Field(None, ge=0, le=1, alias="minConfidence")
    from_timestamp: Optional[int] = Field(None, alias="fromTimestamp")
    to_timestamp: Optional[int] = Field(None, alias="toTimestamp")
    limit: Optional[int] = Field(None, ge=1, le=1000)
    offset: Optional[int] = Field(None, ge=0)

    def to_filters(self) -> AttestationFilters:
        return AttestationFilters(
            creator=self.creator or None,
            subject=self.subject or None,
            predicate=self.predicate or None,
            object=self.object or None,
            min_confidence=self.min_confidence,
            from_timestamp=self.from_timestamp,
            to_timestamp=self.to_timestamp,
            limit=self.limit,
            offset=self.offset,
        )


class VerifyCredentialParams(_Params):
    address: str
    claim: str

    @field_validator("address")
    @classmethod
    def address_format(cls, v: str) -> str:
        return _check_address(v)

    @field_validator("claim")
    @classmethod
    def claim_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Claim cannot be empty")
        return v


class FindTrustedExpertsParams(_Params):
    topic: str
    limit: int = Field(10, ge=1, le=100)

    @field_validator("topic")
    @classmethod
    def topic_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Topic cannot be empty")
        return v


def _field_errors(exc: pydantic.ValidationError) -> list[dict]:
    errors = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "params"
        errors.append({"field": loc, "message": err.get("msg", "invalid value")})
    return errors


def validate_params(model: Type[M], payload: Any) -> M:
    """Validate ``payload`` against ``model``; raise ValidationError listing every bad field."""
    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise ValidationError([{
            "field": "params",
            "message": f"Expected an object, got {type(payload).__name__}",
        }])
    try:
        return model.model_validate(dict(payload))
    except pydantic.ValidationError as e:
        raise ValidationError(_field_errors(e)) from None
