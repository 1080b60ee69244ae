"""Typed errors and the uniform error envelope shared by every call shape."""

from __future__ import annotations

from typing import Sequence

GENERIC_ERROR = "Failed to execute tool"


class IntuitionTrustError(Exception):
    """Base class for errors that map onto an error envelope."""
    status: int = 500

    def to_dict(self) -> dict:
        return {"success": False, "error": str(self)}


class ValidationError(IntuitionTrustError):
    """Caller input failed validation. ``errors`` lists every violated field."""
    status = 400

    def __init__(self, errors: list[dict]):
        self.errors = errors
        fields = ", ".join(e["field"] for e in errors) or "params"
        super().__init__(f"Invalid parameters: {fields}")

    def to_dict(self) -> dict:
        return {"success": False, "error": "Validation error", "details": self.errors}


class RetrievalError(IntuitionTrustError):
    """The attestation graph could not be queried or returned an unusable response."""
    status = 500

    def __init__(self, message: str):
        self.upstream_message = message
        super().__init__(f"Failed to fetch attestations: {message}")


class UnknownOperationError(IntuitionTrustError):
    status = 400

    def __init__(self, name: str, available: Sequence[str]):
        self.name = name
        self.available = list(available)
        super().__init__(f"Unknown tool: {name}")

    def to_dict(self) -> dict:
        return {"success": False, "error": str(self), "availableTools": list(self.available)}


def error_envelope(exc: BaseException) -> tuple[int, dict]:
    """Map any exception to ``(http_status, envelope)``. Unknown kinds get a generic message."""
    if isinstance(exc, IntuitionTrustError):
        return exc.status, exc.to_dict()
    return 500, {"success": False, "error": GENERIC_ERROR}
