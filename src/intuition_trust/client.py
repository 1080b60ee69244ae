"""
intuition_trust.client — Graph Query Client for the Intuition attestation graph.

One GraphQL round trip per call, no retries, no caching. Upstream triples come
in several shapes depending on the deployment, so every canonical field is read
through an ordered list of extraction strategies (dotted paths); the first
non-empty value wins.

Usage:
    async with GraphClient("https://testnet.intuition.sh/v1/graphql") as client:
        atts = await client.get_attestations(AttestationFilters(limit=50))
"""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from .errors import RetrievalError
from .models import DEFAULT_LIMIT, Attestation, AttestationFilters

logger = logging.getLogger(__name__)

TRIPLES_QUERY = """
query GetTriples($limit: Int, $offset: Int) {
  triples(limit: $limit, offset: $offset) {
    subject_id
    predicate_id
    object_id
    term_id
    creator_id
    created_at
    subject { data label wallet_id }
    predicate { data label }
    object { data label wallet_id }
    term { id }
  }
}
"""

# Ordered extraction strategies per canonical field.
FIELD_STRATEGIES: dict[str, tuple[str, ...]] = {
    "id": ("term_id", "term.id"),
    "creator": ("creator_id", "creator.id"),
    "subject": ("subject.data", "subject.label", "subject.wallet_id", "subject_id"),
    "predicate": ("predicate.data", "predicate.label", "predicate_id"),
    "object": ("object.data", "object.label", "object.wallet_id", "object_id"),
    "stake": ("term.id", "term_id"),
}

METADATA_KEYS = ("subject_id", "predicate_id", "object_id", "creator_id", "term_id")

# Epoch values above this are milliseconds.
_MS_THRESHOLD = 10 ** 12

# Graph timestamps drop trailing zeros from the fraction (".1234"); pre-3.11
# fromisoformat only takes 3 or 6 digits.
_FRACTION = re.compile(r"(\d{2}:\d{2}:\d{2})\.(\d+)")


def _lookup(raw: dict, path: str) -> Any:
    node: Any = raw
    for part in path.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    return node


def extract_field(raw: dict, strategies: tuple[str, ...], default: str = "") -> str:
    """Return the first non-empty value found along ``strategies``."""
    for path in strategies:
        value = _lookup(raw, path)
        if value is None or isinstance(value, (dict, list)):
            continue
        text = str(value)
        if text:
            return text
    return default


def parse_timestamp(value: Any) -> int:
    """Convert ``created_at`` (ISO-8601 or epoch number) to Unix seconds."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValueError(f"invalid timestamp: {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return int(value / 1000) if value > _MS_THRESHOLD else int(value)
    text = str(value).strip()
    if text.isdigit():
        return parse_timestamp(int(text))
    text = _FRACTION.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text)
    dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())


def normalize_triple(raw: dict, default_confidence: float) -> Attestation:
    """Map one raw upstream triple to a canonical Attestation."""
    if not isinstance(raw, dict):
        raise RetrievalError(f"malformed triple: expected object, got {type(raw).__name__}")
    try:
        timestamp = parse_timestamp(raw.get("created_at"))
    except (TypeError, ValueError, OverflowError) as e:
        raise RetrievalError(f"malformed created_at: {raw.get('created_at')!r}") from e

    stake = extract_field(raw, FIELD_STRATEGIES["stake"]) or None
    return Attestation(
        id=extract_field(raw, FIELD_STRATEGIES["id"]),
        creator=extract_field(raw, FIELD_STRATEGIES["creator"]),
        subject=extract_field(raw, FIELD_STRATEGIES["subject"]),
        predicate=extract_field(raw, FIELD_STRATEGIES["predicate"]),
        object=extract_field(raw, FIELD_STRATEGIES["object"]),
        timestamp=timestamp,
        confidence=default_confidence,
        stake=stake,
        metadata={k: raw.get(k) for k in METADATA_KEYS},
    )


class GraphClient:
    """Async client for the attestation graph.

    Args:
        url: GraphQL endpoint.
        timeout: Per-request timeout in seconds.
        default_confidence: Confidence assigned to every attestation; the
            graph does not supply one.
        http: Optional pre-built ``httpx.AsyncClient`` (not closed by us).
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        default_confidence: float = 0.8,
        http: Optional[httpx.AsyncClient] = None,
    ):
        if not 0.0 <= default_confidence <= 1.0:
            raise ValueError("default_confidence must be between 0 and 1")
        self.url = url
        self.timeout = timeout
        self.default_confidence = default_confidence
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )

    @classmethod
    def from_settings(cls, settings) -> "GraphClient":
        return cls(
            settings.graph_url,
            timeout=settings.timeout,
            default_confidence=settings.default_confidence,
        )

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    # -- internal --

    async def _query(self, variables: dict) -> list:
        payload = {"query": TRIPLES_QUERY, "variables": variables}
        try:
            resp = await self._http.post(self.url, json=payload, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.warning("Graph request to %s failed: %s", self.url, e)
            raise RetrievalError(str(e) or type(e).__name__) from e

        if not resp.is_success:
            logger.warning("Graph request to %s returned HTTP %d", self.url, resp.status_code)
            raise RetrievalError(f"graph service returned HTTP {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as e:
            raise RetrievalError("graph service returned invalid JSON") from e
        if not isinstance(body, dict):
            raise RetrievalError("graph service returned a non-object body")

        errors = body.get("errors")
        if errors:
            messages = [
                e.get("message", "unknown error") if isinstance(e, dict) else str(e)
                for e in errors
            ]
            logger.warning("Graph query errors: %s", messages)
            raise RetrievalError("; ".join(messages))

        data = body.get("data")
        triples = data.get("triples") if isinstance(data, dict) else None
        if not isinstance(triples, list):
            raise RetrievalError("graph response is missing a 'triples' list")
        return triples

    # -- public --

    async def get_attestations(self, filters: Optional[AttestationFilters] = None) -> list[Attestation]:
        """Fetch and normalize attestations. Raises RetrievalError on any failure."""
        filters = filters or AttestationFilters()
        variables = {
            "limit": filters.limit if filters.limit is not None else DEFAULT_LIMIT,
            "offset": filters.offset or 0,
        }
        triples = await self._query(variables)
        attestations = [normalize_triple(t, self.default_confidence) for t in triples]
        if filters.has_predicates:
            attestations = [a for a in attestations if filters.matches(a)]
        logger.debug("Fetched %d attestations (limit=%d, offset=%d)",
                     len(attestations), variables["limit"], variables["offset"])
        return attestations
