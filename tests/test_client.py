"""Tests for the Graph Query Client with mocked HTTP responses."""

import asyncio
import json

import httpx
import pytest
import respx

from intuition_trust.client import (
    GraphClient, TRIPLES_QUERY, extract_field, normalize_triple, parse_timestamp,
)
from intuition_trust.dispatch import Dispatcher
from intuition_trust.errors import RetrievalError
from intuition_trust.models import AttestationFilters
from intuition_trust.service import TrustService

GRAPH_URL = "https://graph.test/v1/graphql"


def triple(term_id="t1", subject="0xabc", predicate="expert-in-defi", obj="true",
           created_at="2024-01-01T00:00:00Z", creator="0xcreator"):
    return {
        "term_id": term_id,
        "creator_id": creator,
        "created_at": created_at,
        "subject_id": f"s-{term_id}",
        "predicate_id": f"p-{term_id}",
        "object_id": f"o-{term_id}",
        "subject": {"data": subject, "label": None, "wallet_id": None},
        "predicate": {"data": None, "label": predicate},
        "object": {"data": obj, "label": None, "wallet_id": None},
        "term": {"id": term_id},
    }


def graph_response(triples):
    return httpx.Response(200, json={"data": {"triples": triples}})


# ── Normalization ──

def test_extract_field_first_non_empty_wins():
    raw = {"subject": {"data": "", "label": "Alice", "wallet_id": "0xwallet"}, "subject_id": "s1"}
    assert extract_field(raw, ("subject.data", "subject.label", "subject.wallet_id")) == "Alice"


def test_extract_field_falls_back_to_id():
    raw = {"subject": None, "subject_id": "s1"}
    assert extract_field(raw, ("subject.data", "subject.label", "subject_id")) == "s1"


def test_extract_field_default():
    assert extract_field({}, ("a.b", "c")) == ""
    assert extract_field({}, ("a",), default="?") == "?"


def test_extract_field_skips_nested_objects():
    raw = {"creator": {"id": "0xc"}}
    assert extract_field(raw, ("creator", "creator.id")) == "0xc"


def test_parse_timestamp_formats():
    assert parse_timestamp("2024-01-01T00:00:00Z") == 1704067200
    assert parse_timestamp("2024-01-01T00:00:00") == 1704067200
    assert parse_timestamp(1704067200) == 1704067200
    assert parse_timestamp(1704067200000) == 1704067200
    assert parse_timestamp("1704067200") == 1704067200
    assert parse_timestamp(None) == 0


def test_parse_timestamp_rejects_garbage():
    with pytest.raises(ValueError):
        parse_timestamp("last tuesday")


@pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
def test_parse_timestamp_rejects_non_finite(value):
    with pytest.raises(ValueError):
        parse_timestamp(value)


@pytest.mark.parametrize("text", [
    "2024-05-21T14:19:54.1+00:00",
    "2024-05-21T14:19:54.1234+00:00",
    "2024-05-21T14:19:54.12345Z",
    "2024-05-21T14:19:54.123456789+00:00",
    "2024-05-21 14:19:54.1234+00:00",
])
def test_parse_timestamp_any_fraction_length(text):
    assert parse_timestamp(text) == parse_timestamp("2024-05-21T14:19:54Z")


def test_normalize_triple():
    att = normalize_triple(triple(), 0.8)
    assert att.id == "t1"
    assert att.creator == "0xcreator"
    assert att.subject == "0xabc"
    assert att.predicate == "expert-in-defi"
    assert att.object == "true"
    assert att.timestamp == 1704067200
    assert att.confidence == 0.8
    assert att.stake == "t1"
    assert att.metadata["subject_id"] == "s-t1"


def test_normalize_triple_missing_fields_are_empty():
    att = normalize_triple({"subject_id": "s9"}, 0.5)
    assert att.id == ""
    assert att.subject == "s9"
    assert att.predicate == ""
    assert att.timestamp == 0
    assert att.stake is None


def test_normalize_triple_rejects_non_object():
    with pytest.raises(RetrievalError):
        normalize_triple(["not", "a", "triple"], 0.8)


def test_normalize_triple_bad_created_at():
    with pytest.raises(RetrievalError, match="created_at"):
        normalize_triple(triple(created_at="soon"), 0.8)


# ── Fetch ──

@pytest.mark.asyncio
async def test_get_attestations_sends_limit_and_offset():
    async with GraphClient(GRAPH_URL) as client:
        with respx.mock:
            route = respx.post(GRAPH_URL).mock(return_value=graph_response([triple()]))
            atts = await client.get_attestations(AttestationFilters(limit=50, offset=10))

    body = json.loads(route.calls.last.request.content)
    assert body["query"] == TRIPLES_QUERY
    assert body["variables"] == {"limit": 50, "offset": 10}
    assert len(atts) == 1


@pytest.mark.asyncio
async def test_get_attestations_default_limit():
    async with GraphClient(GRAPH_URL) as client:
        with respx.mock:
            route = respx.post(GRAPH_URL).mock(return_value=graph_response([]))
            atts = await client.get_attestations()

    assert atts == []
    assert json.loads(route.calls.last.request.content)["variables"] == {"limit": 100, "offset": 0}


@pytest.mark.asyncio
async def test_get_attestations_applies_filters():
    triples = [
        triple("t1", subject="0xAlice", predicate="expert-in-defi"),
        triple("t2", subject="0xBob", predicate="expert-in-defi"),
        triple("t3", subject="0xAlice", predicate="scam-alert"),
    ]
    async with GraphClient(GRAPH_URL, default_confidence=0.6) as client:
        with respx.mock:
            respx.post(GRAPH_URL).mock(return_value=graph_response(triples))
            atts = await client.get_attestations(AttestationFilters(subject="0xalice", predicate="EXPERT"))

    assert [a.id for a in atts] == ["t1"]


@pytest.mark.asyncio
async def test_min_confidence_filter_uses_default_confidence():
    async with GraphClient(GRAPH_URL, default_confidence=0.6) as client:
        with respx.mock:
            respx.post(GRAPH_URL).mock(return_value=graph_response([triple()]))
            atts = await client.get_attestations(AttestationFilters(min_confidence=0.7))
    assert atts == []


@pytest.mark.asyncio
async def test_timestamp_window_filter():
    triples = [
        triple("t1", created_at="2024-01-01T00:00:00Z"),
        triple("t2", created_at="2024-06-01T00:00:00Z"),
    ]
    async with GraphClient(GRAPH_URL) as client:
        with respx.mock:
            respx.post(GRAPH_URL).mock(return_value=graph_response(triples))
            atts = await client.get_attestations(AttestationFilters(from_timestamp=1710000000))
    assert [a.id for a in atts] == ["t2"]


@pytest.mark.asyncio
async def test_http_error_status():
    async with GraphClient(GRAPH_URL) as client:
        with respx.mock:
            respx.post(GRAPH_URL).mock(return_value=httpx.Response(502, text="bad gateway"))
            with pytest.raises(RetrievalError) as exc:
                await client.get_attestations()
    assert str(exc.value) == "Failed to fetch attestations: graph service returned HTTP 502"


@pytest.mark.asyncio
async def test_transport_error():
    async with GraphClient(GRAPH_URL) as client:
        with respx.mock:
            respx.post(GRAPH_URL).mock(side_effect=httpx.ConnectError("connection refused"))
            with pytest.raises(RetrievalError, match="connection refused"):
                await client.get_attestations()


@pytest.mark.asyncio
async def test_graphql_errors():
    async with GraphClient(GRAPH_URL) as client:
        with respx.mock:
            respx.post(GRAPH_URL).mock(return_value=httpx.Response(200, json={
                "errors": [{"message": "field 'triples' not found"}, {"message": "oops"}],
            }))
            with pytest.raises(RetrievalError) as exc:
                await client.get_attestations()
    assert exc.value.upstream_message == "field 'triples' not found; oops"


@pytest.mark.asyncio
async def test_invalid_json_body():
    async with GraphClient(GRAPH_URL) as client:
        with respx.mock:
            respx.post(GRAPH_URL).mock(return_value=httpx.Response(200, text="<html>"))
            with pytest.raises(RetrievalError, match="invalid JSON"):
                await client.get_attestations()


@pytest.mark.asyncio
async def test_missing_triples():
    async with GraphClient(GRAPH_URL) as client:
        with respx.mock:
            respx.post(GRAPH_URL).mock(return_value=httpx.Response(200, json={"data": {}}))
            with pytest.raises(RetrievalError, match="triples"):
                await client.get_attestations()


def test_default_confidence_must_be_in_range():
    with pytest.raises(ValueError):
        GraphClient(GRAPH_URL, default_confidence=1.5)


@pytest.mark.asyncio
async def test_injected_http_client_is_not_closed():
    http = httpx.AsyncClient()
    client = GraphClient(GRAPH_URL, http=http)
    await client.aclose()
    assert not http.is_closed
    await http.aclose()


@pytest.mark.asyncio
async def test_infinite_created_at_is_a_retrieval_error():
    body = b'{"data": {"triples": [{"term_id": "t", "created_at": Infinity}]}}'
    dispatcher = Dispatcher(TrustService(GraphClient(GRAPH_URL)))
    with respx.mock:
        respx.post(GRAPH_URL).mock(return_value=httpx.Response(
            200, content=body, headers={"Content-Type": "application/json"},
        ))
        status, envelope = await dispatcher.call("getAttestations", {})
    await dispatcher.service.aclose()

    assert status == 500
    assert envelope["error"] == "Failed to fetch attestations: malformed created_at: inf"


@pytest.mark.asyncio
async def test_timeout_is_a_retrieval_error():
    async with GraphClient(GRAPH_URL, timeout=0.5) as client:
        with respx.mock:
            respx.post(GRAPH_URL).mock(side_effect=httpx.ReadTimeout("read timed out"))
            with pytest.raises(RetrievalError, match="read timed out"):
                await client.get_attestations()


@pytest.mark.asyncio
async def test_cancellation_propagates():
    started = asyncio.Event()

    async def slow_graph(request):
        started.set()
        await asyncio.sleep(10)
        return graph_response([triple()])

    async with GraphClient(GRAPH_URL) as client:
        with respx.mock:
            respx.post(GRAPH_URL).mock(side_effect=slow_graph)
            task = asyncio.create_task(client.get_attestations())
            await started.wait()
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

    assert task.cancelled()
