"""
intuition_trust API — HTTP surface over the trust engine.

Endpoints:
  GET  /api/attestations   — Query attestations with filters
  GET  /api/trust-score    — Trust score for an address or ENS name
  POST /api/mcp            — Invoke a tool: {"tool": ..., "params": {...}}
  GET  /api/mcp            — List available tools with schemas and examples
  GET  /health             — Health check

Run:
    uvicorn intuition_trust.api:create_app --factory --port 8000
"""

import json
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from intuition_trust import __version__
from intuition_trust.client import GraphClient
from intuition_trust.config import Settings
from intuition_trust.dispatch import Dispatcher, list_tools
from intuition_trust.errors import error_envelope
from intuition_trust.middleware import DATA_RATE_LIMIT, apply_middleware, limiter, logger
from intuition_trust.resolver import NameResolver
from intuition_trust.service import TrustService
from intuition_trust.validation import GetAttestationsParams, validate_params

ATTESTATION_QUERY_PARAMS = (
    "creator", "subject", "predicate", "object",
    "minConfidence", "fromTimestamp", "toTimestamp", "limit", "offset",
)

router = APIRouter()


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"success": False, "error": message})


def _dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/health")
async def health():
    return {"status": "ok", "version": __version__}


@router.get("/api/attestations")
@limiter.limit(DATA_RATE_LIMIT)
async def get_attestations(request: Request):
    """Query attestations. Empty query parameters are ignored."""
    raw = {k: v for k, v in request.query_params.items() if k in ATTESTATION_QUERY_PARAMS and v != ""}
    try:
        filters = validate_params(GetAttestationsParams, raw).to_filters()
        attestations = await request.app.state.service.get_attestations(filters)
    except Exception as e:
        status, envelope = error_envelope(e)
        if status >= 500:
            logger.error("Error fetching attestations: %s", e)
        return JSONResponse(status_code=status, content=envelope)

    return {
        "success": True,
        "data": [a.to_dict() for a in attestations],
        "count": len(attestations),
        "filters": filters.to_dict(),
    }


@router.get("/api/trust-score")
@limiter.limit(DATA_RATE_LIMIT)
async def get_trust_score(request: Request):
    """Trust score for ``?address=0x...`` or ``?address=name.eth`` (``?ens=`` also accepted)."""
    value = request.query_params.get("address") or request.query_params.get("ens")
    if not value:
        return _error(400, "Missing required parameter: address or ens")

    resolution = await request.app.state.resolver.resolve(value)
    if not resolution.address:
        return _error(400, resolution.error or "Invalid address or ENS name")

    status, envelope = await _dispatcher(request).call("getTrustScore", {"address": resolution.address})
    if not envelope["success"]:
        return JSONResponse(status_code=status, content=envelope)

    return {
        "success": True,
        "data": {
            **envelope["data"],
            "address": resolution.address,
            "ensName": resolution.name,
            "resolvedFrom": "ens" if resolution.is_name else "address",
        },
    }


@router.post("/api/mcp")
@limiter.limit(DATA_RATE_LIMIT)
async def call_tool(request: Request):
    """Invoke one tool through the dispatch table."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error(400, "Request body must be valid JSON")
    if not isinstance(body, dict):
        return _error(400, "Request body must be a JSON object")

    tool = body.get("tool")
    params = body.get("params")
    if not tool:
        return _error(400, "Missing required field: tool")
    if not isinstance(params, dict):
        return _error(400, "Missing or invalid params object")

    status, envelope = await _dispatcher(request).call(tool, params)
    return JSONResponse(status_code=status, content=envelope)


@router.get("/api/mcp")
async def describe_tools():
    return {"success": True, "tools": list_tools()}


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(
    *,
    settings: Optional[Settings] = None,
    service: Optional[TrustService] = None,
    resolver: Optional[NameResolver] = None,
) -> FastAPI:
    """Build the app. Collaborators not passed in are constructed from ``settings``."""
    settings = settings or Settings.from_env()
    owned = []
    if service is None:
        service = TrustService(GraphClient.from_settings(settings))
        owned.append(service)
    if resolver is None:
        resolver = NameResolver(settings.ens_api_url, timeout=settings.timeout)
        owned.append(resolver)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        for resource in owned:
            await resource.aclose()

    app = FastAPI(
        title="Intuition Trust API",
        description="Attestation retrieval and trust scoring",
        version=__version__,
        lifespan=lifespan,
        docs_url=None if settings.production else "/docs",
        redoc_url=None if settings.production else "/redoc",
    )
    app.state.settings = settings
    app.state.service = service
    app.state.dispatcher = Dispatcher(service)
    app.state.resolver = resolver
    apply_middleware(app, settings.allowed_origins)
    app.include_router(router)
    return app
