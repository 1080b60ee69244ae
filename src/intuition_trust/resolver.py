"""Resolve an Ethereum address or ENS name (e.g. ``vitalik.eth``) to an address."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from .config import DEFAULT_ENS_API_URL

logger = logging.getLogger(__name__)

NOT_FOUND = "ENS name not found or not registered"
RESOLVE_FAILED = "Failed to resolve ENS name"
INVALID_INPUT = "Invalid input. Please enter an Ethereum address (0x...) or ENS name (vitalik.eth)"


@dataclass
class AddressResolution:
    address: Optional[str]
    is_name: bool
    name: Optional[str] = None
    error: Optional[str] = None


class NameResolver:
    """Looks names up through an HTTP resolution API. Never raises on bad input."""

    def __init__(self, api_url: str = DEFAULT_ENS_API_URL, *, timeout: float = 10.0,
                 http: Optional[httpx.AsyncClient] = None):
        self.api_url = api_url.rstrip("/")
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def resolve(self, value: str) -> AddressResolution:
        cleaned = value.strip()

        if cleaned.startswith("0x") and len(cleaned) == 42:
            return AddressResolution(address=cleaned.lower(), is_name=False)

        if "." not in cleaned:
            return AddressResolution(address=None, is_name=False, error=INVALID_INPUT)

        name = cleaned.lower()
        try:
            resp = await self._http.get(f"{self.api_url}/{name}")
            data = resp.json() if resp.is_success else {}
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("ENS resolution failed for %s: %s", name, e)
            return AddressResolution(address=None, is_name=True, name=name, error=RESOLVE_FAILED)

        address = data.get("address") if isinstance(data, dict) else None
        if not address:
            return AddressResolution(address=None, is_name=True, name=name, error=NOT_FOUND)
        return AddressResolution(address=str(address).lower(), is_name=True, name=name)
