"""Tests for address / ENS name resolution with mocked HTTP responses."""

import httpx
import pytest
import pytest_asyncio
import respx

from intuition_trust.resolver import INVALID_INPUT, NOT_FOUND, RESOLVE_FAILED, NameResolver

ENS_API = "https://ens.test/resolve"


@pytest_asyncio.fixture
async def resolver():
    r = NameResolver(ENS_API)
    yield r
    await r.aclose()


@pytest.mark.asyncio
async def test_plain_address_is_lowercased(resolver):
    with respx.mock:
        res = await resolver.resolve("0xABCDEF0000000000000000000000000000000001")
    assert res.address == "0xabcdef0000000000000000000000000000000001"
    assert res.is_name is False
    assert res.error is None


@pytest.mark.asyncio
async def test_ens_name(resolver):
    with respx.mock:
        respx.get(f"{ENS_API}/vitalik.eth").mock(return_value=httpx.Response(200, json={
            "address": "0xD8dA6BF26964aF9D7eEd9e03E53415D37aA96045",
            "name": "vitalik.eth",
        }))
        res = await resolver.resolve(" Vitalik.ETH ")
    assert res.address == "0xd8da6bf26964af9d7eed9e03e53415d37aa96045"
    assert res.is_name is True
    assert res.name == "vitalik.eth"


@pytest.mark.asyncio
async def test_ens_name_not_found(resolver):
    with respx.mock:
        respx.get(f"{ENS_API}/nobody.eth").mock(return_value=httpx.Response(404))
        res = await resolver.resolve("nobody.eth")
    assert res.address is None
    assert res.error == NOT_FOUND


@pytest.mark.asyncio
async def test_ens_name_without_address(resolver):
    with respx.mock:
        respx.get(f"{ENS_API}/empty.eth").mock(return_value=httpx.Response(200, json={"address": None}))
        res = await resolver.resolve("empty.eth")
    assert res.error == NOT_FOUND


@pytest.mark.asyncio
async def test_ens_transport_failure(resolver):
    with respx.mock:
        respx.get(f"{ENS_API}/down.eth").mock(side_effect=httpx.ConnectTimeout("timed out"))
        res = await resolver.resolve("down.eth")
    assert res.address is None
    assert res.is_name is True
    assert res.error == RESOLVE_FAILED


@pytest.mark.asyncio
async def test_invalid_input(resolver):
    with respx.mock:
        res = await resolver.resolve("not-an-address")
    assert res.address is None
    assert res.error == INVALID_INPUT
