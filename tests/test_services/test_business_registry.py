import httpx
import pytest
import respx

from skiptrace.services.business_registry import (
    DETAIL_URL,
    SEARCH_URL,
    BusinessRegistryService,
    parse_address_block,
)


@pytest.fixture
async def registry():
    async with httpx.AsyncClient() as client:
        yield BusinessRegistryService(client)


def test_parse_address_block():
    addr = parse_address_block("123 MAIN ST #4\nLOS ANGELES, CA 90001")
    assert addr.street == "123 main st"
    assert addr.city == "los angeles"
    assert addr.state == "ca"


def test_parse_address_block_single_line():
    addr = parse_address_block("PO BOX 55")
    assert addr.street == "po box 55"
    assert addr.city == ""
    assert addr.state == ""


def test_parse_address_block_empty():
    assert parse_address_block(None) is None
    assert parse_address_block("") is None


@respx.mock
async def test_lookup_business_agent(registry):
    route = respx.post(SEARCH_URL).mock(
        return_value=httpx.Response(200, json={
            "rows": {
                "201912345678": {"ID": 201912345678, "AGENT": "JOHN Q SMITH"},
                "201900000001": {"ID": 201900000001, "AGENT": "OTHER AGENT"},
            },
        })
    )

    agent = await registry.lookup_business_agent("Sunset Holdings LLC")

    assert agent.first_name == "John"
    assert agent.last_name == "Smith"
    assert agent.full_name == "JOHN Q SMITH"
    assert agent.registry_id == "201912345678"
    assert b"Sunset Holdings LLC" in route.calls.last.request.content


@respx.mock
async def test_lookup_business_agent_no_rows(registry):
    respx.post(SEARCH_URL).mock(return_value=httpx.Response(200, json={"rows": {}}))

    agent = await registry.lookup_business_agent("Nobody LLC")

    assert agent.first_name == ""
    assert agent.registry_id is None


@respx.mock
async def test_lookup_business_agent_http_error(registry):
    respx.post(SEARCH_URL).mock(return_value=httpx.Response(500, text="down"))

    agent = await registry.lookup_business_agent("Sunset Holdings LLC")

    assert agent.full_name == ""


@respx.mock
async def test_lookup_agent_address(registry):
    respx.get(DETAIL_URL.format(registry_id="42")).mock(
        return_value=httpx.Response(200, json={
            "DRAWER_DETAIL_LIST": [
                {"LABEL": "Status", "VALUE": "Active"},
                {"LABEL": "Principal Address", "VALUE": "9 OAK AVE\nPASADENA, CA 91101"},
                {"LABEL": "Mailing Address", "VALUE": "PO BOX 12 #3\nGLENDALE, CA 91201"},
            ],
        })
    )

    addresses = await registry.lookup_agent_address("42")

    assert addresses.mailing_address.street == "po box 12"
    assert addresses.mailing_address.city == "glendale"
    assert addresses.property_address.street == "9 oak ave"
    assert addresses.property_address.state == "ca"


@respx.mock
async def test_lookup_agent_address_network_error(registry):
    respx.get(DETAIL_URL.format(registry_id="42")).mock(
        side_effect=httpx.ConnectError("refused")
    )

    addresses = await registry.lookup_agent_address("42")

    assert addresses.mailing_address is None
    assert addresses.property_address is None


@respx.mock
async def test_lookup_business_agent_malformed_row(registry):
    respx.post(SEARCH_URL).mock(
        return_value=httpx.Response(200, json={"rows": {"1": "oops"}})
    )

    agent = await registry.lookup_business_agent("Sunset Holdings LLC")

    assert agent.full_name == ""
    assert agent.registry_id is None


@respx.mock
async def test_lookup_business_agent_non_object_payload(registry):
    respx.post(SEARCH_URL).mock(return_value=httpx.Response(200, json=["x"]))
    agent = await registry.lookup_business_agent("Sunset Holdings LLC")
    assert agent.first_name == ""


@respx.mock
async def test_lookup_agent_address_malformed_entries(registry):
    respx.get(DETAIL_URL.format(registry_id="42")).mock(
        return_value=httpx.Response(200, json={
            "DRAWER_DETAIL_LIST": [
                "junk",
                {"LABEL": "Mailing Address", "VALUE": 12345},
            ],
        })
    )

    addresses = await registry.lookup_agent_address("42")

    assert addresses.mailing_address is None
    assert addresses.property_address is None
