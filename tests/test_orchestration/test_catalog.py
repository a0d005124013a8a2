"""Tests for tool discovery and catalog projection."""

import pytest

from fakes import FakeToolServer
from promptbinder.exceptions import DiscoveryError
from promptbinder.models import ToolCatalogEntry, ToolDescriptor
from promptbinder.orchestration.catalog import ToolCatalog


class TestCatalogEntryProjection:
    """Tests for ToolCatalogEntry.from_descriptor."""

    def test_missing_description_uses_name(self):
        """A descriptor with no description should be described by its name."""
        entry = ToolCatalogEntry.from_descriptor(ToolDescriptor(name="ping"))
        assert entry.description == "ping"

    def test_blank_description_uses_name(self):
        """Whitespace-only descriptions are never shown to the LLM."""
        entry = ToolCatalogEntry.from_descriptor(
            ToolDescriptor(name="ping", description="   ")
        )
        assert entry.description == "ping"

    def test_missing_schema_accepts_empty_object(self):
        """A missing parameter schema should become an empty object schema."""
        entry = ToolCatalogEntry.from_descriptor(ToolDescriptor(name="ping"))
        assert entry.parameters == {"type": "object", "properties": {}}

    def test_schema_is_kept(self):
        schema = {"type": "object", "properties": {"city": {"type": "string"}}}
        entry = ToolCatalogEntry.from_descriptor(
            ToolDescriptor(name="forecast", description="Forecast", parameter_schema=schema)
        )
        assert entry.parameters == schema
        assert entry.description == "Forecast"

    def test_openai_format(self):
        """Entries should render in OpenAI function-calling format."""
        entry = ToolCatalogEntry.from_descriptor(ToolDescriptor(name="ping"))
        tool = entry.to_openai_tool()
        assert tool["type"] == "function"
        assert tool["function"]["name"] == "ping"
        assert tool["function"]["description"] == "ping"
        assert tool["function"]["parameters"]["type"] == "object"


class TestToolCatalog:
    """Tests for ToolCatalog.refresh and lookups."""

    @pytest.mark.asyncio
    async def test_refresh_returns_entries_in_listing_order(self, fake_server):
        catalog = ToolCatalog(fake_server)
        entries = await catalog.refresh()
        assert [e.name for e in entries] == ["get_forecast", "get_alerts"]
        assert len(catalog) == 2
        assert "get_alerts" in catalog

    @pytest.mark.asyncio
    async def test_refresh_with_no_tools_is_not_an_error(self):
        catalog = ToolCatalog(FakeToolServer(tools=[]))
        assert await catalog.refresh() == []
        assert catalog.to_openai_tools() == []

    @pytest.mark.asyncio
    async def test_refresh_makes_one_listing_call(self, fake_server):
        catalog = ToolCatalog(fake_server)
        await catalog.refresh()
        assert fake_server.events == [("list_tools",)]

    @pytest.mark.asyncio
    async def test_refresh_failure_raises_discovery_error(self, fake_server):
        fake_server.list_tools_error = RuntimeError("connection reset")
        catalog = ToolCatalog(fake_server)
        with pytest.raises(DiscoveryError, match="connection reset"):
            await catalog.refresh()

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_previous_entries(self, fake_server):
        catalog = ToolCatalog(fake_server)
        await catalog.refresh()
        fake_server.list_tools_error = RuntimeError("boom")
        with pytest.raises(DiscoveryError):
            await catalog.refresh()
        assert catalog.names == ["get_forecast", "get_alerts"]

    @pytest.mark.asyncio
    async def test_describe(self, fake_server):
        catalog = ToolCatalog(fake_server)
        await catalog.refresh()
        entry = catalog.describe("get_alerts")
        assert entry is not None
        assert entry.description == "Active weather alerts"
        assert entry.parameters == {"type": "object", "properties": {}}
        assert catalog.describe("missing") is None

    @pytest.mark.asyncio
    async def test_tools_summary(self, fake_server):
        catalog = ToolCatalog(fake_server)
        await catalog.refresh()
        summary = catalog.get_tools_summary()
        assert "- get_forecast: Get the forecast for a city" in summary
