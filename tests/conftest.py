"""
Pytest configuration and fixtures for PromptBinder tests.
"""

import pytest

from fakes import FakeToolServer
from promptbinder.models import ToolDescriptor
from promptbinder.tracing import shutdown_tracing


@pytest.fixture
def weather_tools():
    return [
        ToolDescriptor(
            name="get_forecast",
            description="Get the forecast for a city",
            parameter_schema={
                "type": "object",
                "properties": {"city": {"type": "string"}},
                "required": ["city"],
            },
        ),
        ToolDescriptor(name="get_alerts", description="Active weather alerts"),
    ]


@pytest.fixture
def fake_server(weather_tools):
    return FakeToolServer(tools=weather_tools)


@pytest.fixture(autouse=True)
def reset_tracing():
    """Make sure no tracing client leaks between tests."""
    shutdown_tracing()
    yield
    shutdown_tracing()
