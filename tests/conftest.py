import pytest

from simple_mcp import ServerBuilder


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch):
    # tests never pick up a developer's config file
    monkeypatch.delenv("SIMPLE_MCP_CONFIG", raising=False)


@pytest.fixture
def echo_builder():
    builder = ServerBuilder("test-server", "9.9.9")
    builder.tool(
        "echo",
        "Return the text argument",
        lambda args: args["text"],
        input_schema={"type": "object", "properties": {"text": {"type": "string"}}, "required": ["text"]},
    )
    return builder
