from __future__ import annotations

from typing import Any, Dict

from .server import ServerBuilder
from .shared.config import ServerConfig

JsonDict = Dict[str, Any]

ABOUT_TEXT = "simple_mcp serves tools, prompts and resources over stdio."


def _echo(args: JsonDict) -> Any:
    return args["text"]


def _add(args: JsonDict) -> int:
    return args["a"] + args["b"]


def _greeting(args: JsonDict) -> list[JsonDict]:
    name = args["name"]
    style = args.get("style", "friendly")
    return [{"role": "user", "content": {"type": "text", "text": f"Write a {style} greeting for {name}."}}]


def _about(uri: str) -> list[JsonDict]:
    return [{"uri": uri, "mimeType": "text/plain", "text": ABOUT_TEXT}]


def build_demo(config: ServerConfig | None = None) -> ServerBuilder:
    builder = ServerBuilder(config=config)
    builder.tool(
        "echo",
        "Return the given text unchanged",
        _echo,
        input_schema={
            "type": "object",
            "properties": {"text": {"type": "string"}},
            "required": ["text"],
            "additionalProperties": False,
        },
    ).tool(
        "add",
        "Add two integers",
        _add,
        input_schema={
            "type": "object",
            "properties": {"a": {"type": "integer"}, "b": {"type": "integer"}},
            "required": ["a", "b"],
            "additionalProperties": False,
        },
    )
    builder.prompt(
        "greeting",
        "Ask for a greeting addressed to someone",
        _greeting,
        arguments=[
            {"name": "name", "description": "Who to greet", "required": True},
            {"name": "style", "description": "Tone of the greeting"},
        ],
    )
    builder.resource("memo://welcome", "Welcome", "A static welcome note")
    builder.resource("memo://about", "About", "What this server does", handler=_about)
    return builder
