from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

JsonDict = Dict[str, Any]

ToolHandler = Callable[[JsonDict], Any]
PromptHandler = Callable[[JsonDict], Any]
ResourceHandler = Callable[[str], Any]
Handler = Union[ToolHandler, PromptHandler, ResourceHandler]

DEFAULT_MIME_TYPE = "text/plain"


class CapabilityKind(str, Enum):
    TOOL = "tool"
    PROMPT = "prompt"
    RESOURCE = "resource"


@dataclass(frozen=True)
class PromptArgument:
    name: str
    description: str = ""
    required: bool = False

    @classmethod
    def coerce(cls, value: Union["PromptArgument", Mapping[str, Any]]) -> "PromptArgument":
        if isinstance(value, PromptArgument):
            return value
        return cls(
            name=str(value["name"]),
            description=str(value.get("description", "")),
            required=bool(value.get("required", False)),
        )

    def to_wire(self) -> JsonDict:
        return {"name": self.name, "description": self.description, "required": self.required}


@dataclass(frozen=True)
class CapabilityEntry:
    kind: CapabilityKind
    name: str
    description: str = ""
    handler: Optional[Handler] = None
    uri: Optional[str] = None
    mime_type: Optional[str] = None
    input_schema: Optional[JsonDict] = None
    arguments: Tuple[PromptArgument, ...] = field(default_factory=tuple)

    @property
    def key(self) -> str:
        """Registry key: the uri for resources, the name otherwise."""
        if self.kind is CapabilityKind.RESOURCE:
            return self.uri or ""
        return self.name

    def argument_schema(self) -> Optional[JsonDict]:
        """JSON Schema the call arguments must satisfy, if any."""
        if self.kind is CapabilityKind.TOOL:
            return self.input_schema
        if self.kind is CapabilityKind.PROMPT and self.arguments:
            return {
                "type": "object",
                "properties": {arg.name: {"type": "string"} for arg in self.arguments},
                "required": [arg.name for arg in self.arguments if arg.required],
            }
        return None

    def to_wire(self) -> JsonDict:
        if self.kind is CapabilityKind.TOOL:
            return {
                "name": self.name,
                "description": self.description,
                "inputSchema": self.input_schema or {"type": "object"},
            }
        if self.kind is CapabilityKind.PROMPT:
            return {
                "name": self.name,
                "description": self.description,
                "arguments": [arg.to_wire() for arg in self.arguments],
            }
        return {
            "uri": self.uri,
            "name": self.name,
            "description": self.description,
            "mimeType": self.mime_type or DEFAULT_MIME_TYPE,
        }
