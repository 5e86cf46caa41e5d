from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, Tuple

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError

from .contracts import CapabilityEntry, CapabilityKind
from .shared.errors import InvalidCapability, InvalidParams


def check_schema(schema: Mapping[str, Any]) -> None:
    try:
        Draft7Validator.check_schema(schema)
    except SchemaError as exc:
        raise InvalidCapability(f"Invalid input schema: {exc.message}") from exc


class ArgumentValidator:
    """Validates call arguments against each entry's declared schema."""

    def __init__(self) -> None:
        self._validators: Dict[Tuple[CapabilityKind, str], Tuple[CapabilityEntry, Draft7Validator]] = {}

    def _validator_for(self, entry: CapabilityEntry) -> Draft7Validator | None:
        cached = self._validators.get((entry.kind, entry.key))
        if cached is not None and cached[0] is entry:
            return cached[1]
        schema = entry.argument_schema()
        if schema is None:
            return None
        validator = Draft7Validator(schema)
        self._validators[(entry.kind, entry.key)] = (entry, validator)
        return validator

    def validate(self, entry: CapabilityEntry, arguments: Mapping[str, Any]) -> dict[str, Any]:
        validator = self._validator_for(entry)
        if validator is None:
            return dict(arguments)

        errors = sorted(validator.iter_errors(arguments), key=lambda e: [str(p) for p in e.path])
        if errors:
            first = errors[0]
            path = ".".join(str(p) for p in first.path) or "<root>"
            raise InvalidParams(f"{path}: {first.message}", data={"path": path})

        return dict(arguments)
