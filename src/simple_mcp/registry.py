from __future__ import annotations

from typing import Dict, Iterator

from .contracts import CapabilityEntry, CapabilityKind
from .shared.config import DUPLICATE_POLICIES
from .shared.errors import DuplicateKey, InvalidCapability, NotFound, RegistryFrozen

_LABELS = {
    CapabilityKind.TOOL: "tool",
    CapabilityKind.PROMPT: "prompt",
    CapabilityKind.RESOURCE: "resource",
}


class Registry:
    """
    Storage for registered tools, prompts and resources.

    Tools and prompts are keyed by name, resources by uri. Each mapping keeps
    registration order for listing. Handlers are never invoked here.
    """

    def __init__(self, on_duplicate: str = "reject") -> None:
        if on_duplicate not in DUPLICATE_POLICIES:
            raise ValueError(f"Unknown duplicate policy: {on_duplicate}")
        self._on_duplicate = on_duplicate
        self._entries: Dict[CapabilityKind, Dict[str, CapabilityEntry]] = {kind: {} for kind in CapabilityKind}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def on_duplicate(self) -> str:
        return self._on_duplicate

    def register(self, kind: CapabilityKind, key: str, entry: CapabilityEntry) -> None:
        if self._frozen:
            raise RegistryFrozen(f"Cannot register {_LABELS[kind]} '{key}': registry is frozen")
        if entry.kind is not kind:
            raise InvalidCapability(f"Entry kind {entry.kind.value} does not match {kind.value}")
        mapping = self._entries[kind]
        if key in mapping and self._on_duplicate == "reject":
            raise DuplicateKey(f"Duplicate {_LABELS[kind]}: {key}")
        # Replacing an existing key keeps its original listing position.
        mapping[key] = entry

    def add(self, entry: CapabilityEntry) -> None:
        self.register(entry.kind, entry.key, entry)

    def lookup(self, kind: CapabilityKind, key: str) -> CapabilityEntry:
        try:
            return self._entries[kind][key]
        except KeyError as exc:
            raise NotFound(f"Unknown {_LABELS[kind]}: {key}") from exc

    def list(self, kind: CapabilityKind) -> Iterator[CapabilityEntry]:
        for entry in self._entries[kind].values():
            yield entry

    def counts(self) -> Dict[CapabilityKind, int]:
        return {kind: len(mapping) for kind, mapping in self._entries.items()}

    def freeze(self) -> None:
        self._frozen = True

    def frozen_copy(self) -> "Registry":
        clone = Registry(on_duplicate=self._on_duplicate)
        for kind, mapping in self._entries.items():
            clone._entries[kind] = dict(mapping)
        clone.freeze()
        return clone

    def __len__(self) -> int:
        return sum(len(mapping) for mapping in self._entries.values())
