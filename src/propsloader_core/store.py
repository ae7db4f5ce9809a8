"""Chained property store.

A ``PropertyStore`` is an ordered string->string map with an optional parent.
Reads fall back to the parent chain; writes and removals only ever touch the
local level.
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Mapping, Optional, Tuple


class PropertyStore:
    """Mutable, chainable key-value store used as the evaluation target."""

    def __init__(
        self,
        values: Optional[Mapping[str, str]] = None,
        parent: Optional["PropertyStore"] = None,
    ) -> None:
        self._values: Dict[str, str] = dict(values) if values else {}
        self.parent = parent

    @classmethod
    def from_mapping(
        cls, mapping: Mapping[str, object], parent: Optional["PropertyStore"] = None
    ) -> "PropertyStore":
        """Build a store from any mapping, coercing values to ``str``."""
        return cls({str(k): str(v) for k, v in mapping.items()}, parent=parent)

    def new_child(self, values: Optional[Mapping[str, str]] = None) -> "PropertyStore":
        return PropertyStore(values, parent=self)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        store: Optional[PropertyStore] = self
        while store is not None:
            if key in store._values:
                return store._values[key]
            store = store.parent
        return default

    def local_get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def put(self, key: str, value: str) -> Optional[str]:
        """Set ``key`` at the local level, returning the previous local value."""
        old = self._values.get(key)
        self._values[key] = value
        return old

    def remove(self, key: str) -> Optional[str]:
        """Remove ``key`` from the local level, returning the previous local value."""
        return self._values.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def keys(self) -> List[str]:
        return list(self._values)

    def items(self) -> List[Tuple[str, str]]:
        return list(self._values.items())

    def to_dict(self) -> Dict[str, str]:
        """Local entries only, in insertion order."""
        return dict(self._values)

    def flatten(self) -> Dict[str, str]:
        """Chained view: parent entries overridden by child entries."""
        result = self.parent.flatten() if self.parent is not None else {}
        result.update(self._values)
        return result

    def __repr__(self) -> str:
        return f"PropertyStore({self._values!r}, parent={'set' if self.parent is not None else None})"
