# mp_core/common/layers.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Hashable, Mapping, Optional, Sequence, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class _Missing:
    """Marker returned by a layer that has no explicit entry for a key."""

    _instance: Optional["_Missing"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


@dataclass(frozen=True)
class Layer(Generic[K, V]):
    """
    One configuration layer in an override chain.

    `kind` tags the layer (e.g. "override", "template", "default").
    `lookup(key)` returns the layer's explicit value for the key, or MISSING.
    """
    kind: str
    lookup: Callable[[K], Any]

    @classmethod
    def from_mapping(
        cls,
        kind: str,
        entries: Mapping[Hashable, V],
        *,
        key: Optional[Callable[[K], Hashable]] = None,
    ) -> "Layer[K, V]":
        """
        Build a layer over pre-loaded rows.

        `key` maps the chain's lookup key onto this layer's own key, so a
        date-keyed layer and weekday-keyed layers can share one chain.
        """
        def _lookup(k):
            layer_key = key(k) if key is not None else k
            if layer_key in entries:
                return entries[layer_key]
            return MISSING

        return cls(kind=kind, lookup=_lookup)


@dataclass(frozen=True)
class Resolution(Generic[V]):
    kind: str
    value: V
    is_default: bool = False


def resolve_first(
    layers: Sequence[Layer[K, V]],
    key: K,
    *,
    default: V,
    default_kind: str = "default",
) -> Resolution[V]:
    """
    Highest-priority layer with an explicit entry wins.

    Presence is what counts: an entry whose value is empty, zero or None still
    wins over lower layers.
    """
    for layer in layers:
        value = layer.lookup(key)
        if value is not MISSING:
            return Resolution(kind=layer.kind, value=value)
    return Resolution(kind=default_kind, value=default, is_default=True)
