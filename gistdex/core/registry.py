"""Static, capability-tagged adapter registries.

Adapters are listed explicitly at import time and built through one named
entry point (``from_config``); nothing is discovered by scanning modules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Generic, Iterable, List, TypeVar

from .exceptions import UnknownAdapterError

T = TypeVar("T")


@dataclass(frozen=True)
class AdapterSpec(Generic[T]):
    name: str
    factory: Callable[..., T]
    capabilities: FrozenSet[str] = field(default_factory=frozenset)
    description: str = ""


class AdapterRegistry(Generic[T]):
    """Name -> AdapterSpec lookup for one adapter kind."""

    def __init__(self, kind: str, specs: Iterable[AdapterSpec[T]] = ()):
        self.kind = kind
        self._specs: Dict[str, AdapterSpec[T]] = {}
        for spec in specs:
            self.register(spec)

    def register(self, spec: AdapterSpec[T]) -> None:
        if spec.name in self._specs:
            raise ValueError(f"{self.kind} adapter {spec.name!r} already registered")
        self._specs[spec.name] = spec

    def get(self, name: str) -> AdapterSpec[T]:
        try:
            return self._specs[name]
        except KeyError:
            raise UnknownAdapterError(
                f"Unknown {self.kind} adapter {name!r}; available: {', '.join(self.names())}"
            ) from None

    def create(self, name: str, *args, **kwargs) -> T:
        return self.get(name).factory(*args, **kwargs)

    def names(self) -> List[str]:
        return sorted(self._specs)

    def with_capability(self, capability: str) -> List[str]:
        return sorted(n for n, s in self._specs.items() if capability in s.capabilities)

    def __contains__(self, name: str) -> bool:
        return name in self._specs
