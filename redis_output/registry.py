"""Name -> factory registry for output plugins."""

from __future__ import annotations

from typing import Callable, Dict, List

from redis_output.base import Output

OutputFactory = Callable[[], Output]


class OutputRegistry:
    """Holds output factories; populated explicitly by the host's bootstrap."""

    def __init__(self) -> None:
        self._factories: Dict[str, OutputFactory] = {}

    def add(self, name: str, factory: OutputFactory) -> None:
        if name in self._factories:
            raise ValueError(f"Output already registered: {name}")
        self._factories[name] = factory

    def get(self, name: str) -> OutputFactory:
        try:
            return self._factories[name]
        except KeyError:
            raise KeyError(f"Unknown output: {name}") from None

    def create(self, name: str) -> Output:
        return self.get(name)()

    def names(self) -> List[str]:
        return sorted(self._factories)
