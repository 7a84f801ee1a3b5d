"""Registry of active connection bindings."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from rtcmonitor.sources.base import ConnectionBinding

logger = logging.getLogger("rtcmonitor.registry")

BindingFactory = Callable[[], ConnectionBinding]


class BindingRegistry:
    """Maps native objects to their binding, at most one binding each.

    Native objects are matched by identity, never by equality. A binding
    removes itself from the registry when it closes, whatever closed it.
    """

    def __init__(self) -> None:
        self._by_native: dict[int, ConnectionBinding] = {}
        self._by_id: dict[str, ConnectionBinding] = {}

    def add(self, native: Any, factory: BindingFactory) -> ConnectionBinding:
        """Return the binding for ``native``, creating and binding it if new.

        ``factory`` is only called when ``native`` is not registered yet.
        """
        existing = self._by_native.get(id(native))
        if existing is not None:
            logger.warning(
                "%s is already registered as %s", type(native).__name__, existing.id
            )
            return existing

        binding = factory()
        if binding.id in self._by_id:
            logger.warning("Connection id %s is already in use, replacing lookup", binding.id)
        self._by_native[id(native)] = binding
        self._by_id[binding.id] = binding
        binding.on_close(self._forget)
        binding.bind()
        logger.debug("Registered %s as %s", type(native).__name__, binding.id)
        return binding

    def remove(self, native: Any) -> bool:
        """Unbind the binding of ``native``.

        Returns:
            False if ``native`` was not registered.
        """
        binding = self._by_native.get(id(native))
        if binding is None:
            logger.warning("%s is not registered, nothing to remove", type(native).__name__)
            return False
        return binding.unbind()

    def find(self, native: Any) -> ConnectionBinding | None:
        return self._by_native.get(id(native))

    def get(self, binding_id: str) -> ConnectionBinding | None:
        return self._by_id.get(binding_id)

    @property
    def bindings(self) -> list[ConnectionBinding]:
        return list(self._by_native.values())

    def close(self) -> int:
        """Unbind every registered binding. Returns how many were closed."""
        closed = 0
        for binding in list(self._by_native.values()):
            if binding.unbind():
                closed += 1
        return closed

    def _forget(self, binding: ConnectionBinding) -> None:
        key = id(binding.native)
        if self._by_native.get(key) is binding:
            del self._by_native[key]
        if self._by_id.get(binding.id) is binding:
            del self._by_id[binding.id]

    def __len__(self) -> int:
        return len(self._by_native)

    def __contains__(self, native: object) -> bool:
        return id(native) in self._by_native
