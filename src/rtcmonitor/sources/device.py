"""Binding for SFU devices.

A device produces no events of its own. It only announces new transports,
which are handed to the registrar so each one gets its own
:class:`~rtcmonitor.sources.transport.TransportBinding`.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from rtcmonitor.core.subscription import SubscriptionGroup
from rtcmonitor.models.enums import BindingState, SourceType
from rtcmonitor.sources._helpers import observer_of

logger = logging.getLogger("rtcmonitor.sources.device")


class TransportRegistrar(Protocol):
    def add_transport(self, transport: Any) -> Any: ...


class DeviceBinding:
    """Forwards every ``newtransport`` of a device to ``registrar``."""

    source_type = SourceType.MEDIASOUP_DEVICE

    def __init__(self, device: Any, registrar: TransportRegistrar) -> None:
        self._device = device
        self._registrar = registrar
        self._state = BindingState.UNBOUND
        self._subscriptions = SubscriptionGroup()
        self.transports_seen = 0

    @property
    def native(self) -> Any:
        return self._device

    @property
    def state(self) -> BindingState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is BindingState.CLOSED

    def bind(self) -> bool:
        if self._state is not BindingState.UNBOUND:
            return False
        self._state = BindingState.BOUND
        self._subscriptions.listen(
            observer_of(self._device), "newtransport", self._on_new_transport
        )
        return True

    def unbind(self) -> bool:
        """Stop forwarding. Transports already registered stay registered."""
        if self._state is BindingState.CLOSED:
            return False
        self._state = BindingState.CLOSED
        self._subscriptions.cancel_all()
        logger.debug("Device binding for %s unbound", type(self._device).__name__)
        return True

    def _on_new_transport(self, transport: Any = None, *_: Any) -> None:
        if transport is None or self.closed:
            return
        self.transports_seen += 1
        try:
            self._registrar.add_transport(transport)
        except Exception:
            logger.exception("Failed to register transport announced by device")

    def __repr__(self) -> str:
        return f"DeviceBinding(state={self._state.value})"
