"""ClientMonitor: the registration facade of the library."""

from __future__ import annotations

import logging
from typing import Any, cast

from rtcmonitor.config import MonitorConfig
from rtcmonitor.core.dispatcher import EventDispatcher
from rtcmonitor.core.payloads import PayloadProvider
from rtcmonitor.core.registry import BindingRegistry
from rtcmonitor.errors import MonitorClosedError, UnsupportedSourceError
from rtcmonitor.models.enums import EventKind, SourceType
from rtcmonitor.models.event import ClientEvent, ClientJoinedPayload, ClientLeftPayload
from rtcmonitor.monitor import ConnectionMonitor
from rtcmonitor.sinks.base import EventSink
from rtcmonitor.sources.base import ConnectionBinding
from rtcmonitor.sources.detect import infer_source_type
from rtcmonitor.sources.device import DeviceBinding
from rtcmonitor.sources.peer_connection import PeerConnectionBinding
from rtcmonitor.sources.transport import TransportBinding

logger = logging.getLogger("rtcmonitor.client")

DEFAULT_JOIN_MESSAGE = "Client joined"
DEFAULT_LEAVE_MESSAGE = "Client left"


class ClientMonitor:
    """Observes the connections of one client and reports to a sink.

    Example::

        sink = MockEventSink()
        client = ClientMonitor(sink=sink)
        client.join()
        binding = client.add_peer_connection(pc, app_data={"room": "r1"})
        ...
        client.close()

    Args:
        config: Full configuration. ``sink`` and ``payload_provider`` given
            as keyword arguments take precedence over the config values.
    """

    def __init__(
        self,
        config: MonitorConfig | None = None,
        *,
        sink: EventSink | None = None,
        payload_provider: PayloadProvider | None = None,
    ) -> None:
        self._config = config or MonitorConfig()
        self._dispatcher = EventDispatcher(
            sink or self._config.sink,
            payload_provider or self._config.payload_provider,
            enabled_events=self._config.enabled_events,
        )
        self._registry = BindingRegistry()
        self._devices: dict[int, DeviceBinding] = {}
        self._joined = False
        self._left = False
        self._closed = False

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def config(self) -> MonitorConfig:
        return self._config

    @property
    def sink(self) -> EventSink:
        return self._dispatcher.sink

    @property
    def payload_provider(self) -> PayloadProvider:
        return self._dispatcher.payload_provider

    @payload_provider.setter
    def payload_provider(self, provider: PayloadProvider) -> None:
        self._dispatcher.payload_provider = provider

    @property
    def bindings(self) -> list[ConnectionBinding]:
        return self._registry.bindings

    @property
    def devices(self) -> list[DeviceBinding]:
        return list(self._devices.values())

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def joined(self) -> bool:
        return self._joined

    @property
    def left(self) -> bool:
        return self._left

    def get_binding(self, binding_id: str) -> ConnectionBinding | None:
        return self._registry.get(binding_id)

    def find_binding(self, native: Any) -> ConnectionBinding | None:
        return self._registry.find(native)

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def add_peer_connection(
        self,
        pc: Any,
        *,
        peer_connection_id: str | None = None,
        app_data: dict[str, Any] | None = None,
    ) -> PeerConnectionBinding:
        """Start observing a peer connection.

        Adding the same object twice returns the existing binding.
        """
        self._ensure_open()

        def factory() -> PeerConnectionBinding:
            return PeerConnectionBinding(
                pc,
                self._create_monitor(peer_connection_id),
                self._dispatcher,
                app_data=app_data,
            )

        return cast(PeerConnectionBinding, self._registry.add(pc, factory))

    def add_transport(
        self,
        transport: Any,
        *,
        transport_id: str | None = None,
        app_data: dict[str, Any] | None = None,
    ) -> TransportBinding:
        """Start observing an SFU transport.

        The connection id defaults to the transport's own ``id``.
        """
        self._ensure_open()
        connection_id = transport_id or _native_id(transport)

        def factory() -> TransportBinding:
            return TransportBinding(
                transport,
                self._create_monitor(connection_id),
                self._dispatcher,
                app_data=app_data,
            )

        return cast(TransportBinding, self._registry.add(transport, factory))

    def add_device(self, device: Any) -> DeviceBinding:
        """Register every transport ``device`` creates from now on."""
        self._ensure_open()
        existing = self._devices.get(id(device))
        if existing is not None:
            logger.warning("Device %s is already registered", type(device).__name__)
            return existing
        binding = DeviceBinding(device, self)
        self._devices[id(device)] = binding
        binding.bind()
        return binding

    def remove_peer_connection(self, pc: Any) -> bool:
        return self._registry.remove(pc)

    def remove_transport(self, transport: Any) -> bool:
        return self._registry.remove(transport)

    def remove_device(self, device: Any) -> bool:
        binding = self._devices.pop(id(device), None)
        if binding is None:
            logger.warning("Device %s is not registered, nothing to remove", type(device).__name__)
            return False
        return binding.unbind()

    def add_source(self, source: Any, **kwargs: Any) -> ConnectionBinding | DeviceBinding:
        """Register ``source`` according to its inferred type.

        Raises:
            UnsupportedSourceError: If ``source`` is not a peer connection,
                transport or device.
        """
        source_type = infer_source_type(source)
        if source_type is SourceType.MEDIASOUP_TRANSPORT:
            return self.add_transport(source, **kwargs)
        if source_type is SourceType.MEDIASOUP_DEVICE:
            return self.add_device(source)
        if source_type is SourceType.PEER_CONNECTION:
            return self.add_peer_connection(source, **kwargs)
        raise UnsupportedSourceError(f"Cannot observe object of type {type(source).__name__}")

    def remove_source(self, source: Any) -> bool:
        if id(source) in self._devices:
            return self.remove_device(source)
        return self._registry.remove(source)

    # -------------------------------------------------------------------------
    # Client lifecycle
    # -------------------------------------------------------------------------

    def join(
        self, *, message: str | None = None, attachments: dict[str, Any] | None = None
    ) -> ClientEvent | None:
        """Emit ``client_joined``. Only the first call has an effect."""
        if self._joined:
            return None
        self._joined = True
        return self._dispatcher.dispatch(
            EventKind.CLIENT_JOINED,
            ClientJoinedPayload(message=message or DEFAULT_JOIN_MESSAGE, attachments=attachments),
        )

    def leave(
        self, *, message: str | None = None, attachments: dict[str, Any] | None = None
    ) -> ClientEvent | None:
        """Emit ``client_left``. Only the first call has an effect."""
        if self._left:
            return None
        self._left = True
        return self._dispatcher.dispatch(
            EventKind.CLIENT_LEFT,
            ClientLeftPayload(message=message or DEFAULT_LEAVE_MESSAGE, attachments=attachments),
        )

    def collect(self) -> None:
        """Run one stats tick on the monitor of every open connection."""
        for binding in self._registry.bindings:
            binding.monitor.update()

    def close(self) -> None:
        """Close every binding and the sink.

        The client joins first if it never did, and leaves last. Idempotent.
        """
        if self._closed:
            return
        self._closed = True
        self.join()
        for device in list(self._devices.values()):
            device.unbind()
        self._devices.clear()
        closed = self._registry.close()
        self.leave()
        try:
            self.sink.close()
        except Exception:
            logger.exception("Failed to close sink %s", self.sink.name)
        logger.info("Client monitor closed (%d connections)", closed)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise MonitorClosedError("ClientMonitor is closed")

    def _create_monitor(self, connection_id: str | None) -> ConnectionMonitor:
        connection_id = connection_id or self._config.id_factory()
        factory = self._config.monitor_factory or ConnectionMonitor
        return factory(connection_id)

    def __repr__(self) -> str:
        return f"ClientMonitor(connections={len(self._registry)}, closed={self._closed})"


def _native_id(native: Any) -> str | None:
    native_id = getattr(native, "id", None)
    return None if native_id is None else str(native_id)
