"""Binding for SFU (mediasoup-style) transports.

Lifecycle notifications come from ``transport.observer``
(``close``, ``newproducer``, ``newconsumer``, ``newdataproducer``,
``newdataconsumer``); state changes come from the transport itself with the
new state as the event argument. The events produced are the same kinds a
raw peer connection produces, so the stream does not reveal which transport
technology is underneath.
"""

from __future__ import annotations

import logging
from typing import Any

from rtcmonitor.models.enums import EventKind, SourceType
from rtcmonitor.models.event import (
    EventPayload,
    IceGatheringStateChangedPayload,
    PeerConnectionClosedPayload,
    PeerConnectionOpenedPayload,
    PeerConnectionStateChangedPayload,
)
from rtcmonitor.sources._helpers import as_str, iter_children, native_attr, observer_of
from rtcmonitor.sources.base import ConnectionBinding
from rtcmonitor.sources.watchers import (
    ConsumerWatcher,
    DataConsumerWatcher,
    DataProducerWatcher,
    ProducerWatcher,
)

logger = logging.getLogger("rtcmonitor.sources.transport")


class TransportBinding(ConnectionBinding):
    """Normalizes one SFU transport and its producers and consumers."""

    source_type = SourceType.MEDIASOUP_TRANSPORT

    def _subscribe(self) -> None:
        transport = self._native
        observer = observer_of(transport)
        self._listen(observer, "close", self._on_close, once=True)
        self._listen(observer, "newproducer", self._on_new_producer)
        self._listen(observer, "newconsumer", self._on_new_consumer)
        self._listen(observer, "newdataproducer", self._on_new_data_producer)
        self._listen(observer, "newdataconsumer", self._on_new_data_consumer)
        self._listen(transport, "connectionstatechange", self._on_connection_state_change)
        self._listen(transport, "icegatheringstatechange", self._on_ice_gathering_state_change)

    def _scan(self) -> None:
        transport = self._native
        for producer in iter_children(transport, "producers", "_producers"):
            self._watch_child(ProducerWatcher, producer)
        for consumer in iter_children(transport, "consumers", "_consumers"):
            self._watch_child(ConsumerWatcher, consumer)
        for data_producer in iter_children(
            transport, "dataProducers", "data_producers", "_dataProducers", "_data_producers"
        ):
            self._watch_child(DataProducerWatcher, data_producer)
        for data_consumer in iter_children(
            transport, "dataConsumers", "data_consumers", "_dataConsumers", "_data_consumers"
        ):
            self._watch_child(DataConsumerWatcher, data_consumer)

    @property
    def producers(self) -> list[ProducerWatcher]:
        return [w for w in self._watchers.values() if isinstance(w, ProducerWatcher)]

    @property
    def consumers(self) -> list[ConsumerWatcher]:
        return [w for w in self._watchers.values() if isinstance(w, ConsumerWatcher)]

    # -------------------------------------------------------------------------
    # Payloads
    # -------------------------------------------------------------------------

    def _state_fields(self) -> dict[str, str | None]:
        transport = self._native
        return {
            "connection_state": as_str(
                native_attr(transport, "connectionState", "connection_state")
            ),
            "ice_gathering_state": as_str(
                native_attr(transport, "iceGatheringState", "ice_gathering_state")
            ),
        }

    def _opened_payload(self) -> EventPayload:
        return PeerConnectionOpenedPayload.from_native(
            **self.common_fields(), **self._state_fields()
        )

    def _closed_payload(self) -> EventPayload:
        return PeerConnectionClosedPayload.from_native(
            **self.common_fields(), **self._state_fields()
        )

    # -------------------------------------------------------------------------
    # Native handlers
    # -------------------------------------------------------------------------

    def _on_close(self, *_: Any) -> None:
        self.unbind()

    def _on_connection_state_change(self, state: Any = None, *_: Any) -> None:
        if state is None:
            state = native_attr(self._native, "connectionState", "connection_state")
        state = as_str(state)
        self._monitor.connection_state = state
        self.emit_event(
            EventKind.PEER_CONNECTION_STATE_CHANGED,
            PeerConnectionStateChangedPayload.from_native(
                **self.common_fields(), connection_state=state
            ),
        )

    def _on_ice_gathering_state_change(self, state: Any = None, *_: Any) -> None:
        if state is None:
            state = native_attr(self._native, "iceGatheringState", "ice_gathering_state")
        self.emit_event(
            EventKind.ICE_GATHERING_STATE_CHANGED,
            IceGatheringStateChangedPayload.from_native(
                **self.common_fields(), ice_gathering_state=as_str(state)
            ),
        )

    def _on_new_producer(self, producer: Any = None, *_: Any) -> None:
        self._watch_child(ProducerWatcher, producer)

    def _on_new_consumer(self, consumer: Any = None, *_: Any) -> None:
        self._watch_child(ConsumerWatcher, consumer)

    def _on_new_data_producer(self, data_producer: Any = None, *_: Any) -> None:
        self._watch_child(DataProducerWatcher, data_producer)

    def _on_new_data_consumer(self, data_consumer: Any = None, *_: Any) -> None:
        self._watch_child(DataConsumerWatcher, data_consumer)
