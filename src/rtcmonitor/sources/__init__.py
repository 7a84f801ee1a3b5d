"""Bindings between native WebRTC/SFU objects and the event stream."""

from rtcmonitor.sources.base import ConnectionBinding
from rtcmonitor.sources.detect import infer_source_type
from rtcmonitor.sources.device import DeviceBinding
from rtcmonitor.sources.peer_connection import PeerConnectionBinding
from rtcmonitor.sources.transport import TransportBinding
from rtcmonitor.sources.watchers import (
    ChildWatcher,
    ConsumerWatcher,
    DataChannelWatcher,
    DataConsumerWatcher,
    DataProducerWatcher,
    ProducerWatcher,
    TrackWatcher,
)

__all__ = [
    "ChildWatcher",
    "ConnectionBinding",
    "ConsumerWatcher",
    "DataChannelWatcher",
    "DataConsumerWatcher",
    "DataProducerWatcher",
    "DeviceBinding",
    "PeerConnectionBinding",
    "ProducerWatcher",
    "TrackWatcher",
    "TransportBinding",
    "infer_source_type",
]
