"""Guess what kind of native object was passed to ``add_source``."""

from __future__ import annotations

from typing import Any

from rtcmonitor.models.enums import SourceType
from rtcmonitor.sources._helpers import native_attr


def is_transport(obj: Any) -> bool:
    if native_attr(obj, "direction") is None:
        return False
    return (
        native_attr(obj, "observer") is not None
        or native_attr(obj, "handler", "_handler") is not None
    )


def is_device(obj: Any) -> bool:
    return (
        native_attr(obj, "handlerName", "handler_name") is not None
        and native_attr(obj, "loaded") is not None
    )


def is_peer_connection(obj: Any) -> bool:
    return callable(native_attr(obj, "setLocalDescription", "set_local_description"))


def infer_source_type(obj: Any) -> SourceType | None:
    """Classify ``obj`` by shape. Transports are checked before devices,
    devices before peer connections.
    """
    if obj is None:
        return None
    if is_transport(obj):
        return SourceType.MEDIASOUP_TRANSPORT
    if is_device(obj):
        return SourceType.MEDIASOUP_DEVICE
    if is_peer_connection(obj):
        return SourceType.PEER_CONNECTION
    return None
