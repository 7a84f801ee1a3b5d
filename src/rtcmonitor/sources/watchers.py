"""Watchers for the children of a connection.

A watcher ties one child object (track, data channel, producer, consumer,
data producer, data consumer) to the event stream of its parent binding.
Every watcher ends exactly once, either through :meth:`ChildWatcher.close`
(terminal event, then detach) or :meth:`ChildWatcher.detach` (no event).
Native notifications that arrive after that are ignored.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Protocol

from rtcmonitor.core.subscription import Handler, SubscriptionGroup
from rtcmonitor.models.enums import EventKind
from rtcmonitor.models.event import (
    ConsumerAddedPayload,
    ConsumerPausedPayload,
    ConsumerRemovedPayload,
    ConsumerResumedPayload,
    DataChannelClosedPayload,
    DataChannelErrorPayload,
    DataChannelOpenPayload,
    DataConsumerClosedPayload,
    DataConsumerCreatedPayload,
    DataProducerClosedPayload,
    DataProducerCreatedPayload,
    EventPayload,
    MediaTrackAddedPayload,
    MediaTrackMutedPayload,
    MediaTrackRemovedPayload,
    MediaTrackUnmutedPayload,
    ProducerAddedPayload,
    ProducerPausedPayload,
    ProducerRemovedPayload,
    ProducerResumedPayload,
)
from rtcmonitor.sources._helpers import as_dict, as_str, call_optional, native_attr, observer_of

if TYPE_CHECKING:
    from rtcmonitor.sources.base import ConnectionBinding

logger = logging.getLogger("rtcmonitor.watchers")

WatcherKey = tuple[str, str]


class WatcherOwner(Protocol):
    def release_watcher(self, watcher: ChildWatcher) -> None: ...


class ChildWatcher(ABC):
    """Base class for child watchers.

    Args:
        binding: The connection binding whose event stream this child
            reports into.
        native: The child object. Not owned; never closed by the watcher.
        owner: Whoever keeps track of this watcher. Defaults to ``binding``;
            producers and consumers own their track watchers.
    """

    kind: ClassVar[str]
    terminal_kind: ClassVar[EventKind | None] = None

    def __init__(
        self,
        binding: ConnectionBinding,
        native: Any,
        *,
        owner: WatcherOwner | None = None,
    ) -> None:
        self.binding = binding
        self.native = native
        self.key = self.key_for(native)
        self._owner: WatcherOwner = owner if owner is not None else binding
        self._subscriptions = SubscriptionGroup()
        self._started = False
        self._closed = False

    @classmethod
    def key_for(cls, native: Any) -> WatcherKey:
        child_id = native_attr(native, "id")
        if child_id is None:
            return (cls.kind, f"@{id(native):x}")
        return (cls.kind, str(child_id))

    @property
    def child_id(self) -> str | None:
        return as_str(native_attr(self.native, "id"))

    @property
    def closed(self) -> bool:
        return self._closed

    def watch(self) -> None:
        """Announce the child and install its handlers. Runs once."""
        if self._started or self._closed:
            return
        self._started = True
        self._start()

    def close(self) -> bool:
        """Emit the terminal event and release the child.

        Returns:
            False if the watcher had already ended.
        """
        if self._closed:
            return False
        self._closed = True
        self._teardown()
        if self.terminal_kind is not None:
            self._emit(self.terminal_kind, self._terminal_payload())
        self._owner.release_watcher(self)
        return True

    def detach(self) -> bool:
        """Release the child without emitting anything."""
        if self._closed:
            return False
        self._closed = True
        self._teardown()
        self._owner.release_watcher(self)
        return True

    @abstractmethod
    def _start(self) -> None: ...

    def _terminal_payload(self) -> EventPayload:
        raise NotImplementedError

    def _teardown(self) -> None:
        self._subscriptions.cancel_all()

    def _listen(self, emitter: Any, event: str, handler: Handler, *, once: bool = False) -> None:
        self._subscriptions.listen(emitter, event, handler, once=once)

    def _emit(self, kind: EventKind, payload: EventPayload) -> None:
        if self._closed and kind is not self.terminal_kind:
            return
        self.binding.emit_event(kind, payload)

    def _common(self) -> dict[str, Any]:
        return self.binding.common_fields()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.child_id!r}, closed={self._closed})"


# ---------------------------------------------------------------------------
# Tracks and data channels
# ---------------------------------------------------------------------------


class TrackWatcher(ChildWatcher):
    """Reports ``media_track_*`` events for one media track."""

    kind = "track"
    terminal_kind = EventKind.MEDIA_TRACK_REMOVED

    def __init__(
        self,
        binding: ConnectionBinding,
        native: Any,
        *,
        owner: WatcherOwner | None = None,
        producer_id: str | None = None,
        consumer_id: str | None = None,
    ) -> None:
        super().__init__(binding, native, owner=owner)
        self.producer_id = producer_id
        self.consumer_id = consumer_id

    def _start(self) -> None:
        track = self.native
        self._listen(track, "ended", self._on_ended)
        self._listen(track, "mute", self._on_mute)
        self._listen(track, "unmute", self._on_unmute)

        self._emit(
            EventKind.MEDIA_TRACK_ADDED,
            MediaTrackAddedPayload.from_native(
                **self._descriptor(),
                constraints=as_dict(call_optional(track, "getConstraints", "get_constraints")),
                capabilities=as_dict(call_optional(track, "getCapabilities", "get_capabilities")),
                settings=as_dict(call_optional(track, "getSettings", "get_settings")),
            ),
        )
        attachments = {
            k: v
            for k, v in (("producer_id", self.producer_id), ("consumer_id", self.consumer_id))
            if v is not None
        }
        self.binding.monitor.add_media_stream_track(track, attachments)

    def _teardown(self) -> None:
        super()._teardown()
        if self.child_id is not None:
            self.binding.monitor.remove_media_stream_track(self.child_id)

    def _descriptor(self) -> dict[str, Any]:
        track = self.native
        return {
            **self._common(),
            "track_id": self.child_id,
            "kind": as_str(native_attr(track, "kind")),
            "label": as_str(native_attr(track, "label")),
            "muted": native_attr(track, "muted"),
            "enabled": native_attr(track, "enabled"),
            "ready_state": as_str(native_attr(track, "readyState", "ready_state")),
            "content_hint": as_str(native_attr(track, "contentHint", "content_hint")),
            "producer_id": self.producer_id,
            "consumer_id": self.consumer_id,
        }

    def _terminal_payload(self) -> EventPayload:
        return MediaTrackRemovedPayload.from_native(**self._descriptor())

    def _on_ended(self, *_: Any) -> None:
        self.close()

    def _on_mute(self, *_: Any) -> None:
        self._emit(
            EventKind.MEDIA_TRACK_MUTED,
            MediaTrackMutedPayload.from_native(**self._descriptor()),
        )

    def _on_unmute(self, *_: Any) -> None:
        self._emit(
            EventKind.MEDIA_TRACK_UNMUTED,
            MediaTrackUnmutedPayload.from_native(**self._descriptor()),
        )


class DataChannelWatcher(ChildWatcher):
    """Reports open/close/error of one data channel."""

    kind = "data_channel"
    terminal_kind = EventKind.DATA_CHANNEL_CLOSED

    @classmethod
    def key_for(cls, native: Any) -> WatcherKey:
        # Channel ids are assigned during negotiation and may still be None.
        return (cls.kind, f"@{id(native):x}")

    def _start(self) -> None:
        channel = self.native
        self._listen(channel, "open", self._on_open)
        self._listen(channel, "close", self._on_close)
        self._listen(channel, "error", self._on_error)

    def _fields(self) -> dict[str, Any]:
        channel = self.native
        return {
            **self._common(),
            "data_channel_id": native_attr(channel, "id"),
            "label": as_str(native_attr(channel, "label")),
            "ready_state": as_str(native_attr(channel, "readyState", "ready_state")),
        }

    def _terminal_payload(self) -> EventPayload:
        return DataChannelClosedPayload.from_native(**self._fields())

    def _on_open(self, *_: Any) -> None:
        self._emit(
            EventKind.DATA_CHANNEL_OPEN,
            DataChannelOpenPayload.from_native(**self._fields()),
        )

    def _on_close(self, *_: Any) -> None:
        self.close()

    def _on_error(self, error: Any = None, *_: Any) -> None:
        self._emit(
            EventKind.DATA_CHANNEL_ERROR,
            DataChannelErrorPayload.from_native(**self._fields(), error=describe_error(error)),
        )


def describe_error(error: Any) -> str | None:
    """Best-effort description of a native error event or exception."""
    if error is None:
        return None
    inner = native_attr(error, "error", default=error)
    message = native_attr(inner, "message")
    if message:
        return str(message)
    text = str(inner)
    return text or type(inner).__name__


# ---------------------------------------------------------------------------
# SFU producers and consumers
# ---------------------------------------------------------------------------


class _RoutedMediaWatcher(ChildWatcher):
    """Shared pause/resume/close handling for producers and consumers.

    Owns at most one nested :class:`TrackWatcher`, which is retired without
    an event when this watcher ends.
    """

    added_kind: ClassVar[EventKind]
    terminal_kind: ClassVar[EventKind]
    paused_kind: ClassVar[EventKind]
    resumed_kind: ClassVar[EventKind]

    def __init__(
        self,
        binding: ConnectionBinding,
        native: Any,
        *,
        owner: WatcherOwner | None = None,
    ) -> None:
        super().__init__(binding, native, owner=owner)
        self.track_watcher: TrackWatcher | None = None
        self.registered_track: Any = None
        self.registered_track_id: str | None = None

    def _start(self) -> None:
        observer = observer_of(self.native)
        self._emit(self.added_kind, self._payload(self.added_kind))
        self._listen(observer, "pause", self._on_pause)
        self._listen(observer, "resume", self._on_resume)
        self._listen(observer, "close", self._on_close, once=True)

    @abstractmethod
    def _payload(self, kind: EventKind) -> EventPayload: ...

    def _terminal_payload(self) -> EventPayload:
        return self._payload(self.terminal_kind)

    def _current_track_id(self) -> str | None:
        return as_str(native_attr(native_attr(self.native, "track"), "id"))

    def _is_registered(self, track: Any) -> bool:
        if track is self.registered_track:
            return True
        track_id = as_str(native_attr(track, "id"))
        return track_id is not None and track_id == self.registered_track_id

    def _release_track(self) -> None:
        if self.track_watcher is not None:
            self.track_watcher.detach()
        self.registered_track = None
        self.registered_track_id = None

    def _attach_track(self, track: Any, **ids: str | None) -> None:
        self._release_track()
        self.registered_track = track
        self.registered_track_id = as_str(native_attr(track, "id"))
        self.track_watcher = TrackWatcher(self.binding, track, owner=self, **ids)
        self.track_watcher.watch()

    def release_watcher(self, watcher: ChildWatcher) -> None:
        if watcher is self.track_watcher:
            self.track_watcher = None

    def _teardown(self) -> None:
        super()._teardown()
        if self.track_watcher is not None:
            self.track_watcher.detach()

    def _on_pause(self, *_: Any) -> None:
        self._emit(self.paused_kind, self._payload(self.paused_kind))

    def _on_resume(self, *_: Any) -> None:
        self._emit(self.resumed_kind, self._payload(self.resumed_kind))

    def _on_close(self, *_: Any) -> None:
        self.close()


class ProducerWatcher(_RoutedMediaWatcher):
    """Watches a producer and whichever track it currently sends.

    Producers can swap their track without any native notification, so the
    current track is re-checked on every stats tick of the connection
    monitor. The registered track (matched by id, or by identity when it
    has none) is never announced twice; a producer left without a track
    retires the old one silently.
    """

    kind = "producer"
    added_kind = EventKind.PRODUCER_ADDED
    terminal_kind = EventKind.PRODUCER_REMOVED
    paused_kind = EventKind.PRODUCER_PAUSED
    resumed_kind = EventKind.PRODUCER_RESUMED

    _payload_types: ClassVar[dict[EventKind, type[EventPayload]]] = {
        EventKind.PRODUCER_ADDED: ProducerAddedPayload,
        EventKind.PRODUCER_REMOVED: ProducerRemovedPayload,
        EventKind.PRODUCER_PAUSED: ProducerPausedPayload,
        EventKind.PRODUCER_RESUMED: ProducerResumedPayload,
    }

    def _start(self) -> None:
        super()._start()
        self._listen(self.binding.monitor, "stats", self._on_stats)
        self.check_track()

    def _payload(self, kind: EventKind) -> EventPayload:
        return self._payload_types[kind].from_native(
            **self._common(),
            producer_id=self.child_id,
            track_id=self._current_track_id(),
        )

    def check_track(self) -> bool:
        """Start watching the producer's current track if it is new.

        Returns:
            True if a new track watcher was attached.
        """
        if self._closed:
            return False
        track = native_attr(self.native, "track")
        if track is None:
            # The producer stopped sending; its old track is retired.
            self._release_track()
            return False
        if self._is_registered(track):
            return False
        self._attach_track(track, producer_id=self.child_id)
        return True

    def _on_stats(self, *_: Any) -> None:
        self.check_track()


class ConsumerWatcher(_RoutedMediaWatcher):
    """Watches a consumer and the track it receives into."""

    kind = "consumer"
    added_kind = EventKind.CONSUMER_ADDED
    terminal_kind = EventKind.CONSUMER_REMOVED
    paused_kind = EventKind.CONSUMER_PAUSED
    resumed_kind = EventKind.CONSUMER_RESUMED

    _payload_types: ClassVar[dict[EventKind, type[EventPayload]]] = {
        EventKind.CONSUMER_ADDED: ConsumerAddedPayload,
        EventKind.CONSUMER_REMOVED: ConsumerRemovedPayload,
        EventKind.CONSUMER_PAUSED: ConsumerPausedPayload,
        EventKind.CONSUMER_RESUMED: ConsumerResumedPayload,
    }

    def _start(self) -> None:
        super()._start()
        track = native_attr(self.native, "track")
        if track is not None:
            self._attach_track(track, consumer_id=self.child_id)

    def _payload(self, kind: EventKind) -> EventPayload:
        return self._payload_types[kind].from_native(
            **self._common(),
            consumer_id=self.child_id,
            producer_id=as_str(native_attr(self.native, "producerId", "producer_id")),
            track_id=self._current_track_id(),
        )


class DataProducerWatcher(ChildWatcher):
    kind = "data_producer"
    terminal_kind = EventKind.DATA_PRODUCER_CLOSED

    def _start(self) -> None:
        self._emit(
            EventKind.DATA_PRODUCER_CREATED,
            DataProducerCreatedPayload.from_native(
                **self._common(), data_producer_id=self.child_id
            ),
        )
        self._listen(observer_of(self.native), "close", self._on_close, once=True)

    def _terminal_payload(self) -> EventPayload:
        return DataProducerClosedPayload.from_native(
            **self._common(), data_producer_id=self.child_id
        )

    def _on_close(self, *_: Any) -> None:
        self.close()


class DataConsumerWatcher(ChildWatcher):
    kind = "data_consumer"
    terminal_kind = EventKind.DATA_CONSUMER_CLOSED

    def _fields(self) -> dict[str, Any]:
        return {
            **self._common(),
            "data_consumer_id": self.child_id,
            "data_producer_id": as_str(
                native_attr(self.native, "dataProducerId", "data_producer_id")
            ),
        }

    def _start(self) -> None:
        self._emit(
            EventKind.DATA_CONSUMER_CREATED,
            DataConsumerCreatedPayload.from_native(**self._fields()),
        )
        self._listen(observer_of(self.native), "close", self._on_close, once=True)

    def _terminal_payload(self) -> EventPayload:
        return DataConsumerClosedPayload.from_native(**self._fields())

    def _on_close(self, *_: Any) -> None:
        self.close()
