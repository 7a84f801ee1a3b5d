"""Base class for connection bindings."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

from rtcmonitor.core.subscription import Handler, SubscriptionGroup
from rtcmonitor.models.enums import BindingState, EventKind, SourceType
from rtcmonitor.sources.watchers import ChildWatcher, WatcherKey

if TYPE_CHECKING:
    from rtcmonitor.core.dispatcher import EventDispatcher
    from rtcmonitor.models.event import ClientEvent, EventPayload
    from rtcmonitor.monitor import ConnectionMonitor

logger = logging.getLogger("rtcmonitor.sources")

CloseCallback = Callable[["ConnectionBinding"], Any]
W = TypeVar("W", bound=ChildWatcher)


class ConnectionBinding(ABC):
    """Ties one native connection to the event stream.

    A binding emits ``peer_connection_opened`` as soon as it is created,
    subscribes to the native object on :meth:`bind`, and releases every
    listener on :meth:`unbind`. The state only moves forward
    (``unbound -> bound -> closed``); ``peer_connection_closed`` is always
    the last event of a binding and nothing is emitted after it.

    The native object is never closed by the binding. The monitor is owned
    by the binding and closed on unbind.

    Lifecycle:
        1. ``binding = SomeBinding(native, monitor, dispatcher)`` emits opened
        2. ``binding.bind()`` subscribes and picks up existing children
        3. native callbacks are normalized into events
        4. ``binding.unbind()`` (or the native close) closes every open
           child, emits closed, releases listeners and closes the monitor
    """

    source_type: ClassVar[SourceType]

    def __init__(
        self,
        native: Any,
        monitor: ConnectionMonitor,
        dispatcher: EventDispatcher,
        *,
        app_data: dict[str, Any] | None = None,
    ) -> None:
        self._native = native
        self._monitor = monitor
        self._dispatcher = dispatcher
        self.app_data = dict(app_data) if app_data else None
        self._state = BindingState.UNBOUND
        self._sealed = False
        self._subscriptions = SubscriptionGroup()
        self._watchers: dict[WatcherKey, ChildWatcher] = {}
        self._close_callbacks: list[CloseCallback] = []

        self.emit_event(EventKind.PEER_CONNECTION_OPENED, self._opened_payload())

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self._monitor.peer_connection_id

    @property
    def native(self) -> Any:
        return self._native

    @property
    def monitor(self) -> ConnectionMonitor:
        return self._monitor

    @property
    def state(self) -> BindingState:
        return self._state

    @property
    def bound(self) -> bool:
        return self._state is BindingState.BOUND

    @property
    def closed(self) -> bool:
        return self._state is BindingState.CLOSED

    @property
    def watchers(self) -> list[ChildWatcher]:
        """Children that are currently watched, in discovery order."""
        return list(self._watchers.values())

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def bind(self) -> bool:
        """Subscribe to the native object and pick up existing children.

        Returns:
            False if the binding was already bound or closed.
        """
        if self._state is not BindingState.UNBOUND:
            logger.debug("Binding %s is %s, bind() ignored", self.id, self._state)
            return False
        self._state = BindingState.BOUND
        self._listen(self._monitor, "close", self._on_monitor_close, once=True)
        self._subscribe()
        self._scan()
        return True

    def unbind(self) -> bool:
        """Close every open child, emit closed and release all listeners.

        Safe to call any number of times, from the caller or from a native
        close notification.

        Returns:
            False if the binding was already closed.
        """
        if self._state is BindingState.CLOSED:
            return False
        self._state = BindingState.CLOSED
        self._subscriptions.cancel_all()

        for watcher in list(self._watchers.values()):
            watcher.close()
        self._watchers.clear()

        self.emit_event(EventKind.PEER_CONNECTION_CLOSED, self._closed_payload())
        self._sealed = True
        self._monitor.close()

        callbacks, self._close_callbacks = self._close_callbacks, []
        for callback in callbacks:
            try:
                callback(self)
            except Exception:
                logger.exception("Close callback failed for binding %s", self.id)
        logger.debug("Binding %s unbound", self.id)
        return True

    def on_close(self, callback: CloseCallback) -> None:
        """Register a one-shot callback run after the binding closes.

        If the binding is already closed the callback runs immediately.
        """
        if self.closed and self._sealed:
            callback(self)
            return
        self._close_callbacks.append(callback)

    # -------------------------------------------------------------------------
    # Events and children
    # -------------------------------------------------------------------------

    def emit_event(self, kind: EventKind, payload: EventPayload) -> ClientEvent | None:
        """Send one event for this connection through the dispatcher."""
        if self._sealed:
            logger.debug("Binding %s is closed, dropping %s", self.id, kind)
            return None
        return self._dispatcher.dispatch(kind, payload)

    def common_fields(self) -> dict[str, Any]:
        """Fields every payload of this connection carries."""
        return {"peer_connection_id": self.id, "app_data": self.app_data}

    def release_watcher(self, watcher: ChildWatcher) -> None:
        if self._watchers.get(watcher.key) is watcher:
            del self._watchers[watcher.key]

    def get_watcher(self, watcher_cls: type[W], native: Any) -> W | None:
        watcher = self._watchers.get(watcher_cls.key_for(native))
        return watcher if isinstance(watcher, watcher_cls) else None

    def _watch_child(self, watcher_cls: type[W], native: Any) -> W | None:
        """Start watching ``native`` unless it is already watched."""
        if native is None or self.closed:
            return None
        key = watcher_cls.key_for(native)
        if key in self._watchers:
            logger.debug("Binding %s already watches %s %s", self.id, key[0], key[1])
            return None
        watcher = watcher_cls(self, native)
        self._watchers[key] = watcher
        watcher.watch()
        return watcher

    def _listen(self, emitter: Any, event: str, handler: Handler, *, once: bool = False) -> None:
        self._subscriptions.listen(emitter, event, handler, once=once)

    def _on_monitor_close(self, *_: Any) -> None:
        self.unbind()

    # -------------------------------------------------------------------------
    # Variant hooks
    # -------------------------------------------------------------------------

    @abstractmethod
    def _subscribe(self) -> None:
        """Install the native listeners of this variant."""
        ...

    def _scan(self) -> None:  # noqa: B027
        """Watch children that existed before :meth:`bind`."""

    @abstractmethod
    def _opened_payload(self) -> EventPayload: ...

    @abstractmethod
    def _closed_payload(self) -> EventPayload: ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, state={self._state.value})"
