"""Listener subscriptions on native event emitters.

Native objects (``aiortc`` peer connections and tracks, mediasoup transports,
producers, consumers) are pyee-style emitters exposing ``on(event, handler)``
and ``remove_listener(event, handler)``. A :class:`Subscription` pairs one
such registration with an idempotent :meth:`Subscription.cancel`, so a
listener is removed exactly once no matter how many teardown paths reach it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger("rtcmonitor.subscription")

Handler = Callable[..., Any]


@runtime_checkable
class Emitter(Protocol):
    """Minimal interface shared by pyee emitters."""

    def on(self, event: str, f: Handler) -> Any: ...

    def remove_listener(self, event: str, f: Handler) -> None: ...


class Subscription:
    """A single listener registered on an emitter."""

    def __init__(
        self,
        emitter: Emitter,
        event: str,
        handler: Handler,
        *,
        once: bool = False,
    ) -> None:
        self.emitter = emitter
        self.event = event
        self.handler = handler
        self.once = once
        self._active = False
        self._listener: Handler = self._fire_once if once else handler

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> Subscription:
        if self._active:
            return self
        self.emitter.on(self.event, self._listener)
        self._active = True
        return self

    def cancel(self) -> bool:
        """Remove the listener.

        Returns:
            True if the listener was attached and has now been removed.
        """
        if not self._active:
            return False
        self._active = False
        try:
            self.emitter.remove_listener(self.event, self._listener)
        except KeyError:
            # The emitter already dropped it (e.g. remove_all_listeners()).
            logger.debug("Listener for %r was already removed", self.event)
        return True

    def _fire_once(self, *args: Any, **kwargs: Any) -> Any:
        if not self._active:
            return None
        self.cancel()
        return self.handler(*args, **kwargs)


class SubscriptionGroup:
    """Subscriptions owned by one binding or watcher, released together."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def listen(
        self,
        emitter: Any,
        event: str,
        handler: Handler,
        *,
        once: bool = False,
    ) -> Subscription | None:
        """Attach ``handler`` to ``event`` on ``emitter``.

        Objects that are not event emitters are logged and skipped; the
        caller simply gets no notifications from them.
        """
        if emitter is None or not isinstance(emitter, Emitter):
            logger.warning(
                "Cannot listen for %r on %s: not an event emitter",
                event,
                type(emitter).__name__,
            )
            return None
        subscription = Subscription(emitter, event, handler, once=once).start()
        self._subscriptions.append(subscription)
        return subscription

    def cancel_all(self) -> int:
        """Cancel every subscription. Returns how many were still active."""
        subscriptions, self._subscriptions = self._subscriptions, []
        return sum(1 for sub in subscriptions if sub.cancel())

    def __len__(self) -> int:
        return sum(1 for sub in self._subscriptions if sub.active)
