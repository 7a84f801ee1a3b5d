"""Per-event-kind payload shaping."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel

from rtcmonitor.models.enums import EventKind

logger = logging.getLogger("rtcmonitor.payloads")

PayloadTransform = Callable[[Any], Any]


def identity(payload: Any) -> Any:
    return payload


class PayloadProvider:
    """Registry of payload transforms, one per :class:`EventKind`.

    Every kind starts with the identity transform. Replace a transform to
    redact, enrich, or reshape a payload without touching the bindings that
    decide when events fire::

        provider = PayloadProvider()

        @provider.transformer(EventKind.ICE_CANDIDATE)
        def drop_address(payload):
            return payload.model_copy(update={"address": None})
    """

    def __init__(self, transforms: Mapping[EventKind, PayloadTransform] | None = None) -> None:
        self._transforms: dict[EventKind, PayloadTransform] = dict.fromkeys(EventKind, identity)
        for kind, transform in (transforms or {}).items():
            self.register(kind, transform)

    def register(self, kind: EventKind, transform: PayloadTransform) -> None:
        """Replace the transform for ``kind``."""
        self._transforms[EventKind(kind)] = transform

    def transformer(self, kind: EventKind) -> Callable[[PayloadTransform], PayloadTransform]:
        """Decorator form of :meth:`register`."""

        def decorator(fn: PayloadTransform) -> PayloadTransform:
            self.register(kind, fn)
            return fn

        return decorator

    def reset(self, kind: EventKind | None = None) -> None:
        """Restore the identity transform for one kind, or for all kinds."""
        if kind is None:
            self._transforms = dict.fromkeys(EventKind, identity)
        else:
            self._transforms[EventKind(kind)] = identity

    def get(self, kind: EventKind | str) -> PayloadTransform | None:
        try:
            return self._transforms.get(EventKind(kind))
        except ValueError:
            return None

    def transform(self, kind: EventKind | str, payload: Any) -> Any:
        """Apply the registered transform and return its result unchanged.

        Returns an empty dict for kinds outside :class:`EventKind`.
        """
        transform = self.get(kind)
        if transform is None:
            logger.debug("No payload transform for event kind %r", kind)
            return {}
        return transform(payload)

    def create_payload(self, kind: EventKind | str, payload: Any) -> dict[str, Any]:
        """Shape ``payload`` for ``kind`` into the plain dict carried by the envelope."""
        return _to_mapping(self.transform(kind, payload))


def _to_mapping(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, BaseModel):
        return value.model_dump(warnings=False)
    return dict(value)
