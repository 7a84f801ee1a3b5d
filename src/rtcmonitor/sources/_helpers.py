"""Helpers for reading attributes off native objects."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

logger = logging.getLogger("rtcmonitor.sources")

_MISSING = object()


def native_attr(obj: Any, *names: str, default: Any = None) -> Any:
    """Return the first attribute of ``obj`` found under any of ``names``.

    Native objects spell the same field differently (``iceConnectionState``
    in aiortc, ``ice_connection_state`` elsewhere). Missing fields become
    ``default`` instead of raising.
    """
    if obj is None:
        return default
    for name in names:
        value = getattr(obj, name, _MISSING)
        if value is not _MISSING:
            return value
    return default


def call_optional(obj: Any, *names: str) -> Any:
    """Call the first zero-argument method found under ``names``.

    Returns None when no such method exists or the call fails.
    """
    method = native_attr(obj, *names)
    if not callable(method):
        return None
    try:
        return method()
    except Exception:
        logger.debug("Calling %s on %s failed", names[0], type(obj).__name__, exc_info=True)
        return None


def as_dict(value: Any) -> dict[str, Any] | None:
    if value is None:
        return None
    if isinstance(value, Mapping):
        return dict(value)
    if hasattr(value, "__dict__"):
        return {k: v for k, v in vars(value).items() if not k.startswith("_")}
    return None


def as_str(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def observer_of(obj: Any) -> Any:
    """The emitter that carries lifecycle events for an SFU object.

    mediasoup objects expose ``close``/``pause``/``new*`` on ``observer``;
    objects without one emit on themselves.
    """
    return native_attr(obj, "observer", default=obj)


def iter_children(obj: Any, *names: str) -> Iterable[Any]:
    """Iterate a child collection that may be a mapping, a sequence, or a method."""
    collection = native_attr(obj, *names)
    if callable(collection):
        try:
            collection = collection()
        except Exception:
            logger.debug("Listing %s on %s failed", names[0], type(obj).__name__, exc_info=True)
            return []
    if collection is None:
        return []
    if isinstance(collection, Mapping):
        return list(collection.values())
    try:
        return list(collection)
    except TypeError:
        return []
