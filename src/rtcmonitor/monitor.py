"""Per-connection monitor owned by a binding.

Statistics collection itself lives outside this package. The monitor only
carries the pieces the bindings depend on: the connection id, the last known
connection state, the tracks seen on the connection, a ``stats`` tick and a
one-shot ``close`` notification.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from pyee import EventEmitter

logger = logging.getLogger("rtcmonitor.monitor")

StatsCollector = Callable[[], Any]


@dataclass
class TrackEntry:
    """A track registered with a monitor and the ids it was attached under."""

    track: Any
    attachments: dict[str, Any] = field(default_factory=dict)


class ConnectionMonitor(EventEmitter):
    """Emits ``stats`` on every :meth:`update` and ``close`` once on :meth:`close`.

    Example::

        monitor = ConnectionMonitor("pc-1", collect_stats=lambda: pc.getStats())
        monitor.on("stats", lambda stats: print(len(stats)))
        monitor.update()
        monitor.close()
    """

    def __init__(
        self,
        peer_connection_id: str,
        *,
        collect_stats: StatsCollector | None = None,
    ) -> None:
        super().__init__()
        self.peer_connection_id = peer_connection_id
        self.connection_state: str | None = None
        self.closed = False
        self.tracks: dict[str, TrackEntry] = {}
        self.stats_ticks = 0
        self._collect_stats = collect_stats

    def add_media_stream_track(
        self, track: Any, attachments: dict[str, Any] | None = None
    ) -> None:
        track_id = getattr(track, "id", None)
        if track_id is None:
            return
        self.tracks[track_id] = TrackEntry(track=track, attachments=dict(attachments or {}))

    def remove_media_stream_track(self, track_id: str) -> bool:
        return self.tracks.pop(track_id, None) is not None

    def update(self, stats: Any = None) -> None:
        """Run one statistics tick and notify ``stats`` listeners."""
        if self.closed:
            return
        if stats is None and self._collect_stats is not None:
            try:
                stats = self._collect_stats()
            except Exception:
                logger.exception("Stats collection failed for %s", self.peer_connection_id)
                return
        self.stats_ticks += 1
        self.emit("stats", stats if stats is not None else [])

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.emit("close")
        self.remove_all_listeners()
        self.tracks.clear()
