"""Event sink ABC."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rtcmonitor.models.event import ClientEvent, ClientIssue, ClientMetaData


class EventSink(ABC):
    """Receives the normalized event stream.

    The binding layer only ever calls :meth:`add_event`. Metadata and issues
    are produced by collaborators outside the binding layer (user agent
    discovery, issue detectors) and share the same sink.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Sink name for identification."""
        ...

    @abstractmethod
    def add_event(self, event: ClientEvent) -> None:
        """Accept one lifecycle event. Called in delivery order."""
        ...

    def add_meta_data(self, meta_data: ClientMetaData) -> None:  # noqa: B027
        """Accept a metadata record."""

    def add_issue(self, issue: ClientIssue) -> None:  # noqa: B027
        """Accept a detected issue."""

    def close(self) -> None:  # noqa: B027
        """Release resources held by the sink."""
