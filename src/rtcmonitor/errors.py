"""Exceptions raised by rtcmonitor."""

from __future__ import annotations


class RtcMonitorError(Exception):
    """Base exception for all rtcmonitor errors."""


class MonitorClosedError(RtcMonitorError):
    """The client monitor was closed and accepts no new sources."""


class UnsupportedSourceError(RtcMonitorError, TypeError):
    """The object is not a peer connection, transport, or device."""
