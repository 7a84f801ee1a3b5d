"""Shared test fixtures and helpers."""

from __future__ import annotations

import pytest

from rtcmonitor.client import ClientMonitor
from rtcmonitor.core.dispatcher import EventDispatcher
from rtcmonitor.monitor import ConnectionMonitor
from rtcmonitor.sinks.mock import MockEventSink
from rtcmonitor.sources.mock import MockPeerConnection, MockTransport


@pytest.fixture
def sink() -> MockEventSink:
    return MockEventSink()


@pytest.fixture
def dispatcher(sink: MockEventSink) -> EventDispatcher:
    return EventDispatcher(sink)


@pytest.fixture
def monitor() -> ConnectionMonitor:
    return ConnectionMonitor("pc-1")


@pytest.fixture
def client(sink: MockEventSink) -> ClientMonitor:
    return ClientMonitor(sink=sink)


@pytest.fixture
def pc() -> MockPeerConnection:
    return MockPeerConnection()


@pytest.fixture
def transport() -> MockTransport:
    return MockTransport("send", id="t-1")
