"""Tests for BindingRegistry."""

from __future__ import annotations

import logging

import pytest

from rtcmonitor.core.dispatcher import EventDispatcher
from rtcmonitor.core.registry import BindingRegistry
from rtcmonitor.models.enums import EventKind
from rtcmonitor.monitor import ConnectionMonitor
from rtcmonitor.sinks.mock import MockEventSink
from rtcmonitor.sources.mock import MockPeerConnection
from rtcmonitor.sources.peer_connection import PeerConnectionBinding


class Factory:
    """Builds peer connection bindings and counts how often it was called."""

    def __init__(self, pc: MockPeerConnection, dispatcher: EventDispatcher, pc_id: str) -> None:
        self.pc = pc
        self.dispatcher = dispatcher
        self.pc_id = pc_id
        self.calls = 0

    def __call__(self) -> PeerConnectionBinding:
        self.calls += 1
        return PeerConnectionBinding(self.pc, ConnectionMonitor(self.pc_id), self.dispatcher)


@pytest.fixture
def registry() -> BindingRegistry:
    return BindingRegistry()


class TestAdd:
    def test_add_binds(
        self, registry: BindingRegistry, pc: MockPeerConnection, dispatcher: EventDispatcher
    ) -> None:
        binding = registry.add(pc, Factory(pc, dispatcher, "a"))
        assert binding.bound
        assert pc in registry
        assert len(registry) == 1
        assert registry.find(pc) is binding
        assert registry.get("a") is binding
        assert registry.bindings == [binding]

    def test_duplicate_add_returns_existing(
        self,
        registry: BindingRegistry,
        pc: MockPeerConnection,
        dispatcher: EventDispatcher,
        sink: MockEventSink,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        factory = Factory(pc, dispatcher, "a")
        first = registry.add(pc, factory)
        with caplog.at_level(logging.WARNING, logger="rtcmonitor.registry"):
            second = registry.add(pc, factory)
        assert second is first
        assert factory.calls == 1
        assert len(sink.get_events(EventKind.PEER_CONNECTION_OPENED)) == 1
        assert "already registered" in caplog.text

    def test_identity_not_equality(
        self, registry: BindingRegistry, dispatcher: EventDispatcher
    ) -> None:
        class EqualPc(MockPeerConnection):
            def __eq__(self, other: object) -> bool:
                return True

            __hash__ = MockPeerConnection.__hash__

        first, second = EqualPc(), EqualPc()
        registry.add(first, Factory(first, dispatcher, "a"))
        registry.add(second, Factory(second, dispatcher, "b"))
        assert len(registry) == 2


class TestRemove:
    def test_remove_unbinds(
        self,
        registry: BindingRegistry,
        pc: MockPeerConnection,
        dispatcher: EventDispatcher,
        sink: MockEventSink,
    ) -> None:
        binding = registry.add(pc, Factory(pc, dispatcher, "a"))
        assert registry.remove(pc) is True
        assert binding.closed
        assert pc not in registry
        assert registry.get("a") is None
        assert sink.kinds()[-1] == EventKind.PEER_CONNECTION_CLOSED

    def test_remove_missing(
        self,
        registry: BindingRegistry,
        pc: MockPeerConnection,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="rtcmonitor.registry"):
            assert registry.remove(pc) is False
        assert "not registered" in caplog.text

    def test_native_close_removes(
        self, registry: BindingRegistry, pc: MockPeerConnection, dispatcher: EventDispatcher
    ) -> None:
        registry.add(pc, Factory(pc, dispatcher, "a"))
        pc.close()
        assert len(registry) == 0
        assert registry.remove(pc) is False

    def test_readd_after_close_creates_new_binding(
        self, registry: BindingRegistry, pc: MockPeerConnection, dispatcher: EventDispatcher
    ) -> None:
        first = registry.add(pc, Factory(pc, dispatcher, "a"))
        registry.remove(pc)
        second = registry.add(pc, Factory(pc, dispatcher, "b"))
        assert second is not first
        assert second.bound


class TestClose:
    def test_close_unbinds_all(
        self, registry: BindingRegistry, dispatcher: EventDispatcher, sink: MockEventSink
    ) -> None:
        pcs = [MockPeerConnection() for _ in range(3)]
        bindings = [
            registry.add(pc, Factory(pc, dispatcher, f"pc{i}")) for i, pc in enumerate(pcs)
        ]
        assert registry.close() == 3
        assert registry.close() == 0
        assert all(b.closed for b in bindings)
        assert len(registry) == 0
        assert len(sink.get_events(EventKind.PEER_CONNECTION_CLOSED)) == 3
