"""Tests for DeviceBinding."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from rtcmonitor.client import ClientMonitor
from rtcmonitor.models.enums import BindingState, EventKind
from rtcmonitor.sinks.mock import MockEventSink
from rtcmonitor.sources.device import DeviceBinding
from rtcmonitor.sources.mock import MockDevice


class RecordingRegistrar:
    def __init__(self, fail: bool = False) -> None:
        self.transports: list[Any] = []
        self.fail = fail

    def add_transport(self, transport: Any) -> None:
        if self.fail:
            raise RuntimeError("registrar closed")
        self.transports.append(transport)


class TestDeviceBinding:
    def test_forwards_new_transports(self) -> None:
        device = MockDevice()
        registrar = RecordingRegistrar()
        binding = DeviceBinding(device, registrar)
        assert binding.bind() is True
        send = device.create_send_transport()
        recv = device.create_recv_transport()
        assert registrar.transports == [send, recv]
        assert binding.transports_seen == 2

    def test_not_forwarding_before_bind(self) -> None:
        device = MockDevice()
        registrar = RecordingRegistrar()
        DeviceBinding(device, registrar)
        device.create_send_transport()
        assert registrar.transports == []

    def test_bind_and_unbind_are_idempotent(self) -> None:
        device = MockDevice()
        binding = DeviceBinding(device, RecordingRegistrar())
        assert binding.bind() is True
        assert binding.bind() is False
        assert binding.unbind() is True
        assert binding.unbind() is False
        assert binding.state is BindingState.CLOSED
        assert device.observer.listeners("newtransport") == []

    def test_no_forwarding_after_unbind(self) -> None:
        device = MockDevice()
        registrar = RecordingRegistrar()
        binding = DeviceBinding(device, registrar)
        binding.bind()
        binding.unbind()
        device.create_send_transport()
        assert registrar.transports == []

    def test_registrar_failure_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        device = MockDevice()
        binding = DeviceBinding(device, RecordingRegistrar(fail=True))
        binding.bind()
        with caplog.at_level(logging.ERROR, logger="rtcmonitor.sources.device"):
            device.create_send_transport()
        assert "Failed to register transport" in caplog.text


class TestDeviceWithClient:
    def test_transports_get_bindings(self, client: ClientMonitor, sink: MockEventSink) -> None:
        device = MockDevice()
        client.add_device(device)
        transport = device.create_send_transport(id="send-1")
        binding = client.get_binding("send-1")
        assert binding is not None
        assert binding.native is transport
        assert sink.kinds() == [EventKind.PEER_CONNECTION_OPENED]

    def test_remove_device_keeps_transports(self, client: ClientMonitor) -> None:
        device = MockDevice()
        client.add_device(device)
        device.create_send_transport(id="send-1")
        assert client.remove_device(device) is True
        assert client.remove_device(device) is False
        device.create_recv_transport(id="recv-1")
        assert client.get_binding("send-1") is not None
        assert client.get_binding("recv-1") is None

    def test_duplicate_device(self, client: ClientMonitor) -> None:
        device = MockDevice()
        assert client.add_device(device) is client.add_device(device)
        assert len(client.devices) == 1
