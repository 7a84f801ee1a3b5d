"""Tests for PayloadProvider."""

from __future__ import annotations

from typing import Any

from rtcmonitor.core.payloads import PayloadProvider, identity
from rtcmonitor.models.enums import EventKind
from rtcmonitor.models.event import IceCandidatePayload


class TestPayloadProvider:
    def test_default_is_identity(self) -> None:
        provider = PayloadProvider()
        payload = {"a": 1}
        assert provider.transform(EventKind.ICE_CANDIDATE, payload) is payload
        for kind in EventKind:
            assert provider.get(kind) is identity

    def test_unknown_kind_yields_empty_payload(self) -> None:
        provider = PayloadProvider()
        assert provider.transform("no_such_kind", {"a": 1}) == {}
        assert provider.get("no_such_kind") is None

    def test_kind_given_as_string(self) -> None:
        provider = PayloadProvider()
        assert provider.transform("ice_candidate", {"a": 1}) == {"a": 1}

    def test_register_replaces_transform(self) -> None:
        provider = PayloadProvider()
        provider.register(EventKind.ICE_CANDIDATE, lambda p: {"redacted": True})
        assert provider.transform(EventKind.ICE_CANDIDATE, {"a": 1}) == {"redacted": True}
        assert provider.transform(EventKind.NEGOTIATION_NEEDED, {"a": 1}) == {"a": 1}

    def test_transformer_decorator(self) -> None:
        provider = PayloadProvider()

        @provider.transformer(EventKind.MEDIA_TRACK_ADDED)
        def add_tag(payload: dict[str, Any]) -> dict[str, Any]:
            return {**payload, "tag": "x"}

        assert provider.transform(EventKind.MEDIA_TRACK_ADDED, {})["tag"] == "x"
        assert add_tag({}) == {"tag": "x"}

    def test_initial_transforms(self) -> None:
        provider = PayloadProvider({EventKind.CLIENT_LEFT: lambda p: {"bye": True}})
        assert provider.transform(EventKind.CLIENT_LEFT, {}) == {"bye": True}

    def test_reset_one_kind(self) -> None:
        provider = PayloadProvider()
        provider.register(EventKind.CLIENT_LEFT, lambda p: {})
        provider.register(EventKind.CLIENT_JOINED, lambda p: {})
        provider.reset(EventKind.CLIENT_LEFT)
        assert provider.get(EventKind.CLIENT_LEFT) is identity
        assert provider.get(EventKind.CLIENT_JOINED) is not identity

    def test_reset_all(self) -> None:
        provider = PayloadProvider()
        provider.register(EventKind.CLIENT_LEFT, lambda p: {})
        provider.reset()
        assert provider.get(EventKind.CLIENT_LEFT) is identity


class TestCreatePayload:
    def test_model_is_dumped(self) -> None:
        provider = PayloadProvider()
        payload = IceCandidatePayload(peer_connection_id="pc-1", port=3478)
        result = provider.create_payload(EventKind.ICE_CANDIDATE, payload)
        assert isinstance(result, dict)
        assert result["peer_connection_id"] == "pc-1"
        assert result["port"] == 3478

    def test_none_becomes_empty_dict(self) -> None:
        provider = PayloadProvider()
        provider.register(EventKind.ICE_CANDIDATE, lambda p: None)
        assert provider.create_payload(EventKind.ICE_CANDIDATE, {"a": 1}) == {}

    def test_transform_sees_model(self) -> None:
        provider = PayloadProvider()
        seen: list[Any] = []

        @provider.transformer(EventKind.ICE_CANDIDATE)
        def drop_address(payload: IceCandidatePayload) -> IceCandidatePayload:
            seen.append(payload)
            return payload.model_copy(update={"address": None})

        payload = IceCandidatePayload(peer_connection_id="pc-1", address="10.0.0.1")
        result = provider.create_payload(EventKind.ICE_CANDIDATE, payload)
        assert seen == [payload]
        assert result["address"] is None
