"""Reshaping payloads before they reach the sink.

A payload transform runs for one event kind and can redact, enrich or
replace the payload. Swapping the provider on a live client affects the
very next event. Shows:
- PayloadProvider.transformer as a decorator
- Redacting candidate addresses
- Filtering event kinds with MonitorConfig.enabled_events

Run with:
    uv run python examples/payload_redaction.py
"""

from __future__ import annotations

from types import SimpleNamespace

from rtcmonitor import ClientMonitor, EventKind, MockEventSink, MonitorConfig, PayloadProvider
from rtcmonitor.models.event import IceCandidatePayload
from rtcmonitor.sources.mock import MockPeerConnection


def main() -> None:
    sink = MockEventSink()
    config = MonitorConfig(
        sink=sink,
        enabled_events={EventKind.ICE_CANDIDATE, EventKind.ICE_CANDIDATE_ERROR},
    )
    client = ClientMonitor(config)

    pc = MockPeerConnection()
    client.add_peer_connection(pc, peer_connection_id="pc-1")
    candidate = SimpleNamespace(ip="192.168.1.20", port=50000, protocol="udp", type="host")
    pc.gather_candidate(candidate)

    provider = PayloadProvider()

    @provider.transformer(EventKind.ICE_CANDIDATE)
    def redact(payload: IceCandidatePayload) -> IceCandidatePayload:
        return payload.model_copy(update={"address": None, "related_address": None})

    client.payload_provider = provider
    pc.gather_candidate(candidate)
    client.close()

    for event in sink.events:
        print(f"{event.kind.value}: address={event.payload['address']}")


if __name__ == "__main__":
    main()
