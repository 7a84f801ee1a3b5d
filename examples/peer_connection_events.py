"""Lifecycle events of a raw peer connection.

Drives a mock peer connection through a short session and prints the
normalized event stream. Shows:
- Registering a connection with app data attached to every event
- Track and data channel children reported as they appear
- Cascading close when the connection reaches the ``closed`` state

Run with:
    uv run python examples/peer_connection_events.py
"""

from __future__ import annotations

import logging

from rtcmonitor import ClientMonitor, LoggingEventSink, MockEventSink
from rtcmonitor.sources.mock import MockDataChannel, MockMediaStreamTrack, MockPeerConnection


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(name)s %(message)s")

    sink = MockEventSink()
    client = ClientMonitor(sink=sink)
    client.join(message="demo session")

    # In production this is an aiortc.RTCPeerConnection
    pc = MockPeerConnection()
    client.add_peer_connection(pc, peer_connection_id="pc-1", app_data={"room": "lobby"})

    pc.set_signaling_state("have-remote-offer")
    pc.set_ice_gathering_state("gathering")
    pc.set_connection_state("connecting")
    pc.set_connection_state("connected")

    track = pc.receive_track(MockMediaStreamTrack("audio", id="mic-1"))
    channel = pc.receive_data_channel(MockDataChannel("chat", id=0))
    channel.open()
    track.mute()

    # Closing the connection closes every open child first
    pc.close()
    client.close()

    print(f"\n{len(sink.events)} events:")
    for event in sink.events:
        track_id = event.payload.get("track_id")
        suffix = f" ({track_id})" if track_id else ""
        print(f"  {event.kind.value}{suffix}")

    # The same stream, written to the rtcmonitor.events logger
    logging_sink = LoggingEventSink()
    for event in sink.events[:3]:
        logging_sink.add_event(event)


if __name__ == "__main__":
    main()
