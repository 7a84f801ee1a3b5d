"""Producers and consumers on an SFU transport.

A mock mediasoup-style device creates a send and a receive transport.
Registering the device is enough: every transport it creates is observed.
Shows:
- Device registration and automatic transport bindings
- Producer track replacement picked up on the stats tick
- Consumer pause/resume and transport close

Run with:
    uv run python examples/sfu_transport_events.py
"""

from __future__ import annotations

from rtcmonitor import ClientMonitor, MockEventSink
from rtcmonitor.sources.mock import MockDevice, MockMediaStreamTrack


def main() -> None:
    sink = MockEventSink()
    client = ClientMonitor(sink=sink)
    client.join()

    device = MockDevice()
    client.add_device(device)

    send = device.create_send_transport(id="send-1")
    recv = device.create_recv_transport(id="recv-1")
    send.set_connection_state("connected")

    producer = send.produce(MockMediaStreamTrack("video", id="camera"), id="producer-1")
    consumer = recv.consume(
        MockMediaStreamTrack("audio", id="remote-mic"), producer_id="remote-producer", id="c-1"
    )

    # Switching cameras swaps the track without a native notification
    producer.replace_track(MockMediaStreamTrack("video", id="screen"))
    client.collect()

    consumer.pause()
    consumer.resume()
    send.close()
    client.close()

    for connection_id in ("send-1", "recv-1"):
        print(f"\n{connection_id}:")
        for event in sink.for_connection(connection_id):
            ids = {
                k: v
                for k, v in event.payload.items()
                if k.endswith("_id") and k != "peer_connection_id" and v
            }
            print(f"  {event.kind.value} {ids}")


if __name__ == "__main__":
    main()
