"""Relay domain services: session registry, routing, fan-out and heartbeat.

Nothing in this package knows about Flask or Socket.IO. The transport
adapter in ``relay.socketio_events`` hands connections and frames to a
RelayHub, keeping transport concerns separated from the relay rules.
"""
