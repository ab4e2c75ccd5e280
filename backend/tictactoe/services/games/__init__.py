"""Game domain services: board engine, room registry and room state machine.

This package contains pure(ish) domain logic that is driven by the socket
handlers, keeping transport concerns separated from core game mechanics.
Nothing in here imports Flask or Socket.IO.
"""
