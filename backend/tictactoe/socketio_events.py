import time

from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from tictactoe import socketio
from tictactoe.services.games.commands import COMMANDS, Disconnect, parse_command
from tictactoe.services.games.errors import RoomStateError
from tictactoe.services.games.events import ROOM_ERROR, Scope, socket_room
from tictactoe.services.games.rooms import Outcome, RoomService


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def deliver(service: RoomService, outcome: Outcome, sid: str, namespace: str,
            disconnecting: bool = False) -> None:
    """Apply membership changes for ``sid``, then emit every outbound event."""
    if not disconnecting:
        for room_id in outcome.left:
            leave_room(socket_room(room_id), sid=sid, namespace=namespace)
    for other_sid, room_id in outcome.evicted:
        leave_room(socket_room(room_id), sid=other_sid, namespace=namespace)
    if outcome.joined:
        join_room(socket_room(outcome.joined), sid=sid, namespace=namespace)

    for out in outcome.events:
        if out.scope is Scope.SENDER:
            socketio.emit(out.event, out.payload, to=sid, namespace=namespace)
        elif out.scope is Scope.ROOM:
            socketio.emit(out.event, out.payload, to=socket_room(out.room_id), namespace=namespace)
        else:
            socketio.emit(out.event, out.payload, to=socket_room(out.room_id),
                          skip_sid=sid, namespace=namespace)

    for room_id, deadline in outcome.abandoned:
        _schedule_room_expiry(service, room_id, deadline)


def _schedule_room_expiry(service: RoomService, room_id: str, deadline: float) -> None:
    app = current_app._get_current_object()

    def _runner(code: str, expected_deadline: float):
        sleep_for = max(0.0, expected_deadline - time.time())
        if sleep_for:
            time.sleep(sleep_for)
        with app.app_context():
            service.expire_room(code, expected_deadline)

    socketio.start_background_task(_runner, room_id, deadline)


def _run(service: RoomService, sid: str, command, namespace: str) -> None:
    disconnecting = isinstance(command, Disconnect)
    try:
        outcome = service.dispatch(sid, command)
    except Exception:
        current_app.logger.exception(f"[handler-error] sid={sid} command={command!r}")
        if not disconnecting:
            emit(ROOM_ERROR, {'message': 'Internal server error'})
        return
    deliver(service, outcome, sid, namespace, disconnecting=disconnecting)


def register_socketio_handlers(service: RoomService, namespace: str = '/') -> None:
    """Register Socket.IO event handlers bound to ``service``."""

    def handle_connect(auth=None):
        current_app.logger.info(f"[connect] sid={_get_sid()}")

    def handle_disconnect(reason=None):
        sid = _get_sid()
        current_app.logger.info(f"[disconnect] sid={sid} reason={reason}")
        _run(service, sid, Disconnect(), namespace)

    def bind(event: str):
        def handle_event(data=None):
            try:
                command = parse_command(event, data)
            except RoomStateError as exc:
                emit(exc.event, {'message': exc.message})
                return
            _run(service, _get_sid(), command, namespace)

        handle_event.__name__ = f"handle_{event.replace('-', '_')}"
        return handle_event

    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    for event in COMMANDS:
        socketio.on_event(event, bind(event), namespace=namespace)
