from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)


def _allowed_origins(value):
    if not value or value == '*':
        return '*'
    return [origin.strip() for origin in value.split(',') if origin.strip()]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = _allowed_origins(flask_app.config.get('CORS_ALLOWED_ORIGINS'))
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Process-scoped room state, handed to the handlers explicitly
    from tictactoe.services.games.registry import RoomRegistry
    from tictactoe.services.games.rooms import RoomService
    from tictactoe.services.games.sessions import SessionManager

    testing = flask_app.config.get('TESTING', False)
    service = RoomService(
        RoomRegistry(code_length=int(flask_app.config.get('ROOM_CODE_LENGTH', 6))),
        SessionManager(),
        chat_max_length=int(flask_app.config.get('CHAT_MAX_LENGTH', 500)),
        # In tests, delete empty rooms immediately for determinism
        cleanup_grace_sec=0 if testing else float(flask_app.config.get('ROOM_CLEANUP_GRACE_SEC', 0)),
    )
    flask_app.extensions['room_service'] = service

    from tictactoe.main import main
    flask_app.register_blueprint(main)

    # Register Socket.IO event handlers against this app's room service
    from tictactoe.socketio_events import register_socketio_handlers
    register_socketio_handlers(service)

    @click.command('list-rooms')
    def list_rooms_command():
        """Prints every live room with its seats and spectator count."""
        rooms = service.registry.rooms()
        if not rooms:
            click.echo('No active rooms.')
            return
        for room in rooms:
            with room.lock:
                seats = ', '.join(
                    f"{p.symbol}={p.name}{'' if p.connected else ' (away)'}" for p in room.players
                )
                click.echo(
                    f"{room.id}  [{seats}]  spectators={len(room.spectators)}  "
                    f"games={room.games_played}  active={room.game_active}"
                )

    flask_app.cli.add_command(list_rooms_command)

    return flask_app
