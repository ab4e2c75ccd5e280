from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/health', methods=['GET'])
def health():
    registry = current_app.extensions['room_service'].registry
    return jsonify({
        'status': 'healthy',
        'activeRooms': registry.count(),
        'timestamp': datetime.now(timezone.utc).isoformat(),
    })
