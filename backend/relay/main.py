from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)

@main.route('/')
def status():
    """Relay status: player count, capacity and uptime."""
    hub = current_app.extensions['relay_hub']
    return jsonify(hub.status())
