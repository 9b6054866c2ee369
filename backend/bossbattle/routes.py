from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


def _session():
    return current_app.extensions['boss_battle']


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the boss battle server!'})


@main.route('/health')
def health():
    return jsonify({'status': 'ok', 'game': _session().snapshot()})


@main.route('/api/status')
def status():
    """Read-only diagnostic view: boss HP, combo and attacker counts."""
    return jsonify(_session().status())
