from flask import current_app, request
from bossbattle import socketio


def _session():
    return current_app.extensions['boss_battle']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _get_namespace() -> str:
    return getattr(request, 'namespace', None) or '/'


def handle_connect(auth=None):
    _session().handle_connect(_get_sid(), _get_namespace())


def handle_disconnect(reason=None):
    _session().handle_disconnect(_get_sid(), _get_namespace())


def handle_attack(data=None):
    payload = data if isinstance(data, dict) else {}
    _session().handle_attack(_get_sid(), _get_namespace(), payload.get('username'))


def handle_reset_boss(data=None):
    _session().handle_reset()


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register the boss battle protocol on ``namespace``.

    Browser clients connect to the default namespace unless configured
    otherwise through SOCKETIO_NAMESPACE.
    """
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('attack', handle_attack, namespace=namespace)
    socketio.on_event('resetBoss', handle_reset_boss, namespace=namespace)
