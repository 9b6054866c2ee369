import signal
import sys

from bossbattle import create_app, socketio

app = create_app()


def _handle_sigterm(signum, frame):
    app.logger.info(f"[shutdown] signal={signum} closing listener")
    # SystemExit unwinds socketio.run, which closes the listening socket
    sys.exit(0)


if __name__ == '__main__':
    signal.signal(signal.SIGTERM, _handle_sigterm)
    # Threaded Werkzeug server: a single process holds the authoritative state
    socketio.run(app, host=app.config['HOST'], port=app.config['PORT'], allow_unsafe_werkzeug=True)
