from flask import Flask, current_app
from flask_cors import CORS
from flask_socketio import SocketIO
import itertools
import logging
import os
import click
from config import Config

socketio = SocketIO(async_mode=None)


def _parse_origins(value):
    if not value or value == '*':
        return '*'
    return [origin.strip() for origin in value.split(',') if origin.strip()]


def create_app(config_class=Config, clock=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = _parse_origins(flask_app.config.get('CORS_ORIGINS', '*'))
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One authoritative session per app; handlers and routes reach it through app.extensions
    from bossbattle.services.session import BattleSession
    session = BattleSession.from_config(flask_app.config, socketio, flask_app.logger, clock=clock)
    flask_app.extensions['boss_battle'] = session

    from bossbattle.routes import main
    flask_app.register_blueprint(main)

    from bossbattle.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/'))

    @socketio.on_error_default
    def terminate_on_error(exc):
        if not current_app.config.get('TERMINATE_ON_INTERNAL_ERROR'):
            raise exc
        # State of unknown integrity must not keep serving
        current_app.logger.critical("[fatal] unhandled error in socket handler, exiting", exc_info=exc)
        logging.shutdown()
        os._exit(70)

    @click.command('simulate-raid')
    @click.option('--hits', default=60, show_default=True, help='Number of attacks to send.')
    @click.option('--interval-ms', default=250, show_default=True, help='Gap between consecutive attacks.')
    @click.option('--attackers', default=3, show_default=True, help='Distinct usernames taking turns.')
    def simulate_raid_command(hits, interval_ms, attackers):
        """Runs a synthetic raid against a fresh boss and prints every hit.

        Uses the configured boss and hero stats with a synthetic clock; per-user
        cooldowns are not applied. Does not touch a running server.
        """
        from bossbattle.services.combat import AlreadyDefeated, CombatEngine

        ticks = itertools.count(0, interval_ms)
        engine = CombatEngine.from_config(flask_app.config, clock=lambda: next(ticks))
        for i in range(hits):
            username = f'raider{i % max(1, attackers) + 1}'
            try:
                outcome = engine.attack(username)
            except AlreadyDefeated:
                click.echo('Boss already defeated, stopping.')
                break
            click.echo(
                f'{i + 1:>4} {username:<10} damage={outcome.damage} '
                f'hp={outcome.boss_hp}/{outcome.boss_max_hp} '
                f'combo={outcome.combo_count} x{float(outcome.combo_multiplier)}'
            )
        boss = engine.boss
        click.echo(
            f'boss={boss.name} hp={boss.current_hp}/{boss.max_hp} '
            f'defeated={not boss.is_alive} logged_attacks={len(engine.attack_log)}'
        )

    flask_app.cli.add_command(simulate_raid_command)

    return flask_app
