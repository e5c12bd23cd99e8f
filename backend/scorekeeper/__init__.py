from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def _origins(config):
    raw = config.get('CORS_ORIGINS') or ''
    return [o.strip() for o in raw.split(',') if o.strip()]


def get_service():
    """The TournamentService bound to the current Flask app."""
    return current_app.extensions['scorekeeper']


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = _origins(flask_app.config)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from scorekeeper.services.tournaments import TournamentService
    from scorekeeper.services.tournaments.store import MemoryDocumentStore, SqlDocumentStore
    store_kind = flask_app.config.get('TOURNAMENT_STORE', 'sql')
    if store_kind == 'memory':
        store = MemoryDocumentStore(logger=flask_app.logger)
    elif store_kind == 'sql':
        store = SqlDocumentStore(logger=flask_app.logger)
    else:
        raise ValueError(f"Unknown TOURNAMENT_STORE: {store_kind!r}")
    flask_app.extensions['scorekeeper'] = TournamentService.from_config(store, flask_app.config, logger=flask_app.logger)

    from scorekeeper.api.tournaments import tournaments
    # Mount tournament routes under /api to match frontend API client
    flask_app.register_blueprint(tournaments, url_prefix='/api/tournaments')

    # Register Socket.IO event handlers
    from scorekeeper.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the database tables."""
        import scorekeeper.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    @click.command('leaderboard')
    @click.argument('passcode')
    def leaderboard_command(passcode):
        """Prints the current standings of a tournament."""
        from scorekeeper.exceptions import ScorekeeperError
        with flask_app.app_context():
            service = get_service()
            try:
                state = service.load(passcode)
            except ScorekeeperError as exc:
                raise click.ClickException(exc.message)
            status = 'complete' if state.complete else f'round {state.current_round} of {state.total_rounds}'
            click.echo(f'{passcode.strip().upper()} ({status})')
            from scorekeeper.services.tournaments.state import leaderboard
            for rank, row in enumerate(leaderboard(state), start=1):
                click.echo(f"{rank}. {row['name']}: {row['total']} pts ({row['roundsPlayed']}/{state.total_rounds} matches)")

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(leaderboard_command)

    return flask_app
