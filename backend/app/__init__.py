import random

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def _roller_factory(seed):
    from app.services.games.turn import DiceRoller

    if seed is None:
        return DiceRoller
    # One seeded stream hands out per-room seeds so rooms don't share rolls
    seeder = random.Random(seed)
    return lambda: DiceRoller(seeder.randrange(2 ** 32))


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Rooms and participants live in memory, one directory per app
    from app.services.games.directory import SessionDirectory
    from app.services.games.history import make_history_sink
    flask_app.extensions['session_directory'] = SessionDirectory(
        history_sink=make_history_sink(flask_app),
        roller_factory=_roller_factory(flask_app.config.get('DICE_SEED')),
        min_players=int(flask_app.config.get('MIN_PLAYERS', 2)),
        max_players=int(flask_app.config.get('MAX_PLAYERS', 7)),
        dice_count=int(flask_app.config.get('DICE_COUNT', 8)),
    )

    # Import and register blueprints here
    from app.main import main
    flask_app.register_blueprint(main)

    from app.api.games import games
    # Mount room routes under /api to match frontend API client
    flask_app.register_blueprint(games, url_prefix='/api')

    # Register Socket.IO event handlers
    from app.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the game history tables."""
        import app.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
