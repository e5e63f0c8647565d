from flask import Flask
from flask_sqlalchemy import SQLAlchemy
import click
from config import Config

db = SQLAlchemy()


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    db.init_app(flask_app)

    # Models must be imported so the tables are known to the metadata
    from courtside import models  # noqa: F401

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates every table."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            click.echo('Database has been reset!')

    @click.command('player-stats')
    @click.argument('player_id')
    @click.option('--owner', 'owner_id', required=True, help='Owner whose games are aggregated.')
    def player_stats_command(player_id, owner_id):
        """Prints a player's career statistics as JSON."""
        import json
        from courtside.stats import get_player_career_stats

        with flask_app.app_context():
            result = get_player_career_stats(player_id, owner_id)
            if not result['success']:
                raise click.ClickException(result['error'])
            click.echo(json.dumps(result['stats'].to_dict(), indent=2))

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(player_stats_command)

    return flask_app
