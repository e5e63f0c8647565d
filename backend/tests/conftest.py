import os
import sys
import pytest

# Ensure the backend root (containing the `courtside` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from courtside import create_app, db


class TestConfig:
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = 'DEBUG'
    LEDGER_ROW_LOCKING = True


ROSTER = ['p1', 'p2', 'p3', 'p4', 'p5', 'p6', 'p7', 'p8']
STARTERS = ['p1', 'p2', 'p3', 'p4', 'p5']


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def cli_runner(flask_app):
    return flask_app.test_cli_runner()


@pytest.fixture()
def team_players(flask_app):
    """Register ROSTER as the players of team t1 for owner u1."""
    from courtside import players

    for number, player_id in enumerate(ROSTER, start=1):
        players.create_player('u1', 't1', 'Player', str(number), player_id=player_id)
    return ROSTER


@pytest.fixture()
def live_game(team_players):
    """A started game for owner u1 with an eight-player roster."""
    from courtside import games

    game = games.create_game('u1', 't1', 'Tigers')['game']
    games.set_game_roster(game.id, 'u1', ROSTER)
    games.set_starting_lineup(game.id, 'u1', STARTERS)
    return games.start_game(game.id, 'u1')['game']
