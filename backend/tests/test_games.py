import pytest

from courtside import db, games, players
from courtside.errors import ConcurrencyError, StateError
from courtside.models import GameModel, PlayerModel, SubstitutionModel
from courtside.repositories import GameRepository
from courtside.services.games import Game

from conftest import ROSTER, STARTERS


def test_create_game(flask_app):
    res = games.create_game('u1', 't1', 'Tigers', game_date='2024-03-01T19:30:00',
                            location='Home Court')
    assert res['success'] is True
    game = res['game']
    assert game.status == 'not_started'
    assert game.game_date.year == 2024
    assert GameModel.query.filter_by(id=game.id).count() == 1


@pytest.mark.parametrize('owner, team, opponent, message', [
    ('', 't1', 'Tigers', 'Owner ID is required'),
    ('u1', ' ', 'Tigers', 'Team ID is required'),
    ('u1', 't1', '', 'Opponent is required'),
])
def test_create_game_validation_failures(flask_app, owner, team, opponent, message):
    res = games.create_game(owner, team, opponent)
    assert res == {'success': False, 'error': message}
    assert GameModel.query.count() == 0


def test_create_game_rejects_invalid_status_and_date(flask_app):
    assert games.create_game('u1', 't1', 'Tigers', status='paused')['error'] == 'Invalid game status'
    assert games.create_game('u1', 't1', 'Tigers', game_date='soon')['error'] == 'Game date must be a valid date'
    assert games.create_game('u1', 't1', 'Tigers', status='in_progress')['error'] == \
        'Current lineup must contain exactly 5 players once the game has started'


def test_get_game_is_scoped_by_owner(flask_app):
    game = games.create_game('u1', 't1', 'Tigers')['game']
    assert games.get_game(game.id, 'u1')['game'].opponent == 'Tigers'
    assert games.get_game(game.id, 'u2') == {'success': False, 'error': 'Game not found'}


def test_games_by_team_and_status(flask_app, live_game):
    games.create_game('u1', 't1', 'Lions')
    games.create_game('u1', 't2', 'Bears')
    games.create_game('u2', 't1', 'Wolves')

    by_team = games.get_games_by_team('t1', 'u1')['games']
    assert sorted(g.opponent for g in by_team) == ['Lions', 'Tigers']

    in_progress = games.get_games_by_status('in_progress', 'u1')['games']
    assert [g.id for g in in_progress] == [live_game.id]
    assert len(games.get_games_by_status('not_started', 'u1')['games']) == 2
    assert games.get_games_by_status('finished', 'u1')['error'] == 'Invalid game status'


def test_full_game_flow_is_persisted(team_players):
    game = games.create_game('u1', 't1', 'Tigers')['game']
    assert games.set_game_roster(game.id, 'u1', ['p1', 'p2', 'p3', 'p4', 'p5'])['success']
    res = games.set_starting_lineup(game.id, 'u1', ['p1', 'p2', 'p3', 'p4', 'p5'])
    assert res['game'].current_lineup == res['game'].starting_lineup

    started = games.start_game(game.id, 'u1')
    assert started['success'] is True
    assert started['game'].status == 'in_progress'
    assert started['game'].quarter == 1

    for expected in (2, 3, 4):
        assert games.next_quarter(game.id, 'u1')['game'].quarter == expected
    assert games.next_quarter(game.id, 'u1')['error'] == 'Match is already at the last quarter'

    assert games.complete_game(game.id, 'u1')['game'].status == 'completed'
    reloaded = games.get_game(game.id, 'u1')['game']
    assert reloaded.status == 'completed'
    assert reloaded.quarter == 4
    assert reloaded.completed_at is not None
    assert reloaded.current_lineup == ['p1', 'p2', 'p3', 'p4', 'p5']


def test_start_failures_keep_message_precedence(flask_app, live_game):
    fresh = games.create_game('u1', 't1', 'Lions')['game']
    assert games.start_game(fresh.id, 'u1')['error'] == \
        'Roster and starting lineup must be set before starting the game'
    assert games.start_game(live_game.id, 'u1')['error'] == 'Game is already in progress or completed'


def test_start_reports_status_when_both_guards_fail(flask_app):
    game = Game('u1', 't1', 'Tigers', status='in_progress', roster=STARTERS,
                starting_lineup=[], current_lineup=STARTERS)
    assert not game.can_start()
    GameRepository().save(game)
    db.session.commit()

    assert games.start_game(game.id, 'u1')['error'] == 'Game is already in progress or completed'


def test_roster_must_come_from_the_team(team_players):
    players.create_player('u1', 't2', 'Other', 'Team', player_id='x1')
    game = games.create_game('u1', 't1', 'Tigers')['game']

    res = games.set_game_roster(game.id, 'u1', STARTERS + ['x1'])
    assert res == {'success': False, 'error': 'Some players do not belong to this team'}
    res = games.set_game_roster(game.id, 'u1', STARTERS + ['ghost'])
    assert res['error'] == 'Some players do not belong to this team'
    assert games.get_game(game.id, 'u1')['game'].roster == []

    assert games.set_game_roster(game.id, 'u1', ROSTER)['success'] is True


def test_roster_membership_is_scoped_by_owner(team_players):
    game = games.create_game('u2', 't1', 'Tigers')['game']
    res = games.set_game_roster(game.id, 'u2', STARTERS)
    assert res['error'] == 'Some players do not belong to this team'


def test_operations_on_missing_game(flask_app):
    for call in (
        lambda: games.start_game('nope', 'u1'),
        lambda: games.next_quarter('nope', 'u1'),
        lambda: games.complete_game('nope', 'u1'),
        lambda: games.set_game_roster('nope', 'u1', ROSTER),
        lambda: games.set_starting_lineup('nope', 'u1', STARTERS),
        lambda: games.record_substitution('nope', 'u1', 'p1', 'p6'),
        lambda: games.update_game('nope', 'u1', {'opponent': 'X'}),
        lambda: games.delete_game('nope', 'u1'),
        lambda: games.get_game_substitutions('nope', 'u1'),
    ):
        assert call() == {'success': False, 'error': 'Game not found'}


def test_roster_changes_after_start_are_refused(flask_app, live_game):
    res = games.set_game_roster(live_game.id, 'u1', ROSTER[:6])
    assert res['error'] == 'Cannot modify roster of a started game'
    res = games.set_starting_lineup(live_game.id, 'u1', STARTERS)
    assert res['error'] == 'Cannot modify lineup of a started game'
    assert games.get_game(live_game.id, 'u1')['game'].roster == ROSTER


def test_lineup_before_roster(flask_app):
    game = games.create_game('u1', 't1', 'Tigers')['game']
    res = games.set_starting_lineup(game.id, 'u1', STARTERS)
    assert res['error'] == 'Roster must be set before defining starting lineup'


def test_update_game_patches_metadata_only(flask_app, live_game):
    res = games.update_game(live_game.id, 'u1', {
        'opponent': 'Eagles', 'location': 'Arena 2', 'game_date': '2024-04-02',
        'team_id': 't9', 'status': 'completed', 'owner_id': 'u2',
    })
    assert res['success'] is True
    reloaded = games.get_game(live_game.id, 'u1')['game']
    assert reloaded.opponent == 'Eagles'
    assert reloaded.location == 'Arena 2'
    assert reloaded.game_date.month == 4
    assert reloaded.team_id == 't1'
    assert reloaded.status == 'in_progress'


def test_update_game_validation_failure(flask_app):
    game = games.create_game('u1', 't1', 'Tigers')['game']
    assert games.update_game(game.id, 'u1', {'opponent': '  '})['error'] == 'Opponent is required'
    assert games.update_game(game.id, 'u1', {'game_date': 'later'})['error'] == 'Game date must be a valid date'
    assert games.get_game(game.id, 'u1')['game'].opponent == 'Tigers'


# Substitutions

def test_record_substitution(flask_app, live_game):
    games.next_quarter(live_game.id, 'u1')
    res = games.record_substitution(live_game.id, 'u1', 'p2', 'p7')
    assert res['success'] is True
    assert res['game'].current_lineup == ['p1', 'p7', 'p3', 'p4', 'p5']
    sub = res['substitution']
    assert (sub.quarter, sub.player_out, sub.player_in) == (2, 'p2', 'p7')

    reloaded = games.get_game(live_game.id, 'u1')['game']
    assert reloaded.current_lineup == ['p1', 'p7', 'p3', 'p4', 'p5']
    assert reloaded.starting_lineup == STARTERS


def test_substitutions_are_listed_in_order(flask_app, live_game):
    games.record_substitution(live_game.id, 'u1', 'p1', 'p6')
    games.next_quarter(live_game.id, 'u1')
    games.record_substitution(live_game.id, 'u1', 'p6', 'p8')
    games.record_substitution(live_game.id, 'u1', 'p3', 'p1')

    subs = games.get_game_substitutions(live_game.id, 'u1')['substitutions']
    assert [(s.quarter, s.player_out, s.player_in) for s in subs] == [
        (1, 'p1', 'p6'), (2, 'p6', 'p8'), (2, 'p3', 'p1'),
    ]


@pytest.mark.parametrize('player_out, player_in, message', [
    ('p6', 'p7', 'Player going out must be on the court'),
    ('p1', 'p42', 'Player coming in must be part of the roster'),
    ('p1', 'p5', 'Player coming in is already on the court'),
])
def test_invalid_substitution_records_nothing(flask_app, live_game, player_out, player_in, message):
    res = games.record_substitution(live_game.id, 'u1', player_out, player_in)
    assert res == {'success': False, 'error': message}
    assert SubstitutionModel.query.count() == 0
    assert games.get_game(live_game.id, 'u1')['game'].current_lineup == STARTERS


def test_substitution_before_start_fails(team_players):
    game = games.create_game('u1', 't1', 'Tigers')['game']
    games.set_game_roster(game.id, 'u1', ROSTER)
    games.set_starting_lineup(game.id, 'u1', STARTERS)
    res = games.record_substitution(game.id, 'u1', 'p1', 'p6')
    assert res['error'] == 'Match must be in progress'


def test_substitution_is_atomic(flask_app, live_game, monkeypatch):
    def broken_save(substitution):
        raise StateError('Substitutions cannot be modified once recorded')

    monkeypatch.setattr(games._substitutions, 'save', broken_save)
    res = games.record_substitution(live_game.id, 'u1', 'p1', 'p6')
    assert res['success'] is False

    reloaded = games.get_game(live_game.id, 'u1')['game']
    assert reloaded.current_lineup == STARTERS
    assert SubstitutionModel.query.count() == 0


# Concurrency

def test_stale_game_save_is_refused(flask_app, live_game):
    repository = GameRepository()
    first = repository.find_by_id(live_game.id, 'u1')
    second = repository.find_by_id(live_game.id, 'u1')

    first.next_quarter()
    repository.save(first)
    db.session.commit()

    second.substitute_player('p1', 'p6')
    with pytest.raises(ConcurrencyError, match='Game was modified concurrently'):
        repository.save(second)
    db.session.rollback()

    reloaded = repository.find_by_id(live_game.id, 'u1')
    assert reloaded.quarter == 2
    assert reloaded.current_lineup == STARTERS


# Deletion

def test_delete_game_cascades(flask_app, live_game):
    from courtside import stats

    games.record_substitution(live_game.id, 'u1', 'p1', 'p6')
    stats.record_game_action(live_game.id, 'p2', 'u1', 'assist')

    res = games.delete_game(live_game.id, 'u1')
    assert res == {'success': True, 'deleted': {'substitutions': 1, 'game_stats': 1}}
    assert games.get_game(live_game.id, 'u1')['success'] is False
    assert SubstitutionModel.query.count() == 0


def test_delete_owner_data(flask_app, live_game):
    from courtside import stats

    other = games.create_game('u2', 't5', 'Hawks')['game']
    games.record_substitution(live_game.id, 'u1', 'p1', 'p6')
    stats.record_game_action(live_game.id, 'p2', 'u1', 'steal')
    stats.record_game_action(live_game.id, 'p3', 'u1', 'block')

    res = games.delete_owner_data('u1')
    assert res['deleted'] == {
        'substitutions': 1, 'game_stats': 2, 'games': 1, 'players': 8,
    }
    assert games.get_game(other.id, 'u2')['success'] is True
    assert PlayerModel.query.filter_by(owner_id='u1').count() == 0
    assert games.delete_owner_data('u1')['deleted'] == {
        'substitutions': 0, 'game_stats': 0, 'games': 0, 'players': 0,
    }
