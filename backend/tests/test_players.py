import pytest

from courtside import players
from courtside.errors import ValidationError
from courtside.services.players import Player


def make_player(**kwargs):
    data = {'owner_id': 'u1', 'team_id': 't1', 'first_name': 'Ada', 'last_name': 'Lee'}
    data.update(kwargs)
    return Player(**data)


def test_player_names():
    player = make_player()
    assert player.full_name == 'Ada Lee'
    assert player.display_name == 'Ada Lee'
    assert make_player(nickname='Ace').display_name == 'Ace (Ada Lee)'


@pytest.mark.parametrize('kwargs, message', [
    ({'first_name': ' '}, 'First name is required'),
    ({'last_name': ''}, 'Last name is required'),
    ({'team_id': ''}, 'Team ID is required'),
    ({'height': 0}, 'Height must be positive'),
    ({'weight': -70}, 'Weight must be positive'),
    ({'age': 4}, 'Age must be between 5 and 100'),
    ({'gender': 'X'}, 'Gender must be M or F'),
])
def test_player_validation(kwargs, message):
    with pytest.raises(ValidationError, match=message):
        make_player(**kwargs)


def test_update_keeps_team_and_rolls_back_on_error():
    player = make_player()
    player.update({'position': 'guard', 'team_id': 't9', 'id': 'other'})
    assert player.position == 'guard'
    assert player.team_id == 't1'
    assert player.id != 'other'

    with pytest.raises(ValidationError, match='Age must be between'):
        player.update({'nickname': 'Ace', 'age': 200})
    assert player.nickname is None
    assert player.age is None


def test_create_and_list_players(flask_app):
    created = players.create_player('u1', 't1', 'Ada', 'Lee', position='guard', age=17)
    assert created['success'] is True
    players.create_player('u1', 't1', 'Bo', 'Diaz')
    players.create_player('u1', 't2', 'Cy', 'Kim')
    players.create_player('u2', 't1', 'Di', 'Ng')

    roster = players.get_players_by_team('t1', 'u1')['players']
    assert [p.full_name for p in roster] == ['Bo Diaz', 'Ada Lee']

    fetched = players.get_player(created['player'].id, 'u1')['player']
    assert (fetched.position, fetched.age) == ('guard', 17)
    assert players.get_player(created['player'].id, 'u2') == {'success': False, 'error': 'Player not found'}


def test_create_player_validation_failure(flask_app):
    assert players.create_player('u1', 't1', '', 'Lee') == {'success': False, 'error': 'First name is required'}
    assert players.get_players_by_team('t1', 'u1')['players'] == []


def test_update_and_delete_player(flask_app):
    player = players.create_player('u1', 't1', 'Ada', 'Lee')['player']
    res = players.update_player(player.id, 'u1', {'nickname': 'Ace', 'team_id': 't2'})
    assert res['success'] is True
    reloaded = players.get_player(player.id, 'u1')['player']
    assert reloaded.nickname == 'Ace'
    assert reloaded.team_id == 't1'

    assert players.update_player(player.id, 'u1', {'gender': 'Q'})['error'] == 'Gender must be M or F'
    assert players.update_player('nope', 'u1', {'nickname': 'Z'})['error'] == 'Player not found'

    assert players.delete_player(player.id, 'u2') == {'success': False, 'error': 'Player not found'}
    assert players.delete_player(player.id, 'u1') == {'success': True}
    assert players.get_player(player.id, 'u1')['success'] is False
