"""Player use-cases: the team registry game rosters are drawn from."""

from typing import Optional

from courtside.repositories import PlayerRepository
from courtside.services.players import Player
from courtside.transactions import TRANSACTION_ERRORS, failure, log_event, unit_of_work


_players = PlayerRepository()

PLAYER_NOT_FOUND = 'Player not found'


def create_player(owner_id: str, team_id: str, first_name: str, last_name: str,
                  player_id: Optional[str] = None, **profile) -> dict:
    """Register a player on a team. ``profile`` takes nickname, position and body data."""
    try:
        with unit_of_work():
            player = Player(owner_id=owner_id, team_id=team_id, first_name=first_name,
                            last_name=last_name, id=player_id, **profile)
            _players.save(player)
    except TRANSACTION_ERRORS as exc:
        return failure('player-create', exc, owner=owner_id, team=team_id)
    log_event('player-create', player=player.id, team=team_id)
    return {'success': True, 'player': player}


def get_player(player_id: str, owner_id: str) -> dict:
    player = _players.find_by_id(player_id, owner_id)
    if player is None:
        return {'success': False, 'error': PLAYER_NOT_FOUND}
    return {'success': True, 'player': player}


def get_players_by_team(team_id: str, owner_id: str) -> dict:
    return {'success': True, 'players': _players.find_by_team(team_id, owner_id)}


def update_player(player_id: str, owner_id: str, changes: dict) -> dict:
    try:
        with unit_of_work():
            player = _players.find_by_id(player_id, owner_id)
            if player is None:
                return failure('player-update', PLAYER_NOT_FOUND, player=player_id)
            player.update(changes)
            _players.save(player)
    except TRANSACTION_ERRORS as exc:
        return failure('player-update', exc, player=player_id)
    log_event('player-update', player=player_id)
    return {'success': True, 'player': player}


def delete_player(player_id: str, owner_id: str) -> dict:
    try:
        with unit_of_work():
            if not _players.delete(player_id, owner_id):
                return failure('player-delete', PLAYER_NOT_FOUND, player=player_id)
    except TRANSACTION_ERRORS as exc:
        return failure('player-delete', exc, player=player_id)
    log_event('player-delete', player=player_id)
    return {'success': True}
