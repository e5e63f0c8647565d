"""Game use-cases.

Each function loads what it needs through the repositories, calls one
guarded domain operation, saves and commits. Results are plain dicts:
``{'success': True, 'game': Game}`` or ``{'success': False, 'error': str}``.
The owner is always passed explicitly.
"""

from datetime import date, datetime, time, timezone
from typing import Iterable, Optional

from courtside.errors import ValidationError
from courtside.repositories import GameRepository, GameStatsRepository, PlayerRepository, SubstitutionRepository
from courtside.services.games import GAME_STATUSES, NOT_STARTED, Game, GamePatch, Substitution
from courtside.transactions import TRANSACTION_ERRORS, failure, log_event, unit_of_work


_games = GameRepository()
_players = PlayerRepository()
_substitutions = SubstitutionRepository()
_stats = GameStatsRepository()

GAME_NOT_FOUND = 'Game not found'


def coerce_game_date(value):
    """Accept a datetime, a date or an ISO-8601 string."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            pass
    raise ValidationError('Game date must be a valid date')


def create_game(owner_id: str, team_id: str, opponent: str, game_date=None,
                location: Optional[str] = None, notes: Optional[str] = None,
                status: Optional[str] = None) -> dict:
    """Create and persist a game.

    ``status`` defaults to not_started. A game created directly in progress
    or completed has no current lineup yet, so it fails validation with the
    current-lineup message; live games are reached through ``start_game``.
    """
    try:
        with unit_of_work():
            game = Game(
                owner_id=owner_id,
                team_id=team_id,
                opponent=opponent,
                game_date=coerce_game_date(game_date),
                location=location,
                notes=notes,
                status=status or NOT_STARTED,
            )
            _games.save(game)
    except TRANSACTION_ERRORS as exc:
        return failure('game-create', exc, owner=owner_id, team=team_id)
    log_event('game-create', game=game.id, owner=owner_id, team=team_id)
    return {'success': True, 'game': game}


def get_game(game_id: str, owner_id: str) -> dict:
    game = _games.find_by_id(game_id, owner_id)
    if game is None:
        return {'success': False, 'error': GAME_NOT_FOUND}
    return {'success': True, 'game': game}


def get_games_by_team(team_id: str, owner_id: str) -> dict:
    return {'success': True, 'games': _games.find_by_team(team_id, owner_id)}


def get_games_by_status(status: str, owner_id: str) -> dict:
    if status not in GAME_STATUSES:
        return {'success': False, 'error': 'Invalid game status'}
    return {'success': True, 'games': _games.find_by_status(status, owner_id)}


def _apply(event: str, game_id: str, owner_id: str, operation, **context) -> dict:
    """Load a game, run ``operation(game)`` on it, save and commit."""
    try:
        with unit_of_work():
            game = _games.find_by_id(game_id, owner_id)
            if game is None:
                return failure(event, GAME_NOT_FOUND, game=game_id)
            operation(game)
            _games.save(game)
    except TRANSACTION_ERRORS as exc:
        return failure(event, exc, game=game_id, **context)
    log_event(event, game=game.id, status=game.status, quarter=game.quarter, **context)
    return {'success': True, 'game': game}


def update_game(game_id: str, owner_id: str, changes: dict) -> dict:
    """Patch opponent, date, location or notes. Other keys are ignored."""
    changes = dict(changes or {})
    try:
        if 'game_date' in changes:
            changes['game_date'] = coerce_game_date(changes['game_date'])
    except ValidationError as exc:
        return failure('game-update', exc, game=game_id)
    patch = GamePatch.from_dict(changes)
    return _apply('game-update', game_id, owner_id, lambda game: game.update(patch),
                  fields=','.join(name for name, _ in patch.items()) or '-')


def set_game_roster(game_id: str, owner_id: str, player_ids: Iterable[str]) -> dict:
    """Replace the roster. Every id must be a player of the game's team."""
    player_ids = list(player_ids or [])

    def assign(game):
        game.set_roster(player_ids, _players.find_ids_by_team(game.team_id, owner_id))

    return _apply('game-roster', game_id, owner_id, assign, size=len(player_ids))


def set_starting_lineup(game_id: str, owner_id: str, player_ids: Iterable[str]) -> dict:
    player_ids = list(player_ids or [])
    return _apply('game-lineup', game_id, owner_id, lambda game: game.set_starting_lineup(player_ids))


def start_game(game_id: str, owner_id: str) -> dict:
    return _apply('game-start', game_id, owner_id, lambda game: game.start())


def next_quarter(game_id: str, owner_id: str) -> dict:
    return _apply('game-quarter', game_id, owner_id, lambda game: game.next_quarter())


def complete_game(game_id: str, owner_id: str) -> dict:
    return _apply('game-complete', game_id, owner_id, lambda game: game.complete())


def record_substitution(game_id: str, owner_id: str, player_out: str, player_in: str) -> dict:
    """Swap players on court and append the substitution in one commit."""
    try:
        with unit_of_work():
            game = _games.find_by_id(game_id, owner_id)
            if game is None:
                return failure('game-substitution', GAME_NOT_FOUND, game=game_id)
            slot = game.substitute_player(player_out, player_in)
            substitution = Substitution.for_game(game, player_out, player_in)
            _games.save(game)
            _substitutions.save(substitution)
    except TRANSACTION_ERRORS as exc:
        return failure('game-substitution', exc, game=game_id, out=player_out, into=player_in)
    log_event('game-substitution', game=game.id, quarter=game.quarter, slot=slot,
              out=player_out, into=player_in)
    return {'success': True, 'game': game, 'substitution': substitution}


def get_game_substitutions(game_id: str, owner_id: str) -> dict:
    if _games.find_by_id(game_id, owner_id) is None:
        return {'success': False, 'error': GAME_NOT_FOUND}
    return {'success': True, 'substitutions': _substitutions.find_by_game(game_id, owner_id)}


def delete_game(game_id: str, owner_id: str) -> dict:
    """Delete a game together with its substitutions and stats."""
    try:
        with unit_of_work():
            if _games.find_by_id(game_id, owner_id) is None:
                return failure('game-delete', GAME_NOT_FOUND, game=game_id)
            deleted = {
                'substitutions': _substitutions.delete_by_game(game_id, owner_id),
                'game_stats': _stats.delete_by_game(game_id, owner_id),
            }
            _games.delete(game_id, owner_id)
    except TRANSACTION_ERRORS as exc:
        return failure('game-delete', exc, game=game_id)
    log_event('game-delete', game=game_id, **deleted)
    return {'success': True, 'deleted': deleted}


def delete_owner_data(owner_id: str) -> dict:
    """Remove every game, substitution, stat line and player an owner has."""
    try:
        with unit_of_work():
            deleted = {
                'substitutions': _substitutions.delete_by_owner(owner_id),
                'game_stats': _stats.delete_by_owner(owner_id),
            }
            deleted['games'] = _games.delete_by_owner(owner_id)
            deleted['players'] = _players.delete_by_owner(owner_id)
    except TRANSACTION_ERRORS as exc:
        return failure('owner-purge', exc, owner=owner_id)
    log_event('owner-purge', owner=owner_id, **deleted)
    return {'success': True, 'deleted': deleted}
