"""Stats use-cases: record and undo actions, per-game and career views."""

from typing import Optional

from flask import current_app

from courtside.repositories import GameRepository, GameStatsRepository
from courtside.services.stats import ACTION_KINDS, PlayerGameStats, aggregate_player_stats
from courtside.transactions import TRANSACTION_ERRORS, failure, log_event, unit_of_work


_games = GameRepository()

STATS_NOT_FOUND = 'Game stats not found'


def _stats_repository() -> GameStatsRepository:
    return GameStatsRepository(lock_rows=bool(current_app.config.get('LEDGER_ROW_LOCKING', True)))


def record_game_action(game_id: str, player_id: str, owner_id: str,
                       action_type: str, made: Optional[bool] = None) -> dict:
    """Record one action for a player on court, creating their stats on first use."""
    repository = _stats_repository()
    ctx = {'game': game_id, 'player': player_id, 'action': action_type}
    try:
        with unit_of_work():
            game = _games.find_by_id(game_id, owner_id)
            if game is None:
                return failure('stats-record', 'Game not found', **ctx)
            if not game.is_in_progress():
                return failure('stats-record', 'Game is not in progress', **ctx)
            if player_id not in game.current_lineup:
                return failure('stats-record', 'Player is not currently on the court', **ctx)
            if action_type not in ACTION_KINDS:
                return failure('stats-record', f'Invalid action type: {action_type}', **ctx)

            stats = repository.find_by_game_and_player(game_id, player_id, owner_id)
            if stats is None:
                stats = PlayerGameStats(game_id=game_id, player_id=player_id, owner_id=owner_id)
            stats.record_action(action_type, made)
            repository.save(stats)
    except TRANSACTION_ERRORS as exc:
        return failure('stats-record', exc, **ctx)
    log_event('stats-record', made=made, points=stats.total_points, **ctx)
    return {'success': True, 'game_stats': stats}


def undo_last_game_action(game_id: str, player_id: str, owner_id: str) -> dict:
    repository = _stats_repository()
    ctx = {'game': game_id, 'player': player_id}
    try:
        with unit_of_work():
            stats = repository.find_by_game_and_player(game_id, player_id, owner_id)
            if stats is None:
                return failure('stats-undo', STATS_NOT_FOUND, **ctx)
            undone = stats.undo_last_action()
            repository.save(stats)
    except TRANSACTION_ERRORS as exc:
        return failure('stats-undo', exc, **ctx)
    log_event('stats-undo', undone=undone.kind, points=stats.total_points, **ctx)
    return {'success': True, 'game_stats': stats, 'undone': undone}


def add_player_minutes(game_id: str, player_id: str, owner_id: str, minutes: float) -> dict:
    """Add playing time. Minutes are not part of the undo history."""
    repository = _stats_repository()
    ctx = {'game': game_id, 'player': player_id, 'minutes': minutes}
    try:
        with unit_of_work():
            game = _games.find_by_id(game_id, owner_id)
            if game is None:
                return failure('stats-minutes', 'Game not found', **ctx)
            if player_id not in game.roster:
                return failure('stats-minutes', 'Player is not on the game roster', **ctx)
            stats = repository.find_by_game_and_player(game_id, player_id, owner_id)
            if stats is None:
                stats = PlayerGameStats(game_id=game_id, player_id=player_id, owner_id=owner_id)
            stats.add_minutes(minutes)
            repository.save(stats)
    except TRANSACTION_ERRORS as exc:
        return failure('stats-minutes', exc, **ctx)
    log_event('stats-minutes', total=stats.minutes_played, **ctx)
    return {'success': True, 'game_stats': stats}


def get_player_game_stats(game_id: str, player_id: str, owner_id: str) -> dict:
    stats = GameStatsRepository().find_by_game_and_player(game_id, player_id, owner_id)
    if stats is None:
        return {'success': False, 'error': STATS_NOT_FOUND}
    return {'success': True, 'game_stats': stats}


def get_game_stats(game_id: str, owner_id: str) -> dict:
    """Stat lines of every player who recorded something in a game."""
    if _games.find_by_id(game_id, owner_id) is None:
        return {'success': False, 'error': 'Game not found'}
    return {'success': True, 'game_stats': GameStatsRepository().find_by_game(game_id, owner_id)}


def get_player_career_stats(player_id: str, owner_id: str) -> dict:
    """Aggregate a player's stats across all of an owner's games.

    A player without any recorded game yields zero-valued stats, not an error.
    """
    try:
        ledgers = GameStatsRepository().find_by_player(player_id, owner_id)
        stats = aggregate_player_stats(player_id, ledgers)
    except TRANSACTION_ERRORS as exc:
        return failure('stats-career', exc, player=player_id)
    return {'success': True, 'stats': stats}
