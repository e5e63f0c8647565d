"""SQLAlchemy-backed persistence port for players, games, substitutions and stats.

Repositories translate between domain objects and rows, add and flush, but
never commit: the calling use-case owns the transaction. Every lookup is
scoped by owner_id and returns None when nothing matches.

Saves compare the version the domain object was loaded at with the row's
current version and raise ``ConcurrencyError`` on a mismatch.
"""

import json
from typing import List, Optional

from courtside import db
from courtside.errors import ConcurrencyError, StateError
from courtside.models import GameModel, GameStatsModel, PlayerModel, SubstitutionModel
from courtside.services.games import Game, Substitution
from courtside.services.players import Player
from courtside.services.stats import GameAction, PlayerGameStats
from courtside.services.stats.ledger import COUNTER_FIELDS


def _dump_ids(ids):
    return json.dumps(list(ids)) if ids else None


def _load_ids(raw):
    return json.loads(raw) if raw else []


def _check_version(row, entity, label):
    if row is None:
        # A versioned entity whose row is gone was deleted underneath us
        if entity.version is not None:
            raise ConcurrencyError(label)
    elif row.version != entity.version:
        raise ConcurrencyError(label)


class PlayerRepository:

    PROFILE_FIELDS = ('first_name', 'last_name', 'nickname', 'position', 'height',
                      'weight', 'age', 'gender', 'grade')

    def _to_domain(self, row: PlayerModel) -> Player:
        return Player(
            id=row.id,
            owner_id=row.owner_id,
            team_id=row.team_id,
            created_at=row.created_at,
            updated_at=row.updated_at,
            **{name: getattr(row, name) for name in self.PROFILE_FIELDS},
        )

    def _query(self, owner_id: str):
        return PlayerModel.query.filter_by(owner_id=owner_id)

    def find_by_id(self, player_id: str, owner_id: str) -> Optional[Player]:
        row = self._query(owner_id).filter_by(id=player_id).first()
        return self._to_domain(row) if row else None

    def find_by_team(self, team_id: str, owner_id: str) -> List[Player]:
        rows = self._query(owner_id).filter_by(team_id=team_id).order_by(
            PlayerModel.last_name, PlayerModel.first_name, PlayerModel.pk
        ).all()
        return [self._to_domain(r) for r in rows]

    def find_ids_by_team(self, team_id: str, owner_id: str) -> List[str]:
        rows = self._query(owner_id).filter_by(team_id=team_id).with_entities(PlayerModel.id).all()
        return [r.id for r in rows]

    def save(self, player: Player) -> Player:
        row = self._query(player.owner_id).filter_by(id=player.id).first()
        if row is None:
            row = PlayerModel(id=player.id, owner_id=player.owner_id, team_id=player.team_id,
                              created_at=player.created_at)
            db.session.add(row)

        for name in self.PROFILE_FIELDS:
            setattr(row, name, getattr(player, name))
        row.updated_at = player.updated_at
        db.session.flush()
        return player

    def delete(self, player_id: str, owner_id: str) -> bool:
        return self._query(owner_id).filter_by(id=player_id).delete() > 0

    def delete_by_owner(self, owner_id: str) -> int:
        return self._query(owner_id).delete()


class GameRepository:

    def _to_domain(self, row: GameModel) -> Game:
        return Game(
            id=row.id,
            owner_id=row.owner_id,
            team_id=row.team_id,
            opponent=row.opponent,
            game_date=row.game_date,
            location=row.location,
            notes=row.notes,
            status=row.status,
            quarter=row.quarter,
            roster=_load_ids(row.roster),
            starting_lineup=_load_ids(row.starting_lineup),
            current_lineup=_load_ids(row.current_lineup),
            started_at=row.started_at,
            completed_at=row.completed_at,
            created_at=row.created_at,
            updated_at=row.updated_at,
            version=row.version,
        )

    def _query(self, owner_id: str):
        return GameModel.query.filter_by(owner_id=owner_id)

    def find_by_id(self, game_id: str, owner_id: str) -> Optional[Game]:
        row = self._query(owner_id).filter_by(id=game_id).first()
        return self._to_domain(row) if row else None

    def find_by_team(self, team_id: str, owner_id: str) -> List[Game]:
        rows = self._query(owner_id).filter_by(team_id=team_id).order_by(
            GameModel.game_date.desc(), GameModel.pk.desc()
        ).all()
        return [self._to_domain(r) for r in rows]

    def find_by_status(self, status: str, owner_id: str) -> List[Game]:
        rows = self._query(owner_id).filter_by(status=status).order_by(GameModel.pk).all()
        return [self._to_domain(r) for r in rows]

    def find_by_owner(self, owner_id: str) -> List[Game]:
        rows = self._query(owner_id).order_by(GameModel.pk).all()
        return [self._to_domain(r) for r in rows]

    def save(self, game: Game) -> Game:
        row = self._query(game.owner_id).filter_by(id=game.id).first()
        _check_version(row, game, 'Game')
        if row is None:
            row = GameModel(id=game.id, owner_id=game.owner_id, team_id=game.team_id,
                            created_at=game.created_at)
            db.session.add(row)

        row.opponent = game.opponent
        row.game_date = game.game_date
        row.location = game.location
        row.notes = game.notes
        row.status = game.status
        row.quarter = game.quarter
        row.roster = _dump_ids(game.roster)
        row.starting_lineup = _dump_ids(game.starting_lineup)
        row.current_lineup = _dump_ids(game.current_lineup)
        row.started_at = game.started_at
        row.completed_at = game.completed_at
        row.updated_at = game.updated_at
        db.session.flush()

        game.version = row.version
        return game

    def delete(self, game_id: str, owner_id: str) -> bool:
        return self._query(owner_id).filter_by(id=game_id).delete() > 0

    def delete_by_owner(self, owner_id: str) -> int:
        return self._query(owner_id).delete()


class SubstitutionRepository:

    def _to_domain(self, row: SubstitutionModel) -> Substitution:
        return Substitution(
            id=row.id,
            game_id=row.game_id,
            owner_id=row.owner_id,
            quarter=row.quarter,
            player_out=row.player_out,
            player_in=row.player_in,
            timestamp=row.timestamp,
            created_at=row.created_at,
        )

    def _query(self, owner_id: str):
        return SubstitutionModel.query.filter_by(owner_id=owner_id)

    def find_by_id(self, substitution_id: str, owner_id: str) -> Optional[Substitution]:
        row = self._query(owner_id).filter_by(id=substitution_id).first()
        return self._to_domain(row) if row else None

    def find_by_game(self, game_id: str, owner_id: str) -> List[Substitution]:
        rows = self._query(owner_id).filter_by(game_id=game_id).order_by(
            SubstitutionModel.timestamp, SubstitutionModel.pk
        ).all()
        return [self._to_domain(r) for r in rows]

    def find_by_owner(self, owner_id: str) -> List[Substitution]:
        rows = self._query(owner_id).order_by(SubstitutionModel.pk).all()
        return [self._to_domain(r) for r in rows]

    def save(self, substitution: Substitution) -> Substitution:
        """Append a substitution. Existing entries are never rewritten."""
        if SubstitutionModel.query.filter_by(id=substitution.id).first() is not None:
            raise StateError('Substitutions cannot be modified once recorded')
        db.session.add(SubstitutionModel(
            id=substitution.id,
            game_id=substitution.game_id,
            owner_id=substitution.owner_id,
            quarter=substitution.quarter,
            player_out=substitution.player_out,
            player_in=substitution.player_in,
            timestamp=substitution.timestamp,
            created_at=substitution.created_at,
        ))
        db.session.flush()
        return substitution

    def delete(self, substitution_id: str, owner_id: str) -> bool:
        return self._query(owner_id).filter_by(id=substitution_id).delete() > 0

    def delete_by_game(self, game_id: str, owner_id: str) -> int:
        return self._query(owner_id).filter_by(game_id=game_id).delete()

    def delete_by_owner(self, owner_id: str) -> int:
        return self._query(owner_id).delete()


class GameStatsRepository:

    def __init__(self, lock_rows: bool = False):
        # Row locks are taken on find_by_game_and_player only
        self.lock_rows = lock_rows

    def _to_domain(self, row: GameStatsModel) -> PlayerGameStats:
        history = [GameAction.from_dict(item) for item in (json.loads(row.action_history) if row.action_history else [])]
        return PlayerGameStats(
            id=row.id,
            game_id=row.game_id,
            player_id=row.player_id,
            owner_id=row.owner_id,
            minutes_played=row.minutes_played,
            action_history=history,
            created_at=row.created_at,
            updated_at=row.updated_at,
            version=row.version,
            **{name: getattr(row, name) for name in COUNTER_FIELDS},
        )

    def _query(self, owner_id: str):
        return GameStatsModel.query.filter_by(owner_id=owner_id)

    def find_by_id(self, stats_id: str, owner_id: str) -> Optional[PlayerGameStats]:
        row = self._query(owner_id).filter_by(id=stats_id).first()
        return self._to_domain(row) if row else None

    def find_by_game_and_player(self, game_id: str, player_id: str, owner_id: str) -> Optional[PlayerGameStats]:
        query = self._query(owner_id).filter_by(game_id=game_id, player_id=player_id)
        if self.lock_rows:
            query = query.with_for_update()
        row = query.first()
        return self._to_domain(row) if row else None

    def find_by_game(self, game_id: str, owner_id: str) -> List[PlayerGameStats]:
        rows = self._query(owner_id).filter_by(game_id=game_id).order_by(GameStatsModel.pk).all()
        return [self._to_domain(r) for r in rows]

    def find_by_player(self, player_id: str, owner_id: str) -> List[PlayerGameStats]:
        rows = self._query(owner_id).filter_by(player_id=player_id).order_by(GameStatsModel.pk).all()
        return [self._to_domain(r) for r in rows]

    def save(self, stats: PlayerGameStats) -> PlayerGameStats:
        row = self._query(stats.owner_id).filter_by(id=stats.id).first()
        _check_version(row, stats, 'Game stats')
        if row is None:
            row = GameStatsModel(id=stats.id, game_id=stats.game_id, player_id=stats.player_id,
                                 owner_id=stats.owner_id, created_at=stats.created_at)
            db.session.add(row)

        for name, value in stats.counters().items():
            setattr(row, name, value)
        row.minutes_played = stats.minutes_played
        row.action_history = json.dumps([action.to_dict() for action in stats.action_history])
        row.updated_at = stats.updated_at
        db.session.flush()

        stats.version = row.version
        return stats

    def delete(self, stats_id: str, owner_id: str) -> bool:
        return self._query(owner_id).filter_by(id=stats_id).delete() > 0

    def delete_by_game(self, game_id: str, owner_id: str) -> int:
        return self._query(owner_id).filter_by(game_id=game_id).delete()

    def delete_by_owner(self, owner_id: str) -> int:
        return self._query(owner_id).delete()
