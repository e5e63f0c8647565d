import uuid
from datetime import datetime
from typing import Optional

from courtside.errors import ValidationError
from .lifecycle import FIRST_QUARTER, LAST_QUARTER, Game, utcnow, _iso, _require_text


class Substitution:
    """One player swap, recorded against the quarter it happened in.

    Entries are append-only: every attribute is read-only after creation.
    """

    __slots__ = ('_id', '_game_id', '_owner_id', '_quarter', '_player_out',
                 '_player_in', '_timestamp', '_created_at')

    def __init__(
        self,
        game_id: str,
        owner_id: str,
        quarter: int,
        player_out: str,
        player_in: str,
        id: Optional[str] = None,
        timestamp: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
    ):
        now = utcnow()
        self._id = id or str(uuid.uuid4())
        self._game_id = game_id
        self._owner_id = owner_id
        self._quarter = quarter
        self._player_out = player_out
        self._player_in = player_in
        self._timestamp = timestamp or now
        self._created_at = created_at or now
        self._validate()

    @classmethod
    def for_game(cls, game: Game, player_out: str, player_in: str) -> 'Substitution':
        """Record a swap at the game's current quarter."""
        return cls(
            game_id=game.id,
            owner_id=game.owner_id,
            quarter=game.quarter,
            player_out=player_out,
            player_in=player_in,
        )

    def _validate(self) -> None:
        _require_text(self._game_id, 'Game ID is required')
        _require_text(self._owner_id, 'Owner ID is required')
        if (not isinstance(self._quarter, int) or isinstance(self._quarter, bool)
                or not FIRST_QUARTER <= self._quarter <= LAST_QUARTER):
            raise ValidationError(f'Quarter must be between {FIRST_QUARTER} and {LAST_QUARTER}')
        _require_text(self._player_out, 'Player out is required')
        _require_text(self._player_in, 'Player in is required')
        if self._player_out == self._player_in:
            raise ValidationError('Player out and player in must be different')

    @property
    def id(self) -> str:
        return self._id

    @property
    def game_id(self) -> str:
        return self._game_id

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def quarter(self) -> int:
        return self._quarter

    @property
    def player_out(self) -> str:
        return self._player_out

    @property
    def player_in(self) -> str:
        return self._player_in

    @property
    def timestamp(self) -> datetime:
        return self._timestamp

    @property
    def created_at(self) -> datetime:
        return self._created_at

    def to_dict(self) -> dict:
        return {
            'id': self._id,
            'game_id': self._game_id,
            'quarter': self._quarter,
            'player_out': self._player_out,
            'player_in': self._player_in,
            'timestamp': _iso(self._timestamp),
            'created_at': _iso(self._created_at),
        }

    def __repr__(self):
        return f'<Substitution {self._player_out}->{self._player_in} q={self._quarter} game={self._game_id}>'
