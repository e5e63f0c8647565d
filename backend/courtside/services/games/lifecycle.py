"""Game lifecycle: roster, lineups, status and quarter transitions.

States: not_started -> in_progress -> completed. ``start`` opens the game,
``substitute_player`` and ``next_quarter`` loop on in_progress, ``complete``
closes it. Completed is terminal.

Every guarded mutator either applies fully or leaves the game untouched.
"""

import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from courtside.errors import StateError, ValidationError


NOT_STARTED = 'not_started'
IN_PROGRESS = 'in_progress'
COMPLETED = 'completed'
GAME_STATUSES = (NOT_STARTED, IN_PROGRESS, COMPLETED)

FIRST_QUARTER = 1
LAST_QUARTER = 4
LINEUP_SIZE = 5
MIN_ROSTER_SIZE = 5
MAX_ROSTER_SIZE = 15


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value is not None else None


def _require_text(value, message: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message)


def _check_player_ids(ids: List[str]) -> None:
    if any(not isinstance(pid, str) or not pid.strip() for pid in ids):
        raise ValidationError('Player IDs must be non-empty strings')


def _check_roster(roster: List[str]) -> None:
    _check_player_ids(roster)
    if len(roster) < MIN_ROSTER_SIZE:
        raise ValidationError(f'At least {MIN_ROSTER_SIZE} players must be selected for the roster')
    if len(roster) > MAX_ROSTER_SIZE:
        raise ValidationError(f'A roster cannot exceed {MAX_ROSTER_SIZE} players')
    if len(set(roster)) != len(roster):
        raise ValidationError('Roster contains duplicate players')


def _check_starting_lineup(lineup: List[str], roster: List[str]) -> None:
    _check_player_ids(lineup)
    if len(lineup) != LINEUP_SIZE:
        raise ValidationError(f'Starting lineup must contain exactly {LINEUP_SIZE} players')
    if len(set(lineup)) != len(lineup):
        raise ValidationError('Starting lineup contains duplicate players')
    if any(pid not in roster for pid in lineup):
        raise ValidationError('Starters must be part of the roster')


def _check_current_lineup(lineup: List[str], roster: List[str]) -> None:
    if len(lineup) != LINEUP_SIZE:
        raise ValidationError(
            f'Current lineup must contain exactly {LINEUP_SIZE} players once the game has started'
        )
    if len(set(lineup)) != len(lineup):
        raise ValidationError('Current lineup contains duplicate players')
    if any(pid not in roster for pid in lineup):
        raise ValidationError('Players on the court must be part of the roster')


_UNSET = object()


class GamePatch:
    """Fields a caller may change on an existing game.

    Only opponent, game_date, location and notes are patchable. Identity,
    ownership, team and the lifecycle timestamps cannot be expressed here.
    """

    FIELDS = ('opponent', 'game_date', 'location', 'notes')

    def __init__(self, opponent=_UNSET, game_date=_UNSET, location=_UNSET, notes=_UNSET):
        self._changes = {}
        for name, value in (('opponent', opponent), ('game_date', game_date),
                            ('location', location), ('notes', notes)):
            if value is not _UNSET:
                self._changes[name] = value

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'GamePatch':
        """Build a patch from loose input, dropping any non-patchable key."""
        return cls(**{k: v for k, v in (data or {}).items() if k in cls.FIELDS})

    def items(self):
        return self._changes.items()

    def __bool__(self):
        return bool(self._changes)

    def __repr__(self):
        return f'GamePatch({self._changes!r})'


class Game:
    """A single game owned by one user, from roster setup to final whistle."""

    def __init__(
        self,
        owner_id: str,
        team_id: str,
        opponent: str,
        id: Optional[str] = None,
        game_date=None,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        status: str = NOT_STARTED,
        quarter: int = FIRST_QUARTER,
        roster: Optional[Iterable[str]] = None,
        starting_lineup: Optional[Iterable[str]] = None,
        current_lineup: Optional[Iterable[str]] = None,
        started_at: Optional[datetime] = None,
        completed_at: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        version: Optional[int] = None,
    ):
        now = utcnow()
        self.id = id or str(uuid.uuid4())
        self.owner_id = owner_id
        self.team_id = team_id
        self.opponent = opponent
        self.game_date = game_date
        self.location = location or None
        self.notes = notes or None
        self.status = status or NOT_STARTED
        self.quarter = quarter
        self.roster = list(roster or [])
        self.starting_lineup = list(starting_lineup or [])
        self.current_lineup = list(current_lineup or [])
        self.started_at = started_at
        self.completed_at = completed_at
        self.created_at = created_at or now
        self.updated_at = updated_at or now
        # Persistence version this instance was loaded at; None until first save.
        self.version = version

        self.validate()

    def validate(self) -> None:
        _require_text(self.owner_id, 'Owner ID is required')
        _require_text(self.team_id, 'Team ID is required')
        _require_text(self.opponent, 'Opponent is required')
        if self.status not in GAME_STATUSES:
            raise ValidationError('Invalid game status')
        if (not isinstance(self.quarter, int) or isinstance(self.quarter, bool)
                or not FIRST_QUARTER <= self.quarter <= LAST_QUARTER):
            raise ValidationError(f'Quarter must be between {FIRST_QUARTER} and {LAST_QUARTER}')
        if self.game_date is not None and not isinstance(self.game_date, datetime):
            raise ValidationError('Game date must be a valid date')
        if self.roster:
            _check_roster(self.roster)
        if self.starting_lineup:
            _check_starting_lineup(self.starting_lineup, self.roster)
        if self.current_lineup or self.status != NOT_STARTED:
            _check_current_lineup(self.current_lineup, self.roster)

    def is_valid(self) -> bool:
        try:
            self.validate()
        except ValidationError:
            return False
        return True

    def is_in_progress(self) -> bool:
        return self.status == IN_PROGRESS

    def is_completed(self) -> bool:
        return self.status == COMPLETED

    def can_start(self) -> bool:
        return len(self.roster) >= MIN_ROSTER_SIZE and len(self.starting_lineup) == LINEUP_SIZE

    def _touch(self) -> None:
        self.updated_at = utcnow()

    # Pre-game setup

    def set_roster(self, player_ids: Iterable[str], team_player_ids: Optional[Iterable[str]] = None) -> None:
        """Replace the roster. Starters no longer on it reset both lineups.

        When ``team_player_ids`` is given, every rostered id must be one of them.
        """
        if self.status != NOT_STARTED:
            raise StateError('Cannot modify roster of a started game')
        roster = list(player_ids)
        if team_player_ids is not None:
            eligible = set(team_player_ids)
            if any(pid not in eligible for pid in roster):
                raise ValidationError('Some players do not belong to this team')
        _check_roster(roster)

        self.roster = roster
        if any(pid not in roster for pid in self.starting_lineup):
            self.starting_lineup = []
            self.current_lineup = []
        self._touch()

    def set_starting_lineup(self, player_ids: Iterable[str]) -> None:
        if self.status != NOT_STARTED:
            raise StateError('Cannot modify lineup of a started game')
        if not self.roster:
            raise StateError('Roster must be set before defining starting lineup')
        lineup = list(player_ids)
        _check_starting_lineup(lineup, self.roster)

        self.starting_lineup = lineup
        self.current_lineup = list(lineup)
        self._touch()

    # Transitions

    def start(self) -> None:
        # Status check must precede the readiness check
        if self.status != NOT_STARTED:
            raise StateError('Game is already in progress or completed')
        if not self.can_start():
            raise StateError('Roster and starting lineup must be set before starting the game')

        now = utcnow()
        self.status = IN_PROGRESS
        self.quarter = FIRST_QUARTER
        self.started_at = now
        self.updated_at = now

    def complete(self) -> None:
        if self.status != IN_PROGRESS:
            raise StateError('Game must be in progress to complete')

        now = utcnow()
        self.status = COMPLETED
        self.completed_at = now
        self.updated_at = now

    def next_quarter(self) -> None:
        if self.status != IN_PROGRESS:
            raise StateError('Match must be in progress')
        if self.quarter >= LAST_QUARTER:
            raise StateError('Match is already at the last quarter')

        self.quarter += 1
        self._touch()

    def substitute_player(self, player_out: str, player_in: str) -> int:
        """Swap ``player_out`` for ``player_in`` in the same lineup slot.

        Returns the slot index so callers can report which position changed.
        """
        if self.status != IN_PROGRESS:
            raise StateError('Match must be in progress')
        if player_out not in self.current_lineup:
            raise StateError('Player going out must be on the court')
        if player_in not in self.roster:
            raise StateError('Player coming in must be part of the roster')
        if player_in in self.current_lineup:
            raise StateError('Player coming in is already on the court')

        slot = self.current_lineup.index(player_out)
        self.current_lineup[slot] = player_in
        self._touch()
        return slot

    # Metadata

    def update(self, patch: GamePatch) -> None:
        """Merge whitelisted metadata and re-validate.

        On a validation failure every patched field is restored before the
        error propagates.
        """
        previous = {name: getattr(self, name) for name, _ in patch.items()}
        for name, value in patch.items():
            setattr(self, name, value)
        try:
            self.validate()
        except ValidationError:
            for name, value in previous.items():
                setattr(self, name, value)
            raise
        self._touch()

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'owner_id': self.owner_id,
            'team_id': self.team_id,
            'opponent': self.opponent,
            'game_date': _iso(self.game_date),
            'location': self.location,
            'notes': self.notes,
            'status': self.status,
            'quarter': self.quarter,
            'roster': list(self.roster),
            'starting_lineup': list(self.starting_lineup),
            'current_lineup': list(self.current_lineup),
            'started_at': _iso(self.started_at),
            'completed_at': _iso(self.completed_at),
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }

    def __repr__(self):
        return f'<Game {self.id} vs {self.opponent!r} status={self.status} q={self.quarter}>'
