"""Per-player, per-game action ledger.

Each recorded action bumps its counters and pushes a ``GameAction`` on the
history stack. ``undo_last_action`` pops the top entry and applies the
exact inverse, so the counters always equal a replay of the history.
Minutes played sit outside the history and cannot be undone.
"""

import math
import uuid
from datetime import datetime
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from courtside.errors import StateError, ValidationError
from courtside.services.games.lifecycle import utcnow, _iso, _require_text


FREE_THROW = 'freeThrow'
TWO_POINT = 'twoPoint'
THREE_POINT = 'threePoint'
OFFENSIVE_REBOUND = 'offensiveRebound'
DEFENSIVE_REBOUND = 'defensiveRebound'
ASSIST = 'assist'
STEAL = 'steal'
BLOCK = 'block'
TURNOVER = 'turnover'
PERSONAL_FOUL = 'personalFoul'

# kind -> (attempted counter, made counter)
SHOT_COUNTERS: Dict[str, Tuple[str, str]] = {
    FREE_THROW: ('free_throws_attempted', 'free_throws_made'),
    TWO_POINT: ('two_points_attempted', 'two_points_made'),
    THREE_POINT: ('three_points_attempted', 'three_points_made'),
}

# kind -> counter
EVENT_COUNTERS: Dict[str, str] = {
    OFFENSIVE_REBOUND: 'offensive_rebounds',
    DEFENSIVE_REBOUND: 'defensive_rebounds',
    ASSIST: 'assists',
    STEAL: 'steals',
    BLOCK: 'blocks',
    TURNOVER: 'turnovers',
    PERSONAL_FOUL: 'personal_fouls',
}

ACTION_KINDS = tuple(SHOT_COUNTERS) + tuple(EVENT_COUNTERS)

COUNTER_FIELDS = tuple(
    name for pair in SHOT_COUNTERS.values() for name in pair
) + tuple(EVENT_COUNTERS.values())


def percentage(made: int, attempted: int) -> float:
    """Success rate in percent with one decimal, halves rounded up."""
    if attempted <= 0:
        return 0.0
    return math.floor(made / attempted * 1000 + 0.5) / 10


def one_decimal(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


class GameAction(NamedTuple):
    """A history entry. ``made`` is only set for shot attempts."""

    kind: str
    made: Optional[bool] = None

    def to_dict(self) -> dict:
        if self.made is None:
            return {'type': self.kind}
        return {'type': self.kind, 'made': self.made}

    @classmethod
    def from_dict(cls, data: dict) -> 'GameAction':
        kind = data.get('type')
        if kind not in ACTION_KINDS:
            raise ValidationError(f'Invalid action type: {kind}')
        if kind in SHOT_COUNTERS:
            return cls(kind, bool(data.get('made', False)))
        return cls(kind)


class PlayerGameStats:
    """Counters and undo stack for one player in one game."""

    def __init__(
        self,
        game_id: str,
        player_id: str,
        owner_id: str,
        id: Optional[str] = None,
        minutes_played: float = 0,
        action_history: Optional[Iterable[GameAction]] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        version: Optional[int] = None,
        **counters: int,
    ):
        unknown = set(counters) - set(COUNTER_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown stat counter(s): {', '.join(sorted(unknown))}")

        now = utcnow()
        self.id = id or str(uuid.uuid4())
        self.game_id = game_id
        self.player_id = player_id
        self.owner_id = owner_id
        for name in COUNTER_FIELDS:
            setattr(self, name, int(counters.get(name) or 0))
        self.minutes_played = minutes_played or 0
        self.action_history: List[GameAction] = list(action_history or [])
        self.created_at = created_at or now
        self.updated_at = updated_at or now
        self.version = version

        self.validate()

    @classmethod
    def replay(cls, game_id: str, player_id: str, owner_id: str,
               history: Iterable[GameAction], **kwargs) -> 'PlayerGameStats':
        """Rebuild a ledger from scratch by recording ``history`` in order."""
        stats = cls(game_id, player_id, owner_id, **kwargs)
        for action in history:
            stats.record_action(action.kind, action.made)
        return stats

    def counters(self) -> Dict[str, int]:
        return {name: getattr(self, name) for name in COUNTER_FIELDS}

    def validate(self) -> None:
        _require_text(self.game_id, 'Game ID is required')
        _require_text(self.player_id, 'Player ID is required')
        _require_text(self.owner_id, 'Owner ID is required')
        for attempted, made in SHOT_COUNTERS.values():
            if getattr(self, made) > getattr(self, attempted):
                raise ValidationError('Made shots cannot exceed attempts')
        if any(value < 0 for value in self.counters().values()):
            raise ValidationError('Stat counters cannot be negative')
        if self.minutes_played < 0:
            raise ValidationError('Minutes must be a non-negative number')
        if self.counters() != _replayed_counters(self.action_history):
            raise ValidationError('Counters do not match action history')

    def is_valid(self) -> bool:
        try:
            self.validate()
        except ValidationError:
            return False
        return True

    # Recording

    def _push(self, action: GameAction) -> None:
        self.action_history.append(action)
        self.updated_at = utcnow()

    def _record_shot(self, kind: str, made: bool) -> None:
        attempted, made_counter = SHOT_COUNTERS[kind]
        setattr(self, attempted, getattr(self, attempted) + 1)
        if made:
            setattr(self, made_counter, getattr(self, made_counter) + 1)
        self._push(GameAction(kind, bool(made)))

    def _record_event(self, kind: str) -> None:
        counter = EVENT_COUNTERS[kind]
        setattr(self, counter, getattr(self, counter) + 1)
        self._push(GameAction(kind))

    def record_free_throw(self, made: bool) -> None:
        self._record_shot(FREE_THROW, made)

    def record_two_point(self, made: bool) -> None:
        self._record_shot(TWO_POINT, made)

    def record_three_point(self, made: bool) -> None:
        self._record_shot(THREE_POINT, made)

    def record_offensive_rebound(self) -> None:
        self._record_event(OFFENSIVE_REBOUND)

    def record_defensive_rebound(self) -> None:
        self._record_event(DEFENSIVE_REBOUND)

    def record_assist(self) -> None:
        self._record_event(ASSIST)

    def record_steal(self) -> None:
        self._record_event(STEAL)

    def record_block(self) -> None:
        self._record_event(BLOCK)

    def record_turnover(self) -> None:
        self._record_event(TURNOVER)

    def record_personal_foul(self) -> None:
        self._record_event(PERSONAL_FOUL)

    def record_action(self, kind: str, made: Optional[bool] = None) -> None:
        """Record any action by kind; ``made`` is ignored for non-shots."""
        if kind in SHOT_COUNTERS:
            self._record_shot(kind, bool(made))
        elif kind in EVENT_COUNTERS:
            self._record_event(kind)
        else:
            raise ValidationError(f'Invalid action type: {kind}')

    def add_minutes(self, minutes: float) -> None:
        if (not isinstance(minutes, (int, float)) or isinstance(minutes, bool)
                or not math.isfinite(minutes) or minutes < 0):
            raise ValidationError('Minutes must be a non-negative number')
        self.minutes_played += minutes
        self.updated_at = utcnow()

    def undo_last_action(self) -> GameAction:
        """Pop the latest action and reverse its counters. Returns the action."""
        if not self.action_history:
            raise StateError('No actions to undo')

        action = self.action_history.pop()
        if action.kind in SHOT_COUNTERS:
            attempted, made_counter = SHOT_COUNTERS[action.kind]
            setattr(self, attempted, getattr(self, attempted) - 1)
            if action.made:
                setattr(self, made_counter, getattr(self, made_counter) - 1)
        else:
            counter = EVENT_COUNTERS[action.kind]
            setattr(self, counter, getattr(self, counter) - 1)
        self.updated_at = utcnow()
        return action

    # Derived

    @property
    def total_points(self) -> int:
        return self.free_throws_made + self.two_points_made * 2 + self.three_points_made * 3

    @property
    def total_rebounds(self) -> int:
        return self.offensive_rebounds + self.defensive_rebounds

    @property
    def field_goals_made(self) -> int:
        return self.two_points_made + self.three_points_made

    @property
    def field_goals_attempted(self) -> int:
        return self.two_points_attempted + self.three_points_attempted

    @property
    def field_goal_percentage(self) -> float:
        return percentage(self.field_goals_made, self.field_goals_attempted)

    @property
    def free_throw_percentage(self) -> float:
        return percentage(self.free_throws_made, self.free_throws_attempted)

    @property
    def three_point_percentage(self) -> float:
        # Three-point attempts only, unlike field_goal_percentage.
        return percentage(self.three_points_made, self.three_points_attempted)

    def to_dict(self) -> dict:
        data = {
            'id': self.id,
            'game_id': self.game_id,
            'player_id': self.player_id,
        }
        data.update(self.counters())
        data.update({
            'minutes_played': self.minutes_played,
            'total_points': self.total_points,
            'total_rebounds': self.total_rebounds,
            'field_goal_percentage': self.field_goal_percentage,
            'free_throw_percentage': self.free_throw_percentage,
            'three_point_percentage': self.three_point_percentage,
            'actions_recorded': len(self.action_history),
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        })
        return data

    def __repr__(self):
        return f'<PlayerGameStats player={self.player_id} game={self.game_id} pts={self.total_points}>'


def _replayed_counters(history: Iterable[GameAction]) -> Dict[str, int]:
    totals = dict.fromkeys(COUNTER_FIELDS, 0)
    for action in history:
        if action.kind in SHOT_COUNTERS:
            attempted, made = SHOT_COUNTERS[action.kind]
            totals[attempted] += 1
            if action.made:
                totals[made] += 1
        elif action.kind in EVENT_COUNTERS:
            totals[EVENT_COUNTERS[action.kind]] += 1
        else:
            raise ValidationError(f'Invalid action type: {action.kind}')
    return totals
