"""Stats domain services: the per-game action ledger and career aggregates."""

from .ledger import (  # noqa: F401
    ACTION_KINDS,
    GameAction,
    PlayerGameStats,
    percentage,
)
from .career import PlayerAggregateStats, aggregate_player_stats  # noqa: F401
