from typing import Iterable

from .ledger import PlayerGameStats, one_decimal, percentage


class PlayerAggregateStats:
    """Career view over a player's ledgers. Computed on demand, never stored."""

    TOTAL_FIELDS = (
        'total_points', 'total_rebounds', 'total_assists',
        'total_steals', 'total_blocks', 'total_turnovers',
    )
    AVERAGE_FIELDS = ('average_points', 'average_rebounds', 'average_assists')
    PERCENTAGE_FIELDS = ('field_goal_percentage', 'free_throw_percentage', 'three_point_percentage')

    def __init__(self, player_id: str, games_played: int = 0, **values):
        self.player_id = player_id
        self.games_played = games_played
        for name in self.TOTAL_FIELDS:
            setattr(self, name, values.get(name, 0))
        for name in self.AVERAGE_FIELDS + self.PERCENTAGE_FIELDS:
            setattr(self, name, values.get(name, 0.0))

    @classmethod
    def empty(cls, player_id: str) -> 'PlayerAggregateStats':
        return cls(player_id)

    def to_dict(self) -> dict:
        data = {'player_id': self.player_id, 'games_played': self.games_played}
        for name in self.TOTAL_FIELDS + self.AVERAGE_FIELDS + self.PERCENTAGE_FIELDS:
            data[name] = getattr(self, name)
        return data


def aggregate_player_stats(player_id: str, ledgers: Iterable[PlayerGameStats]) -> PlayerAggregateStats:
    """Sum one player's ledgers into career totals, averages and percentages.

    Percentages come from the summed made/attempted pairs, not from
    averaging per-game percentages.
    """
    ledgers = list(ledgers)
    if not ledgers:
        return PlayerAggregateStats.empty(player_id)

    games = len(ledgers)
    points = sum(s.total_points for s in ledgers)
    rebounds = sum(s.total_rebounds for s in ledgers)
    assists = sum(s.assists for s in ledgers)

    return PlayerAggregateStats(
        player_id,
        games_played=games,
        total_points=points,
        total_rebounds=rebounds,
        total_assists=assists,
        total_steals=sum(s.steals for s in ledgers),
        total_blocks=sum(s.blocks for s in ledgers),
        total_turnovers=sum(s.turnovers for s in ledgers),
        average_points=one_decimal(points / games),
        average_rebounds=one_decimal(rebounds / games),
        average_assists=one_decimal(assists / games),
        field_goal_percentage=percentage(
            sum(s.field_goals_made for s in ledgers),
            sum(s.field_goals_attempted for s in ledgers),
        ),
        free_throw_percentage=percentage(
            sum(s.free_throws_made for s in ledgers),
            sum(s.free_throws_attempted for s in ledgers),
        ),
        three_point_percentage=percentage(
            sum(s.three_points_made for s in ledgers),
            sum(s.three_points_attempted for s in ledgers),
        ),
    )
