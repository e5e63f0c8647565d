from courtside import db
from datetime import datetime, timezone


def _utcnow():
    return datetime.now(timezone.utc)


class PlayerModel(db.Model):
    __tablename__ = 'player'
    pk = db.Column(db.Integer, primary_key=True)
    id = db.Column(db.String(64), unique=True, nullable=False, index=True)
    owner_id = db.Column(db.String(64), nullable=False, index=True)
    team_id = db.Column(db.String(64), nullable=False, index=True)
    first_name = db.Column(db.String(80), nullable=False)
    last_name = db.Column(db.String(80), nullable=False)
    nickname = db.Column(db.String(80), nullable=True)
    position = db.Column(db.String(32), nullable=True)
    height = db.Column(db.Float, nullable=True)  # cm
    weight = db.Column(db.Float, nullable=True)  # kg
    age = db.Column(db.Integer, nullable=True)
    gender = db.Column(db.String(1), nullable=True)
    grade = db.Column(db.String(32), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)


class GameModel(db.Model):
    __tablename__ = 'game'
    pk = db.Column(db.Integer, primary_key=True)
    id = db.Column(db.String(36), unique=True, nullable=False, index=True)
    owner_id = db.Column(db.String(64), nullable=False, index=True)
    team_id = db.Column(db.String(64), nullable=False, index=True)
    opponent = db.Column(db.String(128), nullable=False)
    game_date = db.Column(db.DateTime(timezone=True), nullable=True)
    location = db.Column(db.String(128), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(32), default='not_started', nullable=False, index=True)  # not_started, in_progress, completed
    quarter = db.Column(db.Integer, default=1, nullable=False)
    roster = db.Column(db.Text, nullable=True)  # JSON-encoded list of player ids
    starting_lineup = db.Column(db.Text, nullable=True)  # JSON-encoded list of player ids
    current_lineup = db.Column(db.Text, nullable=True)  # JSON-encoded list of player ids, slot order matters
    started_at = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    version = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {'version_id_col': version}


class SubstitutionModel(db.Model):
    __tablename__ = 'substitution'
    pk = db.Column(db.Integer, primary_key=True)
    id = db.Column(db.String(36), unique=True, nullable=False, index=True)
    game_id = db.Column(db.String(36), db.ForeignKey('game.id'), nullable=False, index=True)
    owner_id = db.Column(db.String(64), nullable=False, index=True)
    quarter = db.Column(db.Integer, nullable=False)
    player_out = db.Column(db.String(64), nullable=False)
    player_in = db.Column(db.String(64), nullable=False)
    timestamp = db.Column(db.DateTime(timezone=True), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)


class GameStatsModel(db.Model):
    __tablename__ = 'game_stats'
    __table_args__ = (
        db.UniqueConstraint('game_id', 'player_id', name='uq_game_stats_game_player'),
    )
    pk = db.Column(db.Integer, primary_key=True)
    id = db.Column(db.String(36), unique=True, nullable=False, index=True)
    game_id = db.Column(db.String(36), db.ForeignKey('game.id'), nullable=False, index=True)
    player_id = db.Column(db.String(64), nullable=False, index=True)
    owner_id = db.Column(db.String(64), nullable=False, index=True)
    free_throws_made = db.Column(db.Integer, default=0, nullable=False)
    free_throws_attempted = db.Column(db.Integer, default=0, nullable=False)
    two_points_made = db.Column(db.Integer, default=0, nullable=False)
    two_points_attempted = db.Column(db.Integer, default=0, nullable=False)
    three_points_made = db.Column(db.Integer, default=0, nullable=False)
    three_points_attempted = db.Column(db.Integer, default=0, nullable=False)
    offensive_rebounds = db.Column(db.Integer, default=0, nullable=False)
    defensive_rebounds = db.Column(db.Integer, default=0, nullable=False)
    assists = db.Column(db.Integer, default=0, nullable=False)
    steals = db.Column(db.Integer, default=0, nullable=False)
    blocks = db.Column(db.Integer, default=0, nullable=False)
    turnovers = db.Column(db.Integer, default=0, nullable=False)
    personal_fouls = db.Column(db.Integer, default=0, nullable=False)
    minutes_played = db.Column(db.Float, default=0, nullable=False)
    action_history = db.Column(db.Text, nullable=True)  # JSON-encoded stack of {"type", "made"?}
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    version = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {'version_id_col': version}
