import uuid
from datetime import datetime
from typing import Optional

from courtside.errors import ValidationError
from courtside.services.games.lifecycle import utcnow, _iso, _require_text


GENDERS = ('M', 'F')
MIN_AGE = 5
MAX_AGE = 100


class Player:
    """A player registered on one of an owner's teams.

    The team a player belongs to is fixed at creation; game rosters may only
    draw from the players of the game's team.
    """

    EDITABLE_FIELDS = ('first_name', 'last_name', 'nickname', 'position', 'height',
                       'weight', 'age', 'gender', 'grade')

    def __init__(
        self,
        owner_id: str,
        team_id: str,
        first_name: str,
        last_name: str,
        id: Optional[str] = None,
        nickname: Optional[str] = None,
        position: Optional[str] = None,
        height: Optional[float] = None,
        weight: Optional[float] = None,
        age: Optional[int] = None,
        gender: Optional[str] = None,
        grade: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        now = utcnow()
        self.id = id or str(uuid.uuid4())
        self.owner_id = owner_id
        self.team_id = team_id
        self.first_name = first_name
        self.last_name = last_name
        self.nickname = nickname or None
        self.position = position or None
        self.height = height
        self.weight = weight
        self.age = age
        self.gender = gender or None
        self.grade = grade or None
        self.created_at = created_at or now
        self.updated_at = updated_at or now

        self.validate()

    def validate(self) -> None:
        _require_text(self.owner_id, 'Owner ID is required')
        _require_text(self.first_name, 'First name is required')
        _require_text(self.last_name, 'Last name is required')
        _require_text(self.team_id, 'Team ID is required')
        if self.height is not None and self.height <= 0:
            raise ValidationError('Height must be positive')
        if self.weight is not None and self.weight <= 0:
            raise ValidationError('Weight must be positive')
        if self.age is not None and not MIN_AGE <= self.age <= MAX_AGE:
            raise ValidationError(f'Age must be between {MIN_AGE} and {MAX_AGE}')
        if self.gender is not None and self.gender not in GENDERS:
            raise ValidationError('Gender must be M or F')

    @property
    def full_name(self) -> str:
        return f'{self.first_name} {self.last_name}'

    @property
    def display_name(self) -> str:
        if self.nickname:
            return f'{self.nickname} ({self.full_name})'
        return self.full_name

    def update(self, changes: dict) -> None:
        """Apply editable fields; identity and team are ignored. Rolls back on error."""
        editable = {k: v for k, v in (changes or {}).items() if k in self.EDITABLE_FIELDS}
        previous = {name: getattr(self, name) for name in editable}
        for name, value in editable.items():
            setattr(self, name, value)
        try:
            self.validate()
        except ValidationError:
            for name, value in previous.items():
                setattr(self, name, value)
            raise
        self.updated_at = utcnow()

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'team_id': self.team_id,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'full_name': self.full_name,
            'nickname': self.nickname,
            'position': self.position,
            'height': self.height,
            'weight': self.weight,
            'age': self.age,
            'gender': self.gender,
            'grade': self.grade,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }

    def __repr__(self):
        return f'<Player {self.id} {self.full_name!r} team={self.team_id}>'
