"""Game domain services: lifecycle and substitutions.

This package contains pure domain logic that should be imported by the
use-case layer, keeping persistence concerns separated from the game's
state machine.
"""

from .lifecycle import (  # noqa: F401
    COMPLETED,
    GAME_STATUSES,
    IN_PROGRESS,
    NOT_STARTED,
    Game,
    GamePatch,
)
from .substitutions import Substitution  # noqa: F401
