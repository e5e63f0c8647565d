"""Exception hierarchy for the game and stats domain.

Domain objects raise these; the use-case layer catches ``CourtsideError``
and turns the message into a ``{'success': False, 'error': ...}`` result.
Messages are stable because callers match on them.
"""


class CourtsideError(Exception):
    """Base exception for all courtside domain errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(CourtsideError):
    """Raised when an entity would be left in a malformed state."""


class StateError(CourtsideError):
    """Raised for an illegal transition or an unmet precondition."""


class ConcurrencyError(CourtsideError):
    """Raised when saving an entity that changed since it was loaded."""

    def __init__(self, entity_label: str):
        self.entity_label = entity_label
        super().__init__(f"{entity_label} was modified concurrently, retry the operation")
