from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from courtside import db
from courtside.errors import ConcurrencyError, CourtsideError


# Errors a use-case turns into a failure result instead of propagating
TRANSACTION_ERRORS = (CourtsideError, StaleDataError, IntegrityError)


@contextmanager
def unit_of_work():
    """Commit everything done in the block at once, or roll it all back."""
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def _context(context):
    return ' '.join(f'{key}={value}' for key, value in context.items())


def log_event(event, **context):
    current_app.logger.info(f"[{event}] {_context(context)}")


def failure(event, error, **context):
    """Build a failure result from an error or message and log it."""
    if isinstance(error, CourtsideError):
        message = error.message
    elif isinstance(error, (StaleDataError, IntegrityError)):
        message = ConcurrencyError('Record').message
    else:
        message = str(error)
    current_app.logger.warning(f"[{event}-failed] {_context(context)} error={message!r}")
    return {'success': False, 'error': message}
