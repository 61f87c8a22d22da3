import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, OperationalError

from models import db
from services.errors import SlotUnavailable, TransientFailure

logger = logging.getLogger(__name__)


@contextmanager
def atomic():
    """
    Run the block against the request's session and commit once at the end.
    Any exception rolls everything back. A unique-index violation at flush
    or commit is reported as SlotUnavailable.
    """
    try:
        yield db.session
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.info("Active-slot unique index rejected write: %s", exc.orig)
        raise SlotUnavailable() from exc
    except Exception:
        db.session.rollback()
        raise


def run_with_retry(fn, *args, attempts: int = 3, **kwargs):
    """
    Retry a whole core operation on transient database errors (deadlock,
    database locked). Conflict outcomes are deterministic and never retried.
    """
    last_exc = None
    for attempt in range(1, max(attempts, 1) + 1):
        try:
            return fn(*args, **kwargs)
        except OperationalError as exc:
            db.session.rollback()
            last_exc = exc
            logger.warning("Transient failure in %s (attempt %d/%d): %s",
                           getattr(fn, "__name__", fn), attempt, attempts, exc.orig)
    raise TransientFailure() from last_exc
