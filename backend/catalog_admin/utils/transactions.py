import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

log = logging.getLogger(__name__)

_DEPTH_KEY = "atomic_depth"


@contextmanager
def atomic(session: Session) -> Iterator[Session]:
    """
    Run the enclosed block as one unit of work on ``session``.

    The outermost block commits when it exits cleanly and rolls back when
    anything is raised; the exception propagates untouched. A block opened
    inside another ``atomic`` block becomes a SAVEPOINT (begin_nested), so
    only the outer block decides whether the work is committed.

    Usage:
        with atomic(db):
            db.add(obj)
    """
    depth = session.info.get(_DEPTH_KEY, 0)
    if depth:
        session.info[_DEPTH_KEY] = depth + 1
        try:
            with session.begin_nested():
                yield session
        finally:
            session.info[_DEPTH_KEY] = depth
        return

    session.info[_DEPTH_KEY] = 1
    try:
        # an earlier read (e.g. request validation) may have autobegun the
        # session, in which case session.begin() would refuse to start
        scope = _autobegun(session) if session.in_transaction() else session.begin()
        with scope:
            yield session
    except BaseException as e:
        log.warning("Rolled back transaction after %s", type(e).__name__)
        raise
    finally:
        session.info[_DEPTH_KEY] = 0


@contextmanager
def _autobegun(session: Session) -> Iterator[Session]:
    """Finish the transaction the session already started implicitly."""
    try:
        yield session
        session.commit()
    except BaseException:
        session.rollback()
        raise
