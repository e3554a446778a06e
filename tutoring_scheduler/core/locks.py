from __future__ import annotations

from contextlib import contextmanager
from datetime import date
import logging
import threading
from typing import Iterable, Iterator

from sqlalchemy import text
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

# key -> [lock, number of callers holding or waiting on it]
_LOCKS: dict[tuple[str, int, int], list] = {}
_LOCKS_GUARD = threading.Lock()


def _checkout(key: tuple[str, int, int]) -> threading.Lock:
    with _LOCKS_GUARD:
        entry = _LOCKS.get(key)
        if entry is None:
            entry = _LOCKS[key] = [threading.Lock(), 0]
        entry[1] += 1
        return entry[0]


def _checkin(key: tuple[str, int, int]) -> None:
    with _LOCKS_GUARD:
        entry = _LOCKS[key]
        entry[1] -= 1
        if entry[1] == 0:
            del _LOCKS[key]


def _advisory_key(kind: str, entity_id: int) -> int:
    # students are negated so they never collide with a teacher id
    return entity_id if kind == "teacher" else -entity_id


@contextmanager
def teacher_day_lock(
    db: Session,
    teacher_id: int,
    dates: Iterable[date],
    student_ids: Iterable[int] = (),
) -> Iterator[None]:
    """
    Serialize conflict-check-then-write per (teacher, date), and per
    (student, date) for every id in ``student_ids``.

    Keys are taken in sorted order so a monthly batch and a single booking
    on one of its dates cannot deadlock. On PostgreSQL a transaction-scoped
    advisory lock also serializes separate worker processes; it is released
    by the caller's commit or rollback.
    """
    ordinals = {d.toordinal() for d in dates}
    keys = {("teacher", int(teacher_id), day) for day in ordinals}
    keys.update(("student", int(sid), day) for sid in student_ids for day in ordinals)
    keys = sorted(keys)

    checked_out: list[tuple[str, int, int]] = []
    held: list[threading.Lock] = []
    try:
        for key in keys:
            lock = _checkout(key)
            checked_out.append(key)
            lock.acquire()
            held.append(lock)
        if db.get_bind().dialect.name == "postgresql":
            for kind, entity_id, day in keys:
                db.execute(
                    text("SELECT pg_advisory_xact_lock(:entity_key, :day_key)"),
                    {"entity_key": _advisory_key(kind, entity_id), "day_key": day},
                )
        logger.debug("Acquired %d booking lock(s) for teacher %s", len(keys), teacher_id)
        yield
    finally:
        for lock in reversed(held):
            lock.release()
        for key in checked_out:
            _checkin(key)
