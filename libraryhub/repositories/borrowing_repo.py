from datetime import datetime

from sqlalchemy import update
from sqlalchemy.orm import joinedload

from libraryhub.models.borrowing import Borrowing, STATUS_BORROWED, STATUS_OVERDUE, STATUS_RETURNED
from libraryhub.extensions import db


def _newest_first(q):
    # to_dict reads book.title for every row
    return q.options(joinedload(Borrowing.book)).order_by(Borrowing.borrow_date.desc(), Borrowing.id.desc())


def _status_filter(q, status: str, now: datetime):
    # mirrors Borrowing.current_status so listings agree with what each row reports
    if status == STATUS_RETURNED:
        return q.filter(Borrowing.return_date.isnot(None))
    if status == STATUS_OVERDUE:
        return q.filter(Borrowing.return_date.is_(None), Borrowing.due_date < now)
    if status == STATUS_BORROWED:
        return q.filter(Borrowing.return_date.is_(None), Borrowing.due_date >= now)
    return q


class BorrowingRepo:
    @staticmethod
    def get(borrowing_id: int):
        return db.session.get(Borrowing, borrowing_id)

    @staticmethod
    def get_for_update(borrowing_id: int):
        # FOR UPDATE is dropped by backends without row locks (sqlite)
        return Borrowing.query.filter_by(id=borrowing_id).with_for_update().first()

    @staticmethod
    def list_by_user(user_id: int):
        return _newest_first(Borrowing.query.filter_by(user_id=user_id)).all()

    @staticmethod
    def list_by_book(book_id: int):
        return _newest_first(Borrowing.query.filter_by(book_id=book_id)).all()

    @staticmethod
    def list_all(status: str = None, now: datetime = None):
        q = Borrowing.query
        if status:
            q = _status_filter(q, status, now)
        return _newest_first(q).all()

    @staticmethod
    def count(status: str = None, now: datetime = None) -> int:
        q = Borrowing.query
        if status:
            q = _status_filter(q, status, now)
        return q.count()

    @staticmethod
    def exists_for_book(book_id: int) -> bool:
        return db.session.query(Borrowing.query.filter_by(book_id=book_id).exists()).scalar()

    @staticmethod
    def add(borrowing: Borrowing):
        db.session.add(borrowing)
        db.session.flush()
        return borrowing

    @staticmethod
    def close(borrowing_id: int, now: datetime) -> bool:
        """Mark an outstanding loan returned; False when it was already closed."""
        result = db.session.execute(
            update(Borrowing)
            .where(Borrowing.id == borrowing_id, Borrowing.return_date.is_(None))
            .values(return_date=now, status=STATUS_RETURNED)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def mark_overdue(now: datetime) -> int:
        result = db.session.execute(
            update(Borrowing)
            .where(
                Borrowing.status == STATUS_BORROWED,
                Borrowing.return_date.is_(None),
                Borrowing.due_date < now,
            )
            .values(status=STATUS_OVERDUE)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    @staticmethod
    def commit():
        db.session.commit()
