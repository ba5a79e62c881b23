from datetime import datetime, timedelta

from flask import current_app

from libraryhub.errors import Forbidden, InvalidState, NotFound, Unavailable, ValidationError
from libraryhub.extensions import db
from libraryhub.models.borrowing import Borrowing, STATUS_BORROWED, STATUS_OVERDUE
from libraryhub.repositories.book_repo import BookRepo
from libraryhub.repositories.borrowing_repo import BorrowingRepo
from libraryhub.repositories.user_repo import UserRepo
from libraryhub.utils.auth import Principal
from libraryhub.utils.timeutil import utcnow


class LedgerService:
    """Borrowing ledger: copy counts and borrowing records change together.

    ``borrow`` and ``return_book`` each run as one database transaction.
    The copy count is never computed from a value read earlier in Python;
    the bound is re-checked by the conditional UPDATE statements in
    :class:`BookRepo` and :class:`BorrowingRepo`, and a zero row count
    aborts the whole transaction.
    """

    @staticmethod
    def default_due_date(now: datetime = None) -> datetime:
        return (now or utcnow()) + timedelta(days=current_app.config.get("DEFAULT_LOAN_DAYS", 14))

    @staticmethod
    def _check_due_date(due_date: datetime, now: datetime):
        if due_date <= now:
            raise ValidationError(details=[{"field": "due_date", "message": "Due date must be in the future"}])

        max_days = current_app.config.get("MAX_LOAN_DAYS")
        if max_days and due_date - now > timedelta(days=max_days):
            raise ValidationError(details=[
                {"field": "due_date", "message": f"Loans may not exceed {max_days} days"}
            ])

    @staticmethod
    def borrow(principal: Principal, book_id: int, due_date: datetime = None, now: datetime = None):
        now = now or utcnow()
        due_date = due_date or LedgerService.default_due_date(now)
        LedgerService._check_due_date(due_date, now)

        try:
            if not BookRepo.take_copy(book_id):
                # nothing was written; find out why
                if BookRepo.get(book_id) is None:
                    raise NotFound("Book not found")
                raise Unavailable("Book not available for borrowing")

            borrowing = Borrowing(
                user_id=principal.user_id,
                book_id=book_id,
                borrow_date=now,
                due_date=due_date,
                return_date=None,
                status=STATUS_BORROWED,
            )
            BorrowingRepo.add(borrowing)
            db.session.commit()
        except Unavailable:
            db.session.rollback()
            current_app.logger.warning(f"[ledger] borrow rejected: book={book_id} user={principal.user_id} unavailable")
            raise
        except Exception:
            db.session.rollback()
            raise

        current_app.logger.info(
            f"[ledger] borrow id={borrowing.id} book={book_id} user={principal.user_id} due={due_date.isoformat()}"
        )
        return borrowing

    @staticmethod
    def return_book(principal: Principal, borrowing_id: int, now: datetime = None):
        now = now or utcnow()

        try:
            borrowing = BorrowingRepo.get_for_update(borrowing_id)
            if borrowing is None:
                raise NotFound("Borrowing record not found")
            if not principal.is_admin and borrowing.user_id != principal.user_id:
                raise Forbidden("This borrowing belongs to another user")

            book_id = borrowing.book_id
            if not BorrowingRepo.close(borrowing_id, now):
                raise InvalidState("This borrowing has already been returned")
            if not BookRepo.release_copy(book_id):
                # would push available_copies above total_copies
                raise InvalidState("Book copy count is already at its total")

            db.session.commit()
        except InvalidState:
            db.session.rollback()
            current_app.logger.warning(f"[ledger] return rejected: borrowing={borrowing_id} user={principal.user_id}")
            raise
        except Exception:
            db.session.rollback()
            raise

        # commit expired the instance, so this reloads the closed row
        db.session.refresh(borrowing)
        current_app.logger.info(f"[ledger] return id={borrowing_id} book={book_id} user={principal.user_id}")
        return borrowing

    @staticmethod
    def get_borrowing(principal: Principal, borrowing_id: int):
        borrowing = BorrowingRepo.get(borrowing_id)
        if borrowing is None:
            raise NotFound("Borrowing record not found")
        if not principal.is_admin and borrowing.user_id != principal.user_id:
            raise Forbidden("This borrowing belongs to another user")
        return borrowing

    @staticmethod
    def list_for_user(user_id: int):
        return BorrowingRepo.list_by_user(user_id)

    @staticmethod
    def list_for_book(book_id: int):
        if BookRepo.get(book_id) is None:
            raise NotFound("Book not found")
        return BorrowingRepo.list_by_book(book_id)

    @staticmethod
    def list_all(status: str = None, now: datetime = None):
        return BorrowingRepo.list_all(status=status, now=now or utcnow())

    @staticmethod
    def sweep_overdue(now: datetime = None) -> int:
        """Materialise ``borrowed -> overdue`` for loans past their due date.

        Only the status column moves; copy counts are untouched.
        """
        now = now or utcnow()
        try:
            changed = BorrowingRepo.mark_overdue(now)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return changed

    @staticmethod
    def stats(now: datetime = None) -> dict:
        now = now or utcnow()
        total_books, total_copies, available_copies = BookRepo.totals()
        return {
            "total_books": total_books,
            "total_copies": total_copies,
            "available_copies": available_copies,
            "total_users": UserRepo.count(),
            "active_borrowings": BorrowingRepo.count(STATUS_BORROWED, now) + BorrowingRepo.count(STATUS_OVERDUE, now),
            "overdue_borrowings": BorrowingRepo.count(STATUS_OVERDUE, now),
        }
