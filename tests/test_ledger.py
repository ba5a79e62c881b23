import threading
from datetime import timedelta

import pytest

from libraryhub.errors import Forbidden, InvalidState, NotFound, Unavailable, ValidationError
from libraryhub.models.borrowing import STATUS_BORROWED, STATUS_OVERDUE, STATUS_RETURNED
from libraryhub.services.ledger_service import LedgerService
from libraryhub.utils.timeutil import utcnow


def test_borrow_decrements_and_records(make_user, make_book, principal_for, copies):
    user = make_user()
    book = make_book(total_copies=2)

    b = LedgerService.borrow(principal_for(user), book.id)

    assert copies(book.id) == 1
    assert b.user_id == user.id
    assert b.book_id == book.id
    assert b.status == STATUS_BORROWED
    assert b.return_date is None
    assert b.due_date > b.borrow_date


def test_borrow_unknown_book(make_user, principal_for):
    with pytest.raises(NotFound):
        LedgerService.borrow(principal_for(make_user()), 9999)


def test_borrow_rejects_past_due_date(make_user, make_book, principal_for, copies):
    book = make_book()
    with pytest.raises(ValidationError):
        LedgerService.borrow(principal_for(make_user()), book.id, due_date=utcnow() - timedelta(days=1))
    assert copies(book.id) == 1


def test_borrow_rejects_loan_longer_than_max(app, make_user, make_book, principal_for):
    book = make_book()
    too_far = utcnow() + timedelta(days=app.config["MAX_LOAN_DAYS"] + 1)
    with pytest.raises(ValidationError):
        LedgerService.borrow(principal_for(make_user()), book.id, due_date=too_far)


def test_three_borrowers_then_unavailable(make_user, make_book, principal_for, copies):
    book = make_book(total_copies=3)
    for _ in range(3):
        LedgerService.borrow(principal_for(make_user()), book.id)

    assert copies(book.id) == 0
    with pytest.raises(Unavailable):
        LedgerService.borrow(principal_for(make_user()), book.id)
    assert copies(book.id) == 0
    assert len(LedgerService.list_for_book(book.id)) == 3


def test_round_trip_restores_copies(make_user, make_book, principal_for, copies):
    user = make_user()
    book = make_book(total_copies=1)

    b = LedgerService.borrow(principal_for(user), book.id)
    assert copies(book.id) == 0

    returned = LedgerService.return_book(principal_for(user), b.id)
    assert copies(book.id) == 1
    assert returned.status == STATUS_RETURNED
    assert returned.return_date is not None


def test_double_return_is_rejected(make_user, make_book, principal_for, copies):
    user = make_user()
    book = make_book(total_copies=2)
    b = LedgerService.borrow(principal_for(user), book.id)

    LedgerService.return_book(principal_for(user), b.id)
    with pytest.raises(InvalidState):
        LedgerService.return_book(principal_for(user), b.id)

    # incremented exactly once, never above total
    assert copies(book.id) == 2


def test_return_unknown_borrowing(make_user, principal_for):
    with pytest.raises(NotFound):
        LedgerService.return_book(principal_for(make_user()), 12345)


def test_return_of_someone_elses_loan(make_user, make_book, principal_for, copies):
    owner, other = make_user(), make_user()
    book = make_book()
    b = LedgerService.borrow(principal_for(owner), book.id)

    with pytest.raises(Forbidden):
        LedgerService.return_book(principal_for(other), b.id)
    assert copies(book.id) == 0


def test_admin_may_return_any_loan(make_user, make_book, principal_for, copies):
    owner, admin = make_user(), make_user(role="admin")
    book = make_book()
    b = LedgerService.borrow(principal_for(owner), book.id)

    LedgerService.return_book(principal_for(admin), b.id)
    assert copies(book.id) == 1


def test_concurrent_borrow_of_last_copy(app, make_user, make_book, principal_for, copies):
    book_id = make_book(total_copies=1).id
    principals = [principal_for(make_user()), principal_for(make_user())]
    barrier = threading.Barrier(len(principals))
    outcomes = []
    lock = threading.Lock()

    def worker(principal):
        with app.app_context():
            barrier.wait()
            try:
                LedgerService.borrow(principal, book_id)
                result = "ok"
            except Unavailable:
                result = "unavailable"
            with lock:
                outcomes.append(result)

    threads = [threading.Thread(target=worker, args=(p,)) for p in principals]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(outcomes) == ["ok", "unavailable"]
    assert copies(book_id) == 0
    assert len(LedgerService.list_for_book(book_id)) == 1


def test_concurrent_double_return(app, make_user, make_book, principal_for, copies):
    user = make_user()
    book_id = make_book(total_copies=1).id
    borrowing_id = LedgerService.borrow(principal_for(user), book_id).id
    principal = principal_for(user)
    barrier = threading.Barrier(2)
    outcomes = []
    lock = threading.Lock()

    def worker():
        with app.app_context():
            barrier.wait()
            try:
                LedgerService.return_book(principal, borrowing_id)
                result = "ok"
            except InvalidState:
                result = "invalid_state"
            with lock:
                outcomes.append(result)

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(outcomes) == ["invalid_state", "ok"]
    assert copies(book_id) == 1


def test_overdue_is_derived_on_read(make_user, make_book, principal_for):
    user = make_user()
    book = make_book()
    then = utcnow() - timedelta(days=20)
    b = LedgerService.borrow(principal_for(user), book.id, due_date=then + timedelta(days=5), now=then)

    assert b.status == STATUS_BORROWED  # stored value, not yet swept
    assert b.current_status() == STATUS_OVERDUE
    assert b.to_dict()["status"] == STATUS_OVERDUE


def test_overdue_loan_can_still_be_returned(make_user, make_book, principal_for, copies):
    user = make_user()
    book = make_book()
    then = utcnow() - timedelta(days=20)
    b = LedgerService.borrow(principal_for(user), book.id, due_date=then + timedelta(days=5), now=then)
    LedgerService.sweep_overdue()

    returned = LedgerService.return_book(principal_for(user), b.id)
    assert returned.current_status() == STATUS_RETURNED
    assert copies(book.id) == 1


def test_sweep_only_moves_borrowed_to_overdue(make_user, make_book, principal_for, copies):
    user = make_user()
    book = make_book(total_copies=3)
    then = utcnow() - timedelta(days=20)
    late = LedgerService.borrow(principal_for(user), book.id, due_date=then + timedelta(days=5), now=then)
    closed = LedgerService.borrow(principal_for(user), book.id, due_date=then + timedelta(days=5), now=then)
    LedgerService.return_book(principal_for(user), closed.id)
    current = LedgerService.borrow(principal_for(user), book.id)

    assert LedgerService.sweep_overdue() == 1
    assert copies(book.id) == 1

    statuses = {b.id: b.status for b in LedgerService.list_for_book(book.id)}
    assert statuses == {late.id: STATUS_OVERDUE, closed.id: STATUS_RETURNED, current.id: STATUS_BORROWED}
    # a second pass finds nothing new
    assert LedgerService.sweep_overdue() == 0


def test_user_listing_is_scoped_and_newest_first(make_user, make_book, principal_for):
    alice, bob = make_user(), make_user()
    book = make_book(total_copies=5)
    base = utcnow() - timedelta(days=3)

    first = LedgerService.borrow(principal_for(alice), book.id, due_date=base + timedelta(days=14), now=base)
    LedgerService.borrow(principal_for(bob), book.id, due_date=base + timedelta(days=14), now=base + timedelta(hours=1))
    last = LedgerService.borrow(
        principal_for(alice), book.id, due_date=base + timedelta(days=14), now=base + timedelta(days=1)
    )

    rows = LedgerService.list_for_user(alice.id)
    assert [r.id for r in rows] == [last.id, first.id]
    assert all(r.user_id == alice.id for r in rows)


def test_list_all_filters_by_derived_status(make_user, make_book, principal_for):
    user = make_user()
    book = make_book(total_copies=3)
    then = utcnow() - timedelta(days=20)
    late = LedgerService.borrow(principal_for(user), book.id, due_date=then + timedelta(days=5), now=then)
    done = LedgerService.borrow(principal_for(user), book.id)
    LedgerService.return_book(principal_for(user), done.id)
    active = LedgerService.borrow(principal_for(user), book.id)

    assert [b.id for b in LedgerService.list_all(status=STATUS_OVERDUE)] == [late.id]
    assert [b.id for b in LedgerService.list_all(status=STATUS_RETURNED)] == [done.id]
    assert [b.id for b in LedgerService.list_all(status=STATUS_BORROWED)] == [active.id]
    assert len(LedgerService.list_all()) == 3


def test_stats(make_user, make_book, principal_for):
    user = make_user()
    book = make_book(total_copies=2)
    make_book(total_copies=4)
    then = utcnow() - timedelta(days=20)
    LedgerService.borrow(principal_for(user), book.id, due_date=then + timedelta(days=5), now=then)
    LedgerService.borrow(principal_for(user), book.id)

    stats = LedgerService.stats()
    assert stats["total_books"] == 2
    assert stats["total_copies"] == 6
    assert stats["available_copies"] == 4
    assert stats["total_users"] == 1
    assert stats["active_borrowings"] == 2
    assert stats["overdue_borrowings"] == 1


def test_listings_load_book_with_the_rows(make_user, make_book, principal_for):
    from sqlalchemy import inspect

    from libraryhub.extensions import db

    user = make_user()
    LedgerService.borrow(principal_for(user), make_book(total_copies=2).id)
    LedgerService.borrow(principal_for(user), make_book().id)
    user_id = user.id
    db.session.expunge_all()

    rows = LedgerService.list_for_user(user_id)
    assert len(rows) == 2
    assert all("book" not in inspect(r).unloaded for r in rows)
