from sqlalchemy import func, or_, update

from libraryhub.models.book import Book
from libraryhub.extensions import db


class BookRepo:
    @staticmethod
    def list_filtered(category_id: int = None, available: bool = False, search: str = None, fmt: str = None):
        q = Book.query
        if category_id is not None:
            q = q.filter(Book.category_id == category_id)
        if available:
            q = q.filter(Book.available_copies > 0)
        if search:
            pattern = f"%{search.lower()}%"
            q = q.filter(or_(func.lower(Book.title).like(pattern), func.lower(Book.author).like(pattern)))
        if fmt:
            q = q.filter(func.lower(Book.format) == fmt.lower())
        return q.order_by(Book.title.asc(), Book.id.asc()).all()

    @staticmethod
    def get(book_id: int):
        return db.session.get(Book, book_id)

    @staticmethod
    def create(book: Book):
        db.session.add(book)
        db.session.commit()
        return book

    @staticmethod
    def update():
        db.session.commit()

    @staticmethod
    def delete(book: Book):
        db.session.delete(book)
        db.session.commit()

    # Copy-count mutations below never commit: the ledger owns the transaction.
    # Each one re-checks the bound inside the UPDATE itself and reports whether a row changed.

    @staticmethod
    def take_copy(book_id: int) -> bool:
        result = db.session.execute(
            update(Book)
            .where(Book.id == book_id, Book.available_copies >= 1)
            .values(available_copies=Book.available_copies - 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def release_copy(book_id: int) -> bool:
        result = db.session.execute(
            update(Book)
            .where(Book.id == book_id, Book.available_copies < Book.total_copies)
            .values(available_copies=Book.available_copies + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def resize(book_id: int, new_total: int) -> bool:
        """Set total_copies and shift available_copies by the same delta.

        Fails (returns False) when more copies are on loan than the new total.
        """
        delta = new_total - Book.total_copies
        result = db.session.execute(
            update(Book)
            .where(Book.id == book_id, Book.available_copies + delta >= 0)
            .values(total_copies=new_total, available_copies=Book.available_copies + delta)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def totals():
        row = db.session.query(
            func.count(Book.id),
            func.coalesce(func.sum(Book.total_copies), 0),
            func.coalesce(func.sum(Book.available_copies), 0),
        ).one()
        return int(row[0]), int(row[1]), int(row[2])
