from datetime import datetime

from libraryhub.extensions import db
from libraryhub.utils.timeutil import utcnow, isoformat

STATUS_BORROWED = "borrowed"
STATUS_RETURNED = "returned"
STATUS_OVERDUE = "overdue"
STATUSES = (STATUS_BORROWED, STATUS_RETURNED, STATUS_OVERDUE)


class Borrowing(db.Model):
    __tablename__ = "borrowings"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id"), nullable=False, index=True)

    borrow_date = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    due_date = db.Column(db.DateTime, nullable=False)
    return_date = db.Column(db.DateTime, nullable=True)

    # stored value; "overdue" is only ever written by the sweep
    status = db.Column(db.String(20), nullable=False, default=STATUS_BORROWED)

    user = db.relationship("User", backref="borrowings")
    book = db.relationship("Book", backref="borrowings")

    def current_status(self, now: datetime = None) -> str:
        """Status as shown to clients.

        An outstanding loan past its due date reads as overdue whether or
        not the sweep has materialised it yet.
        """
        if self.return_date is not None:
            return STATUS_RETURNED
        if self.due_date < (now or utcnow()):
            return STATUS_OVERDUE
        return STATUS_BORROWED

    def to_dict(self, now: datetime = None):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "book_id": self.book_id,
            "book_title": self.book.title if self.book else None,
            "borrow_date": isoformat(self.borrow_date),
            "due_date": isoformat(self.due_date),
            "return_date": isoformat(self.return_date),
            "status": self.current_status(now),
        }
