from libraryhub.extensions import db
from libraryhub.utils.timeutil import utcnow, isoformat


class Book(db.Model):
    __tablename__ = "books"
    __table_args__ = (
        db.CheckConstraint("total_copies >= 0", name="ck_books_total_copies"),
        db.CheckConstraint(
            "available_copies >= 0 AND available_copies <= total_copies",
            name="ck_books_available_copies",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False, index=True)
    author = db.Column(db.String(200), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    isbn = db.Column(db.String(32), unique=True, nullable=False, index=True)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)
    published_date = db.Column(db.String(32), nullable=True)
    cover_image = db.Column(db.String(500), nullable=True)
    format = db.Column(db.String(50), nullable=True)  # hardcover / paperback / ebook ...

    total_copies = db.Column(db.Integer, nullable=False, default=1)
    available_copies = db.Column(db.Integer, nullable=False, default=1)

    rating = db.Column(db.Integer, nullable=False, default=0)
    rating_count = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    category = db.relationship("Category", backref="books")

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "description": self.description,
            "isbn": self.isbn,
            "category_id": self.category_id,
            "category": self.category.name if self.category else None,
            "published_date": self.published_date,
            "cover_image": self.cover_image,
            "format": self.format,
            "total_copies": self.total_copies,
            "available_copies": self.available_copies,
            "available": self.available_copies > 0,
            "rating": self.rating,
            "rating_count": self.rating_count,
            "created_at": isoformat(self.created_at),
        }
