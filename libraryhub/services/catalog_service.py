from flask import current_app
from sqlalchemy.exc import IntegrityError

from libraryhub.errors import Conflict, InvalidState, NotFound, ValidationError
from libraryhub.extensions import db
from libraryhub.models.book import Book
from libraryhub.models.category import Category
from libraryhub.repositories.book_repo import BookRepo
from libraryhub.repositories.borrowing_repo import BorrowingRepo
from libraryhub.repositories.category_repo import CategoryRepo

_EDITABLE = ("title", "author", "isbn", "description", "category_id", "published_date", "cover_image", "format")
_REQUIRED = ("title", "author", "isbn")


class CatalogService:
    # -----------------------------
    # Categories
    # -----------------------------
    @staticmethod
    def list_categories():
        return CategoryRepo.list_all()

    @staticmethod
    def get_category(category_id: int):
        category = CategoryRepo.get(category_id)
        if not category:
            raise NotFound("Category not found")
        return category

    @staticmethod
    def create_category(name: str):
        if CategoryRepo.get_by_name(name):
            raise Conflict("Category already exists")
        try:
            return CategoryRepo.create(Category(name=name))
        except IntegrityError:
            db.session.rollback()
            raise Conflict("Category already exists")

    # -----------------------------
    # Books
    # -----------------------------
    @staticmethod
    def list_books(category_id=None, available=False, search=None, fmt=None):
        return BookRepo.list_filtered(category_id=category_id, available=available, search=search, fmt=fmt)

    @staticmethod
    def get_book(book_id: int):
        book = BookRepo.get(book_id)
        if not book:
            raise NotFound("Book not found")
        return book

    @staticmethod
    def create_book(data: dict):
        if data.get("category_id") is not None:
            CatalogService.get_category(data["category_id"])

        total = int(data.get("total_copies", 1))
        book = Book(
            title=data["title"],
            author=data["author"],
            isbn=data["isbn"],
            description=data.get("description"),
            category_id=data.get("category_id"),
            published_date=data.get("published_date"),
            cover_image=data.get("cover_image"),
            format=data.get("format"),
            total_copies=total,
            # a new book is never partially borrowed
            available_copies=total,
        )
        try:
            BookRepo.create(book)
        except IntegrityError:
            db.session.rollback()
            raise Conflict("A book with this ISBN already exists")

        current_app.logger.info(f"[catalog] Created book id={book.id} isbn={book.isbn} copies={total}")
        return book

    @staticmethod
    def update_book(book_id: int, data: dict):
        book = CatalogService.get_book(book_id)

        for field in _REQUIRED:
            if field in data and data[field] is None:
                raise ValidationError(details=[{"field": field, "message": "Field may not be null"}])
        if data.get("category_id") is not None:
            CatalogService.get_category(data["category_id"])

        try:
            if data.get("total_copies") is not None and data["total_copies"] != book.total_copies:
                if not BookRepo.resize(book.id, int(data["total_copies"])):
                    raise InvalidState("More copies are on loan than the new total")

            for field in _EDITABLE:
                if field in data:
                    setattr(book, field, data[field])

            BookRepo.update()
        except IntegrityError:
            db.session.rollback()
            raise Conflict("A book with this ISBN already exists")
        except InvalidState:
            db.session.rollback()
            raise

        db.session.refresh(book)
        return book

    @staticmethod
    def delete_book(book_id: int):
        book = CatalogService.get_book(book_id)

        if book.available_copies < book.total_copies:
            raise InvalidState("This book has copies on loan; they must be returned first")
        # borrowing history is append-only and keeps its book reference
        if BorrowingRepo.exists_for_book(book.id):
            raise InvalidState("This book has borrowing history and cannot be deleted")

        BookRepo.delete(book)
        current_app.logger.info(f"[catalog] Deleted book id={book_id}")
