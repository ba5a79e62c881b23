from flask import Blueprint, request, jsonify

from libraryhub.schemas import BookCreateIn, BookFilterIn, BookUpdateIn, parse
from libraryhub.services.catalog_service import CatalogService
from libraryhub.utils.decorators import admin_required

book_bp = Blueprint("books", __name__)


@book_bp.get("")
def list_books():
    filters = parse(BookFilterIn, request.args.to_dict())
    books = CatalogService.list_books(
        category_id=filters.category_id,
        available=filters.available,
        search=filters.search or None,
        fmt=filters.format or None,
    )
    return jsonify({"success": True, "data": [b.to_dict() for b in books]})


@book_bp.get("/<int:book_id>")
def get_book(book_id: int):
    return jsonify({"success": True, "data": CatalogService.get_book(book_id).to_dict()})


@book_bp.post("")
@admin_required
def create_book():
    payload = parse(BookCreateIn, request.get_json(silent=True))
    book = CatalogService.create_book(payload.model_dump())
    return jsonify({"success": True, "data": book.to_dict()}), 201


@book_bp.patch("/<int:book_id>")
@admin_required
def update_book(book_id: int):
    payload = parse(BookUpdateIn, request.get_json(silent=True))
    book = CatalogService.update_book(book_id, payload.model_dump(exclude_unset=True))
    return jsonify({"success": True, "data": book.to_dict()})


@book_bp.delete("/<int:book_id>")
@admin_required
def delete_book(book_id: int):
    CatalogService.delete_book(book_id)
    return "", 204
