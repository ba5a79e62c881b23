from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from libraryhub.schemas import BorrowIn, BorrowingFilterIn, parse
from libraryhub.services.ledger_service import LedgerService
from libraryhub.utils.auth import current_principal
from libraryhub.utils.decorators import admin_required
from libraryhub.utils.timeutil import utcnow

borrowing_bp = Blueprint("borrowings", __name__)


def _listing(rows):
    now = utcnow()
    return jsonify({"success": True, "data": [b.to_dict(now) for b in rows]})


@borrowing_bp.post("")
@jwt_required()
def borrow_book():
    payload = parse(BorrowIn, request.get_json(silent=True))
    # the borrower is always the caller, never a user id from the body
    b = LedgerService.borrow(current_principal(), payload.book_id, payload.due_date)
    return jsonify({"success": True, "data": b.to_dict()}), 201


@borrowing_bp.post("/<int:borrowing_id>/return")
@jwt_required()
def return_book(borrowing_id: int):
    b = LedgerService.return_book(current_principal(), borrowing_id)
    return jsonify({"success": True, "data": b.to_dict()})


@borrowing_bp.get("/<int:borrowing_id>")
@jwt_required()
def get_borrowing(borrowing_id: int):
    b = LedgerService.get_borrowing(current_principal(), borrowing_id)
    return jsonify({"success": True, "data": b.to_dict()})


@borrowing_bp.get("/user")
@jwt_required()
def my_borrowings():
    return _listing(LedgerService.list_for_user(current_principal().user_id))


@borrowing_bp.get("/book/<int:book_id>")
@admin_required
def book_borrowings(book_id: int):
    return _listing(LedgerService.list_for_book(book_id))


@borrowing_bp.get("")
@admin_required
def all_borrowings():
    filters = parse(BorrowingFilterIn, request.args.to_dict())
    return _listing(LedgerService.list_all(status=filters.status))


@borrowing_bp.get("/stats")
@admin_required
def stats():
    return jsonify({"success": True, "data": LedgerService.stats()})
