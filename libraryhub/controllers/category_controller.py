from flask import Blueprint, request, jsonify

from libraryhub.schemas import CategoryIn, parse
from libraryhub.services.catalog_service import CatalogService
from libraryhub.utils.decorators import admin_required

category_bp = Blueprint("categories", __name__)


@category_bp.get("")
def list_categories():
    return jsonify({"success": True, "data": [c.to_dict() for c in CatalogService.list_categories()]})


@category_bp.get("/<int:category_id>")
def get_category(category_id: int):
    return jsonify({"success": True, "data": CatalogService.get_category(category_id).to_dict()})


@category_bp.post("")
@admin_required
def create_category():
    payload = parse(CategoryIn, request.get_json(silent=True))
    category = CatalogService.create_category(payload.name)
    return jsonify({"success": True, "data": category.to_dict()}), 201
