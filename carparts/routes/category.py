# carparts/routes/category.py
from flask import Blueprint, request, jsonify

from carparts.db.session import get_session
from carparts.services.category_service import CategoryService
from carparts.schemas.requests import parse_body, CategoryCreateRequest, CategoryUpdateRequest
from carparts.schemas.dto.category_dto import CategoryDTO
from carparts.routes.guards import login_required, current_user

category_bp = Blueprint('category', __name__, url_prefix='/categories')


@category_bp.route('', methods=['GET'])
@login_required
def list_categories():
    db = get_session()
    try:
        categories = CategoryService(db).list_categories(user_id=current_user().id)
        return jsonify([CategoryDTO.from_domain_model(c).to_json() for c in categories])
    finally:
        db.close()


@category_bp.route('/<category_id>', methods=['GET'])
@login_required
def get_category(category_id):
    db = get_session()
    try:
        category = CategoryService(db).get_category(user_id=current_user().id, category_id=category_id)
        return jsonify(CategoryDTO.from_domain_model(category).to_json())
    finally:
        db.close()


@category_bp.route('', methods=['POST'])
@login_required
def create_category():
    body = parse_body(CategoryCreateRequest, request.get_json(silent=True))

    db = get_session()
    try:
        category = CategoryService(db).create_category(
            user_id=current_user().id,
            name=body.name,
            description=body.description,
        )
        db.commit()
        return jsonify(CategoryDTO.from_domain_model(category).to_json()), 201
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@category_bp.route('/<category_id>', methods=['PUT'])
@login_required
def update_category(category_id):
    body = parse_body(CategoryUpdateRequest, request.get_json(silent=True))

    db = get_session()
    try:
        category = CategoryService(db).update_category(
            user_id=current_user().id,
            category_id=category_id,
            updates=body.model_dump(exclude_unset=True),
        )
        db.commit()
        return jsonify(CategoryDTO.from_domain_model(category).to_json())
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@category_bp.route('/<category_id>', methods=['DELETE'])
@login_required
def delete_category(category_id):
    """Parts referencing the category keep a dangling category id."""
    db = get_session()
    try:
        CategoryService(db).delete_category(user_id=current_user().id, category_id=category_id)
        db.commit()
        return jsonify({"message": "Category removed"})
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
