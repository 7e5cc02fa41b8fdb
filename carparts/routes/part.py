# carparts/routes/part.py
from typing import List

from flask import Blueprint, request, jsonify

from carparts.db.session import get_session
from carparts.models.part import Part
from carparts.services.part_service import PartService
from carparts.schemas.requests import parse_body, PartCreateRequest, PartUpdateRequest
from carparts.schemas.dto.part_dto import PartDTO
from carparts.routes.guards import login_required, current_user

part_bp = Blueprint('part', __name__, url_prefix='/parts')


def _dump_parts(part_service: PartService, user_id: str, parts: List[Part]) -> list:
    categories = part_service.resolve_categories(user_id=user_id, parts=parts)
    return [
        PartDTO.from_domain_model(p, categories.get(p.category_id)).to_json()
        for p in parts
    ]


def _dump_part(part_service: PartService, user_id: str, part: Part) -> dict:
    return _dump_parts(part_service, user_id, [part])[0]


@part_bp.route('', methods=['GET'])
@login_required
def list_parts():
    low_stock_only = request.args.get('lowStock', '').lower() in ('1', 'true', 'yes')
    user_id = current_user().id

    db = get_session()
    try:
        part_service = PartService(db)
        parts = part_service.list_parts(user_id=user_id, low_stock_only=low_stock_only)
        return jsonify(_dump_parts(part_service, user_id, parts))
    finally:
        db.close()


@part_bp.route('/search', methods=['GET'])
@login_required
def search_parts():
    user_id = current_user().id

    db = get_session()
    try:
        part_service = PartService(db)
        parts = part_service.search_parts(user_id=user_id, query=request.args.get('query', ''))
        return jsonify(_dump_parts(part_service, user_id, parts))
    finally:
        db.close()


@part_bp.route('/low-stock', methods=['GET'])
@login_required
def low_stock_parts():
    user_id = current_user().id

    db = get_session()
    try:
        part_service = PartService(db)
        parts = part_service.list_low_stock(user_id=user_id)
        return jsonify(_dump_parts(part_service, user_id, parts))
    finally:
        db.close()


@part_bp.route('/barcode/<barcode>', methods=['GET'])
@login_required
def get_part_by_barcode(barcode):
    user_id = current_user().id

    db = get_session()
    try:
        part_service = PartService(db)
        part = part_service.get_part_by_barcode(user_id=user_id, barcode=barcode)
        return jsonify(_dump_part(part_service, user_id, part))
    finally:
        db.close()


@part_bp.route('/<part_id>', methods=['GET'])
@login_required
def get_part(part_id):
    user_id = current_user().id

    db = get_session()
    try:
        part_service = PartService(db)
        part = part_service.get_part(user_id=user_id, part_id=part_id)
        return jsonify(_dump_part(part_service, user_id, part))
    finally:
        db.close()


@part_bp.route('', methods=['POST'])
@login_required
def create_part():
    body = parse_body(PartCreateRequest, request.get_json(silent=True))
    user_id = current_user().id

    db = get_session()
    try:
        part_service = PartService(db)
        part = part_service.create_part(user_id=user_id, **body.model_dump())
        db.commit()
        return jsonify(_dump_part(part_service, user_id, part)), 201
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@part_bp.route('/<part_id>', methods=['PUT'])
@login_required
def update_part(part_id):
    body = parse_body(PartUpdateRequest, request.get_json(silent=True))
    user_id = current_user().id

    db = get_session()
    try:
        part_service = PartService(db)
        part = part_service.update_part(
            user_id=user_id,
            part_id=part_id,
            updates=body.model_dump(exclude_unset=True),
        )
        db.commit()
        return jsonify(_dump_part(part_service, user_id, part))
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@part_bp.route('/<part_id>', methods=['DELETE'])
@login_required
def delete_part(part_id):
    db = get_session()
    try:
        PartService(db).delete_part(user_id=current_user().id, part_id=part_id)
        db.commit()
        return jsonify({"message": "Part removed"})
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
