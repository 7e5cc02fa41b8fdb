# carparts/routes/admin.py
from flask import Blueprint, request, jsonify, current_app

from carparts.db.session import get_session
from carparts.db.enums import UserStatus
from carparts.services.user_service import UserService
from carparts.schemas.requests import parse_body, AdminCreateRequest, UserStatusUpdateRequest
from carparts.schemas.dto.user_dto import UserDTO
from carparts.routes.guards import admin_required, current_user
from carparts.errors import AuthenticationError
from carparts.logger import get_logger

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')
logger = get_logger(__name__)


@admin_bp.route('/create', methods=['POST'])
def create_admin():
    """Hidden admin creation, guarded by ADMIN_SECRET_KEY."""
    body = parse_body(AdminCreateRequest, request.get_json(silent=True))

    expected = current_app.config.get('ADMIN_SECRET_KEY')
    if not expected or body.secret_key != expected:
        logger.warning("Admin creation refused: invalid secret key")
        raise AuthenticationError("Invalid secret key")

    db = get_session()
    try:
        user = UserService(db).create_admin(
            username=body.username,
            email=body.email,
            password=body.password,
        )
        db.commit()
        return jsonify(UserDTO.from_domain_model(user).to_json()), 201
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@admin_bp.route('/users', methods=['GET'])
@admin_required
def list_users():
    db = get_session()
    try:
        users = UserService(db).list_users()
        return jsonify([UserDTO.from_domain_model(u).to_json() for u in users])
    finally:
        db.close()


@admin_bp.route('/users/pending', methods=['GET'])
@admin_required
def list_pending_users():
    db = get_session()
    try:
        users = UserService(db).list_users(status=UserStatus.pending)
        return jsonify([UserDTO.from_domain_model(u).to_json() for u in users])
    finally:
        db.close()


@admin_bp.route('/users/status', methods=['PUT'])
@admin_required
def update_user_status():
    """Verify or reject an account."""
    body = parse_body(UserStatusUpdateRequest, request.get_json(silent=True))

    db = get_session()
    try:
        user = UserService(db).update_status(
            user_id=body.user_id,
            status=body.status,
            operator_id=current_user().id,
        )
        db.commit()
        return jsonify({
            "message": f"User status updated to {body.status.value}",
            "user": UserDTO.from_domain_model(user).to_json(),
        })
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
