# carparts/routes/auth.py
from flask import Blueprint, request, jsonify

from carparts.db.session import get_session
from carparts.services.user_service import UserService
from carparts.schemas.requests import parse_body, RegisterRequest, LoginRequest
from carparts.schemas.dto.user_dto import UserDTO
from carparts.routes.guards import login_required, current_user, sign_in, sign_out
from carparts.errors import NotFoundError

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


@auth_bp.route('/register', methods=['POST'])
def register():
    """Self registration; the account waits for admin verification."""
    body = parse_body(RegisterRequest, request.get_json(silent=True))

    db = get_session()
    try:
        user_service = UserService(db)
        user = user_service.create_user(
            username=body.username,
            email=body.email,
            password=body.password,
        )
        db.commit()

        payload = UserDTO.from_domain_model(user).to_json()
        payload["message"] = (
            "Registration successful. Your account is pending verification by an admin."
        )
        return jsonify(payload), 201
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@auth_bp.route('/login', methods=['POST'])
def login():
    """Check credentials and store the user id in the server-side session."""
    body = parse_body(LoginRequest, request.get_json(silent=True))

    db = get_session()
    try:
        user_service = UserService(db)
        user = user_service.authenticate(email=body.email, password=body.password)
        sign_in(user)
        return jsonify(UserDTO.from_domain_model(user).to_json())
    finally:
        db.close()


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Drop the identity and any barcode cart held in the session."""
    sign_out()
    return jsonify({"message": "Logged out"})


@auth_bp.route('/profile', methods=['GET'])
@login_required
def profile():
    db = get_session()
    try:
        user = UserService(db).get_user_by_id(current_user().id)
        if not user:
            raise NotFoundError("User not found")
        return jsonify(UserDTO.from_domain_model(user).to_json())
    finally:
        db.close()
