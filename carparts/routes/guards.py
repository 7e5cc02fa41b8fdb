# carparts/routes/guards.py
from dataclasses import dataclass
from functools import wraps

from flask import g, session

from carparts.db.session import get_session
from carparts.db.enums import UserRole, UserStatus
from carparts.errors import AuthenticationError, AuthorizationError
from carparts.services.user_service import UserService

SESSION_USER_KEY = "user_id"


@dataclass(frozen=True)
class CurrentUser:
    """Identity resolved for the current request."""
    id: str
    username: str
    role: UserRole
    status: UserStatus

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin


def current_user() -> CurrentUser:
    return g.current_user


def sign_in(user) -> None:
    session.clear()
    session[SESSION_USER_KEY] = user.id


def sign_out() -> None:
    session.clear()


def _load_current_user() -> CurrentUser:
    user_id = session.get(SESSION_USER_KEY)
    if not user_id:
        raise AuthenticationError("Not authorized, please log in")

    db = get_session()
    try:
        user_service = UserService(db)
        user = user_service.get_user_by_id(user_id)
        if not user:
            sign_out()
            raise AuthenticationError("Not authorized, user not found")
        # status may have changed since login
        user_service.assert_may_sign_in(user)
        return CurrentUser(
            id=user.id,
            username=user.username,
            role=user.role,
            status=user.status,
        )
    finally:
        db.close()


def login_required(view):
    """Resolve the session identity into g.current_user or answer 401/403."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        g.current_user = _load_current_user()
        return view(*args, **kwargs)
    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        g.current_user = _load_current_user()
        if not g.current_user.is_admin:
            raise AuthorizationError("Access denied. Admin only.")
        return view(*args, **kwargs)
    return wrapper
