# carparts/services/user_service.py
from uuid import uuid4
from typing import Optional, List
import bcrypt
from sqlalchemy import or_
from sqlalchemy.orm import Session

from carparts.models.user import User
from carparts.db.enums import UserRole, UserStatus, AuditEntityType
from carparts.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
)
from carparts.services.audit_log_service import AuditLogService
from carparts.logger import get_logger

logger = get_logger(__name__)


class UserService:
    """
    User directory.
    Provides:
    - registration (pending) and admin creation (verified)
    - authentication with the verified-status gate
    - admin status updates

    No token issuance here; the route layer keeps the identity in the session.
    """

    def __init__(self, db: Session, audit_log_service: Optional[AuditLogService] = None):
        self.db = db
        self.audit_log_service = audit_log_service or AuditLogService(db)

    # ======================================================
    # 🔐 Internal helpers
    # ======================================================

    def _hash_password(self, password: str) -> str:
        '''Hash a password using bcrypt'''
        return bcrypt.hashpw(
            password.encode("utf-8"),
            bcrypt.gensalt(),
        ).decode("utf-8")

    def _verify_password(self, password: str, password_hash: str) -> bool:
        '''verify a password against its hash'''
        return bcrypt.checkpw(
            password.encode("utf-8"),
            password_hash.encode("utf-8"),
        )

    def _assert_unique(self, username: str, email: str) -> None:
        existing = (
            self.db.query(User)
            .filter(or_(User.email == email, User.username == username))
            .first()
        )
        if existing:
            details = "Email already in use" if existing.email == email else "Username already taken"
            raise ConflictError("User already exists", details=details)

    # ======================================================
    # 👤 User CRUD
    # ======================================================

    def create_user(
        self,
        *,
        username: str,
        email: str,
        password: str,
        role: UserRole = UserRole.user,
        status: UserStatus = UserStatus.pending,
    ) -> User:
        """
        Create a user. Registration uses the defaults (user, pending);
        admin creation passes role=admin, status=verified.

        :param username: Login name (unique)
        :param email: Login email (unique)
        :param password: Plaintext password
        :param role: admin or user
        :param status: initial verification status
        """
        self._assert_unique(username, email)

        user = User(
            id=str(uuid4()),
            username=username,
            email=email,
            password_hash=self._hash_password(password),
            role=role,
            status=status,
        )

        self.db.add(user)
        self.db.flush()

        self.audit_log_service.record_create(
            entity_type=AuditEntityType.User,
            entity_id=user.id,
            operator_id=user.id,
        )
        logger.info("User created: %s (%s, %s)", username, role.value, status.value)
        return user

    def create_admin(self, *, username: str, email: str, password: str) -> User:
        return self.create_user(
            username=username,
            email=email,
            password=password,
            role=UserRole.admin,
            status=UserStatus.verified,
        )

    def authenticate(
        self,
        *,
        email: str,
        password: str,
    ) -> User:
        """
        Authenticate user by email + password.
        Admins bypass the verification gate; everyone else must be verified.

        :param email: Login email
        :param password: Plaintext password
        """
        user = self.get_user_by_email(email)

        if not user or not self._verify_password(password, user.password_hash):
            logger.warning("Login failed for %s", email)
            raise AuthenticationError("Invalid email or password")

        self.assert_may_sign_in(user)
        logger.info("Login successful: %s (%s)", email, user.id)
        return user

    def assert_may_sign_in(self, user: User) -> None:
        if user.role != UserRole.admin and user.status != UserStatus.verified:
            raise AuthorizationError(
                "Your account is pending verification. Please wait for admin approval."
            )

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return (
            self.db.query(User)
            .filter(User.email == email)
            .first()
        )

    def get_user_by_username(self, username: str) -> Optional[User]:
        return (
            self.db.query(User)
            .filter(User.username == username)
            .first()
        )

    def list_users(self, *, status: Optional[UserStatus] = None) -> List[User]:
        query = self.db.query(User)
        if status is not None:
            query = query.filter(User.status == status)
        return query.order_by(User.created_at.desc()).all()

    # ======================================================
    # 🔁 Account maintenance
    # ======================================================

    def update_status(
        self,
        *,
        user_id: str,
        status: UserStatus,
        operator_id: str,
    ) -> User:
        """
        Verify, reject or reset a user to pending (admin only; checked by the caller).

        :param user_id: ID of the user to update
        :param status: new verification status
        :param operator_id: admin performing the change
        """
        user = self.get_user_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        old_status = user.status
        if old_status != status:
            user.status = status
            self.audit_log_service.record_update(
                entity_type=AuditEntityType.User,
                entity_id=user.id,
                changed_attribute="status",
                before_value=old_status,
                after_value=status,
                operator_id=operator_id,
            )
            logger.info("User %s status %s -> %s", user.id, old_status.value, status.value)
        return user
