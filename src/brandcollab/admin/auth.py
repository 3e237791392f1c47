"""Admin accounts: login, creation and profile."""

from datetime import datetime

from brandcollab.admin.models import Admin, AdminRole, AdminStatus
from brandcollab.auth.tokens import token_service
from brandcollab.errors import ConflictError, UnauthorizedError
from brandcollab.logging_config import get_logger
from brandcollab.storage.db import db
from brandcollab.storage.models import UserType


def _admin_dict(admin: Admin) -> dict:
    return {
        "id": admin.id,
        "name": admin.name,
        "email": admin.email,
        "role": admin.role.value,
        "status": admin.status.value,
        "lastLoginAt": admin.last_login_at.isoformat() if admin.last_login_at else None,
    }


class AdminAuthService:
    """Password login for back-office users."""

    def __init__(self):
        self.logger = get_logger(__name__)

    def login(self, email: str, password: str) -> dict:
        """Authenticate an admin and issue tokens.

        Raises:
            UnauthorizedError: Bad credentials or account not active
        """
        with db.session() as session:
            admin = session.query(Admin).filter(Admin.email == email.strip().lower()).first()
            if not admin or not token_service.verify_password(password, admin.password_hash):
                self.logger.warning("admin_login_failed")
                raise UnauthorizedError("Invalid credentials")
            if admin.status != AdminStatus.ACTIVE:
                raise UnauthorizedError("Account is inactive or suspended")

            admin.last_login_at = datetime.utcnow()
            admin_id = admin.id
            profile = _admin_dict(admin)

        tokens = token_service.issue_tokens(admin_id, UserType.ADMIN, True)
        self.logger.info("admin_logged_in", admin_id=admin_id)
        return {"message": "Login successful", **tokens, "admin": profile}

    def create_admin(self, name: str, email: str, password: str, role: AdminRole = AdminRole.PROFILE_REVIEWER) -> dict:
        email = email.strip().lower()
        with db.session() as session:
            if session.query(Admin.id).filter(Admin.email == email).first():
                raise ConflictError("Admin with this email already exists")

            admin = Admin(
                name=name,
                email=email,
                password_hash=token_service.hash_password(password),
                role=role,
                status=AdminStatus.ACTIVE,
            )
            session.add(admin)
            session.flush()
            self.logger.info("admin_created", admin_id=admin.id, role=role.value)
            return _admin_dict(admin)

    def get_profile(self, admin_id: int) -> dict:
        with db.session() as session:
            admin = session.get(Admin, admin_id)
            if not admin:
                raise UnauthorizedError("Admin not found")
            return _admin_dict(admin)


admin_auth_service = AdminAuthService()
