"""JWT issuing, refresh-session rotation and password hashing."""

import uuid
from datetime import datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from brandcollab.admin.models import Admin, AdminStatus
from brandcollab.auth.models import AuthSession, Brand, Influencer
from brandcollab.errors import ForbiddenError, UnauthorizedError
from brandcollab.logging_config import get_logger
from brandcollab.settings import settings
from brandcollab.storage.db import db
from brandcollab.storage.models import UserType

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

JWT_ALGORITHM = "HS256"

REFRESH_TOKEN_TYPE = "refresh"
VERIFICATION_KEY_TYPE = "verification"
PASSWORD_RESET_TYPE = "password-reset"


def load_account(session, user_type: UserType, user_id: int):
    """Load an active account of the given type, or None."""
    if user_type == UserType.INFLUENCER:
        return session.query(Influencer).filter(
            Influencer.id == user_id,
            Influencer.is_active == True,  # noqa: E712
            Influencer.deleted_at.is_(None),
        ).first()
    if user_type == UserType.BRAND:
        return session.query(Brand).filter(
            Brand.id == user_id,
            Brand.is_active == True,  # noqa: E712
            Brand.deleted_at.is_(None),
        ).first()
    return session.query(Admin).filter(
        Admin.id == user_id,
        Admin.status == AdminStatus.ACTIVE,
    ).first()


class TokenService:
    """Access/refresh tokens backed by persisted refresh sessions."""

    def __init__(self):
        self.logger = get_logger(__name__)

    # ==================== PASSWORD ====================

    def _truncate_password(self, password: str) -> str:
        """Truncate password to 72 bytes (bcrypt limit)."""
        return password.encode("utf-8")[:72].decode("utf-8", errors="ignore")

    def hash_password(self, password: str) -> str:
        return pwd_context.hash(self._truncate_password(password))

    def verify_password(self, password: str, hashed: str) -> bool:
        return pwd_context.verify(self._truncate_password(password), hashed)

    # ==================== JWT ====================

    def _encode(self, payload: dict[str, Any]) -> str:
        return jwt.encode(payload, settings.jwt_secret_key, algorithm=JWT_ALGORITHM)

    def decode(self, token: str) -> dict[str, Any] | None:
        """Verify and decode a JWT.

        Args:
            token: JWT string

        Returns:
            Token payload or None if invalid or expired
        """
        try:
            return jwt.decode(token, settings.jwt_secret_key, algorithms=[JWT_ALGORITHM])
        except JWTError as e:
            self.logger.debug("token_verification_failed", error=str(e))
            return None

    def create_access_token(self, user_id: int, user_type: UserType, profile_completed: bool) -> str:
        """Create a JWT access token.

        Args:
            user_id: Account id
            user_type: influencer, brand or admin
            profile_completed: Whether onboarding is finished

        Returns:
            JWT token string
        """
        now = datetime.utcnow()
        payload = {
            "id": user_id,
            "userType": user_type.value,
            "profileCompleted": profile_completed,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + timedelta(minutes=settings.access_token_expire_minutes),
        }
        return self._encode(payload)

    def _create_refresh_token(self, session, user_id: int, user_type: UserType) -> str:
        jti = uuid.uuid4().hex
        expires_at = datetime.utcnow() + timedelta(days=settings.refresh_token_expire_days)

        session.add(AuthSession(
            jti=jti,
            user_id=user_id,
            user_type=user_type,
            expires_at=expires_at,
        ))

        return self._encode({
            "id": user_id,
            "userType": user_type.value,
            "jti": jti,
            "type": REFRESH_TOKEN_TYPE,
            "exp": expires_at,
        })

    def issue_tokens(self, user_id: int, user_type: UserType, profile_completed: bool) -> dict[str, Any]:
        """Issue an access token and a persisted refresh token.

        Args:
            user_id: Account id
            user_type: influencer, brand or admin
            profile_completed: Whether onboarding is finished

        Returns:
            Dict with accessToken, refreshToken and expiresIn (seconds)
        """
        with db.session() as session:
            refresh_token = self._create_refresh_token(session, user_id, user_type)

        self.logger.info("tokens_issued", user_id=user_id, user_type=user_type.value)
        return {
            "accessToken": self.create_access_token(user_id, user_type, profile_completed),
            "refreshToken": refresh_token,
            "expiresIn": settings.access_token_expire_minutes * 60,
        }

    def _decode_refresh(self, token: str) -> dict[str, Any]:
        payload = self.decode(token)
        if not payload or payload.get("type") != REFRESH_TOKEN_TYPE or not payload.get("jti"):
            raise UnauthorizedError("Invalid refresh token")
        return payload

    def refresh(self, refresh_token: str) -> dict[str, Any]:
        """Rotate a refresh token.

        The presented session is revoked and a new token pair is issued.

        Raises:
            UnauthorizedError: Token invalid, expired or unknown
            ForbiddenError: Session was revoked
        """
        payload = self._decode_refresh(refresh_token)

        with db.session() as session:
            auth_session = session.query(AuthSession).filter(
                AuthSession.jti == payload["jti"],
            ).first()

            if auth_session and auth_session.revoked_at:
                self.logger.warning("revoked_refresh_token_used", user_id=auth_session.user_id)
                raise ForbiddenError("Refresh token revoked")

            if not auth_session or auth_session.expires_at < datetime.utcnow():
                raise UnauthorizedError("Refresh token expired")

            account = load_account(session, auth_session.user_type, auth_session.user_id)
            if not account:
                raise UnauthorizedError("Account not found or inactive")

            auth_session.revoked_at = datetime.utcnow()
            user_type = auth_session.user_type
            user_id = auth_session.user_id
            new_refresh = self._create_refresh_token(session, user_id, user_type)
            profile_completed = getattr(account, "is_profile_completed", True)

        self.logger.info("refresh_token_rotated", user_id=user_id, user_type=user_type.value)
        return {
            "accessToken": self.create_access_token(user_id, user_type, bool(profile_completed)),
            "refreshToken": new_refresh,
            "expiresIn": settings.access_token_expire_minutes * 60,
        }

    def logout(self, refresh_token: str) -> None:
        """Revoke the session behind one refresh token."""
        payload = self._decode_refresh(refresh_token)

        with db.session() as session:
            auth_session = session.query(AuthSession).filter(
                AuthSession.jti == payload["jti"],
            ).first()
            if auth_session and not auth_session.revoked_at:
                auth_session.revoked_at = datetime.utcnow()

        self.logger.info("logged_out", user_id=payload.get("id"))

    def logout_all(self, user_id: int, user_type: UserType, session=None) -> int:
        """Revoke every open session of a user.

        Args:
            user_id: Account id
            user_type: Account kind
            session: Optional session to join an outer transaction

        Returns:
            Number of sessions revoked
        """
        if session is None:
            with db.session() as own_session:
                return self.logout_all(user_id, user_type, session=own_session)

        revoked = session.query(AuthSession).filter(
            AuthSession.user_id == user_id,
            AuthSession.user_type == user_type,
            AuthSession.revoked_at.is_(None),
        ).update({AuthSession.revoked_at: datetime.utcnow()}, synchronize_session=False)

        self.logger.info("all_sessions_revoked", user_id=user_id, user_type=user_type.value, count=revoked)
        return revoked

    # ==================== SHORT-LIVED KEYS ====================

    def create_verification_key(self, phone: str) -> str:
        """Key proving a phone was OTP-verified, used to finish signup."""
        return self._encode({
            "phone": phone,
            "type": VERIFICATION_KEY_TYPE,
            "exp": datetime.utcnow() + timedelta(minutes=settings.verification_key_expire_minutes),
        })

    def verify_verification_key(self, key: str, phone: str) -> bool:
        payload = self.decode(key)
        return bool(payload) and payload.get("type") == VERIFICATION_KEY_TYPE and payload.get("phone") == phone

    def create_password_reset_token(self, brand_id: int, jti: str, expires_at: datetime) -> str:
        return self._encode({
            "id": brand_id,
            "jti": jti,
            "type": PASSWORD_RESET_TYPE,
            "exp": expires_at,
        })


token_service = TokenService()
