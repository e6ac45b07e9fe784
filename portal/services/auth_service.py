from dataclasses import dataclass
from typing import FrozenSet, Optional
from flask_jwt_extended import create_access_token, get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from werkzeug.security import check_password_hash
from datetime import timedelta
import logging
from portal.exceptions import UnauthorizedError, ForbiddenError
from portal.models import User
from portal.models.enums import ADMIN_ROLE
from portal.repositories import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthContext:
    """Identity and authorization of the caller, resolved once per request."""

    user: User
    roles: FrozenSet[str]
    permissions: FrozenSet[str]

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def company_id(self) -> Optional[str]:
        return self.user.company_id

    @property
    def is_admin(self) -> bool:
        return ADMIN_ROLE in self.roles

    def has_permission(self, name: str) -> bool:
        return self.is_admin or name in self.permissions


class AuthService:
    @staticmethod
    def build_context(user: User) -> AuthContext:
        roles = frozenset(role.name for role in user.roles)
        permissions = frozenset(
            permission.name for role in user.roles for permission in role.permissions
        )
        return AuthContext(user=user, roles=roles, permissions=permissions)

    @staticmethod
    def current_auth(optional: bool = False) -> Optional[AuthContext]:
        """Resolve the JWT on the current request into an AuthContext.

        With ``optional=True`` a missing or unusable token yields ``None``
        instead of raising ``UnauthorizedError``.
        """
        try:
            verify_jwt_in_request(optional=optional)
            identity = get_jwt_identity()
        except (JWTExtendedException, PyJWTError) as e:
            if optional:
                return None
            raise UnauthorizedError("Invalid or expired token") from e

        if identity is None:
            if optional:
                return None
            raise UnauthorizedError()

        user = UserRepository.find_by_id(int(identity))
        if not user or not user.active:
            if optional:
                return None
            raise UnauthorizedError("User not found or inactive")
        return AuthService.build_context(user)

    @staticmethod
    def require_permission(auth: Optional[AuthContext], permission: str) -> AuthContext:
        if auth is None:
            raise UnauthorizedError()
        if not auth.has_permission(permission):
            logger.warning(
                f"User {auth.user_id} denied: missing permission '{permission}' (roles={sorted(auth.roles)})"
            )
            raise ForbiddenError(
                f"You do not have permission to perform this action. Required permission: {permission}"
            )
        return auth

    @staticmethod
    def sign_in(email, password):
        user = UserRepository.find_by_email(email)
        if not user or not user.active:
            logger.warning(f"Login attempt with unknown or inactive email: {email}")
            raise ValueError("Invalid email or password")

        if not check_password_hash(user.password, password):
            logger.warning(f"Failed login attempt for user: {email}")
            raise ValueError("Invalid email or password")

        access_token = create_access_token(
            identity=str(user.id), expires_delta=timedelta(days=1)
        )
        logger.info(f"User logged in successfully: {email}")
        return {"token": access_token, "user": user.to_dict()}
