"""
User Authentication Service.

Provides role-tagged signup, login, JWT token management, and password handling.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional, Dict, Any

import jwt
import bcrypt
from sqlalchemy.orm import Session

from venturematch.core.config import get_settings
from venturematch.core.models import (
    User, UserRole, UserRoleType, FounderProfile, InvestorProfile, InvestorSource,
)

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
SIGNUP_ROLES = {UserRoleType.FOUNDER.value, UserRoleType.INVESTOR.value}

# Where each role lands after login
ROLE_REDIRECTS = {
    UserRoleType.FOUNDER.value: "/company/basecamp",
    UserRoleType.INVESTOR.value: "/investor/basecamp",
    UserRoleType.ADMIN.value: "/admin",
}
DEFAULT_REDIRECT = "/company/basecamp"


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode(), salt).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify password against hash."""
    return bcrypt.checkpw(password.encode(), hashed.encode())


def random_password() -> str:
    """Throwaway password for admin-created accounts."""
    return secrets.token_urlsafe(24)


class AuthService:
    """User authentication service."""

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    def _create_access_token(self, user: User) -> str:
        """Create JWT access token carrying the user's role."""
        expire = datetime.utcnow() + timedelta(
            minutes=self.settings.access_token_expire_minutes
        )
        payload = {
            "sub": str(user.id),
            "email": user.email,
            "role": _role_value(user.role),
            "type": "access",
            "exp": expire,
            "iat": datetime.utcnow(),
        }
        return jwt.encode(payload, self.settings.jwt_secret_key, algorithm=ALGORITHM)

    def _create_user(
        self,
        email: str,
        password: str,
        role: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        created_by_admin: bool = False,
    ) -> User:
        email = email.strip().lower()
        if self.db.query(User).filter(User.email == email).first():
            raise ValueError("Email already registered")

        user = User(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role=UserRoleType(role),
            created_by_admin=created_by_admin,
            account_status="active" if created_by_admin else "pending_verification",
        )
        self.db.add(user)
        self.db.flush()
        self.db.add(UserRole(user_id=user.id, role=role))
        return user

    def signup(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: str,
    ) -> Dict[str, Any]:
        """Register a founder or investor account."""
        role = (role or "").lower()
        if role not in SIGNUP_ROLES:
            raise ValueError("Role must be either 'founder' or 'investor'")
        if len(password) < 8:
            raise ValueError("Password must be at least 8 characters")

        user = self._create_user(email, password, role, first_name, last_name)

        if role == UserRoleType.FOUNDER.value:
            self.db.add(FounderProfile(
                id=user.id,
                first_name=first_name,
                last_name=last_name,
                email=user.email,
            ))
        else:
            self.db.add(InvestorProfile(
                id=user.id,
                first_name=first_name,
                last_name=last_name,
                email=user.email,
                source=InvestorSource.INVESTOR.value,
            ))

        self.db.commit()
        logger.info(f"Registered {role} account {user.email} (id={user.id})")

        return {
            "success": True,
            "user_id": user.id,
            "redirect_to": "/auth/signin",
            "message": "Account created successfully. Please check your email to confirm your account.",
        }

    def create_admin(self, email: str, password: str) -> User:
        """Create an admin account (bootstrap helper)."""
        user = self._create_user(email, password, UserRoleType.ADMIN.value, created_by_admin=True)
        user.email_confirmed = True
        self.db.commit()
        logger.info(f"Created admin account {user.email}")
        return user

    def create_managed_user(
        self,
        email: str,
        first_name: Optional[str],
        last_name: Optional[str],
        role: str = UserRoleType.INVESTOR.value,
    ) -> User:
        """Create an account on someone's behalf (admin imports). Not committed."""
        user = self._create_user(
            email, random_password(), role, first_name, last_name, created_by_admin=True
        )
        user.email_confirmed = True
        return user

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """Authenticate user and return a role-tagged session."""
        user = self.db.query(User).filter(User.email == email.strip().lower()).first()
        if not user or not verify_password(password, user.password_hash):
            raise ValueError("Invalid email or password")

        user.last_login_at = datetime.utcnow()
        self.db.commit()

        role = _role_value(user.role)
        return {
            "access_token": self._create_access_token(user),
            "token_type": "bearer",
            "expires_in": self.settings.access_token_expire_minutes * 60,
            "user": {
                "id": user.id,
                "email": user.email,
                "first_name": user.first_name,
                "last_name": user.last_name,
                "role": role,
            },
            "redirect_to": ROLE_REDIRECTS.get(role, DEFAULT_REDIRECT),
        }

    def verify_token(self, token: str) -> Dict[str, Any]:
        """Verify JWT and return user info."""
        try:
            payload = jwt.decode(
                token, self.settings.jwt_secret_key, algorithms=[ALGORITHM]
            )
        except jwt.ExpiredSignatureError:
            raise ValueError("Token has expired")
        except jwt.InvalidTokenError:
            raise ValueError("Invalid token")

        if payload.get("type") != "access":
            raise ValueError("Invalid token type")

        user = self.db.get(User, int(payload["sub"]))
        if not user:
            raise ValueError("User not found")

        return {
            "user_id": user.id,
            "email": user.email,
            "role": _role_value(user.role),
        }

    def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        """Get user by ID."""
        user = self.db.get(User, user_id)
        if not user:
            return None

        return {
            "id": user.id,
            "email": user.email,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "role": _role_value(user.role),
            "account_status": user.account_status,
            "created_at": user.created_at.isoformat() if user.created_at else None,
            "last_login_at": user.last_login_at.isoformat() if user.last_login_at else None,
        }


def _role_value(role) -> str:
    return role.value if isinstance(role, UserRoleType) else str(role)
