"""Marketplace accounts: seller sign-up, login and bearer tokens.

Anyone can register, and every new account is a seller. Admin rights are
granted by an operator through ``AuthService.set_admin`` (see
``scripts/create_admin.py``). A token records the role its account had when it
was issued; ``resolve_token`` refuses a token whose role no longer matches, so
a promotion or demotion takes effect at the next login.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from partsmarket.config import settings
from partsmarket.core.exceptions import ConflictError, NotFoundError
from partsmarket.models.base import utcnow
from partsmarket.models.user import ROLE_ADMIN, ROLE_SELLER, User

logger = structlog.get_logger(__name__)

TOKEN_ISSUER = "partsmarket"

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


@dataclass(frozen=True)
class TokenClaims:
    """What a verified bearer token says about its holder."""

    user_id: uuid.UUID
    role: str


def hash_password(password: str) -> str:
    return _pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """False for a wrong password and for a stored hash bcrypt cannot read."""
    try:
        return _pwd_context.verify(password, hashed_password)
    except ValueError:
        return False


def token_lifetime_seconds() -> int:
    return settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60


def issue_token(user: User) -> str:
    """Sign a bearer token carrying the account id and its current role."""
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user.id),
        "role": user.role,
        "iss": TOKEN_ISSUER,
        "iat": now,
        "exp": now + timedelta(seconds=token_lifetime_seconds()),
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def read_token(token: str) -> Optional[TokenClaims]:
    """Verify signature, expiry and issuer.

    Returns:
        TokenClaims, or None when the token is malformed, expired, signed with
        another key, issued elsewhere or names an unknown role
    """
    try:
        claims = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            issuer=TOKEN_ISSUER,
        )
        user_id = uuid.UUID(str(claims["sub"]))
    except (JWTError, KeyError, ValueError):
        return None

    role = claims.get("role")
    if role not in (ROLE_SELLER, ROLE_ADMIN):
        return None
    return TokenClaims(user_id=user_id, role=role)


class AuthService:
    """Seller accounts and the lookups behind the bearer-token guards."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logger.bind(service="auth_service")

    async def register_seller(self, email: str, username: str, password: str) -> User:
        """Create a seller account.

        Email and username are compared case-insensitively with existing
        accounts. The email is stored lowercased, the username as typed since
        it is shown on listings.

        Raises:
            ConflictError: ``error`` is ``"email"`` or ``"username"``, naming
                the field already in use
        """
        email = email.strip().lower()
        username = username.strip()

        result = await self.db.execute(
            select(User.email, User.username).where(or_(
                func.lower(User.email) == email,
                func.lower(User.username) == username.lower(),
            ))
        )
        taken = result.all()
        if any(row.email.lower() == email for row in taken):
            raise ConflictError("Email is already registered", error="email")
        if taken:
            raise ConflictError("Username is already taken", error="username")

        user = User(
            email=email,
            username=username,
            hashed_password=hash_password(password),
            is_admin=False,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError("Email or username is already taken") from e

        self.logger.info("seller_registered", user_id=str(user.id), username=username)
        return user

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        """Check credentials and stamp ``last_login_at``.

        Returns:
            The account, or None for an unknown email, a wrong password or a
            deactivated account
        """
        result = await self.db.execute(select(User).where(User.email == email.strip().lower()))
        user = result.scalar_one_or_none()

        if user is None:
            reason = "unknown_email"
        elif not verify_password(password, user.hashed_password):
            reason = "bad_password"
        elif not user.is_active:
            reason = "inactive"
        else:
            user.last_login_at = utcnow()
            await self.db.commit()
            self.logger.info("login_succeeded", user_id=str(user.id), role=user.role)
            return user

        self.logger.info("login_rejected", reason=reason)
        return None

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def resolve_token(self, token: str) -> Optional[User]:
        """Turn a bearer token into an active account whose role still matches."""
        claims = read_token(token)
        if claims is None:
            return None

        user = await self.get_user_by_id(claims.user_id)
        if user is None or not user.is_active:
            return None
        if user.role != claims.role:
            self.logger.info(
                "token_role_stale",
                user_id=str(user.id),
                token_role=claims.role,
                current_role=user.role,
            )
            return None
        return user

    async def set_admin(self, user_id: uuid.UUID, is_admin: bool) -> User:
        """Grant or revoke admin rights. Tokens issued before the change stop working.

        Raises:
            NotFoundError: If the account does not exist
        """
        user = await self.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)

        previous = user.role
        user.is_admin = is_admin
        await self.db.commit()

        self.logger.info("role_changed", user_id=str(user_id), old_role=previous, new_role=user.role)
        return user
