"""FastAPI dependency injection providers."""

from typing import AsyncGenerator, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from partsmarket.config import settings
from partsmarket.db.session import async_session_factory
from partsmarket.models.user import User
from partsmarket.services.auth_service import AuthService

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session for request-scoped usage.

    Services commit their own work; anything left uncommitted when the
    request fails is rolled back. Always closed after the request completes.
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active account.

    401 when the token is missing, invalid, expired, belongs to a deactivated
    account or was issued before the account's role changed.
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await AuthService(db).resolve_token(credentials.credentials)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    """Like get_current_user but also requires the admin flag (403 otherwise)."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user


async def require_category_writer(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Gate category create/update/delete.

    Requires an admin unless CATEGORY_WRITES_REQUIRE_ADMIN is turned off, in
    which case the endpoints are open and no user is resolved.
    """
    if not settings.CATEGORY_WRITES_REQUIRE_ADMIN:
        return None
    user = await get_current_user(credentials=credentials, db=db)
    return await get_current_admin(current_user=user)
