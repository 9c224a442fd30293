"""Account endpoints: seller sign-up, login and the current account."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from partsmarket.dependencies import get_current_user, get_db
from partsmarket.models.user import User
from partsmarket.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from partsmarket.services.auth_service import AuthService, issue_token, token_lifetime_seconds

router = APIRouter()


def _signed_in(user: User) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.model_validate(user),
        token=TokenResponse(access_token=issue_token(user), expires_in=token_lifetime_seconds()),
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Open a seller account and sign it in.

    Admin rights cannot be requested here; they are granted by an operator.
    """
    service = AuthService(db)
    user = await service.register_seller(
        email=body.email,
        username=body.username,
        password=body.password,
    )
    return _signed_in(user)


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Exchange email and password for a bearer token carrying the account's role."""
    service = AuthService(db)
    user = await service.authenticate(email=body.email, password=body.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return _signed_in(user)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return UserResponse.model_validate(current_user)
