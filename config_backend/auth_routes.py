"""
POST /api/auth/login and GET /api/auth/profile.
"""
from typing import Annotated

from fastapi import APIRouter, Body, Depends

from config_backend.auth import AuthGateway, RequireUser, get_gateway
from config_backend.errors import ValidationError
from config_backend.schemas import LoginRequest, LoginResponse, ProfileResponse, UserOut

router = APIRouter(prefix="/api/auth")


@router.post("/login", response_model=LoginResponse)
async def login(
    gateway: Annotated[AuthGateway, Depends(get_gateway)],
    body: Annotated[LoginRequest | None, Body()] = None,
):
    """Exchange username/password for a 24h session token."""
    if body is None or not body.username or not body.password:
        raise ValidationError("Username and password required")
    result = await gateway.login(body.username, body.password)
    return LoginResponse(token=result.token, user=UserOut(**result.user.public_view()))


@router.get("/profile", response_model=ProfileResponse)
def profile(claims: dict = RequireUser):
    """Echo the verified token payload; no user lookup."""
    return ProfileResponse(user=AuthGateway.get_profile(claims))
