from fastapi import APIRouter, Depends
from app.auth import TokenClaims
from app.schemas import ProfileResponse, UserResponse
from app.services.auth_service import AuthService
from app.dependencies import get_auth_service, get_current_user

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    claims: TokenClaims = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Get the authenticated user's profile.

    404 if the account was removed after the token was issued.
    """
    user = auth_service.get_profile(claims.user_id)
    return ProfileResponse(user=UserResponse.model_validate(user))
