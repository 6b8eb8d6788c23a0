from fastapi import APIRouter, Depends, status
from app.schemas import RegisterRequest, LoginRequest, AuthResponse, UserResponse
from app.services.auth_service import AuthService
from app.dependencies import get_auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Create new user account.

    Process:
    1. Validate input (done by Pydantic)
    2. Normalize email to lowercase
    3. Hash password
    4. Insert user
    5. Issue access token
    6. Return user data and token

    Error cases:
    - 400: Validation failed
    - 409: Email already exists
    - 500: Storage error
    """
    user, token = auth_service.register(request.email, request.password, request.name)
    return AuthResponse(
        message="User registered successfully",
        user=UserResponse.model_validate(user),
        token=token,
    )


@router.post("/login", response_model=AuthResponse)
def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Authenticate user and issue an access token.

    Security notes:
    - Generic error message prevents email enumeration
    - Constant-time password verification prevents timing attacks
    - No indication whether email or password was wrong
    """
    user, token = auth_service.login(request.email, request.password)
    return AuthResponse(
        message="Login successful",
        user=UserResponse.model_validate(user),
        token=token,
    )
