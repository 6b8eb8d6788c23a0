from pydantic import BaseModel, EmailStr, Field, field_validator, ConfigDict, ValidationInfo
from datetime import datetime
from typing import List, Optional


class RegisterRequest(BaseModel):
    """
    Registration payload validation.

    - EmailStr uses email-validator library for RFC-compliant validation
    - Password minimum 6 chars, no maximum so passphrases work
    - Name must contain something other than whitespace
    """
    email: EmailStr
    password: str = Field(min_length=6)
    name: str = Field(max_length=255)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Name is required')
        return v


class LoginRequest(BaseModel):
    """
    Login payload validation.

    Only rejects obviously malformed requests; the credential check itself
    gives one generic answer.
    """
    email: EmailStr
    password: str = Field(min_length=1)


class PostCreateRequest(BaseModel):
    title: str = Field(max_length=255)
    content: str

    @field_validator('title', 'content')
    @classmethod
    def validate_not_blank(cls, v: str, info: ValidationInfo) -> str:
        v = v.strip()
        if not v:
            raise ValueError(f'{info.field_name.capitalize()} is required')
        return v


class PostUpdateRequest(BaseModel):
    """
    Partial update. Omitted or blank fields are left unchanged.
    """
    title: Optional[str] = Field(default=None, max_length=255)
    content: Optional[str] = None


class UserResponse(BaseModel):
    """
    Safe user representation for API responses.

    Critical: Never include password_hash in any response.
    """
    id: int
    email: str
    name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PostResponse(BaseModel):
    id: int
    title: str
    content: str
    user_id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PostWithAuthorResponse(PostResponse):
    author_name: str
    author_email: str


class AuthResponse(BaseModel):
    message: str
    user: UserResponse
    token: str


class ProfileResponse(BaseModel):
    user: UserResponse


class PostEnvelope(BaseModel):
    message: str
    post: PostResponse


class PostListResponse(BaseModel):
    posts: List[PostWithAuthorResponse]


class MessageResponse(BaseModel):
    """
    Generic message response for operations without specific return data.
    """
    message: str


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    environment: str
    storage: str


class EndpointGroups(BaseModel):
    public: List[str]
    protected: List[str]


class ApiIndexResponse(BaseModel):
    """
    Self-description served at /api.
    """
    message: str
    version: str
    endpoints: EndpointGroups
    documentation: str
