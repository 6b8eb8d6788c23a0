from dataclasses import asdict
from typing import Optional
from fastapi import APIRouter, Depends, status
from app.auth import TokenClaims
from app.schemas import (
    MessageResponse,
    PostCreateRequest,
    PostEnvelope,
    PostListResponse,
    PostResponse,
    PostUpdateRequest,
    PostWithAuthorResponse,
)
from app.services.post_service import PostService
from app.dependencies import get_current_user, get_post_service

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("", response_model=PostListResponse)
def list_posts(post_service: PostService = Depends(get_post_service)):
    """
    Public listing, newest first, with each post's author.
    """
    rows = post_service.list_posts()
    return PostListResponse(posts=[
        PostWithAuthorResponse(
            **asdict(row.post),
            author_name=row.author_name,
            author_email=row.author_email,
        )
        for row in rows
    ])


@router.post("", response_model=PostEnvelope, status_code=status.HTTP_201_CREATED)
def create_post(
    request: PostCreateRequest,
    claims: TokenClaims = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service)
):
    post = post_service.create_post(claims.user_id, request.title, request.content)
    return PostEnvelope(message="Post created successfully", post=PostResponse.model_validate(post))


@router.put("/{post_id}", response_model=PostEnvelope)
def update_post(
    post_id: int,
    request: Optional[PostUpdateRequest] = None,
    claims: TokenClaims = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service)
):
    """
    Update title and/or content. Owner only.

    Error cases:
    - 404: Post does not exist
    - 403: Post belongs to someone else
    """
    # No body at all only refreshes updated_at
    if request is None:
        request = PostUpdateRequest()
    post = post_service.update_post(
        claims.user_id,
        post_id,
        title=request.title,
        content=request.content,
    )
    return PostEnvelope(message="Post updated successfully", post=PostResponse.model_validate(post))


@router.delete("/{post_id}", response_model=MessageResponse)
def delete_post(
    post_id: int,
    claims: TokenClaims = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service)
):
    post_service.delete_post(claims.user_id, post_id)
    return MessageResponse(message="Post deleted successfully")
