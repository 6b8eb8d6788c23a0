"""
Post listing and owner-only mutation.
"""
import logging
from typing import List, Optional

from app.errors import ForbiddenError, NotFoundError, ValidationError
from app.stores.base import PostRecord, PostStore, PostWithAuthor, clean_field

logger = logging.getLogger(__name__)


class PostService:
    def __init__(self, posts: PostStore):
        self._posts = posts

    def list_posts(self) -> List[PostWithAuthor]:
        """
        All posts, newest first, with author name and email.

        Posts whose author no longer exists are not listed.
        """
        return self._posts.list_all_with_author()

    def create_post(self, owner_id: int, title: str, content: str) -> PostRecord:
        title, content = clean_field(title), clean_field(content)
        errors = []
        if title is None:
            errors.append({"field": "title", "message": "Title is required"})
        if content is None:
            errors.append({"field": "content", "message": "Content is required"})
        if errors:
            raise ValidationError(errors)

        try:
            post = self._posts.insert(title, content, owner_id)
        except LookupError:
            # Token outlived its user
            raise NotFoundError("User not found")

        logger.info("User %s created post %s", owner_id, post.id)
        return post

    def _owned_post(self, actor_id: int, post_id: int, action: str) -> PostRecord:
        post = self._posts.find_by_id(post_id)
        if post is None:
            raise NotFoundError("Post not found")
        if post.user_id != actor_id:
            logger.info("User %s denied %s on post %s", actor_id, action, post_id)
            raise ForbiddenError(f"Unauthorized to {action} this post")
        return post

    def update_post(
        self,
        actor_id: int,
        post_id: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> PostRecord:
        """
        Apply the supplied non-blank fields. updated_at moves on every call,
        even when nothing else changes.
        """
        self._owned_post(actor_id, post_id, "edit")
        post = self._posts.update(post_id, title=title, content=content)
        if post is None:
            # Deleted between the ownership check and the update
            raise NotFoundError("Post not found")
        logger.info("User %s updated post %s", actor_id, post_id)
        return post

    def delete_post(self, actor_id: int, post_id: int) -> None:
        self._owned_post(actor_id, post_id, "delete")
        if not self._posts.delete(post_id):
            raise NotFoundError("Post not found")
        logger.info("User %s deleted post %s", actor_id, post_id)
