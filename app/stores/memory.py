"""
In-process storage backend for development and tests.

Both stores share one MemoryDatabase so that deleting a user can cascade
to their posts, and so every read-modify-write runs under the same lock.
"""
import itertools
import threading
from dataclasses import replace
from typing import Dict, List, Optional

from app.errors import DuplicateEmailError
from app.models import utcnow
from app.stores.base import (
    PostRecord,
    PostStore,
    PostWithAuthor,
    UserRecord,
    UserStore,
    clean_field,
)


class MemoryDatabase:
    def __init__(self):
        self.lock = threading.RLock()
        self.users: Dict[int, UserRecord] = {}
        self.posts: Dict[int, PostRecord] = {}
        self.user_ids = itertools.count(1)
        self.post_ids = itertools.count(1)


class InMemoryUserStore(UserStore):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        with self._db.lock:
            for user in self._db.users.values():
                if user.email == email:
                    return user
        return None

    def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        with self._db.lock:
            return self._db.users.get(user_id)

    def insert(self, email: str, password_hash: str, name: str) -> UserRecord:
        # Check and insert under one lock hold so concurrent signups
        # with the same email cannot both succeed
        with self._db.lock:
            if self.find_by_email(email) is not None:
                raise DuplicateEmailError(email)
            now = utcnow()
            user = UserRecord(
                id=next(self._db.user_ids),
                email=email,
                password_hash=password_hash,
                name=name,
                created_at=now,
                updated_at=now,
            )
            self._db.users[user.id] = user
            return user

    def delete(self, user_id: int) -> bool:
        with self._db.lock:
            if self._db.users.pop(user_id, None) is None:
                return False
            owned = [post_id for post_id, post in self._db.posts.items() if post.user_id == user_id]
            for post_id in owned:
                del self._db.posts[post_id]
            return True


class InMemoryPostStore(PostStore):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def list_all_with_author(self) -> List[PostWithAuthor]:
        with self._db.lock:
            rows = []
            for post in self._db.posts.values():
                author = self._db.users.get(post.user_id)
                if author is None:
                    continue
                rows.append(PostWithAuthor(post, author.name, author.email))
        rows.sort(key=lambda row: (row.post.created_at, row.post.id), reverse=True)
        return rows

    def insert(self, title: str, content: str, owner_id: int) -> PostRecord:
        with self._db.lock:
            # Mirror the foreign key of the database backend
            if owner_id not in self._db.users:
                raise LookupError(f"User {owner_id} does not exist")
            now = utcnow()
            post = PostRecord(
                id=next(self._db.post_ids),
                title=title,
                content=content,
                user_id=owner_id,
                created_at=now,
                updated_at=now,
            )
            self._db.posts[post.id] = post
            return post

    def find_by_id(self, post_id: int) -> Optional[PostRecord]:
        with self._db.lock:
            return self._db.posts.get(post_id)

    def update(
        self,
        post_id: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> Optional[PostRecord]:
        changes = {}
        if clean_field(title):
            changes["title"] = clean_field(title)
        if clean_field(content):
            changes["content"] = clean_field(content)

        with self._db.lock:
            post = self._db.posts.get(post_id)
            if post is None:
                return None
            # Never move updated_at backwards, even if the wall clock does
            changes["updated_at"] = max(utcnow(), post.updated_at)
            updated = replace(post, **changes)
            self._db.posts[post_id] = updated
            return updated

    def delete(self, post_id: int) -> bool:
        with self._db.lock:
            return self._db.posts.pop(post_id, None) is not None
