"""
Relational storage backend on SQLAlchemy.

Every store call runs in its own session and transaction. Uniqueness and
referential integrity come from the schema in app.models.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from app.errors import DuplicateEmailError
from app.models import Post, User, utcnow
from app.stores.base import (
    PostRecord,
    PostStore,
    PostWithAuthor,
    UserRecord,
    UserStore,
    clean_field,
)

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _user_record(user: User) -> UserRecord:
    return UserRecord(
        id=user.id,
        email=user.email,
        password_hash=user.password_hash,
        name=user.name,
        created_at=_as_utc(user.created_at),
        updated_at=_as_utc(user.updated_at),
    )


def _post_record(post: Post) -> PostRecord:
    return PostRecord(
        id=post.id,
        title=post.title,
        content=post.content,
        user_id=post.user_id,
        created_at=_as_utc(post.created_at),
        updated_at=_as_utc(post.updated_at),
    )


class SqlUserStore(UserStore):
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        with self._session_factory() as db:
            user = db.scalars(select(User).where(User.email == email)).first()
            return _user_record(user) if user else None

    def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        with self._session_factory() as db:
            user = db.get(User, user_id)
            return _user_record(user) if user else None

    def insert(self, email: str, password_hash: str, name: str) -> UserRecord:
        with self._session_factory() as db:
            existing = db.scalars(select(User.id).where(User.email == email)).first()
            if existing is not None:
                raise DuplicateEmailError(email)

            now = utcnow()
            user = User(
                email=email,
                password_hash=password_hash,
                name=name,
                created_at=now,
                updated_at=now,
            )
            db.add(user)
            try:
                db.commit()
            except IntegrityError:
                # Lost the race against a concurrent signup; the unique
                # constraint on users.email decides
                db.rollback()
                raise DuplicateEmailError(email)
            return _user_record(user)

    def delete(self, user_id: int) -> bool:
        with self._session_factory() as db:
            user = db.get(User, user_id)
            if user is None:
                return False
            # Posts go with the user through ON DELETE CASCADE
            db.delete(user)
            db.commit()
            return True


class SqlPostStore(PostStore):
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def list_all_with_author(self) -> List[PostWithAuthor]:
        # Inner join: posts without a live author row are excluded
        query = (
            select(Post, User.name, User.email)
            .join(User, Post.user_id == User.id)
            .order_by(Post.created_at.desc(), Post.id.desc())
        )
        with self._session_factory() as db:
            return [
                PostWithAuthor(_post_record(post), name, email)
                for post, name, email in db.execute(query).all()
            ]

    def insert(self, title: str, content: str, owner_id: int) -> PostRecord:
        with self._session_factory() as db:
            now = utcnow()
            post = Post(
                title=title,
                content=content,
                user_id=owner_id,
                created_at=now,
                updated_at=now,
            )
            db.add(post)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise LookupError(f"User {owner_id} does not exist")
            return _post_record(post)

    def find_by_id(self, post_id: int) -> Optional[PostRecord]:
        with self._session_factory() as db:
            post = db.get(Post, post_id)
            return _post_record(post) if post else None

    def update(
        self,
        post_id: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> Optional[PostRecord]:
        with self._session_factory() as db:
            # Row lock where the database supports it (no-op on SQLite)
            post = db.scalars(
                select(Post).where(Post.id == post_id).with_for_update()
            ).first()
            if post is None:
                return None

            if clean_field(title):
                post.title = clean_field(title)
            if clean_field(content):
                post.content = clean_field(content)
            post.updated_at = max(utcnow(), _as_utc(post.updated_at))

            db.commit()
            logger.debug("Updated post %s", post_id)
            return _post_record(post)

    def delete(self, post_id: int) -> bool:
        with self._session_factory() as db:
            post = db.get(Post, post_id)
            if post is None:
                return False
            db.delete(post)
            db.commit()
            return True
