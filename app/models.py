from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from app.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    Registered author. Stores credentials and metadata.

    Design notes:
    - email is stored normalized (trimmed, lower-cased), unique and indexed
    - password_hash never leaves the store layer
    - deleting a user deletes their posts (FK ON DELETE CASCADE)
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    posts = relationship(
        "Post",
        back_populates="author",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_users_email", "email"),
        # Never hand out the id of a deleted row again
        {"sqlite_autoincrement": True},
    )

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"


class Post(Base):
    """
    Blog post owned by a single user.

    Timestamps are assigned in Python rather than by the server so that
    updated_at has sub-second resolution on every backend.
    """
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    author = relationship("User", back_populates="posts")

    __table_args__ = (
        Index("idx_posts_user_id", "user_id"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self):
        return f"<Post(id={self.id}, user_id={self.user_id})>"


# Listing is always newest first
Index("idx_posts_created_at", Post.created_at.desc())
