"""
Store interfaces shared by the in-memory and database backends.

Stores hand out plain records, never ORM instances, so callers do not
depend on a live database session.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class UserRecord:
    id: int
    email: str
    password_hash: str
    name: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class PostRecord:
    id: int
    title: str
    content: str
    user_id: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class PostWithAuthor:
    post: PostRecord
    author_name: str
    author_email: str


def clean_field(value: Optional[str]) -> Optional[str]:
    """Trimmed value, or None when nothing usable was supplied."""
    if value is None:
        return None
    value = value.strip()
    return value or None


class UserStore(ABC):
    @abstractmethod
    def find_by_email(self, email: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        ...

    @abstractmethod
    def insert(self, email: str, password_hash: str, name: str) -> UserRecord:
        """Raises DuplicateEmailError if the email is already registered."""

    @abstractmethod
    def delete(self, user_id: int) -> bool:
        """Remove the user and all of their posts."""


class PostStore(ABC):
    @abstractmethod
    def list_all_with_author(self) -> List[PostWithAuthor]:
        """Newest first. Posts whose author is gone are left out."""

    @abstractmethod
    def insert(self, title: str, content: str, owner_id: int) -> PostRecord:
        ...

    @abstractmethod
    def find_by_id(self, post_id: int) -> Optional[PostRecord]:
        ...

    @abstractmethod
    def update(
        self,
        post_id: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> Optional[PostRecord]:
        """
        Apply the supplied non-blank fields and refresh updated_at.

        Returns None if the post does not exist.
        """

    @abstractmethod
    def delete(self, post_id: int) -> bool:
        ...
