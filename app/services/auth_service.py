"""
Registration, login and bearer-token authentication.
"""
import logging
from typing import List, Dict, Optional, Tuple

from argon2 import PasswordHasher
from email_validator import EmailNotValidError, validate_email

from app.auth import (
    TokenClaims,
    TokenError,
    build_password_hasher,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from app.config import Settings
from app.errors import (
    ConflictError,
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidTokenError,
    MissingTokenError,
    NotFoundError,
    ValidationError,
)
from app.stores.base import UserRecord, UserStore

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str) -> str:
    """Trim and lower-case so the same address always maps to one account."""
    return email.strip().lower()


def validate_registration(email: str, password: str, name: str) -> List[Dict[str, str]]:
    """Return one error entry per violated field; empty when all is well."""
    errors = []
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        errors.append({"field": "email", "message": "A valid email address is required"})
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append({
            "field": "password",
            "message": f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        })
    if not name.strip():
        errors.append({"field": "name", "message": "Name is required"})
    return errors


class AuthService:
    def __init__(self, users: UserStore, settings: Settings, hasher: Optional[PasswordHasher] = None):
        self._users = users
        self._settings = settings
        self._hasher = hasher or build_password_hasher(settings)
        # Verified against when the email is unknown so that both login
        # failure paths cost one hash verification
        self._dummy_hash = hash_password(self._hasher, "dummy-password")

    def issue_token(self, user: UserRecord) -> str:
        return create_access_token(self._settings, user.id, user.email)

    def register(self, email: str, password: str, name: str) -> Tuple[UserRecord, str]:
        """
        Create an account and sign the user in.

        Raises ValidationError listing every bad field, or ConflictError
        when the normalized email is already registered.
        """
        errors = validate_registration(email, password, name)
        if errors:
            raise ValidationError(errors)

        email = normalize_email(email)
        if self._users.find_by_email(email) is not None:
            raise ConflictError()

        password_hash = hash_password(self._hasher, password)
        try:
            user = self._users.insert(email, password_hash, name.strip())
        except DuplicateEmailError:
            raise ConflictError()

        logger.info("Registered user %s", user.id)
        return user, self.issue_token(user)

    def login(self, email: str, password: str) -> Tuple[UserRecord, str]:
        """
        Check credentials and issue a token.

        Unknown email and wrong password both raise InvalidCredentialsError
        so callers cannot probe which emails are registered.
        """
        user = self._users.find_by_email(normalize_email(email))
        if user is None:
            verify_password(self._hasher, password, self._dummy_hash)
            logger.info("Login failed: unknown email")
            raise InvalidCredentialsError()

        if not verify_password(self._hasher, password, user.password_hash):
            logger.info("Login failed for user %s", user.id)
            raise InvalidCredentialsError()

        return user, self.issue_token(user)

    def authenticate(self, token: Optional[str]) -> TokenClaims:
        """
        Validate a bearer token.

        Only the signature and expiry are checked; there is no store
        lookup, so a deleted user's token stays valid until it expires.
        """
        if not token:
            raise MissingTokenError()
        try:
            return decode_access_token(self._settings, token)
        except TokenError as exc:
            logger.debug("Rejected token: %s", exc)
            raise InvalidTokenError()

    def get_profile(self, user_id: int) -> UserRecord:
        user = self._users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user
