from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
import jwt
from app.config import Settings


def build_password_hasher(settings: Settings) -> PasswordHasher:
    """
    Argon2id hasher with cost parameters from settings.

    Argon2 advantages:
    - Winner of Password Hashing Competition (2015)
    - Memory-hard: Resists GPU/ASIC attacks
    - Configurable cost parameters
    - Automatic salt generation

    Changing the parameters does not invalidate stored hashes: each hash
    string carries the parameters and salt it was made with.
    Format: $argon2id$v=19$m=65536,t=3,p=4$salt$hash
    """
    return PasswordHasher(
        time_cost=settings.password_hash_time_cost,
        memory_cost=settings.password_hash_memory_cost,
        parallelism=settings.password_hash_parallelism,
    )


def hash_password(ph: PasswordHasher, password: str) -> str:
    """
    Hash password using Argon2id.
    Returns hash string that includes algorithm parameters and salt.
    """
    return ph.hash(password)


def verify_password(ph: PasswordHasher, password: str, password_hash: str) -> bool:
    """
    Verify password against stored hash.

    Uses constant-time comparison internally to prevent timing attacks.
    Returns False for any error to avoid information leakage.
    """
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


@dataclass(frozen=True)
class TokenClaims:
    """Identity carried by a valid access token."""
    user_id: int
    email: str


class TokenError(Exception):
    """Token failed signature, expiry or payload checks."""


def create_access_token(
    settings: Settings,
    user_id: int,
    email: str,
    now: Optional[datetime] = None,
) -> str:
    """
    Issue a signed JWT for the user.

    Payload: {id, email, iat, exp}. Valid for settings.jwt_expire_hours.
    There is no server-side session: validity depends only on the
    signature and the exp claim.
    """
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "email": email,
        "iat": issued_at,
        "exp": issued_at + timedelta(hours=settings.jwt_expire_hours),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(settings: Settings, token: str) -> TokenClaims:
    """
    Verify signature and expiry and return the embedded identity.

    Raises TokenError for tampered, expired or malformed tokens.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "id", "email"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as exc:
        raise TokenError(str(exc))

    user_id = payload["id"]
    email = payload["email"]
    if not isinstance(user_id, int) or isinstance(user_id, bool) or not isinstance(email, str):
        raise TokenError("Malformed token payload")

    return TokenClaims(user_id=user_id, email=email)
