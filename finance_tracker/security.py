from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

import bcrypt
from jose import JWTError, jwt

from finance_tracker.database import utcnow
from finance_tracker.errors import InvalidToken

ALGORITHM = "HS256"
DEFAULT_TOKEN_TTL = timedelta(hours=1)
# bcrypt only reads the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """Return a salted bcrypt hash of *password*."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def generate_reset_token() -> str:
    return secrets.token_hex(32)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


@dataclass
class TokenIssuer:
    """Issues and verifies the signed bearer tokens handed to clients.

    Tokens are HS256 JWTs whose ``sub`` claim is the user id. There is no
    refresh flow: clients log in again once ``exp`` has passed.
    """

    secret: str
    ttl: timedelta = DEFAULT_TOKEN_TTL
    algorithm: str = ALGORITHM

    def __post_init__(self) -> None:
        if not self.secret:
            raise ValueError("A token secret is required")

    def issue(self, user_id: int, now: datetime | None = None) -> str:
        issued_at = now or utcnow()
        claims = {
            "sub": str(user_id),
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.ttl).timestamp()),
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> int:
        """Return the user id carried by *token* or raise ``InvalidToken``."""
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as exc:
            raise InvalidToken() from exc
        subject = claims.get("sub")
        try:
            return int(subject)
        except (TypeError, ValueError) as exc:
            raise InvalidToken() from exc
