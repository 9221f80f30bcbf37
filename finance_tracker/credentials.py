from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from finance_tracker.core.models import ResetTicket, User
from finance_tracker.database import Database, is_unique_violation, timestamp, utcnow
from finance_tracker.errors import (
    DependencyFailure,
    DuplicateEmail,
    InvalidCredentials,
    InvalidOrExpiredToken,
    NotFound,
    ValidationError,
)
from finance_tracker.notifications.base import BaseNotifier, NotificationError
from finance_tracker.security import (
    MAX_PASSWORD_BYTES,
    TokenIssuer,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    verify_password,
)

logger = logging.getLogger(__name__)

RESET_REQUESTED_MESSAGE = "If that email is registered, a reset link has been sent."
RESET_COMPLETED_MESSAGE = "Password has been reset successfully."
DEFAULT_RESET_TTL = timedelta(hours=1)


@dataclass
class AuthResult:
    token: str
    user: dict

    def to_dict(self) -> dict:
        return {"token": self.token, "user": self.user}


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _row_to_user(row: sqlite3.Row) -> User:
    ticket = None
    if row["reset_token_hash"] and row["reset_expires_at"]:
        ticket = ResetTicket(
            token_hash=row["reset_token_hash"],
            expires_at=datetime.fromisoformat(row["reset_expires_at"]),
        )
    return User(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        password_hash=row["password_hash"],
        created_at=row["created_at"],
        reset_ticket=ticket,
    )


def _check_password(password: str | None) -> str:
    if not password:
        raise ValidationError("Password is required", field="password")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes", field="password"
        )
    return password


def find_user_by_email(db: Database, email: str) -> Optional[User]:
    row = db.fetch_one("SELECT * FROM users WHERE email = ?", (_normalize_email(email),))
    return _row_to_user(row) if row else None


class CredentialStore:
    """Registration, login and the password reset flow."""

    def __init__(
        self,
        db: Database,
        issuer: TokenIssuer,
        notifier: BaseNotifier,
        client_url: str = "http://localhost:3000",
        reset_ttl: timedelta = DEFAULT_RESET_TTL,
    ) -> None:
        self.db = db
        self.issuer = issuer
        self.notifier = notifier
        self.client_url = client_url.rstrip("/")
        self.reset_ttl = reset_ttl

    def _result_for(self, user: User) -> AuthResult:
        return AuthResult(token=self.issuer.issue(user.id), user=user.public())

    def get_user(self, user_id: int) -> dict:
        row = self.db.fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))
        if row is None:
            raise NotFound("User not found")
        return _row_to_user(row).public()

    def register(self, username: str, email: str, password: str) -> AuthResult:
        username = (username or "").strip()
        email = _normalize_email(email)
        if not username:
            raise ValidationError("Username is required", field="username")
        if not email:
            raise ValidationError("Email is required", field="email")
        _check_password(password)

        now = timestamp()
        try:
            cursor = self.db.execute(
                """
                INSERT INTO users (username, email, password_hash, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (username, email, hash_password(password), now, now),
            )
        except sqlite3.IntegrityError as exc:
            if is_unique_violation(exc):
                raise DuplicateEmail() from exc
            raise
        user = User(
            id=cursor.lastrowid,
            username=username,
            email=email,
            password_hash="",
            created_at=now,
        )
        logger.info("Registered user %s", user.id)
        return self._result_for(user)

    def authenticate(self, email: str, password: str) -> AuthResult:
        user = find_user_by_email(self.db, email)
        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentials()
        return self._result_for(user)

    def request_password_reset(self, email: str) -> str:
        """Start a reset for *email* and return the generic acknowledgement.

        The reply is identical whether or not the address is registered. When
        it is, only the SHA-256 of the token is stored and the plaintext goes
        to the notifier. A delivery failure clears the ticket again and
        surfaces as ``DependencyFailure``.
        """
        user = find_user_by_email(self.db, email)
        if user is None:
            return RESET_REQUESTED_MESSAGE

        token = generate_reset_token()
        expires_at = utcnow() + self.reset_ttl
        self.db.execute(
            """
            UPDATE users
            SET reset_token_hash = ?, reset_expires_at = ?, updated_at = ?
            WHERE id = ?
            """,
            (hash_reset_token(token), timestamp(expires_at), timestamp(), user.id),
        )
        reset_url = f"{self.client_url}/reset-password/{token}"
        try:
            self.notifier.send_password_reset(user.email, token, reset_url)
        except NotificationError as exc:
            logger.error("Could not deliver password reset for user %s: %s", user.id, exc)
            self._clear_ticket(user.id)
            raise DependencyFailure() from exc
        logger.info("Password reset requested for user %s", user.id)
        return RESET_REQUESTED_MESSAGE

    def complete_password_reset(self, token: str, new_password: str) -> str:
        if not token:
            raise InvalidOrExpiredToken()
        _check_password(new_password)

        row = self.db.fetch_one(
            "SELECT * FROM users WHERE reset_token_hash = ?", (hash_reset_token(token),)
        )
        user = _row_to_user(row) if row else None
        if user is None or user.reset_ticket is None:
            raise InvalidOrExpiredToken()
        if not user.reset_ticket.is_valid(hash_reset_token(token), utcnow()):
            raise InvalidOrExpiredToken()

        self.db.execute(
            """
            UPDATE users
            SET password_hash = ?, reset_token_hash = NULL, reset_expires_at = NULL,
                updated_at = ?
            WHERE id = ?
            """,
            (hash_password(new_password), timestamp(), user.id),
        )
        logger.info("Password reset completed for user %s", user.id)
        return RESET_COMPLETED_MESSAGE

    def _clear_ticket(self, user_id: int) -> None:
        self.db.execute(
            """
            UPDATE users
            SET reset_token_hash = NULL, reset_expires_at = NULL, updated_at = ?
            WHERE id = ?
            """,
            (timestamp(), user_id),
        )
