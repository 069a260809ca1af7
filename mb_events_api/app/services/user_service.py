"""
Business logic for user accounts.

Covers registration, login and the password lifecycle (change, forgot,
reset).  E-mail addresses are stored trimmed and lower-cased and are
unique.  Welcome and reset e-mails are best effort: a delivery failure
is logged and never undoes the account change that triggered it.
"""

import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from urllib.parse import urlencode

from ..core.config import Settings
from ..core.db import get_connection
from ..core.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from ..core.security import (
    PASSWORD_RULE,
    RESET_TOKEN,
    create_access_token,
    create_reset_token,
    decode_token,
    hash_password,
    is_strong_password,
    verify_password,
)
from ..schemas.user import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UserRead,
)
from .notification_service import NotificationService

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _user_from_row(row: sqlite3.Row) -> UserRead:
    return UserRead(id=row["id"], full_name=row["full_name"], email=row["email"])


class UserService:
    """Account operations backed by the ``users`` table."""

    def __init__(self, settings: Settings, notifier: NotificationService) -> None:
        self.settings = settings
        self.notifier = notifier

    def _find_by_email(self, cursor: sqlite3.Cursor, email: str) -> Optional[sqlite3.Row]:
        return cursor.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()

    def _find_by_id(self, cursor: sqlite3.Cursor, user_id: int) -> Optional[sqlite3.Row]:
        return cursor.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()

    async def register(self, data: RegisterRequest) -> UserRead:
        """Create an account and send a welcome e-mail.

        Raises ``ValidationError`` for missing fields or a weak password
        and ``ConflictError`` if the e-mail is taken.
        """
        full_name = (data.full_name or "").strip()
        email = _normalize_email(data.email or "")
        if not full_name or not email or not data.password:
            raise ValidationError("Full name, email, and password are required")
        if not is_strong_password(data.password):
            raise ValidationError(PASSWORD_RULE)

        now = _utcnow().isoformat()
        conn = get_connection(self.settings)
        try:
            cursor = conn.cursor()
            if self._find_by_email(cursor, email):
                raise ConflictError("User already exists")
            try:
                cursor.execute(
                    "INSERT INTO users (full_name, email, password, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (full_name, email, hash_password(data.password), now, now),
                )
            except sqlite3.IntegrityError as exc:
                # Lost a race with a concurrent registration.
                raise ConflictError("User already exists") from exc
            conn.commit()
            user = UserRead(id=cursor.lastrowid, full_name=full_name, email=email)
        finally:
            conn.close()
        logger.info("Registered user %s (id=%s)", email, user.id)

        client_url = f"{self.settings.frontend_url.rstrip('/')}/login"
        try:
            await self.notifier.send_welcome(user.email, user.full_name, client_url)
        except UpstreamError as exc:
            logger.warning("Welcome e-mail to %s not sent: %s", user.email, exc)
        return user

    async def login(self, data: LoginRequest) -> Tuple[str, UserRead]:
        """Check credentials and return ``(access_token, user)``."""
        if not data.email or not data.password:
            raise ValidationError("Email and password are required")
        conn = get_connection(self.settings)
        try:
            row = self._find_by_email(conn.cursor(), _normalize_email(data.email))
        finally:
            conn.close()
        if not row or not verify_password(data.password, row["password"]):
            logger.info("Failed login for %s", data.email)
            raise AuthenticationError("Invalid credentials")
        user = _user_from_row(row)
        return create_access_token(user.id, user.email, self.settings), user

    async def change_password(self, user_id: int, data: ChangePasswordRequest) -> None:
        if not data.old_password or not data.new_password:
            raise ValidationError("Provide oldPassword and newPassword")
        if not is_strong_password(data.new_password):
            raise ValidationError(PASSWORD_RULE)
        conn = get_connection(self.settings)
        try:
            cursor = conn.cursor()
            row = self._find_by_id(cursor, user_id)
            if not row:
                raise NotFoundError("User not found")
            if not verify_password(data.old_password, row["password"]):
                raise ValidationError("Old password is incorrect")
            cursor.execute(
                "UPDATE users SET password = ?, updated_at = ? WHERE id = ?",
                (hash_password(data.new_password), _utcnow().isoformat(), user_id),
            )
            conn.commit()
        finally:
            conn.close()
        logger.info("User %s changed their password", user_id)

    async def forgot_password(self, data: ForgotPasswordRequest) -> None:
        """Issue a reset token, store it with its expiry and e-mail a link."""
        if not data.email:
            raise ValidationError("Email is required")
        conn = get_connection(self.settings)
        try:
            cursor = conn.cursor()
            row = self._find_by_email(cursor, _normalize_email(data.email))
            if not row:
                raise NotFoundError("User not found")
            token = create_reset_token(row["id"], self.settings)
            expiry = _utcnow() + timedelta(minutes=self.settings.reset_token_expire_minutes)
            cursor.execute(
                "UPDATE users SET reset_token = ?, reset_token_expiry = ?, updated_at = ? WHERE id = ?",
                (token, expiry.isoformat(), _utcnow().isoformat(), row["id"]),
            )
            conn.commit()
        finally:
            conn.close()

        reset_url = (
            f"{self.settings.frontend_url.rstrip('/')}/reset-password?{urlencode({'token': token})}"
        )
        try:
            await self.notifier.send_password_reset(row["email"], row["full_name"], reset_url)
        except UpstreamError as exc:
            logger.warning("Password reset e-mail to %s not sent: %s", row["email"], exc)

    async def reset_password(self, data: ResetPasswordRequest) -> None:
        """Replace the password if the reset token is valid, current and stored.

        Any failure leaves the stored password untouched.
        """
        if not data.token or not data.new_password:
            raise ValidationError("Provide token and newPassword")
        try:
            claims = decode_token(data.token, self.settings, RESET_TOKEN)
        except AuthenticationError as exc:
            raise ValidationError("Invalid or expired token") from exc
        if not is_strong_password(data.new_password):
            raise ValidationError(PASSWORD_RULE)

        conn = get_connection(self.settings)
        try:
            cursor = conn.cursor()
            row = self._find_by_id(cursor, claims.get("id"))
            if (
                not row
                or row["reset_token"] != data.token
                or not row["reset_token_expiry"]
                or datetime.fromisoformat(row["reset_token_expiry"]) <= _utcnow()
            ):
                raise ValidationError("Invalid or expired token")
            cursor.execute(
                "UPDATE users SET password = ?, reset_token = NULL, reset_token_expiry = NULL, "
                "updated_at = ? WHERE id = ?",
                (hash_password(data.new_password), _utcnow().isoformat(), row["id"]),
            )
            conn.commit()
        finally:
            conn.close()
        logger.info("User %s reset their password", row["id"])
