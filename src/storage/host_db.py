"""
SQLite-based store for hosts and their GMV reports.
Stores users with bcrypt-hashed passwords and the reports they confirm.
Every sqlite failure is re-raised as PersistenceError.
"""
import sqlite3
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import List, Optional

import bcrypt as _bcrypt

from bot.errors import PersistenceError
from storage.models import RegistrationStage, Report, ReportStatus, UserRegistrationRecord


def hash_password(password: str) -> str:
    """Salted bcrypt hash of a password."""
    return _bcrypt.hashpw(password.encode("utf-8"), _bcrypt.gensalt(rounds=10)).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    return _bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _wrap_sqlite_errors(method):
    @wraps(method)
    def wrapper(*args, **kwargs):
        try:
            return method(*args, **kwargs)
        except sqlite3.Error as e:
            raise PersistenceError(f"{method.__name__} failed: {e}") from e
    return wrapper


class HostDB:
    """SQLite database for host registration records and reports."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_conn(self) -> sqlite3.Connection:
        """Get a new connection (sqlite3 connections are not thread-safe)."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    def _init_db(self):
        """Create the tables if they don't exist."""
        conn = self._get_conn()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    telegram_user_id TEXT UNIQUE NOT NULL,
                    username TEXT NOT NULL,
                    full_name TEXT,
                    email TEXT,
                    password_hash TEXT,
                    registration_stage TEXT NOT NULL DEFAULT 'FULL_NAME',
                    role TEXT NOT NULL DEFAULT 'HOST',
                    is_approved INTEGER NOT NULL DEFAULT 0,
                    is_active INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute(
                "CREATE UNIQUE INDEX IF NOT EXISTS idx_users_email ON users (LOWER(email))"
            )
            conn.execute("""
                CREATE TABLE IF NOT EXISTS reports (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    host_id INTEGER NOT NULL REFERENCES users (id) ON DELETE CASCADE,
                    gmv_amount REAL NOT NULL,
                    screenshot_url TEXT NOT NULL,
                    ocr_raw_text TEXT,
                    duration_label TEXT,
                    status TEXT NOT NULL DEFAULT 'PENDING',
                    notes TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Users (onboarding)
    # ------------------------------------------------------------------

    @_wrap_sqlite_errors
    def get_user_by_telegram_id(self, telegram_user_id: str) -> Optional[UserRegistrationRecord]:
        """Look up a host by Telegram user ID."""
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM users WHERE telegram_user_id = ?",
                (str(telegram_user_id),)
            ).fetchone()
            return UserRegistrationRecord.from_row(row) if row else None
        finally:
            conn.close()

    @_wrap_sqlite_errors
    def get_user_by_id(self, user_id: int) -> Optional[UserRegistrationRecord]:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            return UserRegistrationRecord.from_row(row) if row else None
        finally:
            conn.close()

    @_wrap_sqlite_errors
    def create_pending_user(self, telegram_user_id: str, username: str) -> UserRegistrationRecord:
        """Insert a host that has not given a name yet."""
        conn = self._get_conn()
        try:
            now = _now()
            conn.execute(
                """INSERT INTO users (telegram_user_id, username, registration_stage,
                                      is_approved, is_active, created_at, updated_at)
                   VALUES (?, ?, ?, 0, 0, ?, ?)""",
                (str(telegram_user_id), username, RegistrationStage.FULL_NAME.value, now, now)
            )
            conn.commit()
        finally:
            conn.close()
        return self.get_user_by_telegram_id(telegram_user_id)

    @_wrap_sqlite_errors
    def update_full_name(self, telegram_user_id: str, full_name: str, username: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """UPDATE users SET full_name = ?, username = ?, registration_stage = ?, updated_at = ?
                   WHERE telegram_user_id = ?""",
                (full_name, username, RegistrationStage.EMAIL.value, _now(), str(telegram_user_id))
            )
            conn.commit()
        finally:
            conn.close()

    @_wrap_sqlite_errors
    def email_taken(self, email: str, exclude_telegram_user_id: str = None) -> bool:
        """True if another host already owns this email (case-insensitive)."""
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT id FROM users WHERE LOWER(email) = LOWER(?) AND telegram_user_id != ?",
                (email.strip(), str(exclude_telegram_user_id or ''))
            ).fetchone()
            return row is not None
        finally:
            conn.close()

    @_wrap_sqlite_errors
    def update_email(self, telegram_user_id: str, email: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """UPDATE users SET email = ?, registration_stage = ?, updated_at = ?
                   WHERE telegram_user_id = ?""",
                (email.lower().strip(), RegistrationStage.PASSWORD.value, _now(), str(telegram_user_id))
            )
            conn.commit()
        finally:
            conn.close()

    @_wrap_sqlite_errors
    def set_password_hash(self, telegram_user_id: str, password_hash: str) -> None:
        """Finish registration: store the hash and wait for manager approval."""
        conn = self._get_conn()
        try:
            conn.execute(
                """UPDATE users SET password_hash = ?, registration_stage = ?,
                                    is_approved = 0, is_active = 0, updated_at = ?
                   WHERE telegram_user_id = ?""",
                (password_hash, RegistrationStage.COMPLETED.value, _now(), str(telegram_user_id))
            )
            conn.commit()
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Users (manager actions)
    # ------------------------------------------------------------------

    @_wrap_sqlite_errors
    def list_pending_users(self) -> List[UserRegistrationRecord]:
        """Hosts that finished registration and wait for approval."""
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM users WHERE is_approved = 0 AND registration_stage = ? ORDER BY created_at",
                (RegistrationStage.COMPLETED.value,)
            ).fetchall()
            return [UserRegistrationRecord.from_row(r) for r in rows]
        finally:
            conn.close()

    @_wrap_sqlite_errors
    def set_approval(self, telegram_user_id: str, approved: bool) -> Optional[UserRegistrationRecord]:
        """Approve (and activate) or un-approve a host."""
        conn = self._get_conn()
        try:
            conn.execute(
                "UPDATE users SET is_approved = ?, is_active = ?, updated_at = ? WHERE telegram_user_id = ?",
                (int(approved), int(approved), _now(), str(telegram_user_id))
            )
            conn.commit()
        finally:
            conn.close()
        return self.get_user_by_telegram_id(telegram_user_id)

    @_wrap_sqlite_errors
    def set_active(self, telegram_user_id: str, active: bool) -> Optional[UserRegistrationRecord]:
        conn = self._get_conn()
        try:
            conn.execute(
                "UPDATE users SET is_active = ?, updated_at = ? WHERE telegram_user_id = ?",
                (int(active), _now(), str(telegram_user_id))
            )
            conn.commit()
        finally:
            conn.close()
        return self.get_user_by_telegram_id(telegram_user_id)

    @_wrap_sqlite_errors
    def delete_user(self, telegram_user_id: str) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM users WHERE telegram_user_id = ?", (str(telegram_user_id),))
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    @_wrap_sqlite_errors
    def create_report(self, host_id: int, gmv_amount: float, screenshot_url: str,
                      ocr_raw_text: str, duration_label: Optional[str] = None) -> Report:
        """Insert a PENDING report and return it with its id and timestamp."""
        conn = self._get_conn()
        try:
            now = _now()
            cur = conn.execute(
                """INSERT INTO reports (host_id, gmv_amount, screenshot_url, ocr_raw_text,
                                        duration_label, status, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (host_id, gmv_amount, screenshot_url, ocr_raw_text, duration_label or None,
                 ReportStatus.PENDING.value, now, now)
            )
            conn.commit()
            report_id = cur.lastrowid
        finally:
            conn.close()
        return self.get_report(report_id)

    @_wrap_sqlite_errors
    def get_report(self, report_id: int) -> Optional[Report]:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM reports WHERE id = ?", (report_id,)).fetchone()
            return Report.from_row(row) if row else None
        finally:
            conn.close()

    @_wrap_sqlite_errors
    def list_reports_for_host(self, host_id: int) -> List[Report]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM reports WHERE host_id = ? ORDER BY id", (host_id,)
            ).fetchall()
            return [Report.from_row(r) for r in rows]
        finally:
            conn.close()

    @_wrap_sqlite_errors
    def update_report_status(self, report_id: int, status: ReportStatus,
                             notes: Optional[str] = None) -> Optional[Report]:
        """Manager verification: move a report to VERIFIED or REJECTED."""
        conn = self._get_conn()
        try:
            conn.execute(
                "UPDATE reports SET status = ?, notes = ?, updated_at = ? WHERE id = ?",
                (status.value, notes, _now(), report_id)
            )
            conn.commit()
        finally:
            conn.close()
        return self.get_report(report_id)
