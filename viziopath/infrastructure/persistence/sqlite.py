import json
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ...domain.models import Profile, ProfileOwner, ProfileStats, Role, User
from ...domain.models.profile import default_profile_preferences
from ...domain.models.user import default_preferences
from ...domain.ports.persistence import (
    AccountNotFoundError,
    DuplicateEmailError,
    PersistenceGateway,
)

_PROFILE_TEXT_FIELDS = ("avatar", "bio", "location", "website", "company", "job_title")
_PROFILE_JSON_FIELDS = ("skills", "education", "experience", "social", "preferences")

_PROFILE_SELECT = """
    SELECT p.*,
           u.name AS owner_name,
           u.email AS owner_email,
           u.is_verified AS owner_is_verified,
           u.created_at AS owner_created_at
    FROM profiles p
    JOIN users u ON u.id = p.user_id
"""


class SQLitePersistence(PersistenceGateway):
    """SQLite-backed implementation of the persistence gateway."""

    def __init__(self, path: Path) -> None:
        if str(path) != ":memory:":
            path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._lock = threading.Lock()
        self._initialize()

    def _initialize(self) -> None:
        with self._conn:
            self._conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    phone TEXT,
                    role TEXT NOT NULL DEFAULT 'user',
                    is_verified INTEGER NOT NULL DEFAULT 0,
                    verification_token TEXT,
                    verification_expires_at TEXT,
                    reset_password_token TEXT,
                    reset_password_expires_at TEXT,
                    login_attempts INTEGER NOT NULL DEFAULT 0,
                    lock_until TEXT,
                    last_login TEXT,
                    preferences TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_users_role ON users(role);
                CREATE INDEX IF NOT EXISTS idx_users_created_at ON users(created_at DESC);
                CREATE INDEX IF NOT EXISTS idx_users_verification_token
                    ON users(verification_token);
                CREATE INDEX IF NOT EXISTS idx_users_reset_password_token
                    ON users(reset_password_token);

                CREATE TABLE IF NOT EXISTS profiles (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL UNIQUE,
                    avatar TEXT,
                    bio TEXT NOT NULL DEFAULT '',
                    location TEXT NOT NULL DEFAULT '',
                    website TEXT NOT NULL DEFAULT '',
                    company TEXT NOT NULL DEFAULT '',
                    job_title TEXT NOT NULL DEFAULT '',
                    skills TEXT NOT NULL DEFAULT '[]',
                    education TEXT NOT NULL DEFAULT '[]',
                    experience TEXT NOT NULL DEFAULT '[]',
                    social TEXT NOT NULL DEFAULT '{}',
                    preferences TEXT NOT NULL,
                    profile_visibility TEXT NOT NULL DEFAULT 'public',
                    profile_views INTEGER NOT NULL DEFAULT 0,
                    connections INTEGER NOT NULL DEFAULT 0,
                    posts INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
                );

                CREATE INDEX IF NOT EXISTS idx_profiles_location ON profiles(location);
                CREATE INDEX IF NOT EXISTS idx_profiles_company ON profiles(company);
                CREATE INDEX IF NOT EXISTS idx_profiles_visibility_views
                    ON profiles(profile_visibility, profile_views DESC);
                """
            )

    def close(self) -> None:
        self._conn.close()

    # UserRepository API ----------------------------------------------------
    def get_user_by_id(self, user_id: int) -> Optional[User]:
        with self._lock:
            row = self._fetch_user_locked(user_id)
        return self._row_to_user(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            cur = self._conn.execute(
                "SELECT * FROM users WHERE email = ?", (email.strip().lower(),)
            )
            row = cur.fetchone()
        return self._row_to_user(row) if row else None

    def create_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        phone: Optional[str] = None,
        verification_token: Optional[str] = None,
        verification_expires_at: Optional[datetime] = None,
        role: Role = Role.USER,
        is_verified: bool = False,
    ) -> User:
        now = self._now()
        try:
            with self._lock, self._conn:
                cur = self._conn.execute(
                    """
                    INSERT INTO users (
                        name, email, password_hash, phone, role, is_verified,
                        verification_token, verification_expires_at, login_attempts,
                        preferences, created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?, ?)
                    """,
                    (
                        name,
                        email.strip().lower(),
                        password_hash,
                        phone,
                        role.value,
                        int(is_verified),
                        verification_token,
                        self._to_iso(verification_expires_at),
                        json.dumps(default_preferences()),
                        now,
                        now,
                    ),
                )
                row = self._fetch_user_locked(cur.lastrowid)
        except sqlite3.IntegrityError as exc:
            raise DuplicateEmailError(email) from exc
        if not row:
            raise RuntimeError("Failed to persist user.")
        return self._row_to_user(row)

    def update_user(
        self,
        user_id: int,
        *,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        preferences: Optional[Dict[str, Any]] = None,
    ) -> User:
        updates = []
        params: List[Any] = []
        if name is not None:
            updates.append("name = ?")
            params.append(name)
        if phone is not None:
            updates.append("phone = ?")
            params.append(phone or None)
        if preferences is not None:
            updates.append("preferences = ?")
            params.append(json.dumps(preferences))

        with self._lock, self._conn:
            if updates:
                updates.append("updated_at = ?")
                params.extend([self._now(), user_id])
                self._conn.execute(f"UPDATE users SET {', '.join(updates)} WHERE id = ?", params)
            row = self._fetch_user_locked(user_id)
        if not row:
            raise AccountNotFoundError(user_id)
        return self._row_to_user(row)

    def update_user_password(self, user_id: int, password_hash: str) -> User:
        with self._lock, self._conn:
            self._conn.execute(
                "UPDATE users SET password_hash = ?, updated_at = ? WHERE id = ?",
                (password_hash, self._now(), user_id),
            )
            row = self._fetch_user_locked(user_id)
        if not row:
            raise AccountNotFoundError(user_id)
        return self._row_to_user(row)

    def set_verification_token(self, user_id: int, token: str, expires_at: datetime) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                """
                UPDATE users
                SET verification_token = ?, verification_expires_at = ?, updated_at = ?
                WHERE id = ?
                """,
                (token, self._to_iso(expires_at), self._now(), user_id),
            )

    def set_reset_token(self, user_id: int, token: str, expires_at: datetime) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                """
                UPDATE users
                SET reset_password_token = ?, reset_password_expires_at = ?, updated_at = ?
                WHERE id = ?
                """,
                (token, self._to_iso(expires_at), self._now(), user_id),
            )

    def get_user_by_reset_token(self, token: str, now: datetime) -> Optional[User]:
        with self._lock:
            cur = self._conn.execute(
                "SELECT * FROM users WHERE reset_password_token = ? AND reset_password_expires_at > ?",
                (token, self._to_iso(now)),
            )
            row = cur.fetchone()
        return self._row_to_user(row) if row else None

    def consume_verification_token(self, token: str, now: datetime) -> Optional[User]:
        now_iso = self._to_iso(now)
        with self._lock, self._conn:
            cur = self._conn.execute(
                "SELECT id FROM users WHERE verification_token = ? AND verification_expires_at > ?",
                (token, now_iso),
            )
            match = cur.fetchone()
            if not match:
                return None
            cur = self._conn.execute(
                """
                UPDATE users
                SET is_verified = 1, verification_token = NULL,
                    verification_expires_at = NULL, updated_at = ?
                WHERE id = ? AND verification_token = ?
                """,
                (self._now(), match["id"], token),
            )
            if cur.rowcount != 1:
                return None
            row = self._fetch_user_locked(match["id"])
        return self._row_to_user(row) if row else None

    def consume_reset_token(self, token: str, password_hash: str, now: datetime) -> Optional[User]:
        now_iso = self._to_iso(now)
        with self._lock, self._conn:
            cur = self._conn.execute(
                "SELECT id FROM users WHERE reset_password_token = ? AND reset_password_expires_at > ?",
                (token, now_iso),
            )
            match = cur.fetchone()
            if not match:
                return None
            cur = self._conn.execute(
                """
                UPDATE users
                SET password_hash = ?, reset_password_token = NULL,
                    reset_password_expires_at = NULL, updated_at = ?
                WHERE id = ? AND reset_password_token = ?
                """,
                (password_hash, self._now(), match["id"], token),
            )
            if cur.rowcount != 1:
                return None
            row = self._fetch_user_locked(match["id"])
        return self._row_to_user(row) if row else None

    def record_login_failure(
        self,
        user_id: int,
        now: datetime,
        max_attempts: int,
        lock_until: datetime,
    ) -> User:
        params = {
            "id": user_id,
            "now": self._to_iso(now),
            "max_attempts": max_attempts,
            "lock_until": self._to_iso(lock_until),
            "updated_at": self._now(),
        }
        with self._lock, self._conn:
            # An elapsed lock starts a fresh window that counts this failure.
            cur = self._conn.execute(
                """
                UPDATE users
                SET login_attempts = 1, lock_until = NULL, updated_at = :updated_at
                WHERE id = :id AND lock_until IS NOT NULL AND lock_until <= :now
                """,
                params,
            )
            if cur.rowcount == 0:
                self._conn.execute(
                    """
                    UPDATE users
                    SET login_attempts = login_attempts + 1,
                        lock_until = CASE
                            WHEN login_attempts + 1 >= :max_attempts
                                 AND (lock_until IS NULL OR lock_until <= :now)
                            THEN :lock_until
                            ELSE lock_until
                        END,
                        updated_at = :updated_at
                    WHERE id = :id
                    """,
                    params,
                )
            row = self._fetch_user_locked(user_id)
        if not row:
            raise AccountNotFoundError(user_id)
        return self._row_to_user(row)

    def record_login_success(self, user_id: int, now: datetime) -> User:
        with self._lock, self._conn:
            self._conn.execute(
                """
                UPDATE users
                SET login_attempts = 0, lock_until = NULL, last_login = ?, updated_at = ?
                WHERE id = ?
                """,
                (self._to_iso(now), self._now(), user_id),
            )
            row = self._fetch_user_locked(user_id)
        if not row:
            raise AccountNotFoundError(user_id)
        return self._row_to_user(row)

    def delete_user(self, user_id: int) -> bool:
        with self._lock, self._conn:
            self._conn.execute("DELETE FROM profiles WHERE user_id = ?", (user_id,))
            cur = self._conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            return cur.rowcount > 0

    # ProfileRepository API -------------------------------------------------
    def get_profile(self, user_id: int) -> Optional[Profile]:
        with self._lock:
            row = self._fetch_profile_locked(user_id)
        return self._row_to_profile(row) if row else None

    def create_profile(self, user_id: int) -> Profile:
        with self._lock, self._conn:
            self._insert_profile_locked(user_id)
            row = self._fetch_profile_locked(user_id)
        if not row:
            raise AccountNotFoundError(user_id)
        return self._row_to_profile(row)

    def update_profile(self, user_id: int, fields: Dict[str, Any]) -> Profile:
        updates = []
        params: List[Any] = []
        for name in _PROFILE_TEXT_FIELDS:
            if name in fields:
                updates.append(f"{name} = ?")
                params.append(fields[name])
        for name in _PROFILE_JSON_FIELDS:
            if name in fields:
                updates.append(f"{name} = ?")
                params.append(json.dumps(fields[name], default=str))
        if "preferences" in fields:
            updates.append("profile_visibility = ?")
            params.append(fields["preferences"].get("privacy", {}).get("profileVisibility", "public"))

        with self._lock, self._conn:
            self._insert_profile_locked(user_id)
            if updates:
                updates.append("updated_at = ?")
                params.extend([self._now(), user_id])
                self._conn.execute(
                    f"UPDATE profiles SET {', '.join(updates)} WHERE user_id = ?", params
                )
            row = self._fetch_profile_locked(user_id)
        if not row:
            raise AccountNotFoundError(user_id)
        return self._row_to_profile(row)

    def increment_profile_views(self, user_id: int) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "UPDATE profiles SET profile_views = profile_views + 1 WHERE user_id = ?",
                (user_id,),
            )

    def delete_profile(self, user_id: int) -> bool:
        with self._lock, self._conn:
            cur = self._conn.execute("DELETE FROM profiles WHERE user_id = ?", (user_id,))
            return cur.rowcount > 0

    def search_profiles(
        self,
        *,
        query: Optional[str] = None,
        skills: Sequence[str] = (),
        location: Optional[str] = None,
        company: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Profile], int]:
        clauses = ["p.profile_visibility = 'public'"]
        params: List[Any] = []
        if query:
            pattern = self._like_pattern(query)
            clauses.append(
                "(u.name LIKE ? ESCAPE '\\' OR p.bio LIKE ? ESCAPE '\\'"
                " OR p.company LIKE ? ESCAPE '\\' OR p.job_title LIKE ? ESCAPE '\\')"
            )
            params.extend([pattern] * 4)
        if skills:
            clauses.append(self._skills_clause(len(skills)))
            params.extend(skills)
        if location:
            clauses.append("p.location LIKE ? ESCAPE '\\'")
            params.append(self._like_pattern(location))
        if company:
            clauses.append("p.company LIKE ? ESCAPE '\\'")
            params.append(self._like_pattern(company))
        where = " WHERE " + " AND ".join(clauses)

        with self._lock:
            cur = self._conn.execute(
                _PROFILE_SELECT
                + where
                + " ORDER BY p.profile_views DESC, p.created_at DESC, p.id DESC LIMIT ? OFFSET ?",
                [*params, limit, offset],
            )
            rows = cur.fetchall()
            cur = self._conn.execute(
                "SELECT COUNT(*) AS total FROM profiles p JOIN users u ON u.id = p.user_id" + where,
                params,
            )
            total = cur.fetchone()["total"]
        return [self._row_to_profile(row) for row in rows], total

    def suggest_profiles(
        self,
        *,
        exclude_user_id: int,
        skills: Sequence[str] = (),
        location: Optional[str] = None,
        limit: int = 5,
    ) -> List[Profile]:
        clauses = ["p.profile_visibility = 'public'", "p.user_id != ?"]
        params: List[Any] = [exclude_user_id]
        if skills:
            clauses.append(self._skills_clause(len(skills)))
            params.extend(skills)
        if location:
            clauses.append("p.location LIKE ? ESCAPE '\\'")
            params.append(self._like_pattern(location))
        params.append(limit)
        with self._lock:
            cur = self._conn.execute(
                _PROFILE_SELECT
                + " WHERE "
                + " AND ".join(clauses)
                + " ORDER BY p.profile_views DESC, p.id DESC LIMIT ?",
                params,
            )
            rows = cur.fetchall()
        return [self._row_to_profile(row) for row in rows]

    # Helpers ----------------------------------------------------------------
    def _fetch_user_locked(self, user_id: int) -> Optional[sqlite3.Row]:
        cur = self._conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
        return cur.fetchone()

    def _fetch_profile_locked(self, user_id: int) -> Optional[sqlite3.Row]:
        cur = self._conn.execute(_PROFILE_SELECT + " WHERE p.user_id = ?", (user_id,))
        return cur.fetchone()

    def _insert_profile_locked(self, user_id: int) -> None:
        now = self._now()
        self._conn.execute(
            """
            INSERT OR IGNORE INTO profiles (user_id, preferences, created_at, updated_at)
            SELECT id, ?, ?, ? FROM users WHERE id = ?
            """,
            (json.dumps(default_profile_preferences()), now, now, user_id),
        )

    @staticmethod
    def _skills_clause(count: int) -> str:
        placeholders = ", ".join("?" for _ in range(count))
        return f"EXISTS (SELECT 1 FROM json_each(p.skills) WHERE json_each.value IN ({placeholders}))"

    @staticmethod
    def _like_pattern(value: str) -> str:
        escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        return f"%{escaped}%"

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).replace(microsecond=0).isoformat()

    @staticmethod
    def _to_iso(value: Optional[datetime]) -> Optional[str]:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(microsecond=0).isoformat()

    @staticmethod
    def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
        if not value:
            return None
        result = datetime.fromisoformat(value)
        if result.tzinfo is None:
            return result.replace(tzinfo=timezone.utc)
        return result.astimezone(timezone.utc)

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            password_hash=row["password_hash"],
            phone=row["phone"],
            role=Role(row["role"]),
            is_verified=bool(row["is_verified"]),
            verification_token=row["verification_token"],
            verification_expires_at=self._parse_datetime(row["verification_expires_at"]),
            reset_password_token=row["reset_password_token"],
            reset_password_expires_at=self._parse_datetime(row["reset_password_expires_at"]),
            login_attempts=row["login_attempts"],
            lock_until=self._parse_datetime(row["lock_until"]),
            last_login=self._parse_datetime(row["last_login"]),
            preferences=json.loads(row["preferences"]),
            created_at=self._parse_datetime(row["created_at"]),
            updated_at=self._parse_datetime(row["updated_at"]),
        )

    def _row_to_profile(self, row: sqlite3.Row) -> Profile:
        return Profile(
            id=row["id"],
            user_id=row["user_id"],
            avatar=row["avatar"],
            bio=row["bio"],
            location=row["location"],
            website=row["website"],
            company=row["company"],
            job_title=row["job_title"],
            skills=json.loads(row["skills"]),
            education=json.loads(row["education"]),
            experience=json.loads(row["experience"]),
            social=json.loads(row["social"]),
            preferences=json.loads(row["preferences"]),
            stats=ProfileStats(
                profile_views=row["profile_views"],
                connections=row["connections"],
                posts=row["posts"],
            ),
            owner=ProfileOwner(
                id=row["user_id"],
                name=row["owner_name"],
                email=row["owner_email"],
                is_verified=bool(row["owner_is_verified"]),
                created_at=self._parse_datetime(row["owner_created_at"]),
            ),
            created_at=self._parse_datetime(row["created_at"]),
            updated_at=self._parse_datetime(row["updated_at"]),
        )
