import sqlite3
import threading
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ...domain.errors import EmailAlreadyRegisteredError
from ...domain.models import User, UserRole, UserStatus
from ...domain.ports.persistence import PersistenceGateway

# Columns safe to load by default. Credentials and token digests are excluded.
_PUBLIC_COLUMNS = (
    "id, email, first_name, last_name, role, status, avatar, phone, department, "
    "position, date_of_birth, hire_date, last_login, is_email_verified, "
    "login_attempts, lock_until, created_at, updated_at"
)

_UPDATABLE_COLUMNS = frozenset(
    {
        "email",
        "first_name",
        "last_name",
        "role",
        "status",
        "avatar",
        "phone",
        "department",
        "position",
        "date_of_birth",
        "hire_date",
    }
)

_SEARCH_COLUMNS = ("first_name", "last_name", "email", "department", "position")


class SQLitePersistence(PersistenceGateway):
    """SQLite-backed implementation of the persistence gateway."""

    def __init__(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._initialize()

    def _initialize(self) -> None:
        with self._conn:
            self._conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT NOT NULL UNIQUE COLLATE NOCASE,
                    password_hash TEXT NOT NULL,
                    first_name TEXT,
                    last_name TEXT,
                    role TEXT NOT NULL DEFAULT 'user',
                    status TEXT NOT NULL DEFAULT 'active',
                    avatar TEXT,
                    phone TEXT,
                    department TEXT,
                    position TEXT,
                    date_of_birth TEXT,
                    hire_date TEXT,
                    last_login TEXT,
                    is_email_verified INTEGER NOT NULL DEFAULT 0,
                    email_verification_digest TEXT,
                    email_verification_expires TEXT,
                    password_reset_digest TEXT,
                    password_reset_expires TEXT,
                    login_attempts INTEGER NOT NULL DEFAULT 0,
                    lock_until TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_users_role ON users(role);
                CREATE INDEX IF NOT EXISTS idx_users_status ON users(status);
                CREATE INDEX IF NOT EXISTS idx_users_department ON users(department);
                CREATE INDEX IF NOT EXISTS idx_users_verification_digest
                    ON users(email_verification_digest);
                CREATE INDEX IF NOT EXISTS idx_users_reset_digest
                    ON users(password_reset_digest);
                """
            )

    def close(self) -> None:
        self._conn.close()

    # Lookups ---------------------------------------------------------------
    def get_user_by_email(self, email: str, *, include_password: bool = False) -> Optional[User]:
        with self._lock:
            cur = self._conn.execute(
                f"SELECT {self._columns(include_password)} FROM users WHERE email = ?",
                (email.strip().lower(),),
            )
            row = cur.fetchone()
        return self._row_to_user(row) if row else None

    def get_user_by_id(self, user_id: int, *, include_password: bool = False) -> Optional[User]:
        with self._lock:
            row = self._fetch_by_id(user_id, include_password)
        return self._row_to_user(row) if row else None

    # Writes ----------------------------------------------------------------
    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        role: UserRole = UserRole.USER,
        status: UserStatus = UserStatus.ACTIVE,
        is_email_verified: bool = False,
        phone: Optional[str] = None,
        department: Optional[str] = None,
        position: Optional[str] = None,
        date_of_birth: Optional[date] = None,
        hire_date: Optional[date] = None,
        verification_digest: Optional[str] = None,
        verification_expires_at: Optional[datetime] = None,
    ) -> User:
        now = self._now()
        try:
            with self._lock, self._conn:
                cur = self._conn.execute(
                    """
                    INSERT INTO users (
                        email, password_hash, first_name, last_name, role, status,
                        is_email_verified, phone, department, position, date_of_birth,
                        hire_date, email_verification_digest, email_verification_expires,
                        login_attempts, created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?)
                    """,
                    (
                        email.strip().lower(),
                        password_hash,
                        first_name,
                        last_name,
                        UserRole(role).value,
                        UserStatus(status).value,
                        int(is_email_verified),
                        phone,
                        department,
                        position,
                        self._date_to_str(date_of_birth),
                        self._date_to_str(hire_date or date.today()),
                        verification_digest,
                        self._to_iso(verification_expires_at),
                        now,
                        now,
                    ),
                )
                row = self._fetch_by_id(cur.lastrowid, False)
        except sqlite3.IntegrityError as exc:
            raise EmailAlreadyRegisteredError() from exc
        if not row:
            raise RuntimeError("Failed to persist user.")
        return self._row_to_user(row)

    def update_user(self, user_id: int, **fields: Any) -> User:
        unknown = set(fields) - _UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update columns: {', '.join(sorted(unknown))}")

        updates = []
        params: List[Any] = []
        for column, value in fields.items():
            updates.append(f"{column} = ?")
            params.append(self._to_db_value(column, value))

        try:
            with self._lock, self._conn:
                if updates:
                    updates.append("updated_at = ?")
                    params.append(self._now())
                    params.append(user_id)
                    statement = f"UPDATE users SET {', '.join(updates)} WHERE id = ?"
                    self._conn.execute(statement, params)
                row = self._fetch_by_id(user_id, False)
        except sqlite3.IntegrityError as exc:
            raise EmailAlreadyRegisteredError() from exc
        if not row:
            raise ValueError(f"User {user_id} not found.")
        return self._row_to_user(row)

    def update_user_password(self, user_id: int, password_hash: str) -> User:
        with self._lock, self._conn:
            self._conn.execute(
                "UPDATE users SET password_hash = ?, updated_at = ? WHERE id = ?",
                (password_hash, self._now(), user_id),
            )
            row = self._fetch_by_id(user_id, False)
        if not row:
            raise ValueError(f"User {user_id} not found.")
        return self._row_to_user(row)

    def update_login_state(
        self,
        user_id: int,
        login_attempts: int,
        lock_until: Optional[datetime],
    ) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "UPDATE users SET login_attempts = ?, lock_until = ? WHERE id = ?",
                (login_attempts, self._to_iso(lock_until), user_id),
            )

    def record_successful_login(self, user_id: int, logged_in_at: datetime) -> User:
        with self._lock, self._conn:
            self._conn.execute(
                """
                UPDATE users
                SET login_attempts = 0, lock_until = NULL, last_login = ?
                WHERE id = ?
                """,
                (self._to_iso(logged_in_at), user_id),
            )
            row = self._fetch_by_id(user_id, False)
        if not row:
            raise ValueError(f"User {user_id} not found.")
        return self._row_to_user(row)

    def delete_user(self, user_id: int) -> None:
        with self._lock, self._conn:
            self._conn.execute("DELETE FROM users WHERE id = ?", (user_id,))

    # One-time tokens ---------------------------------------------------------
    def set_email_verification_token(self, user_id: int, digest: str, expires_at: datetime) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                """
                UPDATE users
                SET email_verification_digest = ?, email_verification_expires = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (digest, self._to_iso(expires_at), self._now(), user_id),
            )

    def set_password_reset_token(self, user_id: int, digest: str, expires_at: datetime) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                """
                UPDATE users
                SET password_reset_digest = ?, password_reset_expires = ?, updated_at = ?
                WHERE id = ?
                """,
                (digest, self._to_iso(expires_at), self._now(), user_id),
            )

    def consume_email_verification_token(self, digest: str, now: datetime) -> Optional[User]:
        with self._lock, self._conn:
            user_id = self._find_id("email_verification_digest", digest)
            if user_id is None:
                return None
            cur = self._conn.execute(
                """
                UPDATE users
                SET is_email_verified = 1, email_verification_digest = NULL,
                    email_verification_expires = NULL, updated_at = ?
                WHERE id = ? AND email_verification_digest = ?
                    AND email_verification_expires > ?
                """,
                (self._now(), user_id, digest, self._to_iso(now)),
            )
            if cur.rowcount != 1:
                return None
            row = self._fetch_by_id(user_id, False)
        return self._row_to_user(row) if row else None

    def consume_password_reset_token(
        self,
        digest: str,
        password_hash: str,
        now: datetime,
    ) -> Optional[User]:
        with self._lock, self._conn:
            user_id = self._find_id("password_reset_digest", digest)
            if user_id is None:
                return None
            cur = self._conn.execute(
                """
                UPDATE users
                SET password_hash = ?, password_reset_digest = NULL,
                    password_reset_expires = NULL, updated_at = ?
                WHERE id = ? AND password_reset_digest = ?
                    AND password_reset_expires > ?
                """,
                (password_hash, self._now(), user_id, digest, self._to_iso(now)),
            )
            if cur.rowcount != 1:
                return None
            row = self._fetch_by_id(user_id, False)
        return self._row_to_user(row) if row else None

    # Listing ---------------------------------------------------------------
    def list_users(
        self,
        *,
        offset: int,
        limit: int,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
        department: Optional[str] = None,
    ) -> Tuple[List[User], int]:
        clauses, params = self._filter_clauses(role, status, department)
        if search:
            clauses.append(self._search_clause(("first_name", "last_name", "email")))
            params.extend([self._like_pattern(search)] * 3)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""

        with self._lock:
            cur = self._conn.execute(f"SELECT COUNT(*) AS total FROM users{where}", params)
            total = cur.fetchone()["total"]
            cur = self._conn.execute(
                f"SELECT {_PUBLIC_COLUMNS} FROM users{where} "
                "ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
                [*params, limit, offset],
            )
            rows = cur.fetchall()
        return [self._row_to_user(row) for row in rows], total

    def search_users(
        self,
        term: str,
        *,
        limit: int,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
        department: Optional[str] = None,
    ) -> List[User]:
        clauses, params = self._filter_clauses(role, status, department)
        clauses.append(self._search_clause(_SEARCH_COLUMNS))
        params.extend([self._like_pattern(term)] * len(_SEARCH_COLUMNS))

        with self._lock:
            cur = self._conn.execute(
                f"SELECT {_PUBLIC_COLUMNS} FROM users WHERE {' AND '.join(clauses)} "
                "ORDER BY first_name ASC, last_name ASC, id ASC LIMIT ?",
                [*params, limit],
            )
            rows = cur.fetchall()
        return [self._row_to_user(row) for row in rows]

    def bulk_update_users(
        self,
        user_ids: Sequence[int],
        *,
        exclude_role: Optional[UserRole] = None,
        **fields: Any,
    ) -> Tuple[int, int]:
        unknown = set(fields) - _UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update columns: {', '.join(sorted(unknown))}")
        if not user_ids or not fields:
            return 0, 0

        values = {column: self._to_db_value(column, value) for column, value in fields.items()}
        id_marks = ", ".join("?" for _ in user_ids)
        match = f"id IN ({id_marks})"
        match_params: List[Any] = list(user_ids)
        if exclude_role is not None:
            match += " AND role != ?"
            match_params.append(UserRole(exclude_role).value)
        assignments = ", ".join(f"{column} = ?" for column in values)
        differs = " OR ".join(f"{column} IS NOT ?" for column in values)

        with self._lock, self._conn:
            cur = self._conn.execute(f"SELECT COUNT(*) AS matched FROM users WHERE {match}", match_params)
            matched = cur.fetchone()["matched"]
            cur = self._conn.execute(
                f"UPDATE users SET {assignments}, updated_at = ? WHERE {match} AND ({differs})",
                [*values.values(), self._now(), *match_params, *values.values()],
            )
            modified = cur.rowcount
        return matched, modified

    def get_user_stats(self, registered_since: datetime) -> Dict[str, Any]:
        with self._lock:
            cur = self._conn.execute(
                """
                SELECT
                    COUNT(*) AS total,
                    SUM(status = 'active') AS active,
                    SUM(status = 'inactive') AS inactive,
                    SUM(status = 'suspended') AS suspended,
                    SUM(role = 'admin') AS admin,
                    SUM(role = 'manager') AS manager,
                    SUM(role = 'user') AS user,
                    SUM(is_email_verified = 1) AS verified,
                    SUM(is_email_verified = 0) AS unverified,
                    SUM(created_at >= ?) AS recent
                FROM users
                """,
                (self._to_iso(registered_since),),
            )
            totals = cur.fetchone()
            cur = self._conn.execute(
                """
                SELECT department, COUNT(*) AS count
                FROM users
                GROUP BY department
                ORDER BY count DESC, department ASC
                """
            )
            departments = cur.fetchall()

        def count(key: str) -> int:
            return int(totals[key] or 0)

        return {
            "total_users": count("total"),
            "status_breakdown": {
                "active": count("active"),
                "inactive": count("inactive"),
                "suspended": count("suspended"),
            },
            "role_breakdown": {
                "admin": count("admin"),
                "manager": count("manager"),
                "user": count("user"),
            },
            "verification_breakdown": {
                "verified": count("verified"),
                "unverified": count("unverified"),
            },
            "department_stats": [
                {"department": row["department"], "count": row["count"]} for row in departments
            ],
            "recent_registrations": count("recent"),
        }

    # Helpers ----------------------------------------------------------------
    @staticmethod
    def _columns(include_password: bool) -> str:
        return f"{_PUBLIC_COLUMNS}, password_hash" if include_password else _PUBLIC_COLUMNS

    def _fetch_by_id(self, user_id: Optional[int], include_password: bool) -> Optional[sqlite3.Row]:
        cur = self._conn.execute(
            f"SELECT {self._columns(include_password)} FROM users WHERE id = ?", (user_id,)
        )
        return cur.fetchone()

    def _find_id(self, digest_column: str, digest: str) -> Optional[int]:
        cur = self._conn.execute(f"SELECT id FROM users WHERE {digest_column} = ?", (digest,))
        row = cur.fetchone()
        return row["id"] if row else None

    def _filter_clauses(
        self,
        role: Optional[UserRole],
        status: Optional[UserStatus],
        department: Optional[str],
    ) -> Tuple[List[str], List[Any]]:
        clauses: List[str] = []
        params: List[Any] = []
        if role is not None:
            clauses.append("role = ?")
            params.append(UserRole(role).value)
        if status is not None:
            clauses.append("status = ?")
            params.append(UserStatus(status).value)
        if department:
            clauses.append("department LIKE ? ESCAPE '\\'")
            params.append(self._like_pattern(department))
        return clauses, params

    @staticmethod
    def _search_clause(columns: Sequence[str]) -> str:
        return "(" + " OR ".join(f"{column} LIKE ? ESCAPE '\\'" for column in columns) + ")"

    @staticmethod
    def _like_pattern(term: str) -> str:
        escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        return f"%{escaped}%"

    def _to_db_value(self, column: str, value: Any) -> Any:
        if value is None:
            return None
        if column == "email":
            return value.strip().lower()
        if column == "role":
            return UserRole(value).value
        if column == "status":
            return UserStatus(value).value
        if column in ("date_of_birth", "hire_date"):
            return self._date_to_str(value)
        return value

    @classmethod
    def _now(cls) -> str:
        return cls._to_iso(datetime.now(timezone.utc))  # type: ignore[return-value]

    @staticmethod
    def _to_iso(value: Optional[datetime]) -> Optional[str]:
        # Fixed-width UTC strings so SQL comparisons order chronologically.
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat(timespec="microseconds")

    @staticmethod
    def _date_to_str(value: Optional[date]) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, datetime):
            value = value.date()
        return value.isoformat()

    @staticmethod
    def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
        if not value:
            return None
        result = datetime.fromisoformat(value)
        if result.tzinfo is None:
            return result.replace(tzinfo=timezone.utc)
        return result.astimezone(timezone.utc)

    @staticmethod
    def _parse_date(value: Optional[str]) -> Optional[date]:
        return date.fromisoformat(value) if value else None

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            email=row["email"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            role=UserRole(row["role"]),
            status=UserStatus(row["status"]),
            is_email_verified=bool(row["is_email_verified"]),
            avatar=row["avatar"],
            phone=row["phone"],
            department=row["department"],
            position=row["position"],
            date_of_birth=self._parse_date(row["date_of_birth"]),
            hire_date=self._parse_date(row["hire_date"]),
            login_attempts=row["login_attempts"],
            lock_until=self._parse_datetime(row["lock_until"]),
            last_login=self._parse_datetime(row["last_login"]),
            created_at=self._parse_datetime(row["created_at"]),
            updated_at=self._parse_datetime(row["updated_at"]),
            password_hash=row["password_hash"] if "password_hash" in row.keys() else None,
        )
