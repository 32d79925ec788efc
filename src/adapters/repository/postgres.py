"""
PostgreSQL repository adapter - Implements ProfileRepository protocol.

This module provides the PostgreSQL implementation of the domain's
repository port using psycopg3 with raw SQL.

Concurrency Design:
-------------------
1. **Email uniqueness**: INSERT ... ON CONFLICT (email) DO NOTHING. The
   UNIQUE constraint decides which of two concurrent registrations wins;
   the loser gets None back and never a duplicate row.

2. **Free-slot allocation**: create() takes a transaction-scoped advisory
   lock keyed by gender before counting confirmed profiles, so the
   count -> decide -> insert sequence is serialized per gender bucket.
   Without it, two registrants near the quota could both read
   "below threshold" and both be granted FREE.

3. **Profile transitions**: modify_by_email()/modify_by_id() hold
   SELECT ... FOR UPDATE while the domain transition runs, so cooldown
   checks and attempt counters cannot be bypassed by racing requests.

All psycopg errors are re-raised as the domain's StoreError.
"""

import functools
import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any, ParamSpec, TypeVar

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from src.domain.exceptions import StoreError
from src.domain.models import CONFIRMED_STATUSES, OtpGrant, PaymentStatus, Profile, ProfileFields

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

_COLUMNS = """
    id, email, name, age, gender, interested_in, college, relationship_goal,
    description, preferences, interests, verified, otp_hash, otp_expires_at,
    last_otp_sent_at, otp_attempts, payment_status, payment_id,
    provider_order_id, created_at, updated_at
"""


def _store_errors(func: Callable[P, T]) -> Callable[P, T]:
    """Translate psycopg failures into StoreError."""

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        try:
            return func(*args, **kwargs)
        except psycopg.Error as e:
            logger.error("Database error in %s: %s", func.__name__, e)
            raise StoreError("Database operation failed") from e

    return wrapper


def _row_to_profile(row: dict[str, Any]) -> Profile:
    return Profile(
        id=str(row["id"]),
        email=row["email"],
        name=row["name"],
        age=row["age"],
        gender=row["gender"],
        interested_in=row["interested_in"],
        college=row["college"],
        relationship_goal=row["relationship_goal"],
        description=row["description"],
        preferences=row["preferences"],
        interests=row["interests"],
        verified=row["verified"],
        otp_hash=row["otp_hash"],
        otp_expires_at=row["otp_expires_at"],
        last_otp_sent_at=row["last_otp_sent_at"],
        otp_attempts=row["otp_attempts"],
        payment_status=PaymentStatus(row["payment_status"]),
        payment_id=row["payment_id"],
        provider_order_id=row["provider_order_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresProfileRepository:
    """
    Implements ProfileRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    @_store_errors
    def get_by_email(self, email: str) -> Profile | None:
        sql = f"SELECT {_COLUMNS} FROM profiles WHERE email = %s"
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (email,))
            row = cursor.fetchone()
        return _row_to_profile(row) if row is not None else None

    @_store_errors
    def get_by_id(self, profile_id: str) -> Profile | None:
        sql = f"SELECT {_COLUMNS} FROM profiles WHERE id = %s"
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (profile_id,))
            row = cursor.fetchone()
        return _row_to_profile(row) if row is not None else None

    @_store_errors
    def count_confirmed(self, gender: str) -> int:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            return self._count_confirmed(cursor, gender)

    @_store_errors
    def create(
        self,
        fields: ProfileFields,
        grant: OtpGrant,
        allocate: Callable[[int], PaymentStatus],
        now: datetime,
    ) -> Profile | None:
        """
        Insert a profile with its first OTP and an allocated payment status.

        The advisory lock is released automatically at commit/rollback.

        Returns:
            The stored profile, or None if the email is already registered
        """
        insert_sql = f"""
            INSERT INTO profiles (
                email, name, age, gender, interested_in, college, relationship_goal,
                description, preferences, interests, verified, otp_hash, otp_expires_at,
                last_otp_sent_at, otp_attempts, payment_status, created_at, updated_at
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, FALSE, %s, %s, %s, 0, %s, %s, %s)
            ON CONFLICT (email) DO NOTHING
            RETURNING {_COLUMNS}
        """

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(
                "SELECT pg_advisory_xact_lock(hashtext(%s))",
                (f"free-slots:{fields.gender}",),
            )
            status = allocate(self._count_confirmed(cursor, fields.gender))
            cursor.execute(
                insert_sql,
                (
                    fields.email,
                    fields.name,
                    fields.age,
                    fields.gender,
                    fields.interested_in,
                    fields.college,
                    fields.relationship_goal,
                    fields.description,
                    fields.preferences,
                    fields.interests,
                    grant.code_hash,
                    grant.expires_at,
                    grant.sent_at,
                    status.value,
                    now,
                    now,
                ),
            )
            row = cursor.fetchone()
            conn.commit()

        return _row_to_profile(row) if row is not None else None

    def modify_by_email(self, email: str, transition: Callable[[Profile], T]) -> T | None:
        return self._modify("email", email, transition)

    def modify_by_id(self, profile_id: str, transition: Callable[[Profile], T]) -> T | None:
        return self._modify("id", profile_id, transition)

    @_store_errors
    def _modify(self, key: str, value: str, transition: Callable[[Profile], T]) -> T | None:
        """
        Lock a row, run the domain transition, write back mutable fields.

        If the transition raises, the connection context rolls the
        transaction back and the exception propagates unchanged.
        """
        # key is one of two literals chosen by this class, never user input
        select_sql = f"SELECT {_COLUMNS} FROM profiles WHERE {key} = %s FOR UPDATE"

        update_sql = """
            UPDATE profiles
            SET verified = %s,
                otp_hash = %s,
                otp_expires_at = %s,
                last_otp_sent_at = %s,
                otp_attempts = %s,
                payment_status = %s,
                payment_id = %s,
                provider_order_id = %s,
                updated_at = %s
            WHERE id = %s
        """

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(select_sql, (value,))
            row = cursor.fetchone()
            if row is None:
                conn.commit()
                return None

            profile = _row_to_profile(row)
            result = transition(profile)

            cursor.execute(
                update_sql,
                (
                    profile.verified,
                    profile.otp_hash,
                    profile.otp_expires_at,
                    profile.last_otp_sent_at,
                    profile.otp_attempts,
                    profile.payment_status.value,
                    profile.payment_id,
                    profile.provider_order_id,
                    profile.updated_at,
                    profile.id,
                ),
            )
            conn.commit()
            return result

    @staticmethod
    def _count_confirmed(cursor: psycopg.Cursor[Any], gender: str) -> int:
        cursor.execute(
            "SELECT COUNT(*) AS confirmed FROM profiles WHERE gender = %s AND payment_status = ANY(%s)",
            (gender, [status.value for status in CONFIRMED_STATUSES]),
        )
        row = cursor.fetchone()
        return row["confirmed"] if isinstance(row, dict) else row[0]


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Find migrations directory relative to this file
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
