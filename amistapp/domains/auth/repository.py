# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQL access for identities and role extensions.

Every statement touching ``users``, ``teachers``, ``tutors`` or ``students``
lives here. Methods take an optional ``tx`` so callers can group writes in
one transaction; without it each call runs on its own.
"""

from typing import Optional, Union

from amistapp.domains.auth.models import (
    EXTENSION_TABLES,
    EXTENSION_TYPES,
    Identity,
    RoleExtension,
    StudentExtension,
    TeacherExtension,
    TutorExtension,
    UserRole,
    UserStatus,
)
from amistapp.infrastructure.database.connection import CredentialStore, StoreTransaction

Executor = Union[CredentialStore, StoreTransaction]

_USER_COLUMNS = (
    "id, email, password, name, role, status, avatar_url, last_login, created_at, updated_at"
)


class UserRepository:
    """Reads and writes identity and role extension rows."""

    def __init__(self, store: CredentialStore) -> None:
        self._store = store

    def _executor(self, tx: Optional[StoreTransaction]) -> Executor:
        return tx if tx is not None else self._store

    async def get_by_email(self, email: str) -> Optional[Identity]:
        row = await self._store.query_one(
            f"SELECT {_USER_COLUMNS} FROM users WHERE email = :email",
            {"email": email},
        )
        return Identity.from_row(row) if row else None

    async def get_by_id(
        self,
        user_id: int,
        tx: Optional[StoreTransaction] = None,
    ) -> Optional[Identity]:
        row = await self._executor(tx).query_one(
            f"SELECT {_USER_COLUMNS} FROM users WHERE id = :id",
            {"id": user_id},
        )
        return Identity.from_row(row) if row else None

    async def count(self) -> int:
        row = await self._store.query_one("SELECT COUNT(*) AS total FROM users")
        return int(row["total"]) if row else 0

    async def create_identity(
        self,
        tx: StoreTransaction,
        *,
        email: str,
        password_hash: str,
        name: str,
        role: UserRole,
    ) -> int:
        """Insert a ``users`` row and return its id.

        Raises:
            ConflictError: If the email is already registered.
        """
        result = await tx.execute(
            """
            INSERT INTO users (email, password, name, role, status)
            VALUES (:email, :password, :name, :role, :status)
            """,
            {
                "email": email,
                "password": password_hash,
                "name": name,
                "role": role.value,
                "status": UserStatus.ACTIVE.value,
            },
        )
        if result.lastrowid is None:
            row = await tx.query_one("SELECT id FROM users WHERE email = :email", {"email": email})
            return int(row["id"])
        return int(result.lastrowid)

    async def create_extension(
        self,
        tx: StoreTransaction,
        user_id: int,
        extension: RoleExtension,
    ) -> None:
        """Insert the role extension row for a new identity."""
        if isinstance(extension, TeacherExtension):
            await tx.execute(
                "INSERT INTO teachers (user_id, school, subjects) VALUES (:user_id, :school, :subjects)",
                {"user_id": user_id, "school": extension.school, "subjects": extension.subjects},
            )
        elif isinstance(extension, TutorExtension):
            await tx.execute(
                "INSERT INTO tutors (user_id, relationship, phone) VALUES (:user_id, :relationship, :phone)",
                {"user_id": user_id, "relationship": extension.relationship, "phone": extension.phone},
            )
        elif isinstance(extension, StudentExtension):
            await tx.execute(
                "INSERT INTO students (user_id, school, grade, points) VALUES (:user_id, :school, :grade, :points)",
                {
                    "user_id": user_id,
                    "school": extension.school,
                    "grade": extension.grade,
                    "points": extension.points,
                },
            )
        else:
            raise TypeError(f"Unsupported role extension: {type(extension).__name__}")

    async def get_extension(self, user_id: int, role: UserRole) -> Optional[RoleExtension]:
        """Fetch the extension row matching ``role``, if any.

        Administrators have no extension table, so this returns None for them.
        """
        table = EXTENSION_TABLES.get(role)
        if table is None:
            return None
        row = await self._store.query_one(
            f"SELECT * FROM {table} WHERE user_id = :user_id",
            {"user_id": user_id},
        )
        if row is None:
            return None
        return EXTENSION_TYPES[role].from_row(row)

    async def update_profile(self, user_id: int, *, name: str, avatar_url: Optional[str]) -> bool:
        result = await self._store.execute(
            """
            UPDATE users
            SET name = :name, avatar_url = :avatar_url, updated_at = CURRENT_TIMESTAMP
            WHERE id = :id
            """,
            {"id": user_id, "name": name, "avatar_url": avatar_url},
        )
        return result.rowcount > 0

    async def update_password(self, user_id: int, password_hash: str) -> bool:
        result = await self._store.execute(
            "UPDATE users SET password = :password, updated_at = CURRENT_TIMESTAMP WHERE id = :id",
            {"id": user_id, "password": password_hash},
        )
        return result.rowcount > 0

    async def record_login(self, user_id: int) -> None:
        await self._store.execute(
            "UPDATE users SET last_login = CURRENT_TIMESTAMP WHERE id = :id",
            {"id": user_id},
        )

    async def set_status(self, user_id: int, status: UserStatus) -> bool:
        result = await self._store.execute(
            "UPDATE users SET status = :status, updated_at = CURRENT_TIMESTAMP WHERE id = :id",
            {"id": user_id, "status": status.value},
        )
        return result.rowcount > 0
