# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the credential store accessor."""

import asyncio

import pytest

from amistapp.infrastructure.database.connection import (
    ConflictError,
    CredentialStore,
    DatabaseError,
    StoreTransaction,
)

pytestmark = pytest.mark.integration

INSERT_USER = """
    INSERT INTO users (email, password, name, role)
    VALUES (:email, 'hash', :name, 'student')
"""


async def user_count(store: CredentialStore) -> int:
    row = await store.query_one("SELECT COUNT(*) AS total FROM users")
    return row["total"]


class TestQueries:
    """Tests for execute, query_one and query_many."""

    @pytest.mark.asyncio
    async def test_execute_reports_lastrowid_and_rowcount(self, migrated_store: CredentialStore) -> None:
        result = await migrated_store.execute(INSERT_USER, {"email": "a@b.com", "name": "A"})

        assert result.rowcount == 1
        assert result.lastrowid is not None

        row = await migrated_store.query_one(
            "SELECT email FROM users WHERE id = :id", {"id": result.lastrowid}
        )
        assert row == {"email": "a@b.com"}

    @pytest.mark.asyncio
    async def test_query_one_returns_none_when_nothing_matches(self, migrated_store: CredentialStore) -> None:
        assert await migrated_store.query_one(
            "SELECT id FROM users WHERE email = :email", {"email": "nobody@x.cl"}
        ) is None

    @pytest.mark.asyncio
    async def test_query_many_returns_dicts(self, migrated_store: CredentialStore) -> None:
        await migrated_store.execute(INSERT_USER, {"email": "one@x.cl", "name": "One"})
        await migrated_store.execute(INSERT_USER, {"email": "two@x.cl", "name": "Two"})

        rows = await migrated_store.query_many(
            "SELECT name FROM users WHERE role = 'student' ORDER BY email"
        )

        assert rows == [{"name": "One"}, {"name": "Two"}]

    @pytest.mark.asyncio
    async def test_update_rowcount(self, migrated_store: CredentialStore) -> None:
        result = await migrated_store.execute(
            "UPDATE users SET name = 'X' WHERE email = :email", {"email": "missing@x.cl"}
        )

        assert result.rowcount == 0

    @pytest.mark.asyncio
    async def test_duplicate_email_raises_conflict(self, migrated_store: CredentialStore) -> None:
        await migrated_store.execute(INSERT_USER, {"email": "dup@x.cl", "name": "First"})

        with pytest.raises(ConflictError):
            await migrated_store.execute(INSERT_USER, {"email": "dup@x.cl", "name": "Second"})

    @pytest.mark.asyncio
    async def test_syntax_error_raises_database_error(self, migrated_store: CredentialStore) -> None:
        with pytest.raises(DatabaseError) as exc_info:
            await migrated_store.query_many("SELEC nothing")

        assert not isinstance(exc_info.value, ConflictError)
        assert exc_info.value.original_error is not None

    @pytest.mark.asyncio
    async def test_foreign_keys_enforced(self, migrated_store: CredentialStore) -> None:
        with pytest.raises(DatabaseError):
            await migrated_store.execute("INSERT INTO students (user_id) VALUES (999999)")

    @pytest.mark.asyncio
    async def test_ping(self, migrated_store: CredentialStore) -> None:
        assert await migrated_store.ping() is True


class TestTransactions:
    """Tests for transaction scopes."""

    @pytest.mark.asyncio
    async def test_transaction_commits(self, migrated_store: CredentialStore) -> None:
        before = await user_count(migrated_store)

        async with migrated_store.transaction() as tx:
            result = await tx.execute(INSERT_USER, {"email": "t@x.cl", "name": "T"})
            await tx.execute(
                "INSERT INTO students (user_id, school) VALUES (:id, 'X')", {"id": result.lastrowid}
            )

        assert await user_count(migrated_store) == before + 1

    @pytest.mark.asyncio
    async def test_transaction_rolls_back_on_error(self, migrated_store: CredentialStore) -> None:
        before = await user_count(migrated_store)

        with pytest.raises(RuntimeError):
            async with migrated_store.transaction() as tx:
                await tx.execute(INSERT_USER, {"email": "r@x.cl", "name": "R"})
                raise RuntimeError("boom")

        assert await user_count(migrated_store) == before

    @pytest.mark.asyncio
    async def test_transaction_rolls_back_on_cancellation(self, migrated_store: CredentialStore) -> None:
        before = await user_count(migrated_store)

        with pytest.raises(asyncio.CancelledError):
            async with migrated_store.transaction() as tx:
                await tx.execute(INSERT_USER, {"email": "c@x.cl", "name": "C"})
                raise asyncio.CancelledError()

        assert await user_count(migrated_store) == before

    @pytest.mark.asyncio
    async def test_conflict_inside_transaction_rolls_back_earlier_writes(
        self,
        migrated_store: CredentialStore,
    ) -> None:
        await migrated_store.execute(INSERT_USER, {"email": "taken@x.cl", "name": "Taken"})
        before = await user_count(migrated_store)

        with pytest.raises(ConflictError):
            async with migrated_store.transaction() as tx:
                await tx.execute(INSERT_USER, {"email": "fresh@x.cl", "name": "Fresh"})
                await tx.execute(INSERT_USER, {"email": "taken@x.cl", "name": "Again"})

        assert await user_count(migrated_store) == before

    @pytest.mark.asyncio
    async def test_with_transaction_returns_result(self, migrated_store: CredentialStore) -> None:
        async def create(tx: StoreTransaction) -> int:
            result = await tx.execute(INSERT_USER, {"email": "w@x.cl", "name": "W"})
            return result.lastrowid

        user_id = await migrated_store.with_transaction(create)

        row = await migrated_store.query_one("SELECT email FROM users WHERE id = :id", {"id": user_id})
        assert row == {"email": "w@x.cl"}

    @pytest.mark.asyncio
    async def test_with_transaction_rethrows(self, migrated_store: CredentialStore) -> None:
        async def fail(tx: StoreTransaction) -> None:
            await tx.execute(INSERT_USER, {"email": "f@x.cl", "name": "F"})
            raise ValueError("no")

        with pytest.raises(ValueError):
            await migrated_store.with_transaction(fail)

        assert await migrated_store.query_one(
            "SELECT id FROM users WHERE email = 'f@x.cl'"
        ) is None
