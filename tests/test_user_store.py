"""Tests for SqlAlchemyUserStore against an in-memory SQLite database."""

import re
import unittest
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import MagicMock

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from authapi.core.exceptions import StorageUnavailableError, UserAlreadyExistsError
from authapi.models import Base, Role, TimestampMixin, User
from authapi.services.user_store import SqlAlchemyUserStore, UserStore
from tests.fakes import InMemoryUserStore

ROOT = Path(__file__).resolve().parents[1]


def _user(username: str, email: str, role: Role = Role.USER) -> User:
    now = datetime.now(UTC)
    return User(
        username=username,
        email=email,
        password_hash="$2b$04$" + "x" * 53,
        role=role,
        enabled=True,
        created_at=now,
        updated_at=now,
    )


class TestSqlAlchemyUserStore(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        self.session = sessionmaker(bind=self.engine, autoflush=False)()
        self.store = SqlAlchemyUserStore(self.session)

    def tearDown(self) -> None:
        self.session.close()
        self.engine.dispose()

    def test_implements_protocol(self) -> None:
        self.assertIsInstance(self.store, UserStore)
        self.assertIsInstance(InMemoryUserStore(), UserStore)

    def test_save_assigns_id_and_defaults(self) -> None:
        saved = self.store.save(_user("alice", "alice@example.com"))
        self.assertIsNotNone(saved.id)
        self.assertEqual(saved.role, Role.USER)
        self.assertTrue(saved.enabled)

    def test_lookups_are_case_insensitive(self) -> None:
        saved = self.store.save(_user("alice", "alice@example.com"))
        self.assertEqual(self.store.find_by_username("ALICE").id, saved.id)
        self.assertEqual(self.store.find_by_identifier("Alice").id, saved.id)
        self.assertEqual(self.store.find_by_identifier("ALICE@example.com").id, saved.id)
        self.assertTrue(self.store.exists_by_username("aLiCe"))
        self.assertTrue(self.store.exists_by_email("Alice@Example.com"))

    def test_missing_user(self) -> None:
        self.assertIsNone(self.store.find_by_identifier("nobody"))
        self.assertIsNone(self.store.find_by_username("nobody"))
        self.assertFalse(self.store.exists_by_username("nobody"))
        self.assertFalse(self.store.exists_by_email("nobody@example.com"))

    def test_username_lookup_does_not_match_email(self) -> None:
        self.store.save(_user("alice", "alice@example.com"))
        self.assertIsNone(self.store.find_by_username("alice@example.com"))

    def test_duplicate_username_differing_in_case_is_rejected(self) -> None:
        self.store.save(_user("alice", "alice@example.com"))
        with self.assertRaises(UserAlreadyExistsError):
            self.store.save(_user("ALICE", "other@example.com"))
        # Session is usable after the rollback.
        self.assertTrue(self.store.exists_by_username("alice"))

    def test_duplicate_email_is_rejected(self) -> None:
        self.store.save(_user("alice", "alice@example.com"))
        with self.assertRaises(UserAlreadyExistsError):
            self.store.save(_user("bob", "ALICE@example.com"))

    def test_update_persists(self) -> None:
        user = self.store.save(_user("alice", "alice@example.com"))
        user.enabled = False
        self.store.save(user)
        self.session.expire_all()
        self.assertFalse(self.store.find_by_username("alice").enabled)

    def test_ping(self) -> None:
        self.assertTrue(self.store.ping())


class TestSqlAlchemyUserStoreFailures(unittest.TestCase):
    """Driver errors surface as StorageUnavailableError, not as a missing user."""

    def test_lookup_failure(self) -> None:
        session = MagicMock()
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))
        store = SqlAlchemyUserStore(session)
        with self.assertRaises(StorageUnavailableError):
            store.find_by_identifier("alice")

    def test_save_failure_rolls_back(self) -> None:
        session = MagicMock()
        session.commit.side_effect = OperationalError("INSERT", {}, Exception("down"))
        store = SqlAlchemyUserStore(session)
        with self.assertRaises(StorageUnavailableError):
            store.save(_user("alice", "alice@example.com"))
        session.rollback.assert_called_once()

    def test_ping_reports_disconnected(self) -> None:
        session = MagicMock()
        session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("down"))
        self.assertFalse(SqlAlchemyUserStore(session).ping())

    def test_ping_does_not_hide_programming_errors(self) -> None:
        session = MagicMock()
        session.execute.side_effect = RuntimeError("bug")
        with self.assertRaises(RuntimeError):
            SqlAlchemyUserStore(session).ping()


class TestUserSchemaMatchesMigration(unittest.TestCase):
    """Every index the migration creates is declared on the model, so autogenerate stays empty."""

    def test_index_names(self) -> None:
        migration = next((ROOT / "alembic" / "versions").glob("*_create_users_table.py")).read_text()
        migrated = set(re.findall(r'op\.create_index\(\s*(?:op\.f\()?"(\w+)"', migration))
        declared = {index.name for index in User.__table__.indexes}
        self.assertEqual(declared, migrated)
        self.assertIn("ix_users_role", declared)
        self.assertIn("ix_users_enabled", declared)

    def test_timestamps_come_from_mixin(self) -> None:
        self.assertTrue(issubclass(User, TimestampMixin))
        self.assertIsNotNone(User.__table__.c.updated_at.onupdate)
        self.assertFalse(User.__table__.c.created_at.nullable)


if __name__ == "__main__":
    unittest.main()
