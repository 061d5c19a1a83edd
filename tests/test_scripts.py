"""Tests for the create_user and hash_password command-line scripts."""

import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import MagicMock, patch

import bcrypt

from authapi.models import Role
from authapi.scripts import hash_password
from authapi.scripts.create_user import create_user, main as create_user_main
from tests.fakes import InMemoryUserStore, make_hasher


class TestCreateUser(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryUserStore()
        self.hasher = make_hasher()

    def test_creates_admin(self) -> None:
        user = create_user(
            "root", "root@example.com", "Adm1n!Secret", Role.ADMIN, True,
            self.hasher, user_store_factory=self.store.factory,
        )
        self.assertEqual(user.id, 1)
        self.assertEqual(user.role, Role.ADMIN)
        self.assertTrue(self.hasher.verify("Adm1n!Secret", user.password_hash))

    def test_creates_disabled_user(self) -> None:
        user = create_user(
            "carol", "carol@example.com", "Adm1n!Secret", Role.USER, False,
            self.hasher, user_store_factory=self.store.factory,
        )
        self.assertFalse(user.enabled)

    def test_rejects_duplicates_case_insensitively(self) -> None:
        self.store.add_user("root", "root@example.com", "Adm1n!Secret")
        with self.assertRaises(ValueError):
            create_user(
                "ROOT", "other@example.com", "Adm1n!Secret", Role.ADMIN, True,
                self.hasher, user_store_factory=self.store.factory,
            )
        with self.assertRaises(ValueError):
            create_user(
                "other", "Root@Example.com", "Adm1n!Secret", Role.ADMIN, True,
                self.hasher, user_store_factory=self.store.factory,
            )
        self.assertEqual(len(self.store.users), 1)

    def test_main_rejects_invalid_input_before_storage(self) -> None:
        for argv in (
            ["ab", "ab@example.com", "Adm1n!Secret"],
            ["bad name", "bad@example.com", "Adm1n!Secret"],
            ["root", "not-an-email", "Adm1n!Secret"],
            ["root", "x@", "Adm1n!Secret"],
            ["root", "root@example.com", "weakpass"],
        ):
            with self.subTest(argv=argv):
                stderr = io.StringIO()
                with patch("authapi.scripts.create_user.create_user") as create:
                    with redirect_stderr(stderr):
                        self.assertEqual(create_user_main(argv), 1)
                create.assert_not_called()
                self.assertTrue(stderr.getvalue())

    def test_main_passes_validated_arguments(self) -> None:
        with patch("authapi.scripts.create_user.create_user") as create:
            create.return_value = MagicMock(username="root", id=1)
            rc = create_user_main(["  root ", "root@example.com", "Adm1n!Secret", "admin", "--disabled"])
        self.assertEqual(rc, 0)
        args = create.call_args.args
        self.assertEqual(args[:5], ("root", "root@example.com", "Adm1n!Secret", Role.ADMIN, False))


class TestHashPassword(unittest.TestCase):
    def test_prints_verifiable_hash(self) -> None:
        stdout = io.StringIO()
        with redirect_stdout(stdout):
            self.assertEqual(hash_password.main(["Abc123!@", "--rounds", "4"]), 0)
        hashed = stdout.getvalue().strip()
        self.assertTrue(hashed.startswith("$2b$04$"))
        self.assertTrue(bcrypt.checkpw(b"Abc123!@", hashed.encode("utf-8")))

    def test_rejects_out_of_range_rounds(self) -> None:
        with redirect_stderr(io.StringIO()):
            self.assertEqual(hash_password.main(["Abc123!@", "--rounds", "3"]), 1)


if __name__ == "__main__":
    unittest.main()
