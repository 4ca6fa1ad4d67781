"""Tests for app.services.credentials against a real SQLite database."""

import threading
import unittest
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from _support import TempDatabase, fast_settings
from app.core.security import verify_password
from app.services.credentials import create_user, find_user, validate_credentials
from app.services.errors import AlreadyExistsError, CredentialValidationError, PersistenceError


class CredentialStoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = TempDatabase()
        self.settings = fast_settings()
        self.session = self.db.SessionLocal()

    def tearDown(self) -> None:
        self.session.close()
        self.db.close()


class TestCreateUser(CredentialStoreTestCase):
    """create_user stores a bcrypt hash plus a fresh (0, None) auth state."""

    def test_creates_user_and_auth_state(self) -> None:
        user = create_user(self.session, "alice", "secret1", self.settings)
        self.assertIsNotNone(user.id)
        self.assertNotEqual(user.password_hash, "secret1")
        self.assertTrue(verify_password("secret1", user.password_hash))

        state = self.db.auth_state("alice")
        self.assertIsNotNone(state)
        self.assertEqual(state.failed_attempts, 0)
        self.assertIsNone(state.locked_until)
        self.assertEqual(state.version, 0)

    def test_username_is_trimmed(self) -> None:
        user = create_user(self.session, "  alice  ", "secret1", self.settings)
        self.assertEqual(user.username, "alice")
        self.assertIsNotNone(find_user(self.session, "alice"))

    def test_duplicate_raises_already_exists(self) -> None:
        create_user(self.session, "alice", "secret1", self.settings)
        with self.assertRaises(AlreadyExistsError):
            create_user(self.session, "alice", "another1", self.settings)
        # Original record untouched.
        user = find_user(self.session, "alice")
        self.assertTrue(verify_password("secret1", user.password_hash))

    def test_usernames_are_case_sensitive(self) -> None:
        create_user(self.session, "alice", "secret1", self.settings)
        create_user(self.session, "Alice", "secret2", self.settings)
        self.assertIsNotNone(find_user(self.session, "Alice"))
        self.assertIsNone(find_user(self.session, "ALICE"))

    def test_uses_configured_bcrypt_rounds(self) -> None:
        user = create_user(self.session, "alice", "secret1", fast_settings(BCRYPT_ROUNDS=5))
        self.assertIn("$05$", user.password_hash)


class TestValidation(unittest.TestCase):
    """Invalid credentials are rejected before the session is used."""

    def test_lists_every_broken_rule(self) -> None:
        with self.assertRaises(CredentialValidationError) as ctx:
            validate_credentials("a!", "123")
        self.assertEqual(len(ctx.exception.errors), 3)
        self.assertIn("Password must be 6-72", ctx.exception.message)

    def test_no_store_access_on_invalid_input(self) -> None:
        session = MagicMock()
        with self.assertRaises(CredentialValidationError):
            create_user(session, "ab", "secret1", fast_settings())
        session.add.assert_not_called()
        session.execute.assert_not_called()
        session.commit.assert_not_called()

    def test_returns_normalized_username(self) -> None:
        self.assertEqual(validate_credentials(" bob ", "secret1"), "bob")


class TestFindUser(CredentialStoreTestCase):
    """find_user is an exact lookup."""

    def test_missing_user(self) -> None:
        self.assertIsNone(find_user(self.session, "nobody"))

    def test_existing_user(self) -> None:
        create_user(self.session, "carol", "secret1", self.settings)
        user = find_user(self.session, "carol")
        self.assertEqual(user.username, "carol")


class TestPersistenceFailure(unittest.TestCase):
    """Storage errors surface as PersistenceError after a rollback."""

    def test_flush_failure(self) -> None:
        session = MagicMock()
        session.flush.side_effect = OperationalError("INSERT", {}, Exception("disk I/O error"))
        with self.assertRaises(PersistenceError):
            create_user(session, "alice", "secret1", fast_settings())
        session.rollback.assert_called_once()
        session.commit.assert_not_called()


class TestConcurrentRegistration(CredentialStoreTestCase):
    """Simultaneous registrations of one name: exactly one wins, the unique index rejects the rest."""

    def test_exactly_one_succeeds(self) -> None:
        n = 6
        barrier = threading.Barrier(n)
        outcomes: list[str] = []
        lock = threading.Lock()

        def register() -> None:
            session = self.db.SessionLocal()
            try:
                barrier.wait()
                create_user(session, "dave", f"secret{threading.get_ident()}"[:20], self.settings)
                result = "created"
            except AlreadyExistsError:
                result = "exists"
            finally:
                session.close()
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=register) for _ in range(n)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(outcomes.count("created"), 1)
        self.assertEqual(outcomes.count("exists"), n - 1)


if __name__ == "__main__":
    unittest.main()
