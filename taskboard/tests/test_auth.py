import unittest
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import jwt

from taskboard.auth import AuthService
from taskboard.db import InMemoryDbClient
from taskboard.errors import (
    AuthenticationError,
    ConflictError,
    InvalidTokenError,
    MissingCredentialError,
    NotFoundError,
    ValidationError,
)


class AuthServiceTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.auth = AuthService(self.db, secret="test-secret", bcrypt_rounds=4)

    def test_register_stores_salted_hash(self):
        user = self.auth.register("alice@example.com", "pw123", "Alice", "A")
        stored = self.db.get_user(user.id)
        self.assertNotEqual(stored.password_hash, "pw123")
        self.assertTrue(bcrypt.checkpw(b"pw123", stored.password_hash.encode()))
        self.assertNotIn("password_hash", user.as_dict())

        other = self.auth.register("bob@example.com", "pw123", "Bob", "B")
        self.assertNotEqual(
            self.db.get_user(other.id).password_hash, stored.password_hash
        )

    def test_register_rejects_empty_fields(self):
        for args in [
            ("", "pw", "A", "B"),
            ("a@example.com", "", "A", "B"),
            ("a@example.com", "pw", None, "B"),
            ("a@example.com", "pw", "A", ""),
        ]:
            with self.assertRaises(ValidationError):
                self.auth.register(*args)
        self.assertEqual(self.db.users, {})

    def test_register_duplicate_email(self):
        self.auth.register("alice@example.com", "pw123", "Alice", "A")
        with self.assertRaises(ConflictError):
            self.auth.register("alice@example.com", "other", "Alice", "B")
        self.assertEqual(len(self.db.users), 1)

    def test_login_token_roundtrip(self):
        user = self.auth.register("alice@example.com", "pw123", "Alice", "A")
        result = self.auth.login("alice@example.com", "pw123")
        identity = self.auth.validate_token(result.token)
        self.assertEqual(identity.user_id, user.id)
        self.assertEqual(identity.email, "alice@example.com")
        self.assertEqual(result.user.firstname, "Alice")

    def test_long_password_hashes_and_verifies(self):
        password = "correct horse battery staple " * 3
        self.assertGreater(len(password.encode("utf-8")), 72)
        self.auth.register("alice@example.com", password, "Alice", "A")
        result = self.auth.login("alice@example.com", password)
        self.assertTrue(result.token)
        with self.assertRaises(AuthenticationError):
            self.auth.login("alice@example.com", "x" + password)

    def test_login_failures(self):
        self.auth.register("alice@example.com", "pw123", "Alice", "A")
        with self.assertRaises(ValidationError):
            self.auth.login("alice@example.com", "")
        with self.assertRaises(NotFoundError):
            self.auth.login("carol@example.com", "pw123")
        with self.assertRaises(AuthenticationError):
            self.auth.login("alice@example.com", "PW123")

    def test_token_expires_after_one_hour(self):
        user = self.auth.register("alice@example.com", "pw123", "Alice", "A")
        issued = datetime.now(timezone.utc) - timedelta(hours=1, seconds=5)
        stale = AuthService(
            self.db,
            secret="test-secret",
            bcrypt_rounds=4,
            clock=lambda: issued,
        )
        token = stale.issue_token(user)
        with self.assertRaises(InvalidTokenError):
            self.auth.validate_token(token)

        recent = AuthService(
            self.db,
            secret="test-secret",
            bcrypt_rounds=4,
            clock=lambda: datetime.now(timezone.utc) - timedelta(minutes=59),
        )
        self.assertEqual(self.auth.validate_token(recent.issue_token(user)).user_id, user.id)

    def test_rejects_missing_and_forged_tokens(self):
        with self.assertRaises(MissingCredentialError):
            self.auth.validate_token(None)
        with self.assertRaises(MissingCredentialError):
            self.auth.validate_token("")

        user = self.auth.register("alice@example.com", "pw123", "Alice", "A")
        forged = AuthService(self.db, secret="someone-else").issue_token(user)
        with self.assertRaises(InvalidTokenError):
            self.auth.validate_token(forged)

        no_claims = jwt.encode(
            {"exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            "test-secret",
            algorithm="HS256",
        )
        with self.assertRaises(InvalidTokenError):
            self.auth.validate_token(no_claims)

    def test_get_profile(self):
        user = self.auth.register("alice@example.com", "pw123", "Alice", "A")
        self.assertEqual(
            self.auth.get_profile(user.id),
            {"firstname": "Alice", "email": "alice@example.com"},
        )
        with self.assertRaises(NotFoundError):
            self.auth.get_profile(user.id + 100)

    def test_secret_is_required(self):
        with self.assertRaises(ValueError):
            AuthService(self.db, secret="")


if __name__ == "__main__":
    unittest.main()
