"""Unit tests for app.core.security: bcrypt hashing and JWT access/refresh tokens."""

import base64
import json
import unittest
from datetime import UTC, datetime, timedelta

import jwt

from app.core.security import (
    TOKEN_TYPE_ACCESS,
    TOKEN_TYPE_REFRESH,
    TokenExpiredError,
    TokenInvalidError,
    create_access_token,
    create_refresh_token,
    extract_subject,
    hash_password,
    verify_password,
    verify_token,
)
from db_support import TEST_JWT_SECRET, make_settings

SETTINGS = make_settings()


def _encode(claims: dict[str, object], secret: str = TEST_JWT_SECRET) -> str:
    return jwt.encode(claims, secret, algorithm="HS256")


def _claims(**overrides: object) -> dict[str, object]:
    now = datetime.now(UTC)
    claims: dict[str, object] = {
        "sub": "alice",
        "roles": ["user"],
        "type": TOKEN_TYPE_REFRESH,
        "iat": now - timedelta(hours=2),
        "exp": now + timedelta(hours=1),
    }
    claims.update(overrides)
    return claims


def _swap_payload(token: str, **changes: object) -> str:
    """Replace the payload segment but keep the original signature."""
    header, payload, signature = token.split(".")
    padded = payload + "=" * (-len(payload) % 4)
    data = json.loads(base64.urlsafe_b64decode(padded))
    data.update(changes)
    new_payload = (
        base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()
    )
    return ".".join([header, new_payload, signature])


class TestPasswordHashing(unittest.TestCase):
    """hash_password salts every call; verify_password fails closed."""

    def test_hash_verifies_and_is_not_plaintext(self) -> None:
        digest = hash_password("password123", rounds=4)
        self.assertNotEqual(digest, "password123")
        self.assertTrue(verify_password("password123", digest))

    def test_same_input_gives_different_digests(self) -> None:
        first = hash_password("password123", rounds=4)
        second = hash_password("password123", rounds=4)
        self.assertNotEqual(first, second)
        self.assertTrue(verify_password("password123", first))
        self.assertTrue(verify_password("password123", second))

    def test_wrong_password_does_not_verify(self) -> None:
        digest = hash_password("password123", rounds=4)
        self.assertFalse(verify_password("wrongpass", digest))

    def test_malformed_digest_is_not_a_match(self) -> None:
        self.assertFalse(verify_password("password123", "not-a-bcrypt-hash"))
        self.assertFalse(verify_password("password123", ""))
        self.assertFalse(verify_password("password123", None))

    def test_long_passwords_truncate_consistently(self) -> None:
        long_pw = "a" * 100
        digest = hash_password(long_pw, rounds=4)
        self.assertTrue(verify_password(long_pw, digest))


class TestTokenIssue(unittest.TestCase):
    """Access and refresh tokens carry subject, roles, type and distinct lifetimes."""

    def test_access_token_claims(self) -> None:
        token = create_access_token("alice", ["user", "manager"], settings=SETTINGS)
        claims = verify_token(token, token_type=TOKEN_TYPE_ACCESS, settings=SETTINGS)
        self.assertEqual(claims["sub"], "alice")
        self.assertEqual(claims["roles"], ["user", "manager"])
        self.assertEqual(claims["type"], TOKEN_TYPE_ACCESS)
        self.assertEqual(claims["exp"] - claims["iat"], 60 * 60)

    def test_refresh_token_lives_longer(self) -> None:
        token = create_refresh_token("alice", ["user"], settings=SETTINGS)
        claims = verify_token(token, token_type=TOKEN_TYPE_REFRESH, settings=SETTINGS)
        self.assertEqual(claims["exp"] - claims["iat"], 10080 * 60)

    def test_tokens_are_unique_per_issue(self) -> None:
        first = create_access_token("alice", ["user"], settings=SETTINGS)
        second = create_access_token("alice", ["user"], settings=SETTINGS)
        self.assertNotEqual(first, second)


class TestVerifyToken(unittest.TestCase):
    """verify_token separates expired from invalid tokens."""

    def test_expired_token_raises_expired(self) -> None:
        token = _encode(_claims(exp=datetime.now(UTC) - timedelta(seconds=5)))
        with self.assertRaises(TokenExpiredError):
            verify_token(token, settings=SETTINGS)

    def test_forged_signature_is_invalid(self) -> None:
        token = _encode(_claims(), secret="some-other-secret-that-is-long-enough-xx")
        with self.assertRaises(TokenInvalidError):
            verify_token(token, settings=SETTINGS)

    def test_tampered_payload_is_invalid(self) -> None:
        token = create_access_token("alice", ["user"], settings=SETTINGS)
        tampered = _swap_payload(token, roles=["admin"])
        with self.assertRaises(TokenInvalidError):
            verify_token(tampered, settings=SETTINGS)

    def test_garbage_is_invalid(self) -> None:
        for token in ("", "abc", "a.b.c"):
            with self.subTest(token=token):
                with self.assertRaises(TokenInvalidError):
                    verify_token(token, settings=SETTINGS)

    def test_unsigned_token_is_invalid(self) -> None:
        token = jwt.encode(_claims(), "", algorithm="none")
        with self.assertRaises(TokenInvalidError):
            verify_token(token, settings=SETTINGS)

    def test_missing_type_claim_is_invalid(self) -> None:
        claims = _claims()
        del claims["type"]
        with self.assertRaises(TokenInvalidError):
            verify_token(_encode(claims), settings=SETTINGS)

    def test_wrong_token_type_is_invalid(self) -> None:
        token = create_access_token("alice", ["user"], settings=SETTINGS)
        with self.assertRaises(TokenInvalidError):
            verify_token(token, token_type=TOKEN_TYPE_REFRESH, settings=SETTINGS)

    def test_subject_mismatch_is_invalid(self) -> None:
        token = create_refresh_token("alice", ["user"], settings=SETTINGS)
        with self.assertRaises(TokenInvalidError):
            verify_token(token, expected_subject="bob", settings=SETTINGS)


class TestExtractSubject(unittest.TestCase):
    """extract_subject ignores expiry but never the signature."""

    def test_works_on_expired_token(self) -> None:
        token = _encode(_claims(exp=datetime.now(UTC) - timedelta(days=1)))
        self.assertEqual(extract_subject(token, settings=SETTINGS), "alice")

    def test_rejects_forged_token(self) -> None:
        token = _encode(_claims(), secret="some-other-secret-that-is-long-enough-xx")
        with self.assertRaises(TokenInvalidError):
            extract_subject(token, settings=SETTINGS)

    def test_rejects_malformed_token(self) -> None:
        with self.assertRaises(TokenInvalidError):
            extract_subject("not.a.token", settings=SETTINGS)


if __name__ == "__main__":
    unittest.main()
