"""Tests for password hashing and validation."""

import pytest

from vidtube.auth.password import (
    PasswordStrengthError,
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("Secur3Passw0rd")
        assert hashed.startswith("$argon2id$")
        assert verify_password("Secur3Passw0rd", hashed) is True

    def test_wrong_password_rejected(self):
        hashed = hash_password("Correct1pass")
        assert verify_password("Wrong1pass", hashed) is False

    def test_invalid_hash_is_a_mismatch(self):
        assert verify_password("whatever1", "not-a-hash") is False

    def test_fresh_hash_needs_no_rehash(self):
        assert check_needs_rehash(hash_password("Secur3Passw0rd")) is False


class TestPasswordStrength:
    def test_strong_password_accepted(self):
        validate_password_strength("letters4ndDigits")

    @pytest.mark.parametrize(
        ("password", "reason"),
        [
            ("", "empty"),
            ("   ", "empty"),
            ("short1", "at least"),
            ("x1" * 100, "exceed"),
            ("12345678", "letter"),
            ("onlyletters", "digit"),
        ],
    )
    def test_weak_passwords_rejected(self, password: str, reason: str):
        with pytest.raises(PasswordStrengthError, match=reason):
            validate_password_strength(password)
