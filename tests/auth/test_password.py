"""Tests for password hashing and validation."""

import pytest

from olimpo.auth.password import (
    PasswordStrengthError,
    hash_password,
    validate_password_strength,
    verify_password,
)


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("Secret1")
        assert verify_password("Secret1", hashed) is True

    def test_wrong_password_rejected(self):
        hashed = hash_password("Secret1")
        assert verify_password("Secret2", hashed) is False

    def test_hash_is_bcrypt(self):
        hashed = hash_password("Secret1")
        assert hashed.startswith("$2b$")

    def test_same_password_hashes_differently(self):
        assert hash_password("Secret1") != hash_password("Secret1")

    def test_non_bcrypt_hash_never_matches(self):
        assert verify_password("Secret1", "Secret1") is False


class TestPasswordStrength:
    def test_minimum_valid_password(self):
        validate_password_strength("Abc12")  # Should not raise

    def test_short_password_rejected(self):
        with pytest.raises(PasswordStrengthError, match="al menos 5 caracteres"):
            validate_password_strength("Ab1")

    def test_empty_password_rejected(self):
        with pytest.raises(PasswordStrengthError):
            validate_password_strength("")

    def test_no_uppercase_rejected(self):
        with pytest.raises(PasswordStrengthError, match="mayúscula"):
            validate_password_strength("secret1")

    def test_no_lowercase_rejected(self):
        with pytest.raises(PasswordStrengthError):
            validate_password_strength("SECRET1")

    def test_no_digit_rejected(self):
        with pytest.raises(PasswordStrengthError):
            validate_password_strength("SecretOnly")
