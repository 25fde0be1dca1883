# tests/services/auth/test_password.py
"""
Tests for the Argon2 password hasher.

Tests:
- Hash format and per-hash salts
- Input bounds (empty, 128 bytes, multibyte characters)
- Verification (correct/incorrect, malformed stored hashes)
- Rehash detection after a parameter change
"""

import pytest

from account_service.services.auth.password import MAX_PASSWORD_LENGTH, PasswordHasher
from account_service.services.exceptions import (
    EmptyPasswordError,
    MalformedHashError,
    PasswordTooLongError,
    ValidationError,
)


# =============================================================================
# TEST: PASSWORD HASHING
# =============================================================================


class TestPasswordHashing:
    """Tests for password hashing."""

    def test_hash_starts_with_argon2id_prefix(self, hasher):
        """Hash should be an encoded argon2id string."""
        hashed = hasher.hash("mypassword123")

        assert hashed.startswith("$argon2id$")

    def test_hash_embeds_parameters(self, hasher):
        """The encoded hash carries its own cost parameters."""
        hashed = hasher.hash("mypassword123")

        assert "m=1024" in hashed
        assert "t=1" in hashed
        assert "p=1" in hashed

    def test_same_password_different_hashes(self, hasher):
        """Same password should produce different hashes (due to salt)."""
        assert hasher.hash("mypassword123") != hasher.hash("mypassword123")

    def test_hash_empty_password_rejected(self, hasher):
        with pytest.raises(EmptyPasswordError):
            hasher.hash("")

    def test_hash_max_length_password(self, hasher):
        """Exactly 128 bytes is accepted."""
        hashed = hasher.hash("a" * MAX_PASSWORD_LENGTH)

        assert hashed.startswith("$argon2id$")

    def test_hash_too_long_password_rejected(self, hasher):
        with pytest.raises(PasswordTooLongError) as exc_info:
            hasher.hash("a" * (MAX_PASSWORD_LENGTH + 1))

        assert exc_info.value.max_length == MAX_PASSWORD_LENGTH
        assert exc_info.value.message == "Max password length is 128"

    def test_length_is_measured_in_bytes(self, hasher):
        """43 three-byte characters are 129 bytes, over the limit."""
        with pytest.raises(PasswordTooLongError):
            hasher.hash("€" * 43)

    def test_length_errors_are_validation_errors(self):
        """Bound violations are client errors, not infrastructure faults."""
        assert issubclass(EmptyPasswordError, ValidationError)
        assert issubclass(PasswordTooLongError, ValidationError)

    def test_hash_unicode_password(self, hasher):
        hashed = hasher.hash("пароль密码🔐")

        assert hasher.verify("пароль密码🔐", hashed) is True


# =============================================================================
# TEST: PASSWORD VERIFICATION
# =============================================================================


class TestPasswordVerification:
    """Tests for password verification."""

    def test_correct_password_verifies(self, hasher):
        hashed = hasher.hash("mypassword123")

        assert hasher.verify("mypassword123", hashed) is True

    def test_incorrect_password_fails(self, hasher):
        hashed = hasher.hash("mypassword123")

        assert hasher.verify("wrongpassword", hashed) is False

    def test_similar_password_fails(self, hasher):
        """Similar but different password should fail."""
        hashed = hasher.hash("mypassword123")

        assert hasher.verify("Mypassword123", hashed) is False
        assert hasher.verify("mypassword1234", hashed) is False
        assert hasher.verify("mypassword12", hashed) is False

    def test_verify_empty_password_rejected(self, hasher):
        hashed = hasher.hash("mypassword123")

        with pytest.raises(EmptyPasswordError):
            hasher.verify("", hashed)

    def test_verify_too_long_password_rejected(self, hasher):
        hashed = hasher.hash("mypassword123")

        with pytest.raises(PasswordTooLongError):
            hasher.verify("a" * 129, hashed)

    @pytest.mark.parametrize(
        "stored_hash",
        [
            "",
            "notahash",
            "$2b$12$abcdefghijklmnopqrstuuJ2Nn6W5Zb1bqTQ9oOwzq1wO2Ftqfm6",
            "$argon2id$v=19$m=1024,t=1,p=1$garbage",
        ],
    )
    def test_malformed_hash_raises(self, hasher, stored_hash):
        """A stored value that is not an argon2 hash is an error, not a mismatch."""
        with pytest.raises(MalformedHashError):
            hasher.verify("mypassword123", stored_hash)

    def test_verifies_hash_from_other_parameters(self, hasher):
        """Parameters come from the hash itself, not the verifier."""
        stronger = PasswordHasher(time_cost=2, memory_cost=2048, parallelism=1)
        hashed = stronger.hash("mypassword123")

        assert hasher.verify("mypassword123", hashed) is True


# =============================================================================
# TEST: REHASH DETECTION
# =============================================================================


class TestNeedsRehash:
    """Tests for needs_rehash."""

    def test_current_parameters_do_not_need_rehash(self, hasher):
        hashed = hasher.hash("mypassword123")

        assert hasher.needs_rehash(hashed) is False

    def test_changed_memory_cost_needs_rehash(self, hasher):
        old = PasswordHasher(time_cost=1, memory_cost=2048, parallelism=1)
        hashed = old.hash("mypassword123")

        assert hasher.needs_rehash(hashed) is True

    def test_dummy_hash_uses_current_parameters(self, hasher):
        assert hasher.needs_rehash(hasher.dummy_hash) is False
        assert hasher.dummy_hash is hasher.dummy_hash
        assert hasher.verify("anything-at-all", hasher.dummy_hash) is False
