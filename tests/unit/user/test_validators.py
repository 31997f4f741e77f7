"""Tests for user validators."""

import pytest

from galaltix.core.modules.user.validators import validate_password, validate_username
from galaltix.errors import ValidationError


class TestValidateUsername:
    """Tests for validate_username function."""

    def test_valid_usernames(self):
        validate_username("admin")
        validate_username("j.okafor")
        validate_username("depot_2")

    def test_uppercase_rejected(self):
        with pytest.raises(ValidationError):
            validate_username("Admin")

    def test_too_short(self):
        with pytest.raises(ValidationError):
            validate_username("a")

    def test_leading_punctuation_rejected(self):
        with pytest.raises(ValidationError):
            validate_username(".hidden")


class TestValidatePassword:
    """Tests for validate_password function."""

    def test_valid_password(self):
        validate_password("s3cret")

    def test_too_short(self):
        with pytest.raises(ValidationError, match="at least 2"):
            validate_password("x")

    def test_whitespace_rejected(self):
        with pytest.raises(ValidationError, match="whitespace"):
            validate_password("two words")
