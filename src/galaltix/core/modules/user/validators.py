import re

from galaltix.errors import ValidationError

USERNAME_RE = re.compile(r"^[a-z0-9][a-z0-9._-]{1,31}$")


def validate_username(username: str) -> None:
    """Validate username: 2-32 chars of lowercase letters, digits, '.', '_' or '-'."""
    if not USERNAME_RE.fullmatch(username):
        raise ValidationError(
            "Username must be 2-32 characters: lowercase letters, digits, '.', '_' or '-', starting with a letter or digit"
        )


def validate_password(password: str) -> None:
    """Validate password meets requirements.

    Requirements:
    - No whitespace characters
    - Minimum length of 2 characters

    Raises:
        ValidationError: If password doesn't meet requirements
    """
    if len(password) < 2:
        raise ValidationError("Password must be at least 2 characters long")

    if any(char.isspace() for char in password):
        raise ValidationError("Password cannot contain whitespace characters")
