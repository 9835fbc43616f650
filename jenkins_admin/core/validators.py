"""Input validation helpers for Jenkins account data.

Values are escaped when rendered into scripts; these checks reject input
that is malformed rather than merely unusual.
"""
from __future__ import annotations
from typing import Iterable, List


def _has_control_chars(value: str, allowed: str = "") -> bool:
    return any((ord(char) < 0x20 or ord(char) == 0x7F) and char not in allowed for char in value)


def validate_username(raw: str) -> str:
    """Validate a Jenkins user id.

    Ids are case-sensitive stable keys, so the value is never rewritten:
    surrounding whitespace is rejected rather than trimmed.

    Args:
        raw: Raw username input

    Returns:
        The username, unchanged

    Raises:
        ValueError: If username is invalid
    """
    if not isinstance(raw, str):
        raise ValueError("Username must be a string")
    username = raw
    if not username.strip():
        raise ValueError("Username is required")
    if username != username.strip():
        raise ValueError("Username must not start or end with whitespace")
    if len(username) > 255:
        raise ValueError("Username must not exceed 255 characters")
    if _has_control_chars(username):
        raise ValueError("Username contains control characters")
    return username


def validate_email(email: str) -> str:
    """Validate email address; an empty address is allowed.

    Args:
        email: Email address to validate

    Returns:
        Trimmed email address

    Raises:
        ValueError: If email is invalid
    """
    email = (email or "").strip()
    if not email:
        return ""
    if "@" not in email or _has_control_chars(email) or any(char.isspace() for char in email):
        raise ValueError("Invalid email format")

    local, domain = email.rsplit("@", 1)
    if not local or not domain or "." not in domain:
        raise ValueError("Invalid email format")
    if len(email) > 254:
        raise ValueError("Email exceeds maximum length")

    return email


def validate_text(value: str, field: str, multiline: bool = False, max_length: int = 1024) -> str:
    """Validate a free-text field such as the full name or description.

    Args:
        value: Text to validate (None is treated as empty)
        field: Field name for error messages (e.g., "Full name")
        multiline: Allow newlines and tabs
        max_length: Maximum accepted length

    Returns:
        The value, unchanged apart from None -> ""

    Raises:
        ValueError: If text is invalid
    """
    value = value or ""
    if len(value) > max_length:
        raise ValueError(f"{field} exceeds maximum length")
    if _has_control_chars(value, allowed="\n\r\t" if multiline else ""):
        raise ValueError(f"{field} contains control characters")
    return value


def validate_permission_names(names: Iterable[str]) -> List[str]:
    """Validate canonical permission names, dropping duplicates.

    Unknown names are not rejected here; the server skips them.

    Raises:
        ValueError: If a name is empty, not a string, or has control characters
    """
    if isinstance(names, str):
        raise ValueError("Permissions must be a list of names, not a single string")
    result: List[str] = []
    for name in names:
        if not isinstance(name, str) or not name.strip():
            raise ValueError(f"Invalid permission name: {name!r}")
        name = name.strip()
        if _has_control_chars(name):
            raise ValueError(f"Permission name contains control characters: {name!r}")
        if name not in result:
            result.append(name)
    return result
