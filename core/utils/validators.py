"""Input validation helpers shared by services."""

from typing import Optional
from email_validator import validate_email as _validate_email, EmailNotValidError

from core.exceptions import ValidationError


def validate_email(email: str) -> tuple[bool, Optional[str]]:
    """
    Validate email address format.

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, normalized_email or error_message)
    """
    try:
        validation = _validate_email(email, check_deliverability=False)
        return True, validation.normalized
    except EmailNotValidError as e:
        return False, str(e)


def normalize_email(email: str) -> str:
    """
    Normalize an email for storage and lookup, or raise.

    The local part is lowercased too; candidates are matched by email and
    users routinely type their address with different capitalization.

    Raises:
        ValidationError: If the address is malformed
    """
    is_valid, result = validate_email(email.strip())
    if not is_valid:
        raise ValidationError(f"Invalid email address: {result}", details={"field": "email"})
    return result.lower()


def clean_text(value: Optional[str]) -> Optional[str]:
    """Trim a free-text value; blank becomes None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def require_text(value: Optional[str], field: str) -> str:
    """
    Trimmed non-empty text, or ValidationError naming the field.
    """
    cleaned = clean_text(value)
    if cleaned is None:
        raise ValidationError(f"{field} is required", details={"field": field})
    return cleaned

