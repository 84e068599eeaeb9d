"""Input validation shared by all components.

Every public operation validates its arguments with these helpers before it
touches storage.
"""

from typing import Optional, Tuple

from .errors import ValidationError


def clean_name(name: Optional[str], label: str = "name") -> str:
    """Trim a vocabulary name and reject empty or whitespace-only values.

    Args:
        name: Raw name as supplied by the caller
        label: Entity label used in the error message

    Returns:
        The trimmed name

    Example:
        >>> clean_name("  APPROVE ")
        'APPROVE'
        >>> clean_name("   ")
        Traceback (most recent call last):
        ...
        docflow.errors.ValidationError: name cannot be empty
    """
    if name is None or not isinstance(name, str):
        raise ValidationError(f"{label} must be a string")
    name = name.strip()
    if not name:
        raise ValidationError(f"{label} cannot be empty")
    return name


def check_id(value: int, label: str = "id") -> int:
    """Reject non-integer and non-positive identifiers."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{label} must be an integer")
    if value <= 0:
        raise ValidationError(f"{label} must be positive (got {value})")
    return value


def check_paging(offset: int, limit: int) -> Tuple[int, int]:
    """Validate offset/limit pagination; limit 0 means unbounded."""
    if offset < 0:
        raise ValidationError(f"offset must be non-negative (got {offset})")
    if limit < 0:
        raise ValidationError(f"limit must be non-negative (got {limit})")
    return offset, limit
