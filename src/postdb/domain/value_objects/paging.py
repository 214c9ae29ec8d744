"""Limit/offset/since parameter checks shared by read operations."""

from postdb.domain.exceptions import ValidationError


def validate_limit(limit: int | None, *, required: bool = True) -> int | None:
    if limit is None:
        if required:
            raise ValidationError("Missing limit parameter")
        return None
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValidationError("Invalid limit parameter")
    return limit


def validate_offset(offset: int) -> int:
    if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
        raise ValidationError("Invalid offset parameter")
    return offset


def validate_since(since: int | str) -> int:
    """Accept an integer or its string form (cursors are stored as strings)."""
    try:
        value = int(since)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid since parameter: {since!r}") from None
    if value < 0:
        raise ValidationError(f"Invalid since parameter: {since!r}")
    return value
