import re
from datetime import date
from typing import Optional, Tuple

from javidan.errors import ValidationError
from javidan.subjects import FieldType


def clean_text(value) -> Optional[str]:
    """Strip a form value; blank strings become None"""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def split_full_name(full_name: str) -> Tuple[str, str]:
    """
    Derive first and last name from a full name.

    The first word is the first name and the remaining words are the last
    name. A single-word name is used for both.

    Args:
        full_name: Name like "Ali Rezaei"

    Returns:
        Tuple of (first_name, last_name)
    """
    parts = re.split(r"\s+", full_name.strip(), maxsplit=1)
    first = parts[0]
    last = parts[1] if len(parts) > 1 else first
    return first, last


def join_names(first: Optional[str], last: Optional[str]) -> Optional[str]:
    if first and last:
        return f"{first} {last}"
    return first or last


def resolve_names(full: Optional[str], first: Optional[str], last: Optional[str]):
    """
    Fill in whichever name form is missing.

    Returns:
        Tuple of (full, first, last), each possibly None
    """
    if full and not (first or last):
        first, last = split_full_name(full)
    elif not full and (first or last):
        full = join_names(first, last)
    return full, first, last


def coerce_value(value, field_type: FieldType, field_name: str):
    """
    Convert a raw form/JSON value to the column's Python type.

    Args:
        value: Raw value (string or number)
        field_type: Target type
        field_name: Used in the error message

    Returns:
        Converted value, or None for blank input

    Raises:
        ValidationError: If the value cannot be converted
    """
    if isinstance(value, str):
        value = clean_text(value)
    if value is None:
        return None
    if not isinstance(value, (str, int, float)):
        raise ValidationError(f"Invalid value for {field_name}")

    try:
        if field_type == FieldType.INT:
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(value)
            return int(value)
        if field_type == FieldType.FLOAT:
            return float(value)
        if field_type == FieldType.DATE:
            return date.fromisoformat(str(value)).isoformat()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid value for {field_name}: {value}")

    return str(value)
