import re

PHONE_PATTERN = re.compile(r"^[0-9+\-\s()]+$")


def strip_phone_separators(value: str) -> str:
    """Drop spaces, dashes and parentheses; anything else stays part of the search."""
    return re.sub(r"[\s\-()]", "", value or "")


def check_phone(value: str, min_digits: int = 7) -> str:
    value = (value or "").strip()
    if not PHONE_PATTERN.match(value):
        raise ValueError("Invalid phone number format")
    if len(re.sub(r"\D", "", value)) < min_digits:
        raise ValueError(f"Phone number must contain at least {min_digits} digits")
    return value


def check_full_name(value: str) -> str:
    value = " ".join((value or "").split())
    if len(value.split(" ")) < 2:
        raise ValueError("Please enter a full name (first and last name)")
    return value


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def check_not_null(value, field_name: str):
    # Partial updates may omit a field but not blank out a required column
    if value is None:
        raise ValueError(f"{field_name} cannot be null")
    return value
