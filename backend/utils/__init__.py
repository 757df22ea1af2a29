from sqlalchemy.orm import class_mapper
from .formatting import utcnow, ensure_utc, format_audit_date, format_currency, amount_to_words


def sqlalchemy_to_dict(obj, exclude=()):
    """Convert a SQLAlchemy object to a JSON-safe dictionary."""
    if not obj:
        return None
    mapper = class_mapper(obj.__class__)
    result = {}
    for prop in mapper.column_attrs:
        if prop.key in exclude:
            continue
        value = getattr(obj, prop.key)
        # Convert datetime/date objects to ISO format strings
        if hasattr(value, 'isoformat'):
            value = value.isoformat()
        # Convert Decimal objects to strings so no precision is lost
        elif hasattr(value, 'normalize') and hasattr(value, 'from_float'):  # Check if it's a Decimal
            value = str(value)
        # Convert enum types to their stored value
        elif hasattr(value, 'value') and hasattr(value, 'name'):  # Check if it's an enum
            value = value.value
        result[prop.key] = value
    return result

__all__ = ['amount_to_words', 'ensure_utc', 'format_audit_date', 'format_currency', 'sqlalchemy_to_dict', 'utcnow']
