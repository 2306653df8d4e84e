"""
Request payload helpers: JSON body access, date parsing and field checks.
All failures raise ``ValidationError`` so the JSON error handler renders a 400.
"""

from datetime import date, datetime
from typing import Any, Iterable, Optional

from flask import request

from utils.errors import ValidationError


def get_json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def parse_date(value: Any, field: str) -> Optional[date]:
    """Accept 'YYYY-MM-DD' or a full ISO timestamp; empty means None."""
    if value in (None, ''):
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00')).date()
    except ValueError:
        raise ValidationError(f'{field} must be an ISO date (YYYY-MM-DD)')


def parse_datetime(value: Any, field: str) -> Optional[datetime]:
    if value in (None, ''):
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        raise ValidationError(f'{field} must be an ISO datetime')
    return parsed.replace(tzinfo=None)


def require_text(value: Any, field: str, max_length: int, min_length: int = 1) -> str:
    text = (value or '').strip() if isinstance(value, str) or value is None else None
    if text is None:
        raise ValidationError(f'{field} must be a string')
    if len(text) < min_length:
        raise ValidationError(f'{field} is required')
    if len(text) > max_length:
        raise ValidationError(f'{field} must be at most {max_length} characters')
    return text


def optional_text(value: Any, field: str, max_length: int) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f'{field} must be a string')
    if len(value) > max_length:
        raise ValidationError(f'{field} must be at most {max_length} characters')
    return value


def optional_bool(value: Any, field: str, default: bool = False) -> bool:
    """JSON true/false only; strings such as "false" are rejected rather than read as truthy."""
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValidationError(f'{field} must be true or false')
    return value


def require_choice(value: Any, field: str, choices: Iterable[str]) -> str:
    choices = list(choices)
    if value not in choices:
        raise ValidationError(f"{field} must be one of: {', '.join(choices)}")
    return value


def optional_int(value: Any, field: str, minimum: Optional[int] = None,
                 maximum: Optional[int] = None) -> Optional[int]:
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be an integer')
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be an integer')
    if minimum is not None and number < minimum:
        raise ValidationError(f'{field} must be at least {minimum}')
    if maximum is not None and number > maximum:
        raise ValidationError(f'{field} must be at most {maximum}')
    return number


def int_list(value: Any, field: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f'{field} must be a list of ids')
    return [optional_int(v, field) for v in value]


def pagination_dict(pagination) -> dict:
    """Serialise a Flask-SQLAlchemy Pagination's metadata."""
    return {
        'page': pagination.page,
        'pages': pagination.pages,
        'per_page': pagination.per_page,
        'total': pagination.total,
        'has_next': pagination.has_next,
        'has_prev': pagination.has_prev,
    }
