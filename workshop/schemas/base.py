"""
Request body parsing shared by all routers.
"""
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from workshop.errors import ValidationError


def blank_to_none(value):
    """Form posts send empty strings for unset selects."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def parse_payload(schema: type[BaseModel], data) -> BaseModel:
    """Validate ``data`` against ``schema`` or raise a workshop ValidationError."""
    if data is None:
        raise ValidationError('Request body must be a JSON object')
    try:
        return schema.model_validate(data)
    except PydanticValidationError as exc:
        error = exc.errors()[0]
        field = '.'.join(str(part) for part in error.get('loc', ()))
        message = error.get('msg', 'Invalid value')
        raise ValidationError(f"{field}: {message}" if field else message) from None
