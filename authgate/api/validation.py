"""Request validation decorator.

@validate_request parses the request into the Pydantic model named by the
view function's annotation and passes the instance in. Path parameters
(Flask view_args) are passed through unchanged.

Body source:
- JSON body when the request carries one
- form data for HTML form posts
- query string for GET requests (e.g. links clicked from an email)
"""

import inspect
import logging
from functools import wraps

from flask import request
from pydantic import BaseModel, ValidationError as PydanticValidationError

from ..exceptions import ValidationError

logger = logging.getLogger(__name__)

REDACTED_FIELDS = {"password", "token"}


def _request_data() -> dict:
    if request.method == "GET":
        return request.args.to_dict()
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}
    if request.form:
        return request.form.to_dict()
    return {}


def _redact(data: dict) -> dict:
    return {
        key: ("[REDACTED]" if key in REDACTED_FIELDS else value)
        for key, value in data.items()
    }


def _format_errors(exc: PydanticValidationError) -> list[dict]:
    errors = []
    for err in exc.errors():
        errors.append({
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
            "expected_type": err["type"],
        })
    return errors


def validate_request(f):
    """Validate the request body against the view's Pydantic annotation.

    Raises:
        TypeError: At decoration time if the view has no annotated parameter,
            or at request time if the body parameter is not a BaseModel
        ValidationError: If the request data does not fit the model
    """
    signature = inspect.signature(f)
    params = list(signature.parameters.values())
    if not params:
        raise TypeError(f"{f.__name__} has no parameters to validate")
    if params[0].annotation is inspect.Parameter.empty:
        raise TypeError(f"First parameter of {f.__name__} lacks a type annotation")

    @wraps(f)
    def wrapper(*args, **kwargs):
        view_args = request.view_args or {}
        for param in params:
            if param.name in view_args or param.name in kwargs:
                continue

            model = param.annotation
            if not (inspect.isclass(model) and issubclass(model, BaseModel)):
                raise TypeError(
                    f"Parameter '{param.name}' of {f.__name__} must be annotated "
                    f"with a Pydantic BaseModel subclass"
                )

            data = _request_data()
            try:
                kwargs[param.name] = model(**data)
            except PydanticValidationError as e:
                logger.info(f"Request validation failed for {model.__name__}")
                raise ValidationError(
                    "Invalid request data",
                    {
                        "model": model.__name__,
                        "received": _redact(data),
                        "errors": _format_errors(e),
                    }
                )
        return f(*args, **kwargs)

    return wrapper
