"""
Shared plumbing for the JSON views: method and authentication checks, body
parsing with pydantic and the mapping from exceptions to JSON errors.
"""

import json
import logging
from functools import wraps
from typing import Optional, Type, TypeVar

import pydantic
from django.core.exceptions import PermissionDenied, ValidationError
from django.http import Http404, JsonResponse

logger = logging.getLogger(__name__)

Schema = TypeVar("Schema", bound=pydantic.BaseModel)

FAILURE_VERBS = {
    "GET": "fetch",
    "POST": "create",
    "PUT": "update",
    "PATCH": "update",
    "DELETE": "delete",
}


def error_response(message: str, status: int) -> JsonResponse:
    return JsonResponse({"error": message}, status=status)


def json_response(data, status: int = 200) -> JsonResponse:
    return JsonResponse(data, status=status, safe=False)


def read_json(request) -> dict:
    try:
        data = json.loads(request.body or b"{}")
    except json.JSONDecodeError:
        raise ValidationError("Request body must be valid JSON")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def parse_body(request, schema: Type[Schema]) -> Schema:
    """Validate the JSON request body against ``schema``."""
    return schema.model_validate(read_json(request))


def _pydantic_message(error: pydantic.ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first['msg']}" if location else first["msg"]


def _validation_message(error: ValidationError) -> str:
    return "; ".join(error.messages)


def api_view(*methods: str, staff: bool = False, failure: Optional[str] = None):
    """
    Decorate a JSON view.

    Rejects other methods with 405 and anonymous users with 401 (and, for
    ``staff`` views, non-staff users too). Handler exceptions become JSON
    errors: ValidationError and pydantic errors 400, PermissionDenied 403,
    Http404 404. Anything else is logged and returned as 500, with
    "Failed to <verb> <failure>" as the message when ``failure`` is given.
    """

    def decorator(view):
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            if request.method not in methods:
                return error_response("Method not allowed", 405)
            if not request.user.is_authenticated:
                return error_response("Unauthorized", 401)
            if staff and not request.user.is_staff:
                return error_response("Unauthorized", 401)

            try:
                return view(request, *args, **kwargs)
            except pydantic.ValidationError as e:
                return error_response(_pydantic_message(e), 400)
            except ValidationError as e:
                return error_response(_validation_message(e), 400)
            except PermissionDenied as e:
                return error_response(str(e) or "Forbidden", 403)
            except Http404 as e:
                return error_response(str(e) or "Not found", 404)
            except Exception:
                logger.exception(f"Unhandled error in {view.__name__}")
                if failure:
                    verb = FAILURE_VERBS.get(request.method, "process")
                    return error_response(f"Failed to {verb} {failure}", 500)
                return error_response("An unexpected error occurred", 500)

        return wrapper

    return decorator
