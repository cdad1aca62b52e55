"""
Request validation shared by every route handler.

``Validate`` is a single stateless instance.  Handlers call
``validate_request`` with whatever they have (cookies, the request, path
params) and pass any exception to ``handle_error``, which is the last stop
for errors on the request path and never raises itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from fastapi import Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import ValidationError

from api.errors import (
    AccessDeniedError,
    CollectionAlreadyExistsError,
    InvalidSessionError,
    ResourceNotFoundError,
    SchemaValidationError,
)
from api.schema_resolver import resolve_schema
from auth.sessions import SessionValidation, session_manager
from utils.schemas import (
    ValidationFailure,
    ValidationIssue,
    ValidationResult,
    ValidationSuccess,
)

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = (
    "Something went wrong on our end. We've been notified and will look into it"
)

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


@dataclass
class RequestValidation:
    session: Optional[SessionValidation] = None
    body: Optional[ValidationResult] = None


def issues_from_error(exc: ValidationError) -> List[ValidationIssue]:
    """Flatten a pydantic error into ordered ``(path, message)`` issues."""
    return [
        ValidationIssue(
            path=".".join(str(part) for part in err["loc"]),
            message=err["msg"],
        )
        for err in exc.errors()
    ]


async def _read_body(request: Request) -> Any:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(_FORM_CONTENT_TYPES):
        form = await request.form()
        return dict(form)
    return await request.json()


class Validation:
    async def validate_body(self, request: Request) -> ValidationResult:
        """
        Parse the request body with the schema registered for its route.

        Schema violations come back as a ``ValidationFailure``; anything
        else (unreadable body, malformed JSON) is raised unchanged.
        """
        schema = resolve_schema(request.url.path, request.method)
        data = await _read_body(request)
        try:
            parsed = schema.model_validate(data)
        except ValidationError as exc:
            return ValidationFailure(issues=issues_from_error(exc))
        return ValidationSuccess(data=parsed)

    async def validate_params(
        self,
        request: Request,
        params: Dict[str, str],
    ) -> Dict[str, str]:
        # Path params are only type-checked by the router for now.
        resolve_schema(request.url.path, request.method)
        return params

    async def validate_session(self, cookies: Mapping[str, str]) -> SessionValidation:
        """
        Resolve the session named by the request's session cookie.

        Raises ``InvalidSessionError`` unless the session manager reports a
        user for it.
        """
        session_id = cookies.get(session_manager.session_cookie_name) or ""
        result = await session_manager.validate_session(session_id)
        if result.user is None:
            raise InvalidSessionError()
        return result

    async def validate_request(
        self,
        *,
        cookies: Optional[Mapping[str, str]] = None,
        params: Optional[Dict[str, str]] = None,
        request: Optional[Request] = None,
    ) -> RequestValidation:
        validation = RequestValidation()
        if cookies is not None:
            validation.session = await self.validate_session(cookies)
        if request is not None:
            validation.body = await self.validate_body(request)
        return validation

    def handle_error(self, exc: Any) -> Response:
        if isinstance(exc, InvalidSessionError):
            return PlainTextResponse("Invalid Session", status_code=401)
        if isinstance(exc, ResourceNotFoundError):
            return PlainTextResponse("Resource not found", status_code=404)
        if isinstance(exc, AccessDeniedError):
            return PlainTextResponse("Access denied", status_code=403)
        if isinstance(exc, SchemaValidationError):
            return JSONResponse([i.model_dump() for i in exc.issues], status_code=400)
        if isinstance(exc, ValidationError):
            return JSONResponse(
                [i.model_dump() for i in issues_from_error(exc)], status_code=400
            )
        if isinstance(exc, CollectionAlreadyExistsError):
            return PlainTextResponse(str(exc), status_code=409)

        logger.error(
            "Unhandled error on request path: %r",
            exc,
            exc_info=exc if isinstance(exc, BaseException) else None,
        )
        return PlainTextResponse(GENERIC_ERROR_MESSAGE, status_code=500)


Validate = Validation()
