"""
Route → request-schema lookup.

Schemas are picked by exact ``(path, method)`` match.  Anything not in
``SCHEMA_TABLE`` gets ``EmptySchema``, so lookups never fail.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Tuple, Type

from pydantic import BaseModel

from utils.schemas import (
    AuthenticateUserSchema,
    EmptySchema,
    RegisterUserSchema,
    UpdateUserSchema,
)

logger = logging.getLogger(__name__)


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


SCHEMA_TABLE: Dict[Tuple[str, HttpMethod], Type[BaseModel]] = {
    ("/api/v1/auth", HttpMethod.PUT): AuthenticateUserSchema,
    ("/api/v1/auth", HttpMethod.POST): RegisterUserSchema,
    ("/api/v1/auth", HttpMethod.DELETE): EmptySchema,
    ("/api/v1/user", HttpMethod.PATCH): UpdateUserSchema,
}


def resolve_schema(path: str, method: str | HttpMethod) -> Type[BaseModel]:
    """Return the schema registered for ``(path, method)`` or ``EmptySchema``."""
    if len(path) > 1:
        path = path.rstrip("/")
    try:
        method = HttpMethod(method.upper())
    except (AttributeError, ValueError):
        logger.debug("Unknown method %r for %s; using EmptySchema", method, path)
        return EmptySchema
    schema = SCHEMA_TABLE.get((path, method), EmptySchema)
    logger.debug("Schema for %s %s: %s", method.value, path, schema.__name__)
    return schema
