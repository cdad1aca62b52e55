"""
Auth API routes — login, register, logout.

Route prefix: /api/v1/auth
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import CollectionAlreadyExistsError, SchemaValidationError
from api.validation import Validate
from auth.password import verify_password
from auth.repository import UserRepository
from auth.service import UserService
from auth.sessions import session_manager, set_session_cookie
from database.models import User
from database.session import get_db_session
from utils.schemas import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def user_payload(user: User) -> Dict[str, Any]:
    return UserResponse.model_validate(user).model_dump(mode="json")


async def _start_session(db: AsyncSession, user: User) -> JSONResponse:
    session = await session_manager.create_session(user.user_id, db_session=db)
    await db.commit()
    response = JSONResponse(user_payload(user))
    set_session_cookie(response, session_manager.create_session_cookie(session.session_id))
    return response


# ── Endpoints ──────────────────────────────────────────────────────────


@router.put("")
async def authenticate(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    """Login with email + password."""
    try:
        body = (await Validate.validate_request(request=request)).body
        if not body.success:
            raise SchemaValidationError(body.issues)

        user = await UserRepository.find_by_email(db, body.data.email)
        if user is None:
            return JSONResponse({"message": "computer sais no"}, status_code=400)

        if not verify_password(body.data.password, user.password_hash):
            logger.warning("Failed login for %s", user.email)
            return JSONResponse({"message": "Invalid email or password"}, status_code=401)

        response = await _start_session(db, user)
        logger.info("Login: %s (%s)", user.display_name, user.user_id)
        return response
    except Exception as exc:
        await db.rollback()
        return Validate.handle_error(exc)


@router.post("")
async def register(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    """Register a new user and log them in."""
    try:
        body = (await Validate.validate_request(request=request)).body
        if not body.success:
            logger.error("Registration rejected: %s", [i.model_dump() for i in body.issues])
            return Response(status_code=500)

        if await UserRepository.exists(db, body.data.email):
            raise CollectionAlreadyExistsError("Email already registered")

        user = await UserService.create_user(db, body.data)
        return await _start_session(db, user)
    except Exception as exc:
        await db.rollback()
        return Validate.handle_error(exc)


@router.delete("")
async def logout(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    """End the current session and blank the cookie."""
    session = getattr(request.state, "session", None)
    if session is None:
        return Response(status_code=401)

    try:
        await session_manager.invalidate_session(session.session_id, db_session=db)
        await db.commit()
    except Exception as exc:
        await db.rollback()
        return Validate.handle_error(exc)

    response = Response(status_code=200)
    set_session_cookie(response, session_manager.create_blank_session_cookie())
    logger.info("Logout: user %s", session.user_id)
    return response
