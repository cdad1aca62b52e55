"""
Current-user routes.

Route prefix: /api/v1/user
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth import user_payload
from api.errors import ResourceNotFoundError, SchemaValidationError
from api.validation import Validate
from auth.repository import UserRepository
from auth.service import UserService
from auth.sessions import session_manager, set_session_cookie
from database.session import get_db_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["user"])


@router.get("")
async def get_current_user(request: Request) -> Response:
    try:
        validation = await Validate.validate_request(cookies=request.cookies)
        return JSONResponse(user_payload(validation.session.user))
    except Exception as exc:
        return Validate.handle_error(exc)


@router.patch("")
async def update_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    """
    Update the logged-in user's profile.

    Changing the password ends every other session of the user and issues a
    new cookie for this one.
    """
    try:
        validation = await Validate.validate_request(cookies=request.cookies, request=request)
        body = validation.body
        if not body.success:
            raise SchemaValidationError(body.issues)

        user = await UserRepository.find_by_id(db, validation.session.user.user_id)
        if user is None:
            raise ResourceNotFoundError()

        await UserService.update_user(db, user, body.data)
        session = None
        if body.data.password is not None:
            await session_manager.invalidate_user_sessions(user.user_id, db_session=db)
            session = await session_manager.create_session(user.user_id, db_session=db)
        await db.commit()

        response = JSONResponse(user_payload(user))
        if session is not None:
            set_session_cookie(response, session_manager.create_session_cookie(session.session_id))
            logger.info("Password changed for %s; other sessions ended", user.user_id)
        return response
    except Exception as exc:
        await db.rollback()
        return Validate.handle_error(exc)
