"""
Global middleware.
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request

from api.validation import Validate
from auth.sessions import session_manager, set_session_cookie

logger = logging.getLogger(__name__)


def _sets_cookie(response, name: str) -> bool:
    prefix = f"{name}="
    return any(
        value.startswith(prefix) for value in response.headers.getlist("set-cookie")
    )


def register_middleware(app: FastAPI) -> None:
    """Attach any app-level middleware."""

    @app.middleware("http")
    async def session_loader(request: Request, call_next):
        """
        Expose the caller's session as ``request.state.user`` /
        ``request.state.session``.

        Re-issues the cookie when the session was just extended and blanks
        it when the browser sent an id that no longer matches a session.
        Cookies written by the route itself take precedence.
        """
        name = session_manager.session_cookie_name
        session_id = request.cookies.get(name, "")
        try:
            result = await session_manager.validate_session(session_id)
        except Exception as exc:
            return Validate.handle_error(exc)
        request.state.user = result.user
        request.state.session = result.session

        response = await call_next(request)

        if _sets_cookie(response, name):
            return response
        if result.session is not None and result.fresh:
            set_session_cookie(response, session_manager.create_session_cookie(result.session.session_id))
        elif session_id and result.session is None:
            set_session_cookie(response, session_manager.create_blank_session_cookie())
        return response

    @app.middleware("http")
    async def request_timer(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        logger.debug("%s %s — %.3fs", request.method, request.url.path, elapsed)
        return response
