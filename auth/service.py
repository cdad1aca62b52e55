"""
User account operations used by the auth and user routes.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import CollectionAlreadyExistsError
from auth.password import hash_password
from auth.repository import UserRepository, normalize_email
from database.models import User
from utils.schemas import RegisterUserSchema, UpdateUserSchema

logger = logging.getLogger(__name__)


class UserService:
    @staticmethod
    async def create_user(session: AsyncSession, data: RegisterUserSchema) -> User:
        """Persist a new user.  The caller is expected to have checked the email."""
        user = User(
            user_id=uuid.uuid4(),
            email=normalize_email(data.email),
            display_name=data.username,
            password_hash=hash_password(data.password),
            created_at=datetime.now(timezone.utc),
        )
        await UserRepository.add(session, user)
        logger.info("Registered user %s (%s)", data.username, user.user_id)
        return user

    @staticmethod
    async def update_user(session: AsyncSession, user: User, data: UpdateUserSchema) -> User:
        """
        Apply the fields present in ``data`` to ``user``.

        Raises ``CollectionAlreadyExistsError`` if the new email belongs to
        someone else.
        """
        if data.email is not None:
            email = normalize_email(data.email)
            if email != user.email and await UserRepository.exists(session, email):
                raise CollectionAlreadyExistsError("Email already registered")
            user.email = email
        if data.username is not None:
            user.display_name = data.username
        if data.password is not None:
            user.password_hash = hash_password(data.password)
        await session.flush()
        logger.info("Updated user %s", user.user_id)
        return user
