"""
User persistence helpers.
"""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import User


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserRepository:
    @staticmethod
    async def exists(session: AsyncSession, email: str) -> bool:
        result = await session.execute(
            select(User.user_id).where(User.email == normalize_email(email))
        )
        return result.first() is not None

    @staticmethod
    async def find_by_email(session: AsyncSession, email: str) -> Optional[User]:
        result = await session.execute(
            select(User).where(User.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def find_by_id(session: AsyncSession, user_id: str | uuid.UUID) -> Optional[User]:
        if isinstance(user_id, str):
            user_id = uuid.UUID(user_id)
        return await session.get(User, user_id)

    @staticmethod
    async def add(session: AsyncSession, user: User) -> User:
        session.add(user)
        await session.flush()
        return user
