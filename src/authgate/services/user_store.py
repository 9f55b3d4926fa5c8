"""User store — the create / find / update-by-id contract over the users table.

Learn: Services never touch the session directly for users; they go
through this class. Database failures are translated here into domain
errors so the layers above don't need to know about SQLAlchemy:
- duplicate email on INSERT → ConflictError (the unique constraint wins
  any race between two registrations)
- any other write failure → PersistenceError (reported, not retried)
"""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.db.models import User
from authgate.errors import ConflictError, PersistenceError

logger = structlog.get_logger()


class UserStore:
    """Persistence of user records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, fullname: str, email: str, password_hash: str) -> User:
        user = User(fullname=fullname, email=email, password=password_hash)
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("user_store.create_failed", error=str(e))
            raise PersistenceError("Failed to create user")
        await self.db.refresh(user)
        return user

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    async def find_by_id(self, user_id: int) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def update(self, user_id: int, **fields) -> Optional[User]:
        """Apply `fields` to the user. Returns None if the user doesn't exist."""
        user = await self.find_by_id(user_id)
        if user is None:
            return None
        for name, value in fields.items():
            setattr(user, name, value)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("user_store.update_failed", user_id=user_id, error=str(e))
            raise PersistenceError("Failed to update the user's profile")
        await self.db.refresh(user)
        return user
