"""Profile service — display name and avatar updates for the signed-in user."""

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.db.models import User
from authgate.errors import BadRequestError, NoDataError, PersistenceError
from authgate.schemas.auth import UpdateProfileInput, parse_input
from authgate.services.user_store import UserStore
from authgate.storage.avatars import AvatarStorage, Upload

logger = structlog.get_logger()


class ProfileService:
    def __init__(self, db: AsyncSession, storage: AvatarStorage):
        self.users = UserStore(db)
        self.storage = storage

    async def update_profile(
        self,
        user_id: int,
        fullname: Optional[str] = None,
        upload: Optional[Upload] = None,
    ) -> User:
        """Update whichever of fullname / avatar was supplied.

        Fields that weren't supplied keep their stored value. An empty
        or blank fullname counts as not supplied. A stored avatar is
        removed again if the user row can't be updated.
        """
        body = parse_input(UpdateProfileInput, {"fullname": fullname})
        if body.fullname is None and upload is None:
            raise NoDataError()

        fields: dict[str, str] = {}
        if body.fullname is not None:
            fields["fullname"] = body.fullname
        if upload is not None:
            fields["avatar_url"] = await self.storage.store(upload)

        try:
            user = await self.users.update(user_id, **fields)
        except PersistenceError:
            self._discard_avatar(fields)
            raise
        if user is None:
            self._discard_avatar(fields)
            raise BadRequestError("User no longer exists")

        logger.info("profile.updated", user_id=user_id, fields=sorted(fields))
        return user

    def _discard_avatar(self, fields: dict[str, str]) -> None:
        if "avatar_url" in fields:
            self.storage.discard(fields["avatar_url"])
