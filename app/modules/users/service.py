"""UsersService - owner bookkeeping for report groups"""

import logging
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import UnauthorizedError

from .auth import TokenData
from .models import Role, User

logger = logging.getLogger(__name__)


class UsersService:

    @staticmethod
    async def ensure_user(db: AsyncSession, token: TokenData) -> User:
        """
        Return the users row for the token, creating it on first use.

        Accounts live in the identity provider; the local row exists so
        report groups have an owner to reference.

        Raises:
            UnauthorizedError: The username is already registered under a
                different id, so groups created now would be invisible to
                the token that made them
        """
        user = await db.get(User, token.user_id)
        if user is not None:
            return user

        existing = await db.execute(select(User.id).where(User.username == token.username))
        other_id = existing.scalar_one_or_none()
        if other_id is not None:
            logger.warning(
                "Token for %s carries id %s but the owner is registered as %s",
                token.username, token.user_id, other_id,
            )
            raise UnauthorizedError("Token user id does not match the registered owner")

        try:
            role = Role(token.role)
        except ValueError:
            role = Role.ACCOUNTANT

        user = User(id=token.user_id, username=token.username, name=token.username, role=role)
        db.add(user)
        await db.flush()
        logger.info("Registered report owner %s (id=%s)", token.username, token.user_id)
        return user
