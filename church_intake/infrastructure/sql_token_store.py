"""SQL Token Store — TokenStore implementation over SQLAlchemy async sessions.

Invariants:
    - insert_if_unique returns False only when the token string already exists
    - deactivate is "UPDATE … SET is_active = false WHERE id = :id AND is_active": one
      statement, so two concurrent deactivations cannot both report success
    - No method deletes a token row

Design Decisions:
    - Token collisions detected from the unique index, not a pre-SELECT: the index is the
      only check that holds under concurrent inserts
"""

import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from church_intake.core.domain_types import ActorId, TokenId
from church_intake.core.records import RegistrationToken
from church_intake.infrastructure.database import DatabaseSessionManager
from church_intake.infrastructure.record_mapping import token_to_record, token_to_row
from church_intake.models.registration_token import (
    RegistrationToken as RegistrationTokenModel,
)

logger = logging.getLogger(__name__)


class SqlTokenStore:
    """Registration token persistence."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def insert_if_unique(self, token: RegistrationToken) -> bool:
        async with self._db.session() as session:
            session.add(token_to_row(token))
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                clash = await session.scalar(
                    select(RegistrationTokenModel.id)
                    .where(RegistrationTokenModel.token == token.token),
                )
                if clash is None:
                    raise
                logger.info("Token string collision", extra={"token_id": token.id})
                return False
        return True

    async def get(self, token_id: TokenId) -> RegistrationToken | None:
        async with self._db.session() as session:
            row = await session.get(RegistrationTokenModel, token_id)
            return token_to_record(row) if row else None

    async def find_by_token(self, token: str) -> RegistrationToken | None:
        async with self._db.session() as session:
            row = await session.scalar(
                select(RegistrationTokenModel)
                .where(RegistrationTokenModel.token == token),
            )
            return token_to_record(row) if row else None

    async def list_active(self) -> list[RegistrationToken]:
        return await self._list(RegistrationTokenModel.is_active.is_(True))

    async def list_by_creator(self, created_by: ActorId) -> list[RegistrationToken]:
        return await self._list(RegistrationTokenModel.created_by == created_by)

    async def list_expired_active(self, now: datetime) -> list[RegistrationToken]:
        return await self._list(
            RegistrationTokenModel.is_active.is_(True),
            RegistrationTokenModel.expires_at.is_not(None),
            RegistrationTokenModel.expires_at < now,
        )

    async def deactivate(self, token_id: TokenId) -> bool:
        async with self._db.transaction() as session:
            result = await session.execute(
                update(RegistrationTokenModel)
                .where(RegistrationTokenModel.id == token_id)
                .where(RegistrationTokenModel.is_active.is_(True))
                .values(is_active=False)
                .execution_options(synchronize_session=False),
            )
            return result.rowcount == 1

    async def _list(self, *conditions) -> list[RegistrationToken]:
        async with self._db.session() as session:
            rows = await session.scalars(
                select(RegistrationTokenModel)
                .where(*conditions)
                .order_by(RegistrationTokenModel.created_at.desc()),
            )
            return [token_to_record(row) for row in rows]
