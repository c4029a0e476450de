"""DB service layer for user/card use cases.

- Routers should not touch DB sessions directly; they go through ProgressService.
- This layer owns session/transaction boundaries.
- Use CRUD helpers that do NOT commit inside session.begin().
"""

import logging
from datetime import datetime
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from src.crud import CreateData, ReadData
from src.domain.card_catalog import card_type_for_id
from src.exceptions import GameError, InternalError, NotFoundError
from src.models.schemas import Base, Card, User

T = TypeVar("T")


class GameDatabase:
    """Runs each operation as one atomic read-modify-write.

    Users and cards carry a version column, so two transactions that read the
    same row cannot both commit; the loser is rolled back and replayed.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        Session: async_sessionmaker,
        auto_provision: bool = True,
        default_max_energy: int = 100,
        max_retries: int = 3,
    ):
        self.engine: AsyncEngine = engine
        self.Session: async_sessionmaker = Session
        self.auto_provision: bool = auto_provision
        self.default_max_energy: int = default_max_energy
        self.max_retries: int = max(1, max_retries)

    async def create_table(self) -> None:
        """Create tables if they do not exist"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

    async def run_transaction(
        self, operation: Callable[[AsyncSession], Awaitable[T]]
    ) -> T:
        """Run ``operation`` inside a transaction, replaying it on write conflicts.

        Args:
            operation: Coroutine function receiving the session; its return value is passed through

        Raises:
            GameError: Raised by the operation; the transaction is rolled back
            InternalError: Storage failure, or conflicts persisted after max_retries attempts
        """
        for attempt in range(1, self.max_retries + 1):
            try:
                async with self.Session() as session:
                    async with session.begin():
                        return await operation(session)
            except GameError:
                raise
            except (StaleDataError, IntegrityError) as e:
                logging.warning(
                    f"Concurrent update detected (attempt {attempt}/{self.max_retries}): {e}"
                )
            except SQLAlchemyError as e:
                logging.error(f"Storage operation failed: {e}")
                raise InternalError() from e

        logging.error(f"Giving up after {self.max_retries} conflicting attempts")
        raise InternalError()

    async def get_or_create_user(
        self, username: str, now: datetime, session: AsyncSession
    ) -> User:
        user = await ReadData.read_user_for_update(username, session)
        if user is not None:
            return user
        if not self.auto_provision:
            raise NotFoundError(f"User {username} not found", code="USER_NOT_FOUND")

        logging.info(f"Provisioning user: {username}")
        return await CreateData.add_user_data(
            username, self.default_max_energy, now, session
        )

    async def get_or_create_card(
        self, card_id: str, user: User, session: AsyncSession
    ) -> Card:
        card = await ReadData.read_card_for_update(card_id, user.user_id, session)
        if card is not None:
            return card
        if not self.auto_provision:
            raise NotFoundError(f"Card {card_id} not found", code="CARD_NOT_FOUND")

        logging.info(f"Provisioning card {card_id} for user {user.username}")
        return await CreateData.add_card_data(
            card_id, user.user_id, card_type_for_id(card_id), session
        )
