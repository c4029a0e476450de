"""CRUD helpers for users and cards.

None of these commit: they are called inside ``session.begin()`` blocks owned
by the DB service layer, so a failure rolls every change of the operation back.
"""

from datetime import datetime
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.card_catalog import card_description, card_image, card_name
from src.models.schemas import Card, User


class CreateData:
    @staticmethod
    async def add_user_data(
        username: str, max_energy: int, now: datetime, session: AsyncSession
    ) -> User:
        """Add a new user with a full energy bar

        Args:
            username (str): Unique user key (the x-user-id header value)
            max_energy (int): Energy cap, also the starting energy
            now (datetime): Starting point for energy regeneration

        Returns:
            User: The pending user row
        """
        user = User(
            username=username,
            email=f"{username}@demo.com",
            energy=max_energy,
            max_energy=max_energy,
            last_energy_regeneration=now,
        )
        session.add(user)
        await session.flush()
        return user

    @staticmethod
    async def add_card_data(
        card_id: str, user_id: UUID, card_type: str, session: AsyncSession
    ) -> Card:
        """Add a level 1 card with zero progress

        Args:
            card_id (str): Client visible id of the card
            user_id (UUID): Owner of the card
            card_type (str): One of the catalog kinds
        """
        card = Card(
            card_id=card_id,
            user_id=user_id,
            name=card_name(card_type),
            description=card_description(card_type, 1),
            card_type=card_type,
            level=1,
            progress=0,
            image=card_image(card_type, 1),
        )
        session.add(card)
        await session.flush()
        return card


class ReadData:
    @staticmethod
    async def read_user_for_update(username: str, session: AsyncSession) -> User | None:
        """Read a user row and lock it for the rest of the transaction

        Args:
            username (str): To identify the user

        Returns:
            User | None: The user row, None if it does not exist
        """
        stmt = select(User).where(User.username == username).with_for_update()
        result = await session.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def read_card_for_update(
        card_id: str, user_id: UUID, session: AsyncSession
    ) -> Card | None:
        """Read a card owned by the user and lock it for the rest of the transaction

        Args:
            card_id (str): To identify the card
            user_id (UUID): Owner of the card

        Returns:
            Card | None: The card row, None if the user has no such card
        """
        stmt = (
            select(Card)
            .where(Card.card_id == card_id, Card.user_id == user_id)
            .with_for_update()
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def read_user_cards(user_id: UUID, session: AsyncSession) -> List[Card]:
        stmt = select(Card).where(Card.user_id == user_id)
        result = await session.execute(stmt)
        return list(result.scalars().all())


class UpdateData:
    @staticmethod
    def set_user_energy(user: User, energy: int, last_energy_regeneration: datetime) -> None:
        """Store energy and regeneration timestamp, touching only changed columns

        Args:
            user (User): Row loaded in the current transaction
            energy (int): New energy value
            last_energy_regeneration (datetime): New regeneration timestamp
        """
        if user.energy != energy:
            user.energy = energy
        if user.last_energy_regeneration != last_energy_regeneration:
            user.last_energy_regeneration = last_energy_regeneration

    @staticmethod
    def set_card_state(
        card: Card,
        level: int,
        progress: int,
        image: str | None = None,
        description: str | None = None,
    ) -> None:
        """Store the card's level/progress and, when given, its display fields"""
        card.level = level
        card.progress = progress
        if image is not None:
            card.image = image
        if description is not None:
            card.description = description
