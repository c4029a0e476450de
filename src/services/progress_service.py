"""Use cases behind the card endpoints.

Each method loads (or provisions) the user and card, runs the pure rules and
persists the outcome in a single transaction. Guard checks happen before these
methods are called.
"""

import logging
from datetime import datetime
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from src.converter import DataConverter
from src.crud import CreateData, ReadData, UpdateData
from src.domain.card_catalog import CARD_TYPES
from src.domain.energy_rules import EnergyState, compute_energy
from src.domain.progress_rules import apply_clicks, level_up
from src.models.dc_models import (
    CardsResponseModel,
    EnergyResponseModel,
    LevelUpResponseModel,
    ProgressResponseModel,
)
from src.models.schema_models import CardSchema
from src.models.schemas import User, utcnow
from src.services.game_db import GameDatabase

data_converter = DataConverter()


class ProgressService:
    def __init__(
        self,
        database: GameDatabase,
        regen_interval_seconds: int = 120,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.database: GameDatabase = database
        self.regen_interval_seconds: int = regen_interval_seconds
        self.clock: Callable[[], datetime] = clock

    def _regenerate(self, user: User, now: datetime) -> EnergyState:
        """Apply regeneration to the loaded user row and return the new state"""
        state = compute_energy(
            user.energy,
            user.last_energy_regeneration,
            now,
            max_energy=user.max_energy,
            interval_seconds=self.regen_interval_seconds,
        )
        UpdateData.set_user_energy(user, state.energy, state.last_regeneration)
        return state

    async def _advance(
        self, username: str, card_id: str, clicks: int, batch: bool
    ) -> ProgressResponseModel:
        now = self.clock()

        async def operation(session: AsyncSession) -> ProgressResponseModel:
            user = await self.database.get_or_create_user(username, now, session)
            card = await self.database.get_or_create_card(card_id, user, session)
            state = self._regenerate(user, now)

            result = apply_clicks(card, clicks, state.energy)

            UpdateData.set_card_state(
                card, result.level, result.progress, result.image, result.description
            )
            if result.energy_spent:
                UpdateData.set_user_energy(
                    user, max(0, state.energy - result.energy_spent), state.last_regeneration
                )
            if result.leveled_up:
                logging.info(f"Card {card_id} of {username} leveled up to {result.level}")

            return data_converter.convert_click_result(
                result, user.energy, clicks if batch else None
            )

        return await self.database.run_transaction(operation)

    async def progress(self, username: str, card_id: str) -> ProgressResponseModel:
        """Spend one click on the card"""
        return await self._advance(username, card_id, 1, batch=False)

    async def batch_progress(
        self, username: str, card_id: str, clicks: int
    ) -> ProgressResponseModel:
        """Spend a validated batch of clicks on the card"""
        return await self._advance(username, card_id, clicks, batch=True)

    async def level_up(self, username: str, card_id: str) -> LevelUpResponseModel:
        """Explicit level-up of a card at 100% progress; costs no energy"""
        now = self.clock()

        async def operation(session: AsyncSession) -> LevelUpResponseModel:
            user = await self.database.get_or_create_user(username, now, session)
            card = await self.database.get_or_create_card(card_id, user, session)

            result = level_up(card)

            UpdateData.set_card_state(
                card, result.level, result.progress, result.image, result.description
            )
            logging.info(f"Card {card_id} of {username} leveled up to {result.level}")
            return data_converter.convert_level_up(result.level, result.progress)

        return await self.database.run_transaction(operation)

    async def energy(self, username: str) -> EnergyResponseModel:
        """Current energy of the user, persisting regeneration when it applied"""
        now = self.clock()

        async def operation(session: AsyncSession) -> EnergyResponseModel:
            user = await self.database.get_or_create_user(username, now, session)
            state = self._regenerate(user, now)
            return data_converter.convert_energy_state(state)

        return await self.database.run_transaction(operation)

    async def list_cards(self, username: str) -> CardsResponseModel:
        """All cards of the user; a user without cards gets one of each kind"""
        now = self.clock()

        async def operation(session: AsyncSession) -> CardsResponseModel:
            user = await self.database.get_or_create_user(username, now, session)
            cards = await ReadData.read_user_cards(user.user_id, session)
            if not cards and self.database.auto_provision:
                logging.info(f"Provisioning default cards for user {username}")
                cards = [
                    await CreateData.add_card_data(card_type, user.user_id, card_type, session)
                    for card_type in CARD_TYPES
                ]
            return data_converter.convert_cards_to_response(
                [CardSchema.model_validate(card) for card in cards]
            )

        return await self.database.run_transaction(operation)
