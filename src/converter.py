from typing import List

from src.domain.card_catalog import catalog_position
from src.domain.energy_rules import REGENERATION_RATE, EnergyState
from src.domain.progress_rules import ClickResult
from src.models.dc_models import (
    CardModel,
    CardsResponseModel,
    EnergyResponseModel,
    LevelUpResponseModel,
    ProgressResponseModel,
)
from src.models.schema_models import CardSchema


class DataConverter:
    """This class is used to convert stored rows and rule results into client payloads."""

    def convert_cardschema_to_cardmodel(self, card: CardSchema) -> CardModel:
        """Convert the CardSchema to the CardModel to send client

        Args:
            card (CardSchema): Card as stored

        Returns:
            CardModel: Card with client facing names (id, type)
        """
        return CardModel(
            id=card.card_id,
            name=card.name,
            description=card.description,
            level=card.level,
            progress=card.progress,
            image=card.image,
            type=card.card_type,
            created_at=card.created_at,
            updated_at=card.updated_at,
        )

    def convert_cards_to_response(self, cards: List[CardSchema]) -> CardsResponseModel:
        """Convert the user's cards into the list payload, ordered like the catalog"""
        ordered = sorted(cards, key=lambda card: catalog_position(card.card_type))
        return CardsResponseModel(
            cards=[self.convert_cardschema_to_cardmodel(card) for card in ordered],
        )

    def convert_click_result(
        self, result: ClickResult, energy: int, clicks: int | None = None
    ) -> ProgressResponseModel:
        """Build the progress payload; ``clicks`` is only reported for batch requests

        Args:
            result (ClickResult): Outcome of the click rules
            energy (int): User energy after the operation
            clicks (int | None): Batch size, None for the single click endpoint
        """
        if clicks is None:
            message = (
                "Card leveled up!" if result.leveled_up else "Progress updated successfully"
            )
        elif result.leveled_up:
            message = f"Card leveled up! Used {clicks} clicks."
        else:
            message = f"Progress updated! Used {clicks} clicks."

        return ProgressResponseModel(
            progress=result.progress,
            energy=energy,
            level=result.level,
            message=message,
        )

    def convert_level_up(self, level: int, progress: int) -> LevelUpResponseModel:
        return LevelUpResponseModel(
            level=level,
            progress=progress,
            message=f"Card leveled up to level {level}!",
        )

    def convert_energy_state(self, state: EnergyState) -> EnergyResponseModel:
        return EnergyResponseModel(
            energy=state.energy,
            regeneration_time=state.seconds_until_next,
            regeneration_rate=REGENERATION_RATE,
        )
