"""Card progress and level-up rules.

Rule of thumb:
- OK: progress math, level transitions, display fields for a level.
- Not OK: touching DB sessions, FastAPI, datetime.now(), etc.

``card`` arguments are anything exposing ``level``, ``progress`` and
``card_type`` (ORM rows and ``CardState`` both work).
"""

from typing import NamedTuple

from src.domain.card_catalog import MAX_LEVEL, card_description, card_image
from src.exceptions import (
    InsufficientEnergyError,
    InsufficientProgressError,
    InvalidRequestError,
    MaxLevelReachedError,
)

PROGRESS_PER_CLICK = 2
MAX_PROGRESS = 100


class CardState(NamedTuple):
    level: int
    progress: int
    card_type: str


class ClickResult(NamedTuple):
    progress: int
    level: int
    energy_spent: int
    leveled_up: bool
    image: str | None = None
    description: str | None = None


class LevelUpResult(NamedTuple):
    level: int
    progress: int
    image: str
    description: str


def validate_clicks(clicks) -> int:
    """Clicks must be a positive int; bools and floats are rejected."""
    if isinstance(clicks, bool) or not isinstance(clicks, int) or clicks < 1:
        raise InvalidRequestError("Clicks must be a positive integer")
    return clicks


def apply_clicks(card, clicks: int, available_energy: int) -> ClickResult:
    """Advance a card by a batch of clicks.

    A batch that carries progress over 100% levels the card up, resets
    progress to 0 and costs no energy. Any other batch costs one energy per
    click. The energy check always uses the full ``clicks``.

    Args:
        card: Current card state (level, progress, card_type)
        clicks (int): Number of clicks in the batch
        available_energy (int): Energy the user can spend right now

    Raises:
        InvalidRequestError: clicks is not a positive integer
        InsufficientEnergyError: available_energy < clicks

    Returns:
        ClickResult: New progress/level, energy to deduct and display fields when the level changed
    """
    validate_clicks(clicks)
    if available_energy < clicks:
        raise InsufficientEnergyError(
            f"Insufficient energy. Need {clicks}, have {available_energy}"
        )

    requested_progress = card.progress + clicks * PROGRESS_PER_CLICK
    leveled_up = requested_progress >= MAX_PROGRESS and card.progress < MAX_PROGRESS

    if leveled_up:
        new_level = min(MAX_LEVEL, card.level + 1)
        return ClickResult(
            progress=0,
            level=new_level,
            energy_spent=0,
            leveled_up=True,
            image=card_image(card.card_type, new_level),
            description=card_description(card.card_type, new_level),
        )

    return ClickResult(
        progress=min(MAX_PROGRESS, requested_progress),
        level=card.level,
        energy_spent=clicks,
        leveled_up=False,
    )


def level_up(card) -> LevelUpResult:
    """Explicitly level up a card that sits at 100% progress.

    Raises:
        MaxLevelReachedError: The card is already at the top level (checked first)
        InsufficientProgressError: Progress is below 100%
    """
    if card.level >= MAX_LEVEL:
        raise MaxLevelReachedError()
    if card.progress < MAX_PROGRESS:
        raise InsufficientProgressError()

    new_level = min(MAX_LEVEL, card.level + 1)
    return LevelUpResult(
        level=new_level,
        progress=0,
        image=card_image(card.card_type, new_level),
        description=card_description(card.card_type, new_level),
    )
