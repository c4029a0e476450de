from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from enum import Enum
from datetime import datetime
from typing import List, Optional


class CardTypeModel(str, Enum):
    uzun_kilic = "uzun_kilic"
    savas_baltasi = "savas_baltasi"
    buyu_asasi = "buyu_asasi"
    kalkan = "kalkan"
    savas_cekici = "savas_cekici"
    egri_kilic = "egri_kilic"
    kisa_kilic = "kisa_kilic"
    buyu_kitabi = "buyu_kitabi"


class CamelModel(BaseModel):
    """Client payloads use camelCase keys (cardId, regenerationTime, ...)."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ProgressRequestModel(CamelModel):
    card_id: str
    clicks: int = 1


class ProgressResponseModel(CamelModel):
    progress: int
    energy: int
    level: int
    success: bool = True
    message: str


class LevelUpResponseModel(CamelModel):
    level: int
    progress: int
    success: bool = True
    message: str


class EnergyResponseModel(CamelModel):
    energy: int
    regeneration_time: int
    regeneration_rate: int
    success: bool = True


class CardModel(CamelModel):
    id: str
    name: str
    description: str
    level: int
    progress: int
    image: str
    type: CardTypeModel
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CardsResponseModel(CamelModel):
    cards: List[CardModel]
    success: bool = True
    message: Optional[str] = None


class ErrorModel(BaseModel):
    message: str
    code: str
    status: int
