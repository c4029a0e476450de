from pydantic import BaseModel
from uuid import UUID
from datetime import datetime


class CardSchema(BaseModel):
    card_id: str
    user_id: UUID
    name: str
    description: str
    card_type: str
    level: int
    progress: int
    image: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True
