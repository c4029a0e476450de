from sqlalchemy.orm import DeclarativeBase, relationship
from sqlalchemy.schema import Column, ForeignKey
from sqlalchemy.types import Integer, String, Uuid, DateTime
from uuid6 import uuid7
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite drops tzinfo so every column stays naive."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"
    user_id = Column(Uuid, primary_key=True, default=uuid7)
    username = Column(String, nullable=False, unique=True, index=True)
    email = Column(String, nullable=False)
    energy = Column(Integer, nullable=False, default=100)
    max_energy = Column(Integer, nullable=False, default=100)
    last_energy_regeneration = Column(DateTime, nullable=False, default=utcnow)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    version = Column(Integer, nullable=False)

    cards = relationship(
        "Card",
        back_populates="user",
        cascade="all, delete",
    )

    # Every UPDATE checks the version it read; a concurrent writer raises StaleDataError.
    __mapper_args__ = {"version_id_col": version}


class Card(Base):
    __tablename__ = "cards"
    card_id = Column(String, primary_key=True)
    user_id = Column(Uuid, ForeignKey("users.user_id"), primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=False)
    card_type = Column(String, nullable=False)
    level = Column(Integer, nullable=False, default=1)
    progress = Column(Integer, nullable=False, default=0)
    image = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    version = Column(Integer, nullable=False)

    user = relationship(
        "User",
        back_populates="cards",
    )

    __mapper_args__ = {"version_id_col": version}
