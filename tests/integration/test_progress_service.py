"""
Integration tests for ProgressService against a real SQLite database.

Covers provisioning, energy accounting, level transitions, rollback on
failure and concurrent batches on the same card.
"""

import asyncio

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from src.crud import UpdateData
from src.exceptions import (
    InsufficientEnergyError,
    InsufficientProgressError,
    InternalError,
    MaxLevelReachedError,
    NotFoundError,
)
from src.models.schemas import Card, User
from src.services.progress_service import ProgressService
from tests.conftest import make_database

USER = "player-1"
CARD = "card-1"


async def load(database, username=USER, card_id=CARD):
    async with database.Session() as session:
        user = (await session.execute(select(User).where(User.username == username))).scalars().first()
        card = None
        if user is not None:
            stmt = select(Card).where(Card.card_id == card_id, Card.user_id == user.user_id)
            card = (await session.execute(stmt)).scalars().first()
        return user, card


async def set_card(database, level=None, progress=None, username=USER, card_id=CARD):
    async with database.Session() as session:
        async with session.begin():
            user = (await session.execute(select(User).where(User.username == username))).scalars().one()
            stmt = select(Card).where(Card.card_id == card_id, Card.user_id == user.user_id)
            card = (await session.execute(stmt)).scalars().one()
            if level is not None:
                card.level = level
            if progress is not None:
                card.progress = progress


async def set_energy(database, energy, username=USER):
    async with database.Session() as session:
        async with session.begin():
            user = (await session.execute(select(User).where(User.username == username))).scalars().one()
            user.energy = energy


@pytest.mark.asyncio
class TestProvisioning:
    async def test_first_click_creates_user_and_card(self, service, database, clock):
        response = await service.progress(USER, CARD)

        assert response.progress == 2
        assert response.energy == 99
        assert response.level == 1
        assert response.message == "Progress updated successfully"

        user, card = await load(database)
        assert user.email == f"{USER}@demo.com"
        assert user.max_energy == 100
        assert user.last_energy_regeneration == clock.now
        assert card.card_type == "uzun_kilic"
        assert card.image == "/images/uzun_kilic_1.png"

    async def test_card_id_naming_a_kind_gets_that_kind(self, service, database):
        await service.progress(USER, "kalkan")

        _, card = await load(database, card_id="kalkan")
        assert card.card_type == "kalkan"
        assert card.name == "Kalkan"

    async def test_provisioning_disabled(self, tmp_path, clock):
        database = make_database(tmp_path / "strict.sqlite3", auto_provision=False)
        await database.create_table()
        service = ProgressService(database, clock=clock)
        try:
            with pytest.raises(NotFoundError) as exc_info:
                await service.batch_progress(USER, CARD, 3)
            assert exc_info.value.code == "USER_NOT_FOUND"
            assert exc_info.value.status == 404

            with pytest.raises(NotFoundError):
                await service.energy(USER)

            user, _ = await load(database)
            assert user is None
        finally:
            await database.dispose()

    async def test_list_cards_provisions_catalog_in_order(self, service):
        response = await service.list_cards(USER)

        assert [card.id for card in response.cards] == [
            "uzun_kilic",
            "savas_baltasi",
            "buyu_asasi",
            "kalkan",
            "savas_cekici",
            "egri_kilic",
            "kisa_kilic",
            "buyu_kitabi",
        ]
        assert all(card.level == 1 and card.progress == 0 for card in response.cards)

        again = await service.list_cards(USER)
        assert len(again.cards) == 8


@pytest.mark.asyncio
class TestBatchProgress:
    async def test_batches_until_level_up(self, service, database):
        results = [await service.batch_progress(USER, CARD, 10) for _ in range(6)]

        assert [(r.progress, r.energy, r.level) for r in results] == [
            (20, 90, 1),
            (40, 80, 1),
            (60, 70, 1),
            (80, 60, 1),
            (0, 60, 2),
            (20, 50, 2),
        ]
        assert results[4].message == "Card leveled up! Used 10 clicks."
        assert results[5].message == "Progress updated! Used 10 clicks."

        _, card = await load(database)
        assert card.image == "/images/uzun_kilic_2.png"
        assert card.description.startswith("Zümrüt Yürek")

    async def test_insufficient_energy_changes_nothing(self, service, database):
        await service.batch_progress(USER, CARD, 4)
        await set_energy(database, 3)

        with pytest.raises(InsufficientEnergyError):
            await service.batch_progress(USER, CARD, 4)

        user, card = await load(database)
        assert user.energy == 3
        assert card.progress == 8

    async def test_level_three_plateau(self, service, database):
        await service.progress(USER, CARD)
        await set_card(database, level=3, progress=96)

        crossed = await service.batch_progress(USER, CARD, 2)
        assert (crossed.progress, crossed.level) == (0, 3)

        plateau = await service.batch_progress(USER, CARD, 5)
        assert (plateau.progress, plateau.level) == (10, 3)

    async def test_regeneration_is_credited_before_spending(self, service, database, clock):
        await service.batch_progress(USER, CARD, 10)
        await set_energy(database, 5)
        clock.advance(3 * 120 + 30)

        response = await service.batch_progress(USER, CARD, 8)

        assert response.energy == 0
        user, _ = await load(database)
        assert user.last_energy_regeneration == clock.now

    async def test_concurrent_batches_do_not_lose_updates(self, service, database):
        await service.batch_progress(USER, CARD, 10)

        await asyncio.gather(
            service.batch_progress(USER, CARD, 10),
            service.batch_progress(USER, CARD, 10),
        )

        user, card = await load(database)
        assert card.progress == 60
        assert user.energy == 70


@pytest.mark.asyncio
class TestLevelUp:
    async def test_requires_full_progress(self, service):
        with pytest.raises(InsufficientProgressError):
            await service.level_up(USER, CARD)

    async def test_levels_up_full_card(self, service, database):
        await service.progress(USER, CARD)
        await set_card(database, progress=100)

        response = await service.level_up(USER, CARD)

        assert (response.level, response.progress) == (2, 0)
        assert response.message == "Card leveled up to level 2!"
        user, card = await load(database)
        assert card.image == "/images/uzun_kilic_2.png"
        assert user.energy == 99

    async def test_max_level(self, service, database):
        await service.progress(USER, CARD)
        await set_card(database, level=3, progress=100)

        with pytest.raises(MaxLevelReachedError):
            await service.level_up(USER, CARD)


@pytest.mark.asyncio
class TestEnergy:
    async def test_new_user_has_full_energy(self, service):
        response = await service.energy(USER)

        assert response.energy == 100
        assert response.regeneration_time == 120
        assert response.regeneration_rate == 1

    async def test_two_minute_gap_at_cap(self, service, database, clock):
        await service.energy(USER)
        clock.advance(120)

        response = await service.energy(USER)

        assert response.energy == 100
        assert response.regeneration_time == 120
        user, _ = await load(database)
        assert user.last_energy_regeneration == clock.now

    async def test_regenerates_and_persists(self, service, database, clock):
        await service.batch_progress(USER, CARD, 10)
        start = clock.now
        clock.advance(250)

        response = await service.energy(USER)

        assert response.energy == 92
        assert response.regeneration_time == 120
        user, _ = await load(database)
        assert user.energy == 92
        assert user.last_energy_regeneration > start

    async def test_partial_interval_keeps_timestamp(self, service, database, clock):
        await service.batch_progress(USER, CARD, 10)
        start = clock.now
        clock.advance(45)

        response = await service.energy(USER)

        assert response.energy == 90
        assert response.regeneration_time == 75
        user, _ = await load(database)
        assert user.last_energy_regeneration == start


def failing_set_card_state(*args, **kwargs):
    raise OperationalError("UPDATE cards", {}, Exception("disk I/O error"))


@pytest.mark.asyncio
class TestStorageFailures:
    async def test_failed_write_rolls_back_user_and_card(self, service, database, monkeypatch):
        await service.batch_progress(USER, CARD, 10)
        monkeypatch.setattr(UpdateData, "set_card_state", staticmethod(failing_set_card_state))

        with pytest.raises(InternalError) as exc_info:
            await service.batch_progress(USER, CARD, 10)

        assert exc_info.value.code == "INTERNAL_ERROR"
        assert exc_info.value.status == 500
        user, card = await load(database)
        assert (user.energy, card.progress) == (90, 20)

    async def test_conflicts_give_up_after_max_retries(self, database):
        attempts = []

        async def always_stale(session):
            attempts.append(session)
            raise StaleDataError("version mismatch")

        with pytest.raises(InternalError):
            await database.run_transaction(always_stale)

        assert len(attempts) == 3

    async def test_conflict_then_success_is_replayed(self, database):
        attempts = []

        async def stale_once(session):
            attempts.append(session)
            if len(attempts) == 1:
                raise StaleDataError("version mismatch")
            return "done"

        assert await database.run_transaction(stale_once) == "done"
        assert len(attempts) == 2
