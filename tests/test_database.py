"""Tests for database operations."""

import asyncio
import sqlite3
from datetime import datetime, timezone

import pytest

from db.database import Database
from models import ChampionShard, OwnedChampion, Player, Rarity, SkinItem


def make_player(user_id: str, points: int = 0, **kwargs) -> Player:
    return Player(user_id=user_id, username=f"user{user_id}", total_points=points, **kwargs)


class TestDatabaseConnection:
    @pytest.mark.asyncio
    async def test_connect_and_close(self):
        db = Database(":memory:")
        await db.connect()
        assert db._connection is not None
        await db.close()
        assert db._connection is None

    @pytest.mark.asyncio
    async def test_migrations_recorded(self, db):
        names = await db.fetch_all("SELECT name FROM _migrations")
        assert [row["name"] for row in names] == ["001_players.sql"]


class TestPlayers:
    @pytest.mark.asyncio
    async def test_load_missing_player(self, db):
        assert await db.load_player("nobody") is None

    @pytest.mark.asyncio
    async def test_save_and_load_roundtrip_with_inventory(self, db):
        claimed = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)
        player = make_player(
            "1",
            points=42,
            wins=3,
            total_time=12.5,
            blue_essence=2500,
            champion_shards=[ChampionShard(id="Ahri", name="Ahri", be_cost=810, store_price=1350)],
            skin_shards=[
                SkinItem(
                    id="Ahri_1",
                    champion_id="Ahri",
                    champion_name="Ahri",
                    skin_name="Dynasty Ahri",
                    skin_num=1,
                    rarity=Rarity.LEGENDARY,
                )
            ],
            owned_champions=[OwnedChampion(id="Zed", name="Zed")],
            last_daily=claimed,
        )

        await db.save_player(player)
        loaded = await db.load_player("1")

        assert loaded == player
        assert loaded.skin_shards[0].rarity is Rarity.LEGENDARY
        assert loaded.last_daily == claimed

    @pytest.mark.asyncio
    async def test_save_player_updates_existing(self, db):
        await db.save_player(make_player("1", points=10))
        await db.save_player(make_player("1", points=25))

        loaded = await db.load_player("1")
        assert loaded.total_points == 25
        assert await db.fetch_value("SELECT COUNT(*) FROM players") == 1

    @pytest.mark.asyncio
    async def test_save_players_is_atomic(self, db):
        await db.save_player(make_player("1", points=10))
        # The CHECK constraint rejects the second record, so neither write lands
        good = make_player("1", points=99)
        bad = make_player("2", points=5, blue_essence=-1)

        with pytest.raises(sqlite3.IntegrityError):
            await db.save_players(good, bad)

        assert (await db.load_player("1")).total_points == 10
        assert await db.load_player("2") is None

    @pytest.mark.asyncio
    async def test_save_players_writes_all(self, db):
        await db.save_players(make_player("1", points=1), make_player("2", points=2))
        assert [p.user_id for p in await db.find_top_players()] == ["2", "1"]

    @pytest.mark.asyncio
    async def test_concurrent_save_does_not_commit_half_a_batch(self, db):
        good = make_player("1", points=99)
        bad = make_player("2", points=5, blue_essence=-1)

        results = await asyncio.gather(
            db.save_players(good, bad),
            db.save_player(make_player("3", points=7)),
            return_exceptions=True,
        )

        assert isinstance(results[0], sqlite3.IntegrityError)
        assert results[1] is None
        assert await db.load_player("1") is None
        assert (await db.load_player("3")).total_points == 7


class TestLeaderboard:
    @pytest.mark.asyncio
    async def test_find_top_players_ordered(self, db):
        for user_id, points in [("a", 5), ("b", 50), ("c", 20)]:
            await db.save_player(make_player(user_id, points=points))

        top = await db.find_top_players(2)

        assert [p.user_id for p in top] == ["b", "c"]

    @pytest.mark.asyncio
    async def test_get_player_rank(self, db):
        for user_id, points in [("a", 5), ("b", 50), ("c", 20)]:
            await db.save_player(make_player(user_id, points=points))

        assert await db.get_player_rank("b") == 1
        assert await db.get_player_rank("c") == 2
        assert await db.get_player_rank("a") == 3

    @pytest.mark.asyncio
    async def test_get_player_rank_no_players(self, db):
        assert await db.get_player_rank("nobody") == 1
