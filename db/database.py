import asyncio
import json
import aiosqlite
from pathlib import Path
from typing import Optional, Any
import logging

from models import Player

logger = logging.getLogger(__name__)

# Inventory lists are stored as JSON documents in these columns
_INVENTORY_COLUMNS = ("champion_shards", "skin_shards", "owned_champions", "owned_skins")

_UPSERT_PLAYER = """
    INSERT INTO players
    (user_id, username, total_points, wins, games_played, total_time,
     current_streak, max_streak, blue_essence, orange_essence, chests,
     champion_shards, skin_shards, owned_champions, owned_skins, last_daily)
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT(user_id) DO UPDATE SET
        username = excluded.username,
        total_points = excluded.total_points,
        wins = excluded.wins,
        games_played = excluded.games_played,
        total_time = excluded.total_time,
        current_streak = excluded.current_streak,
        max_streak = excluded.max_streak,
        blue_essence = excluded.blue_essence,
        orange_essence = excluded.orange_essence,
        chests = excluded.chests,
        champion_shards = excluded.champion_shards,
        skin_shards = excluded.skin_shards,
        owned_champions = excluded.owned_champions,
        owned_skins = excluded.owned_skins,
        last_daily = excluded.last_daily,
        updated_at = CURRENT_TIMESTAMP
"""


def _player_params(player: Player) -> tuple:
    """Flatten a Player into the positional parameters of the upsert."""
    data = player.model_dump(mode="json")
    return (
        data["user_id"],
        data["username"],
        data["total_points"],
        data["wins"],
        data["games_played"],
        data["total_time"],
        data["current_streak"],
        data["max_streak"],
        data["blue_essence"],
        data["orange_essence"],
        data["chests"],
        *(json.dumps(data[column]) for column in _INVENTORY_COLUMNS),
        data["last_daily"],
    )


def _row_to_player(row: aiosqlite.Row) -> Player:
    data = dict(row)
    data.pop("updated_at", None)
    for column in _INVENTORY_COLUMNS:
        data[column] = json.loads(data[column] or "[]")
    return Player.model_validate(data)


class Database:
    """Async SQLite database wrapper."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._connection: Optional[aiosqlite.Connection] = None
        # Serialises commits on the shared connection
        self._write_lock = asyncio.Lock()

    async def connect(self) -> None:
        """Connect to the database and run migrations."""
        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row
        await self._run_migrations()

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def _run_migrations(self) -> None:
        """Run all SQL migration files."""
        # Create migrations tracking table
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS _migrations (
                name TEXT PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        await self._connection.commit()

        migrations_dir = Path(__file__).parent / "migrations"

        for migration_file in sorted(migrations_dir.glob("*.sql")):
            # Check if migration already applied
            cursor = await self._connection.execute(
                "SELECT 1 FROM _migrations WHERE name = ?",
                (migration_file.name,)
            )
            if await cursor.fetchone():
                logger.debug(f"Skipping already applied migration: {migration_file.name}")
                continue

            logger.info(f"Running migration: {migration_file.name}")
            sql = migration_file.read_text()
            await self._connection.executescript(sql)
            await self._connection.execute(
                "INSERT INTO _migrations (name) VALUES (?)",
                (migration_file.name,)
            )
            await self._connection.commit()

    async def execute(
        self, query: str, params: tuple = ()
    ) -> aiosqlite.Cursor:
        """Execute a query and return the cursor."""
        async with self._write_lock:
            cursor = await self._connection.execute(query, params)
            await self._connection.commit()
        return cursor

    async def fetch_one(
        self, query: str, params: tuple = ()
    ) -> Optional[aiosqlite.Row]:
        """Fetch a single row."""
        cursor = await self._connection.execute(query, params)
        return await cursor.fetchone()

    async def fetch_all(
        self, query: str, params: tuple = ()
    ) -> list[aiosqlite.Row]:
        """Fetch all rows."""
        cursor = await self._connection.execute(query, params)
        return await cursor.fetchall()

    async def fetch_value(
        self, query: str, params: tuple = ()
    ) -> Optional[Any]:
        """Fetch a single value from the first column of the first row."""
        row = await self.fetch_one(query, params)
        return row[0] if row else None

    # Player methods

    async def load_player(self, user_id: str) -> Optional[Player]:
        """Load a player's record, or None if they have never played."""
        row = await self.fetch_one(
            "SELECT * FROM players WHERE user_id = ?",
            (user_id,),
        )
        return _row_to_player(row) if row else None

    async def save_player(self, player: Player) -> None:
        """Insert or replace a player's record."""
        await self.execute(_UPSERT_PLAYER, _player_params(player))

    async def save_players(self, *players: Player) -> None:
        """Save several player records in a single transaction.

        Either every record is written or none is.
        """
        async with self._write_lock:
            try:
                for player in players:
                    await self._connection.execute(_UPSERT_PLAYER, _player_params(player))
                await self._connection.commit()
            except Exception:
                await self._connection.rollback()
                logger.error(f"Rolled back save of {len(players)} player record(s)")
                raise

    async def find_top_players(self, limit: int = 10) -> list[Player]:
        """Get the top players by total points."""
        rows = await self.fetch_all(
            """
            SELECT * FROM players
            ORDER BY total_points DESC, wins DESC
            LIMIT ?
            """,
            (limit,),
        )
        return [_row_to_player(row) for row in rows]

    async def get_player_rank(self, user_id: str) -> int:
        """Get a player's rank in the leaderboard."""
        result = await self.fetch_value(
            """
            SELECT COUNT(*) + 1 FROM players
            WHERE total_points > (
                SELECT COALESCE(total_points, 0) FROM players
                WHERE user_id = ?
            )
            """,
            (user_id,),
        )
        return result or 1
