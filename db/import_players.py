"""Import a legacy playerData.json export into the player database.

The export is a JSON object keyed by user id whose values use camelCase
field names. Records are upserted, so running the import twice is harmless.

Usage:
    python -m db.import_players playerData.json [--database champguessr.db]
"""

import argparse
import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from config import Config
from db.database import Database
from models import Player

logger = logging.getLogger(__name__)

_PLAYER_FIELDS = {
    "username": "username",
    "totalPoints": "total_points",
    "wins": "wins",
    "gamesPlayed": "games_played",
    "totalTime": "total_time",
    "currentStreak": "current_streak",
    "maxStreak": "max_streak",
    "blueEssence": "blue_essence",
    "orangeEssence": "orange_essence",
    "chests": "chests",
}

_SHARD_FIELDS = {"beCost": "be_cost", "storePrice": "store_price"}

_SKIN_FIELDS = {
    "championId": "champion_id",
    "championName": "champion_name",
    "skinName": "skin_name",
    "skinNum": "skin_num",
}


def _rename(item: dict[str, Any], names: dict[str, str]) -> dict[str, Any]:
    return {names.get(key, key): value for key, value in item.items()}


def _skin(item: dict[str, Any]) -> dict[str, Any]:
    data = _rename(item, _SKIN_FIELDS)
    # Legacy rarities are upper-case ("EPIC")
    if isinstance(data.get("rarity"), str):
        data["rarity"] = data["rarity"].capitalize()
    return data


def legacy_to_player(key: str, record: dict[str, Any]) -> Player:
    """Convert one legacy record. The object key is used when userId is missing."""
    data = {new: record[old] for old, new in _PLAYER_FIELDS.items() if record.get(old) is not None}
    data["user_id"] = str(record.get("userId") or key)
    data["champion_shards"] = [_rename(shard, _SHARD_FIELDS) for shard in record.get("championShards", [])]
    data["skin_shards"] = [_skin(shard) for shard in record.get("skinShards", [])]
    data["owned_champions"] = [
        {"id": champ["id"], "name": champ.get("name", champ["id"])} for champ in record.get("ownedChampions", [])
    ]
    data["owned_skins"] = [_skin(skin) for skin in record.get("ownedSkins", [])]

    last_daily = record.get("lastDaily")
    if isinstance(last_daily, (int, float)):
        # Epoch milliseconds; 0 means never claimed
        if last_daily > 0:
            data["last_daily"] = datetime.fromtimestamp(last_daily / 1000, tz=timezone.utc)
    elif last_daily:
        data["last_daily"] = last_daily

    return Player.model_validate(data)


async def import_players(db: Database, records: dict[str, dict[str, Any]]) -> int:
    """Upsert every legacy record. Returns the number imported."""
    count = 0
    for key, record in records.items():
        player = legacy_to_player(key, record)
        await db.save_player(player)
        logger.info(f"Imported {player.username or 'unknown'} (ID: {player.user_id})")
        count += 1
    return count


async def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Import legacy player data")
    parser.add_argument("path", type=Path, help="playerData.json export")
    parser.add_argument("--database", default=Config.DATABASE_PATH, help="SQLite database path")
    args = parser.parse_args(argv)

    records = json.loads(args.path.read_text(encoding="utf-8"))

    db = Database(args.database)
    await db.connect()
    try:
        count = await import_players(db, records)
    finally:
        await db.close()

    logger.info(f"Imported {count} player(s) into {args.database}")
    return count


def run():
    """Console script entry point."""
    logging.basicConfig(
        level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(main())


if __name__ == "__main__":
    run()
