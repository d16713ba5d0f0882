"""Pydantic models for player data and game content."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Rarity(str, Enum):
    """Skin rarity tiers, ordered from most to least common."""

    COMMON = "Common"
    EPIC = "Epic"
    LEGENDARY = "Legendary"
    ULTIMATE = "Ultimate"


class ChampionShard(BaseModel):
    """A locked champion that can be unlocked with Blue Essence."""

    id: str
    name: str
    be_cost: int
    store_price: int


class OwnedChampion(BaseModel):
    """An unlocked champion."""

    id: str
    name: str


class SkinItem(BaseModel):
    """A skin, either as a locked shard or an unlocked skin.

    The id is ``<championKey>_<skinNum>`` and is what trades validate against.
    """

    id: str
    champion_id: str
    champion_name: str
    skin_name: str
    skin_num: int
    rarity: Rarity = Rarity.COMMON


class Player(BaseModel):
    """A player's persistent record, keyed by Discord user id."""

    user_id: str
    username: Optional[str] = None
    total_points: int = 0
    wins: int = 0
    games_played: int = 0
    total_time: float = 0.0
    current_streak: int = 0
    max_streak: int = 0
    blue_essence: int = 0
    orange_essence: int = 0
    chests: int = 0
    champion_shards: list[ChampionShard] = Field(default_factory=list)
    skin_shards: list[SkinItem] = Field(default_factory=list)
    owned_champions: list[OwnedChampion] = Field(default_factory=list)
    owned_skins: list[SkinItem] = Field(default_factory=list)
    last_daily: Optional[datetime] = None

    def owns_champion(self, champion_id: str) -> bool:
        return any(c.id == champion_id for c in self.owned_champions)

    def owns_skin(self, skin_id: str) -> bool:
        return any(s.id == skin_id for s in self.owned_skins)


class ChampionContent(BaseModel):
    """One random piece of round content from the content provider."""

    champion: str
    champion_key: str
    image_url: str
    image_bytes: Optional[bytes] = None
    ability_key: Optional[str] = None
    ability_name: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    title: str = ""
