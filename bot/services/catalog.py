"""Static game tables: modes, difficulties, rarities and champion store tiers."""

from dataclasses import dataclass
from typing import Optional

from models import Rarity


@dataclass(frozen=True)
class GameMode:
    key: str
    name: str
    emoji: str


@dataclass(frozen=True)
class Difficulty:
    key: str
    name: str
    emoji: str
    time_limit: float
    base_points: int
    pixelate_bonus: int
    # "key" or "name" for ability rounds that also ask for the ability
    answer_type: Optional[str] = None

    @property
    def gives_hint(self) -> bool:
        return self.answer_type is None


@dataclass(frozen=True)
class RarityInfo:
    color: int
    disenchant: int
    craft_cost: int


@dataclass(frozen=True)
class ChampionTier:
    store_price: int
    upgrade_cost: int
    disenchant: int


GAME_MODES: dict[str, GameMode] = {
    "ability": GameMode("ability", "Ability", "⚡"),
    "splash": GameMode("splash", "Splash Art", "🎨"),
    "skin": GameMode("skin", "Skin", "👗"),
}

DIFFICULTIES: dict[str, Difficulty] = {
    "easy": Difficulty("easy", "Easy", "🟢", 45.0, 2, 3),
    "normal": Difficulty("normal", "Normal", "🟡", 30.0, 5, 5),
    "hard": Difficulty("hard", "Hard", "🔴", 20.0, 8, 7),
    "v2": Difficulty("v2", "V2 (Key)", "🔵", 30.0, 12, 8, answer_type="key"),
    "v3": Difficulty("v3", "V3 (Name)", "🟣", 30.0, 15, 10, answer_type="name"),
}

# v2/v3 ask for the ability itself, so they only make sense in ability rounds
ABILITY_ONLY_DIFFICULTIES = {"v2", "v3"}

RARITIES: dict[Rarity, RarityInfo] = {
    Rarity.COMMON: RarityInfo(color=0x95A5A6, disenchant=195, craft_cost=520),
    Rarity.EPIC: RarityInfo(color=0x00D9FF, disenchant=270, craft_cost=1050),
    Rarity.LEGENDARY: RarityInfo(color=0xE67E22, disenchant=364, craft_cost=1520),
    Rarity.ULTIMATE: RarityInfo(color=0xE74C3C, disenchant=650, craft_cost=2950),
}

# Cumulative upper bounds for a uniform roll in [0, 1)
RARITY_BANDS: list[tuple[float, Rarity]] = [
    (0.60, Rarity.COMMON),
    (0.85, Rarity.EPIC),
    (0.97, Rarity.LEGENDARY),
    (1.00, Rarity.ULTIMATE),
]

CHAMPION_TIERS: dict[int, ChampionTier] = {
    450: ChampionTier(450, 270, 90),
    1350: ChampionTier(1350, 810, 270),
    3150: ChampionTier(3150, 1890, 630),
    4800: ChampionTier(4800, 2880, 960),
    6300: ChampionTier(6300, 3780, 1260),
    7800: ChampionTier(7800, 4680, 1560),
}

STORE_PRICES: list[int] = sorted(CHAMPION_TIERS)

ABILITY_KEYS = ["Passive", "Q", "W", "E", "R"]


def is_valid_combination(mode: str, difficulty: str) -> bool:
    """Check whether a mode/difficulty pair can start a round."""
    if mode not in GAME_MODES or difficulty not in DIFFICULTIES:
        return False
    if difficulty in ABILITY_ONLY_DIFFICULTIES:
        return mode == "ability"
    return True


def rarity_for_roll(roll: float) -> Rarity:
    """Map a uniform roll in [0, 1) onto the rarity table."""
    for upper, rarity in RARITY_BANDS:
        if roll < upper:
            return rarity
    return RARITY_BANDS[-1][1]
