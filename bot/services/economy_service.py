"""Economy ledger: points, currencies, chests, crafting and daily rewards.

Every mutation is a read-modify-write of one player document, serialised
per user with an asyncio lock so that interleaved handlers for the same
user never lose each other's updates.
"""

import asyncio
import hashlib
import logging
import random
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import AsyncIterator, Optional, Protocol, Union

from bot.services.catalog import CHAMPION_TIERS, RARITIES, STORE_PRICES, rarity_for_roll
from bot.services.scoring_service import blue_essence_for, calculate_points_earned, chests_for
from config import Config
from db.database import Database
from models import ChampionShard, OwnedChampion, Player, Rarity, SkinItem

logger = logging.getLogger(__name__)


class ChampionSource(Protocol):
    """The parts of the content provider the ledger needs."""

    def random_champion_key(self) -> Optional[str]: ...

    def champion_name(self, champion_key: str) -> str: ...

    def find_champion(self, name: str) -> Optional[str]: ...

    async def get_champion_details(self, champion_key: str) -> Optional[dict]: ...


class LedgerResult(Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    INVALID_INDEX = "invalid_index"
    INVALID_ARGUMENT = "invalid_argument"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    NO_CHESTS = "no_chests"
    MISSING_CHAMPION = "missing_champion"
    ALREADY_OWNED = "already_owned"
    ALREADY_CLAIMED = "already_claimed"
    UNAVAILABLE = "unavailable"


class InventoryCategory(str, Enum):
    CHAMPION_SHARDS = "champion_shards"
    SKIN_SHARDS = "skin_shards"
    OWNED_CHAMPIONS = "owned_champions"
    OWNED_SKINS = "owned_skins"


class DailyRewardKind(Enum):
    CHEST = "chest"
    BLUE_ESSENCE = "blue_essence"
    ORANGE_ESSENCE = "orange_essence"
    BUNDLE = "bundle"


@dataclass(frozen=True)
class RewardSummary:
    points_earned: int
    be_earned: int
    chests_earned: int
    total_points: int
    total_chests: int
    streak: int
    multiplier: float


@dataclass(frozen=True)
class DailyReward:
    kind: DailyRewardKind
    chests: int = 0
    blue_essence: int = 0
    orange_essence: int = 0


Item = Union[ChampionShard, OwnedChampion, SkinItem]


@dataclass(frozen=True)
class LedgerOutcome:
    """Result of a ledger operation.

    ``amount`` is the currency moved by the operation (cost paid, essence
    gained or price charged) and ``item`` the shard or unlock involved.
    """

    result: LedgerResult
    player: Optional[Player] = None
    item: Optional[Item] = None
    amount: int = 0
    daily: Optional[DailyReward] = None
    time_until_reset: Optional[timedelta] = None

    @property
    def ok(self) -> bool:
        return self.result is LedgerResult.SUCCESS


@dataclass(frozen=True)
class InventoryPage:
    player: Player
    category: InventoryCategory
    item: Optional[Item]
    page: int
    total_pages: int


def _now() -> datetime:
    return datetime.now(timezone.utc)


def daily_period_start(moment: datetime, reset_hour: int) -> datetime:
    """Return the most recent daily reset at or before ``moment`` (UTC)."""
    moment = moment.astimezone(timezone.utc)
    boundary = moment.replace(hour=reset_hour, minute=0, second=0, microsecond=0)
    if moment < boundary:
        boundary -= timedelta(days=1)
    return boundary


def champion_store_price(champion_key: str) -> int:
    """Deterministic BE store price for a champion, derived from its key."""
    digest = int(hashlib.md5(champion_key.encode()).hexdigest(), 16)
    return STORE_PRICES[digest % len(STORE_PRICES)]


class EconomyService:
    """Owns per-user persistent state and its transaction rules."""

    def __init__(
        self,
        db: Database,
        champions: ChampionSource,
        rng: random.Random | None = None,
    ):
        self.db = db
        self.champions = champions
        self._rng = rng or random.Random()
        self._locks: dict[str, asyncio.Lock] = {}

    def _get_lock(self, user_id: str) -> asyncio.Lock:
        if user_id not in self._locks:
            self._locks[user_id] = asyncio.Lock()
        return self._locks[user_id]

    @asynccontextmanager
    async def locked(self, *user_ids: str) -> AsyncIterator[None]:
        """Hold the locks of several users, acquired in a stable order."""
        locks = [self._get_lock(user_id) for user_id in sorted(set(user_ids))]
        for lock in locks:
            await lock.acquire()
        try:
            yield
        finally:
            for lock in reversed(locks):
                lock.release()

    # Players

    async def _load_or_create(self, user_id: str, username: str | None = None) -> Player:
        player = await self.db.load_player(user_id)
        if player is None:
            player = Player(user_id=user_id, username=username)
            logger.info(f"Created player record for {username or user_id}")
        elif username and player.username != username:
            player.username = username
        return player

    async def get_or_create_player(self, user_id: str, username: str | None = None) -> Player:
        """Load a player's record, creating and saving it on first contact."""
        async with self.locked(user_id):
            player = await self._load_or_create(user_id, username)
            await self.db.save_player(player)
            return player

    async def get_player(self, user_id: str) -> Optional[Player]:
        return await self.db.load_player(user_id)

    async def get_leaderboard(self, limit: int | None = None) -> list[Player]:
        return await self.db.find_top_players(limit or Config.LEADERBOARD_SIZE)

    async def get_rank(self, user_id: str) -> int:
        return await self.db.get_player_rank(user_id)

    # Rounds

    async def increment_streak(self, user_id: str, username: str | None = None) -> int:
        """Count a correct guess towards the player's streak. Returns the new streak."""
        async with self.locked(user_id):
            player = await self._load_or_create(user_id, username)
            player.current_streak += 1
            player.max_streak = max(player.max_streak, player.current_streak)
            await self.db.save_player(player)
            return player.current_streak

    async def reset_streak(self, user_id: str, username: str | None = None) -> None:
        """Break a player's streak after a wrong guess."""
        async with self.locked(user_id):
            player = await self._load_or_create(user_id, username)
            player.current_streak = 0
            await self.db.save_player(player)

    async def apply_reward(
        self,
        user_id: str,
        time_taken: float,
        base_points: int,
        streak_multiplier: float = 1.0,
        username: str | None = None,
    ) -> RewardSummary:
        """Credit a correct guess.

        Blue Essence and chests are granted once per threshold multiple that
        the new total crosses, so one large reward can grant several.
        """
        async with self.locked(user_id):
            player = await self._load_or_create(user_id, username)

            points_earned = calculate_points_earned(base_points, streak_multiplier)
            previous_points = player.total_points

            player.wins += 1
            player.games_played += 1
            player.total_time += time_taken
            player.total_points += points_earned

            be_earned = blue_essence_for(previous_points, player.total_points)
            chests_earned = chests_for(previous_points, player.total_points)
            player.blue_essence += be_earned
            player.chests += chests_earned

            await self.db.save_player(player)

        logger.info(
            f"Rewarded {user_id}: +{points_earned} pts, +{be_earned} BE, +{chests_earned} chest(s) "
            f"(total {player.total_points})"
        )
        return RewardSummary(
            points_earned=points_earned,
            be_earned=be_earned,
            chests_earned=chests_earned,
            total_points=player.total_points,
            total_chests=player.chests,
            streak=player.current_streak,
            multiplier=streak_multiplier,
        )

    # Loot

    async def _sample_skin(self, rarity: Rarity) -> Optional[SkinItem]:
        """Pick a random non-default skin, resampling champions that have none.

        After the attempt cap, falls back to the default skin of the last
        champion fetched. Returns None only if no champion could be fetched.
        """
        fallback = None
        for _ in range(Config.MAX_RESAMPLE_ATTEMPTS):
            champion_key = self.champions.random_champion_key()
            if not champion_key:
                return None
            details = await self.champions.get_champion_details(champion_key)
            if not details:
                continue

            skins = details.get("skins", [])
            candidates = [s for s in skins if s.get("num", 0) != 0]
            if candidates:
                return self._skin_item(champion_key, details, self._rng.choice(candidates), rarity)
            if skins:
                fallback = (champion_key, details, skins[0])

        if fallback:
            champion_key, details, skin = fallback
            logger.warning(f"No non-default skin found, falling back to default skin of {champion_key}")
            return self._skin_item(champion_key, details, skin, rarity)
        return None

    @staticmethod
    def _skin_item(champion_key: str, details: dict, skin: dict, rarity: Rarity) -> SkinItem:
        champion_name = details.get("name", champion_key)
        skin_name = skin.get("name", "default")
        if skin_name == "default":
            skin_name = champion_name
        return SkinItem(
            id=f"{champion_key}_{skin['num']}",
            champion_id=champion_key,
            champion_name=champion_name,
            skin_name=skin_name,
            skin_num=skin["num"],
            rarity=rarity,
        )

    def _roll_champion_shard(self) -> Optional[ChampionShard]:
        champion_key = self.champions.random_champion_key()
        if not champion_key:
            return None
        tier = CHAMPION_TIERS[self._rng.choice(STORE_PRICES)]
        return ChampionShard(
            id=champion_key,
            name=self.champions.champion_name(champion_key),
            be_cost=tier.upgrade_cost,
            store_price=tier.store_price,
        )

    async def open_chest(self, user_id: str) -> LedgerOutcome:
        """Open one chest for a champion shard (40%) or a skin shard (60%)."""
        async with self.locked(user_id):
            player = await self.db.load_player(user_id)
            if not player:
                return LedgerOutcome(LedgerResult.NOT_FOUND)
            if player.chests < 1:
                return LedgerOutcome(LedgerResult.NO_CHESTS, player=player)

            loot: Optional[Item]
            if self._rng.random() < Config.CHAMPION_LOOT_CHANCE:
                loot = self._roll_champion_shard()
                if loot:
                    player.champion_shards.append(loot)
            else:
                rarity = rarity_for_roll(self._rng.random())
                loot = await self._sample_skin(rarity)
                if loot:
                    player.skin_shards.append(loot)

            if loot is None:
                logger.warning(f"Chest for {user_id} produced no loot, chest kept")
                return LedgerOutcome(LedgerResult.UNAVAILABLE, player=player)

            player.chests -= 1
            await self.db.save_player(player)

        logger.info(f"{user_id} opened a chest: {loot.id}")
        return LedgerOutcome(LedgerResult.SUCCESS, player=player, item=loot)

    # Crafting

    async def craft_champion(self, user_id: str, shard_index: int) -> LedgerOutcome:
        """Unlock the champion shard at a 1-based index with Blue Essence."""
        async with self.locked(user_id):
            player = await self.db.load_player(user_id)
            if not player:
                return LedgerOutcome(LedgerResult.NOT_FOUND)
            if not 1 <= shard_index <= len(player.champion_shards):
                return LedgerOutcome(LedgerResult.INVALID_INDEX, player=player)

            shard = player.champion_shards[shard_index - 1]
            if player.owns_champion(shard.id):
                return LedgerOutcome(LedgerResult.ALREADY_OWNED, player=player, item=shard)
            if player.blue_essence < shard.be_cost:
                return LedgerOutcome(LedgerResult.INSUFFICIENT_FUNDS, player=player, item=shard, amount=shard.be_cost)

            player.blue_essence -= shard.be_cost
            del player.champion_shards[shard_index - 1]
            player.owned_champions.append(OwnedChampion(id=shard.id, name=shard.name))
            await self.db.save_player(player)

        logger.info(f"{user_id} unlocked champion {shard.name} for {shard.be_cost} BE")
        return LedgerOutcome(LedgerResult.SUCCESS, player=player, item=shard, amount=shard.be_cost)

    async def craft_skin(self, user_id: str, shard_index: int) -> LedgerOutcome:
        """Unlock the skin shard at a 1-based index with Orange Essence.

        The player must already own the skin's champion.
        """
        async with self.locked(user_id):
            player = await self.db.load_player(user_id)
            if not player:
                return LedgerOutcome(LedgerResult.NOT_FOUND)
            if not 1 <= shard_index <= len(player.skin_shards):
                return LedgerOutcome(LedgerResult.INVALID_INDEX, player=player)

            shard = player.skin_shards[shard_index - 1]
            cost = RARITIES[shard.rarity].craft_cost
            if not player.owns_champion(shard.champion_id):
                return LedgerOutcome(LedgerResult.MISSING_CHAMPION, player=player, item=shard, amount=cost)
            if player.owns_skin(shard.id):
                return LedgerOutcome(LedgerResult.ALREADY_OWNED, player=player, item=shard)
            if player.orange_essence < cost:
                return LedgerOutcome(LedgerResult.INSUFFICIENT_FUNDS, player=player, item=shard, amount=cost)

            player.orange_essence -= cost
            del player.skin_shards[shard_index - 1]
            player.owned_skins.append(shard)
            await self.db.save_player(player)

        logger.info(f"{user_id} unlocked skin {shard.id} for {cost} OE")
        return LedgerOutcome(LedgerResult.SUCCESS, player=player, item=shard, amount=cost)

    async def disenchant_skin(self, user_id: str, shard_index: int) -> LedgerOutcome:
        """Destroy a skin shard for its rarity's Orange Essence value."""
        async with self.locked(user_id):
            player = await self.db.load_player(user_id)
            if not player:
                return LedgerOutcome(LedgerResult.NOT_FOUND)
            if not 1 <= shard_index <= len(player.skin_shards):
                return LedgerOutcome(LedgerResult.INVALID_INDEX, player=player)

            shard = player.skin_shards.pop(shard_index - 1)
            gained = RARITIES[shard.rarity].disenchant
            player.orange_essence += gained
            await self.db.save_player(player)

        logger.info(f"{user_id} disenchanted skin shard {shard.id} for {gained} OE")
        return LedgerOutcome(LedgerResult.SUCCESS, player=player, item=shard, amount=gained)

    async def disenchant_champion(self, user_id: str, shard_index: int) -> LedgerOutcome:
        """Destroy a champion shard for its tier's Blue Essence value."""
        async with self.locked(user_id):
            player = await self.db.load_player(user_id)
            if not player:
                return LedgerOutcome(LedgerResult.NOT_FOUND)
            if not 1 <= shard_index <= len(player.champion_shards):
                return LedgerOutcome(LedgerResult.INVALID_INDEX, player=player)

            shard = player.champion_shards.pop(shard_index - 1)
            tier = CHAMPION_TIERS.get(shard.store_price)
            gained = tier.disenchant if tier else CHAMPION_TIERS[STORE_PRICES[0]].disenchant
            player.blue_essence += gained
            await self.db.save_player(player)

        logger.info(f"{user_id} disenchanted champion shard {shard.id} for {gained} BE")
        return LedgerOutcome(LedgerResult.SUCCESS, player=player, item=shard, amount=gained)

    async def reroll_skins(self, user_id: str, indices: list[int]) -> LedgerOutcome:
        """Trade three distinct skin shards for one unlocked Epic skin."""
        async with self.locked(user_id):
            player = await self.db.load_player(user_id)
            if not player:
                return LedgerOutcome(LedgerResult.NOT_FOUND)
            if (
                len(indices) != 3
                or len(set(indices)) != 3
                or any(not 1 <= i <= len(player.skin_shards) for i in indices)
            ):
                return LedgerOutcome(LedgerResult.INVALID_INDEX, player=player)

            new_skin = await self._sample_skin(Rarity.EPIC)
            if new_skin is None:
                return LedgerOutcome(LedgerResult.UNAVAILABLE, player=player)

            # Highest index first so earlier removals don't shift later ones
            for index in sorted(indices, reverse=True):
                del player.skin_shards[index - 1]
            player.owned_skins.append(new_skin)
            await self.db.save_player(player)

        logger.info(f"{user_id} rerolled 3 skin shards into {new_skin.id}")
        return LedgerOutcome(LedgerResult.SUCCESS, player=player, item=new_skin)

    # Daily rewards

    def _roll_daily_reward(self) -> DailyReward:
        roll = self._rng.random()
        if roll < 0.30:
            return DailyReward(DailyRewardKind.CHEST, chests=1)
        elif roll < 0.60:
            return DailyReward(DailyRewardKind.BLUE_ESSENCE, blue_essence=self._rng.randint(200, 699))
        elif roll < 0.85:
            return DailyReward(DailyRewardKind.ORANGE_ESSENCE, orange_essence=self._rng.randint(100, 399))
        else:
            return DailyReward(
                DailyRewardKind.BUNDLE,
                blue_essence=self._rng.randint(150, 449),
                orange_essence=self._rng.randint(50, 249),
            )

    async def claim_daily(
        self, user_id: str, username: str | None = None, now: datetime | None = None
    ) -> LedgerOutcome:
        """Claim the once-per-day reward, which resets at a fixed hour."""
        now = now or _now()
        period_start = daily_period_start(now, Config.DAILY_RESET_HOUR)

        async with self.locked(user_id):
            player = await self._load_or_create(user_id, username)

            if player.last_daily and daily_period_start(player.last_daily, Config.DAILY_RESET_HOUR) == period_start:
                next_reset = period_start + timedelta(days=1)
                return LedgerOutcome(
                    LedgerResult.ALREADY_CLAIMED,
                    player=player,
                    time_until_reset=next_reset - now,
                )

            reward = self._roll_daily_reward()
            player.chests += reward.chests
            player.blue_essence += reward.blue_essence
            player.orange_essence += reward.orange_essence
            player.last_daily = now
            await self.db.save_player(player)

        logger.info(f"{user_id} claimed daily reward: {reward.kind.value}")
        return LedgerOutcome(LedgerResult.SUCCESS, player=player, daily=reward)

    # Store

    async def purchase_champion(self, user_id: str, champion: str) -> LedgerOutcome:
        """Buy a champion outright with Blue Essence at its store price."""
        champion_key = self.champions.find_champion(champion)
        if not champion_key:
            return LedgerOutcome(LedgerResult.INVALID_ARGUMENT)

        price = champion_store_price(champion_key)
        unlocked = OwnedChampion(id=champion_key, name=self.champions.champion_name(champion_key))

        async with self.locked(user_id):
            player = await self.db.load_player(user_id)
            if not player:
                return LedgerOutcome(LedgerResult.NOT_FOUND)
            if player.owns_champion(champion_key):
                return LedgerOutcome(LedgerResult.ALREADY_OWNED, player=player, item=unlocked)
            if player.blue_essence < price:
                return LedgerOutcome(LedgerResult.INSUFFICIENT_FUNDS, player=player, item=unlocked, amount=price)

            player.blue_essence -= price
            player.owned_champions.append(unlocked)
            await self.db.save_player(player)

        logger.info(f"{user_id} bought {unlocked.name} for {price} BE")
        return LedgerOutcome(LedgerResult.SUCCESS, player=player, item=unlocked, amount=price)

    # Inventory

    async def get_inventory_page(
        self, user_id: str, category: InventoryCategory, page: int = 1, username: str | None = None
    ) -> InventoryPage:
        """Get one card of a player's inventory, clamping the page into range."""
        player = await self.get_or_create_player(user_id, username)
        items: list = getattr(player, category.value)
        total_pages = max(1, len(items))
        current = max(1, min(page, total_pages))
        item = items[current - 1] if items else None
        return InventoryPage(player=player, category=category, item=item, page=current, total_pages=total_pages)
