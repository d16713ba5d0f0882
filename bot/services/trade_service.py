"""Trade service for swapping owned champions and skins between players.

A trade is proposed with 1-based indices into both players' owned lists.
The broker snapshots each item's id and index at proposal time; on accept it
re-reads both players and only swaps if each index still holds the same id.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from bot.services.economy_service import EconomyService
from config import Config
from models import OwnedChampion, Player, SkinItem

logger = logging.getLogger(__name__)

TRADE_TYPES = ("skin", "champion")

TradeItem = Union[OwnedChampion, SkinItem]


class TradeResult(Enum):
    CREATED = "created"
    SWAPPED = "swapped"
    DECLINED = "declined"
    NOT_FOUND = "not_found"
    INVALID_INDEX = "invalid_index"
    INVALID_ARGUMENT = "invalid_argument"
    SELF_TRADE = "self_trade"
    DUPLICATE_TRADE = "duplicate_trade"
    EXPIRED = "expired"
    NOT_AUTHORIZED = "not_authorized"
    STALE_STATE = "stale_state"


@dataclass
class PendingTrade:
    trade_id: str
    offerer_id: str
    target_id: str
    offerer_item: TradeItem
    offerer_item_id: str
    offerer_item_index: int
    target_item: TradeItem
    target_item_id: str
    target_item_index: int
    trade_type: str
    guild_id: Optional[str]
    timestamp: float
    expires_at: float
    expiry_task: Optional[asyncio.Task] = None

    def involves(self, user_a: str, user_b: str) -> bool:
        return {self.offerer_id, self.target_id} == {user_a, user_b}


@dataclass(frozen=True)
class TradeOutcome:
    result: TradeResult
    trade: Optional[PendingTrade] = None
    # Owned-list length of the party whose index was out of range
    available: int = 0


def owned_items(player: Player, trade_type: str) -> list:
    """The owned list a trade of this type draws from."""
    return player.owned_skins if trade_type == "skin" else player.owned_champions


class TradeService:
    """Broker for two-party item trades."""

    def __init__(self, economy: EconomyService, clock: Callable[[], float] = time.monotonic):
        self.economy = economy
        self._clock = clock
        self._pending: dict[str, PendingTrade] = {}

    def _find_pending_between(self, user_a: str, user_b: str) -> Optional[PendingTrade]:
        for trade in self._pending.values():
            if trade.involves(user_a, user_b):
                return trade
        return None

    def _discard(self, trade_id: str) -> Optional[PendingTrade]:
        trade = self._pending.pop(trade_id, None)
        if trade and trade.expiry_task and trade.expiry_task is not asyncio.current_task():
            trade.expiry_task.cancel()
        return trade

    async def _expire_after_delay(self, trade_id: str, delay: float):
        await asyncio.sleep(delay)
        if self._discard(trade_id):
            logger.info(f"Trade {trade_id} expired")

    async def initiate_trade(
        self,
        offerer_id: str,
        target_id: str,
        offerer_index: int,
        target_index: int,
        trade_type: str = "skin",
        guild_id: Optional[str] = None,
    ) -> TradeOutcome:
        """Propose a one-for-one swap of owned items."""
        if trade_type not in TRADE_TYPES:
            return TradeOutcome(TradeResult.INVALID_ARGUMENT)
        if offerer_id == target_id:
            return TradeOutcome(TradeResult.SELF_TRADE)

        offerer = await self.economy.get_player(offerer_id)
        target = await self.economy.get_player(target_id)
        if not offerer or not target:
            return TradeOutcome(TradeResult.NOT_FOUND)

        offerer_items = owned_items(offerer, trade_type)
        target_items = owned_items(target, trade_type)
        if not 1 <= offerer_index <= len(offerer_items):
            return TradeOutcome(TradeResult.INVALID_INDEX, available=len(offerer_items))
        if not 1 <= target_index <= len(target_items):
            return TradeOutcome(TradeResult.INVALID_INDEX, available=len(target_items))

        # Checked after the loads so a trade created meanwhile is still seen
        if self._find_pending_between(offerer_id, target_id):
            return TradeOutcome(TradeResult.DUPLICATE_TRADE)

        offerer_item = offerer_items[offerer_index - 1]
        target_item = target_items[target_index - 1]
        now = self._clock()

        trade = PendingTrade(
            trade_id=uuid.uuid4().hex,
            offerer_id=offerer_id,
            target_id=target_id,
            offerer_item=offerer_item,
            offerer_item_id=offerer_item.id,
            offerer_item_index=offerer_index - 1,
            target_item=target_item,
            target_item_id=target_item.id,
            target_item_index=target_index - 1,
            trade_type=trade_type,
            guild_id=guild_id,
            timestamp=now,
            expires_at=now + Config.TRADE_EXPIRY_SECONDS,
        )
        self._pending[trade.trade_id] = trade
        trade.expiry_task = asyncio.create_task(self._expire_after_delay(trade.trade_id, Config.TRADE_EXPIRY_SECONDS))

        logger.info(
            f"Trade {trade.trade_id} proposed: {offerer_id} {trade.offerer_item_id} <-> {target_id} {trade.target_item_id}"
        )
        return TradeOutcome(TradeResult.CREATED, trade=trade)

    def _get_live_trade(self, trade_id: str) -> Optional[PendingTrade]:
        trade = self._pending.get(trade_id)
        if trade and self._clock() >= trade.expires_at:
            self._discard(trade_id)
            return None
        return trade

    async def accept_trade(self, trade_id: str, acting_user_id: str) -> TradeOutcome:
        """Accept a pending trade and swap the items.

        Both player records are re-read under their locks; if either
        snapshotted index no longer holds the snapshotted item, the trade is
        discarded as stale and nothing is written.
        """
        trade = self._get_live_trade(trade_id)
        if not trade:
            return TradeOutcome(TradeResult.EXPIRED)
        if acting_user_id != trade.target_id:
            return TradeOutcome(TradeResult.NOT_AUTHORIZED, trade=trade)

        async with self.economy.locked(trade.offerer_id, trade.target_id):
            # Another accept/decline may have finished while we waited
            if self._get_live_trade(trade_id) is not trade:
                return TradeOutcome(TradeResult.EXPIRED)

            offerer = await self.economy.get_player(trade.offerer_id)
            target = await self.economy.get_player(trade.target_id)
            if not offerer or not target:
                self._discard(trade_id)
                return TradeOutcome(TradeResult.NOT_FOUND, trade=trade)

            offerer_items = owned_items(offerer, trade.trade_type)
            target_items = owned_items(target, trade.trade_type)

            if (
                trade.offerer_item_index >= len(offerer_items)
                or trade.target_item_index >= len(target_items)
                or offerer_items[trade.offerer_item_index].id != trade.offerer_item_id
                or target_items[trade.target_item_index].id != trade.target_item_id
            ):
                self._discard(trade_id)
                logger.info(f"Trade {trade_id} discarded: inventories changed since proposal")
                return TradeOutcome(TradeResult.STALE_STATE, trade=trade)

            offered = offerer_items.pop(trade.offerer_item_index)
            received = target_items.pop(trade.target_item_index)
            offerer_items.append(received)
            target_items.append(offered)

            await self.economy.db.save_players(offerer, target)
            self._discard(trade_id)

        logger.info(f"Trade {trade_id} completed: {trade.offerer_item_id} <-> {trade.target_item_id}")
        return TradeOutcome(TradeResult.SWAPPED, trade=trade)

    async def decline_trade(self, trade_id: str, acting_user_id: str) -> TradeOutcome:
        """Decline a pending trade. Only the trade's target may decline."""
        trade = self._get_live_trade(trade_id)
        if not trade:
            return TradeOutcome(TradeResult.EXPIRED)
        if acting_user_id != trade.target_id:
            return TradeOutcome(TradeResult.NOT_AUTHORIZED, trade=trade)

        self._discard(trade_id)
        logger.info(f"Trade {trade_id} declined by {acting_user_id}")
        return TradeOutcome(TradeResult.DECLINED, trade=trade)

    def cancel_all_trades(self) -> int:
        """Drop every pending trade, used on shutdown."""
        trade_ids = list(self._pending)
        for trade_id in trade_ids:
            self._discard(trade_id)
        return len(trade_ids)
