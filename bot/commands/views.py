"""Interactive views for inventory paging and trade offers."""

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Optional

import discord
from discord import ui

from bot.services.catalog import RARITIES
from bot.services.economy_service import InventoryCategory, InventoryPage
from bot.services.trade_service import TradeResult
from models import ChampionShard, OwnedChampion, SkinItem
from utils.formatting import (
    format_inventory_card,
    format_trade_completed,
    format_trade_declined,
    format_trade_failure,
)

if TYPE_CHECKING:
    from bot.main import ChampguessrBot

logger = logging.getLogger(__name__)

INVENTORY_TIMEOUT = 120


@dataclass(frozen=True)
class InventoryCursor:
    """Which inventory card a view is showing."""

    owner_id: str
    category: InventoryCategory
    page: int = 1


def inventory_image_url(page: InventoryPage, content) -> Optional[str]:
    """Image to show beside an inventory card."""
    item = page.item
    if isinstance(item, SkinItem):
        return content.skin_loading_url(item.champion_id, item.skin_num)
    if isinstance(item, (ChampionShard, OwnedChampion)):
        return content.champion_icon_url(item.id)
    return None


def build_inventory_embed(page: InventoryPage, content) -> discord.Embed:
    color = 0x0596AA
    if isinstance(page.item, SkinItem):
        color = RARITIES[page.item.rarity].color

    embed = discord.Embed(description=format_inventory_card(page), color=color)
    image_url = inventory_image_url(page, content)
    if image_url:
        if isinstance(page.item, SkinItem):
            embed.set_image(url=image_url)
        else:
            embed.set_thumbnail(url=image_url)
    return embed


class InventoryView(ui.View):
    """Owner-only pager over one inventory category at a time."""

    def __init__(self, bot: "ChampguessrBot", cursor: InventoryCursor, total_pages: int = 1):
        super().__init__(timeout=INVENTORY_TIMEOUT)
        self.bot = bot
        self.cursor = cursor
        self.total_pages = total_pages
        self._sync_buttons()

    def _sync_buttons(self):
        self.previous_page.disabled = self.cursor.page <= 1
        self.next_page.disabled = self.cursor.page >= self.total_pages

    async def _show(self, interaction: discord.Interaction, cursor: InventoryCursor):
        page = await self.bot.economy_service.get_inventory_page(cursor.owner_id, cursor.category, cursor.page)
        self.cursor = replace(cursor, page=page.page)
        self.total_pages = page.total_pages
        self._sync_buttons()
        await interaction.response.edit_message(embed=build_inventory_embed(page, self.bot.content_provider), view=self)

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if str(interaction.user.id) != self.cursor.owner_id:
            await interaction.response.send_message("This inventory is not yours.", ephemeral=True)
            return False
        return True

    @ui.button(label="◀", style=discord.ButtonStyle.secondary, row=0)
    async def previous_page(self, interaction: discord.Interaction, button: ui.Button):
        await self._show(interaction, replace(self.cursor, page=self.cursor.page - 1))

    @ui.button(label="▶", style=discord.ButtonStyle.secondary, row=0)
    async def next_page(self, interaction: discord.Interaction, button: ui.Button):
        await self._show(interaction, replace(self.cursor, page=self.cursor.page + 1))

    @ui.button(label="Champion Shards", style=discord.ButtonStyle.primary, row=1)
    async def champion_shards(self, interaction: discord.Interaction, button: ui.Button):
        await self._show(interaction, InventoryCursor(self.cursor.owner_id, InventoryCategory.CHAMPION_SHARDS))

    @ui.button(label="Skin Shards", style=discord.ButtonStyle.primary, row=1)
    async def skin_shards(self, interaction: discord.Interaction, button: ui.Button):
        await self._show(interaction, InventoryCursor(self.cursor.owner_id, InventoryCategory.SKIN_SHARDS))

    @ui.button(label="Champions", style=discord.ButtonStyle.success, row=2)
    async def owned_champions(self, interaction: discord.Interaction, button: ui.Button):
        await self._show(interaction, InventoryCursor(self.cursor.owner_id, InventoryCategory.OWNED_CHAMPIONS))

    @ui.button(label="Skins", style=discord.ButtonStyle.success, row=2)
    async def owned_skins(self, interaction: discord.Interaction, button: ui.Button):
        await self._show(interaction, InventoryCursor(self.cursor.owner_id, InventoryCategory.OWNED_SKINS))


class TradeOfferView(ui.View):
    """Accept and decline buttons for a pending trade."""

    def __init__(self, bot: "ChampguessrBot", trade_id: str, timeout: float):
        super().__init__(timeout=timeout)
        self.bot = bot
        self.trade_id = trade_id
        self.message: Optional[discord.Message] = None

    @ui.button(label="Accept", emoji="✅", style=discord.ButtonStyle.success)
    async def accept(self, interaction: discord.Interaction, button: ui.Button):
        outcome = await self.bot.trade_service.accept_trade(self.trade_id, str(interaction.user.id))

        if outcome.result is TradeResult.NOT_AUTHORIZED:
            await interaction.response.send_message(format_trade_failure(outcome), ephemeral=True)
            return

        self.stop()
        if outcome.result is TradeResult.SWAPPED:
            content = format_trade_completed(outcome.trade)
        else:
            content = format_trade_failure(outcome)
        await interaction.response.edit_message(content=content, view=None)

    @ui.button(label="Decline", emoji="❌", style=discord.ButtonStyle.danger)
    async def decline(self, interaction: discord.Interaction, button: ui.Button):
        outcome = await self.bot.trade_service.decline_trade(self.trade_id, str(interaction.user.id))

        if outcome.result is TradeResult.NOT_AUTHORIZED:
            await interaction.response.send_message(format_trade_failure(outcome), ephemeral=True)
            return

        self.stop()
        if outcome.result is TradeResult.DECLINED:
            content = format_trade_declined(outcome.trade)
        else:
            content = format_trade_failure(outcome)
        await interaction.response.edit_message(content=content, view=None)

    async def on_timeout(self):
        if self.message:
            try:
                await self.message.edit(content="⏰ Trade offer expired.", view=None)
            except discord.HTTPException as e:
                logger.warning(f"Could not mark trade {self.trade_id} as expired: {e}")
