"""Economy commands: inventory, chests, crafting, daily rewards and the store."""

import logging
from typing import TYPE_CHECKING, Callable

import discord
from discord import app_commands
from discord.ext import commands

from bot.commands.views import InventoryCursor, InventoryView, build_inventory_embed
from bot.services.economy_service import InventoryCategory, LedgerOutcome
from utils.discord_utils import send_command_error
from utils.formatting import (
    format_chest_loot,
    format_craft_success,
    format_daily_reward,
    format_disenchant_success,
    format_ledger_failure,
    format_purchase_success,
    format_reroll_success,
)

if TYPE_CHECKING:
    from bot.main import ChampguessrBot

logger = logging.getLogger(__name__)

CATEGORY_CHOICES = [
    app_commands.Choice(name="Champion Shards", value=InventoryCategory.CHAMPION_SHARDS.value),
    app_commands.Choice(name="Skin Shards", value=InventoryCategory.SKIN_SHARDS.value),
    app_commands.Choice(name="Owned Champions", value=InventoryCategory.OWNED_CHAMPIONS.value),
    app_commands.Choice(name="Owned Skins", value=InventoryCategory.OWNED_SKINS.value),
]


def ledger_message(outcome: LedgerOutcome, on_success: Callable[[LedgerOutcome], str]) -> str:
    """Render a ledger outcome with the given success formatter."""
    if outcome.ok:
        return on_success(outcome)
    return format_ledger_failure(outcome)


async def send_inventory(
    bot: "ChampguessrBot",
    user: discord.abc.User,
    category: InventoryCategory = InventoryCategory.CHAMPION_SHARDS,
    page: int = 1,
) -> tuple[discord.Embed, InventoryView]:
    """Build the first inventory card and its pager view."""
    inventory = await bot.economy_service.get_inventory_page(str(user.id), category, page, username=user.name)
    cursor = InventoryCursor(owner_id=str(user.id), category=category, page=inventory.page)
    view = InventoryView(bot, cursor, inventory.total_pages)
    return build_inventory_embed(inventory, bot.content_provider), view


class EconomyCommands(commands.Cog):
    """Cog containing economy and crafting commands."""

    bot: "ChampguessrBot"

    def __init__(self, bot: "ChampguessrBot"):
        self.bot = bot

    @property
    def economy(self):
        return self.bot.economy_service

    @app_commands.command(name="inventory", description="Browse your shards, champions and skins")
    @app_commands.describe(category="Which part of the inventory to open", page="Card number to start on")
    @app_commands.choices(category=CATEGORY_CHOICES)
    async def inventory(
        self,
        interaction: discord.Interaction,
        category: app_commands.Choice[str] | None = None,
        page: app_commands.Range[int, 1] = 1,
    ):
        """Show the caller's inventory."""
        selected = InventoryCategory(category.value) if category else InventoryCategory.CHAMPION_SHARDS
        embed, view = await send_inventory(self.bot, interaction.user, selected, page)
        await interaction.response.send_message(embed=embed, view=view)

    @app_commands.command(name="open-chest", description="Open a Hextech chest")
    async def open_chest(self, interaction: discord.Interaction):
        outcome = await self.economy.open_chest(str(interaction.user.id))
        await interaction.response.send_message(
            ledger_message(outcome, format_chest_loot), ephemeral=not outcome.ok
        )

    @app_commands.command(name="craft-skin", description="Unlock a skin shard with Orange Essence")
    @app_commands.describe(index="Skin shard number from your inventory")
    async def craft_skin(self, interaction: discord.Interaction, index: app_commands.Range[int, 1]):
        outcome = await self.economy.craft_skin(str(interaction.user.id), index)
        await interaction.response.send_message(
            ledger_message(outcome, format_craft_success), ephemeral=not outcome.ok
        )

    @app_commands.command(name="craft-champion", description="Unlock a champion shard with Blue Essence")
    @app_commands.describe(index="Champion shard number from your inventory")
    async def craft_champion(self, interaction: discord.Interaction, index: app_commands.Range[int, 1]):
        outcome = await self.economy.craft_champion(str(interaction.user.id), index)
        await interaction.response.send_message(
            ledger_message(outcome, format_craft_success), ephemeral=not outcome.ok
        )

    @app_commands.command(name="disenchant", description="Disenchant a skin shard into Orange Essence")
    @app_commands.describe(index="Skin shard number from your inventory")
    async def disenchant(self, interaction: discord.Interaction, index: app_commands.Range[int, 1]):
        outcome = await self.economy.disenchant_skin(str(interaction.user.id), index)
        await interaction.response.send_message(
            ledger_message(outcome, format_disenchant_success), ephemeral=not outcome.ok
        )

    @app_commands.command(name="disenchant-champion", description="Disenchant a champion shard into Blue Essence")
    @app_commands.describe(index="Champion shard number from your inventory")
    async def disenchant_champion(self, interaction: discord.Interaction, index: app_commands.Range[int, 1]):
        outcome = await self.economy.disenchant_champion(str(interaction.user.id), index)
        await interaction.response.send_message(
            ledger_message(outcome, format_disenchant_success), ephemeral=not outcome.ok
        )

    @app_commands.command(name="reroll-skins", description="Combine 3 skin shards into a random Epic skin")
    @app_commands.describe(first="First skin shard number", second="Second skin shard number", third="Third skin shard number")
    async def reroll_skins(
        self,
        interaction: discord.Interaction,
        first: app_commands.Range[int, 1],
        second: app_commands.Range[int, 1],
        third: app_commands.Range[int, 1],
    ):
        outcome = await self.economy.reroll_skins(str(interaction.user.id), [first, second, third])
        await interaction.response.send_message(
            ledger_message(outcome, format_reroll_success), ephemeral=not outcome.ok
        )

    @app_commands.command(name="lol-daily", description="Claim your daily reward")
    async def daily(self, interaction: discord.Interaction):
        outcome = await self.economy.claim_daily(str(interaction.user.id), interaction.user.name)
        await interaction.response.send_message(
            ledger_message(outcome, format_daily_reward), ephemeral=not outcome.ok
        )

    @app_commands.command(name="buy-champion", description="Buy a champion with Blue Essence")
    @app_commands.describe(champion="Champion name")
    async def buy_champion(self, interaction: discord.Interaction, champion: str):
        outcome = await self.economy.purchase_champion(str(interaction.user.id), champion)
        await interaction.response.send_message(
            ledger_message(outcome, format_purchase_success), ephemeral=not outcome.ok
        )

    async def cog_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        await send_command_error(interaction, error)


async def setup(bot: "ChampguessrBot"):
    """Load the cog."""
    await bot.add_cog(EconomyCommands(bot))
