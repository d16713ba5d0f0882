"""Trade command for swapping owned items between players."""

import logging
from typing import TYPE_CHECKING, Optional

import discord
from discord import app_commands
from discord.ext import commands

from bot.commands.views import TradeOfferView
from bot.services.trade_service import TradeOutcome, TradeResult
from config import Config
from utils.discord_utils import send_command_error
from utils.formatting import format_trade_failure, format_trade_offer

if TYPE_CHECKING:
    from bot.main import ChampguessrBot

logger = logging.getLogger(__name__)


async def propose_trade(
    bot: "ChampguessrBot",
    offerer: discord.abc.User,
    target: discord.abc.User,
    offerer_index: int,
    target_index: int,
    trade_type: str,
    guild_id: Optional[str],
) -> tuple[TradeOutcome, dict]:
    """Create a trade and build the offer message, or the failure text."""
    if target.bot:
        return TradeOutcome(TradeResult.INVALID_ARGUMENT), {"content": "❌ Cannot trade with bots!"}

    outcome = await bot.trade_service.initiate_trade(
        offerer_id=str(offerer.id),
        target_id=str(target.id),
        offerer_index=offerer_index,
        target_index=target_index,
        trade_type=trade_type,
        guild_id=guild_id,
    )
    if outcome.result is not TradeResult.CREATED:
        return outcome, {"content": format_trade_failure(outcome, trade_type)}

    trade = outcome.trade
    view = TradeOfferView(bot, trade.trade_id, timeout=Config.TRADE_EXPIRY_SECONDS)
    content = format_trade_offer(trade, offerer.display_name, target.display_name)
    return outcome, {"content": content, "view": view}


class TradeCommands(commands.Cog):
    """Cog containing the trade command."""

    bot: "ChampguessrBot"

    def __init__(self, bot: "ChampguessrBot"):
        self.bot = bot

    @app_commands.command(name="trade", description="Offer one of your skins or champions for one of theirs")
    @app_commands.describe(
        user="Who to trade with",
        your_item="Number of your owned item to give",
        their_item="Number of their owned item you want",
        kind="Trade skins or champions (default: skins)",
    )
    @app_commands.choices(
        kind=[
            app_commands.Choice(name="Skin", value="skin"),
            app_commands.Choice(name="Champion", value="champion"),
        ]
    )
    async def trade(
        self,
        interaction: discord.Interaction,
        user: discord.Member,
        your_item: app_commands.Range[int, 1],
        their_item: app_commands.Range[int, 1],
        kind: app_commands.Choice[str] | None = None,
    ):
        """Propose a trade."""
        trade_type = kind.value if kind else "skin"
        logger.info(f"Trade command invoked by {interaction.user} with {user}: {trade_type} {your_item}<->{their_item}")

        guild_id = str(interaction.guild.id) if interaction.guild else None
        outcome, message = await propose_trade(
            self.bot, interaction.user, user, your_item, their_item, trade_type, guild_id
        )

        if outcome.result is not TradeResult.CREATED:
            await interaction.response.send_message(**message, ephemeral=True)
            return

        await interaction.response.send_message(**message)
        message["view"].message = await interaction.original_response()

    async def cog_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        await send_command_error(interaction, error)


async def setup(bot: "ChampguessrBot"):
    """Load the cog."""
    await bot.add_cog(TradeCommands(bot))
