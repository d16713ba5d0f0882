"""Game commands for Champguessr."""

import io
import logging
from typing import TYPE_CHECKING, Optional

import discord
from discord import app_commands
from discord.ext import commands

from bot.services.game_service import StartOutcome, StartResult
from config import Config
from utils.discord_utils import send_command_error
from utils.formatting import (
    format_ability_footer,
    format_help,
    format_leaderboard,
    format_player_profile,
    format_round_skipped,
    format_round_start,
    format_start_failure,
)

if TYPE_CHECKING:
    from bot.main import ChampguessrBot

logger = logging.getLogger(__name__)

ROUND_IMAGE_FILENAME = "champion.png"

ART_DIFFICULTIES = [
    app_commands.Choice(name="🟢 Easy", value="easy"),
    app_commands.Choice(name="🟡 Normal", value="normal"),
    app_commands.Choice(name="🔴 Hard", value="hard"),
]
ABILITY_DIFFICULTIES = ART_DIFFICULTIES + [
    app_commands.Choice(name="🟣 V2 (champion + key)", value="v2"),
    app_commands.Choice(name="⚫ V3 (champion + ability name)", value="v3"),
]


def build_round_message(outcome: StartOutcome) -> dict:
    """Build send() kwargs for a freshly started round."""
    game_round = outcome.round
    content = outcome.content

    embed = discord.Embed(description=format_round_start(game_round), color=0x0596AA)
    kwargs = {"embed": embed}

    if content.image_bytes:
        kwargs["file"] = discord.File(io.BytesIO(content.image_bytes), filename=ROUND_IMAGE_FILENAME)
        embed.set_image(url=f"attachment://{ROUND_IMAGE_FILENAME}")
    else:
        embed.set_image(url=content.image_url)

    if game_round.mode == "ability" and game_round.difficulty not in ("v2", "v3"):
        footer = format_ability_footer(content.ability_key)
        if footer:
            embed.set_footer(text=footer)

    return kwargs


async def start_game(
    bot: "ChampguessrBot",
    channel,
    guild_id: Optional[str],
    mode: str,
    difficulty: str,
    pixelate: bool,
    elimination: bool,
) -> tuple[StartOutcome, Optional[dict]]:
    """Start a round and build its announcement, or the failure text."""
    outcome = await bot.game_service.start_round(
        channel=channel,
        guild_id=guild_id,
        mode=mode,
        difficulty=difficulty,
        pixelate=pixelate,
        elimination=elimination,
    )
    if outcome.result is not StartResult.STARTED:
        return outcome, {"content": format_start_failure(outcome)}
    return outcome, build_round_message(outcome)


class GameCommands(commands.Cog):
    """Cog containing all game commands."""

    bot: "ChampguessrBot"

    def __init__(self, bot: "ChampguessrBot"):
        self.bot = bot

    async def _start(
        self,
        interaction: discord.Interaction,
        mode: str,
        difficulty: Optional[app_commands.Choice[str]],
        pixelated: bool,
        elimination: bool,
    ):
        channel_name = getattr(interaction.channel, "name", "DM")
        logger.info(f"{mode} round requested by {interaction.user} in #{channel_name}")
        await interaction.response.defer()

        if not interaction.guild or not self.bot.game_service:
            await interaction.followup.send("This command only works in servers.", ephemeral=True)
            return

        outcome, message = await start_game(
            self.bot,
            interaction.channel,
            str(interaction.guild.id),
            mode,
            difficulty.value if difficulty else "normal",
            pixelated,
            elimination,
        )

        if outcome.result is StartResult.STARTED:
            await interaction.followup.send(**message)
        else:
            await interaction.followup.send(**message, ephemeral=True)

    @app_commands.command(name="guess-ability", description="Guess the champion from an ability icon")
    @app_commands.describe(
        difficulty="Difficulty (V2/V3 also ask for the ability)",
        pixelated="Pixelate the icon for bonus points",
        elimination="Limit how many wrong guesses each player gets",
    )
    @app_commands.choices(difficulty=ABILITY_DIFFICULTIES)
    async def guess_ability(
        self,
        interaction: discord.Interaction,
        difficulty: Optional[app_commands.Choice[str]] = None,
        pixelated: bool = False,
        elimination: bool = False,
    ):
        await self._start(interaction, "ability", difficulty, pixelated, elimination)

    @app_commands.command(name="guess-splash", description="Guess the champion from a cropped splash art")
    @app_commands.describe(
        difficulty="How far the splash art is zoomed in",
        pixelated="Pixelate the image for bonus points",
        elimination="Limit how many wrong guesses each player gets",
    )
    @app_commands.choices(difficulty=ART_DIFFICULTIES)
    async def guess_splash(
        self,
        interaction: discord.Interaction,
        difficulty: Optional[app_commands.Choice[str]] = None,
        pixelated: bool = False,
        elimination: bool = False,
    ):
        await self._start(interaction, "splash", difficulty, pixelated, elimination)

    @app_commands.command(name="guess-skin", description="Guess the champion from a cropped skin splash")
    @app_commands.describe(
        difficulty="How far the skin art is zoomed in",
        pixelated="Pixelate the image for bonus points",
        elimination="Limit how many wrong guesses each player gets",
    )
    @app_commands.choices(difficulty=ART_DIFFICULTIES)
    async def guess_skin(
        self,
        interaction: discord.Interaction,
        difficulty: Optional[app_commands.Choice[str]] = None,
        pixelated: bool = False,
        elimination: bool = False,
    ):
        await self._start(interaction, "skin", difficulty, pixelated, elimination)

    @app_commands.command(name="skip", description="Skip the current round (moderators only)")
    @app_commands.checks.has_permissions(manage_messages=True)
    async def skip(self, interaction: discord.Interaction):
        """Skip the current round."""
        channel_name = getattr(interaction.channel, "name", "DM")
        logger.info(f"Skip command invoked by {interaction.user} in #{channel_name}")

        game_round = await self.bot.game_service.skip_round(str(interaction.channel_id))
        if not game_round:
            await interaction.response.send_message("No active round in this channel.", ephemeral=True)
            return

        await interaction.response.send_message(format_round_skipped(game_round.answer))

    @skip.error
    async def skip_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        """Handle errors for the skip command."""
        if isinstance(error, app_commands.MissingPermissions):
            await interaction.response.send_message(
                "You need the 'Manage Messages' permission to skip rounds!",
                ephemeral=True,
            )
        else:
            logger.error(f"Error in skip command: {error}")
            await interaction.response.send_message("An error occurred while skipping the round.", ephemeral=True)

    @app_commands.command(name="leaderboard", description="Show the top players")
    @app_commands.describe(public="Show the leaderboard to everyone in the channel instead of just you")
    async def leaderboard(self, interaction: discord.Interaction, public: bool = False):
        """Show the global leaderboard."""
        await interaction.response.defer(ephemeral=not public)

        players = await self.bot.economy_service.get_leaderboard()
        await interaction.followup.send(format_leaderboard(players), ephemeral=not public)

    @app_commands.command(name="profile", description="Show your Champguessr profile")
    @app_commands.describe(user="The user to show the profile for (defaults to yourself)")
    async def profile(self, interaction: discord.Interaction, user: discord.Member | None = None):
        """Show a player's profile."""
        await interaction.response.defer()

        target_user = user or interaction.user
        player_id = str(target_user.id)

        player = await self.bot.economy_service.get_player(player_id)
        rank = await self.bot.economy_service.get_rank(player_id) if player else 0
        champion_count = len(self.bot.content_provider.champion_keys)

        await interaction.followup.send(
            format_player_profile(player, target_user.display_name, rank, champion_count)
        )

    @app_commands.command(name="help", description="Show help for Champguessr")
    async def help(self, interaction: discord.Interaction):
        """Show help information."""
        await interaction.response.send_message(format_help(Config.TEXT_COMMAND_PREFIX), ephemeral=True)

    async def cog_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        if interaction.command and interaction.command.name == "skip":
            return
        await send_command_error(interaction, error)


async def setup(bot: "ChampguessrBot"):
    """Load the cog."""
    await bot.add_cog(GameCommands(bot))
