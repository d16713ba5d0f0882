"""Main entry point for the Champguessr bot."""

import asyncio
import logging
import sys
from pathlib import Path

import discord
from discord.ext import commands

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from bot.services.content_provider import DataDragonClient
from bot.services.economy_service import EconomyService
from bot.services.game_service import GameService
from bot.services.trade_service import TradeService
from config import Config
from db.database import Database

# Configure logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


class ChampguessrBot(commands.Bot):
    """Custom bot class wiring the database, content provider and services."""

    def __init__(self):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.guilds = True
        intents.guild_messages = True

        super().__init__(
            command_prefix="!",  # Unused; text commands are parsed by the message cog
            intents=intents,
            help_command=None,
        )

        self.db: Database = None
        self.content_provider: DataDragonClient = None
        self.economy_service: EconomyService = None
        self.game_service: GameService = None
        self.trade_service: TradeService = None

    async def setup_hook(self):
        """Called when the bot is starting up."""
        # Initialize database
        self.db = Database(Config.DATABASE_PATH)
        try:
            await self.db.connect()
        except Exception:
            logger.exception(f"Could not open database {Config.DATABASE_PATH}")
            raise
        logger.info(f"Connected to database: {Config.DATABASE_PATH}")

        # Champion data
        self.content_provider = DataDragonClient()
        await self.content_provider.start()

        # Initialize services
        self.economy_service = EconomyService(self.db, self.content_provider)
        self.game_service = GameService(self.economy_service, self.content_provider)
        self.trade_service = TradeService(self.economy_service)

        # Load cogs
        cogs = [
            "bot.commands.game",
            "bot.commands.economy",
            "bot.commands.trade",
            "bot.events.message",
        ]

        for cog in cogs:
            try:
                await self.load_extension(cog)
                logger.info(f"Loaded cog: {cog}")
            except Exception as e:
                logger.error(f"Failed to load cog {cog}: {e}")

        # Sync slash commands
        logger.info("Syncing slash commands...")
        await self.tree.sync()
        logger.info("Slash commands synced!")

    async def on_ready(self):
        """Called when the bot is fully ready."""
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")
        logger.info(f"Connected to {len(self.guilds)} guild(s)")

        # Set activity
        activity = discord.Activity(
            type=discord.ActivityType.playing,
            name=f"{Config.TEXT_COMMAND_PREFIX} help",
        )
        await self.change_presence(activity=activity)

    async def on_guild_remove(self, guild: discord.Guild):
        """Called when the bot is removed from a guild. Cancels its rounds."""
        logger.info(f"Removed from guild: {guild.name} (ID: {guild.id})")
        if self.game_service:
            cancelled = self.game_service.cancel_guild_rounds(str(guild.id))
            if cancelled:
                logger.info(f"Cancelled {cancelled} round(s) for guild {guild.id}")

    async def close(self):
        """Clean up resources."""
        if self.game_service:
            self.game_service.cancel_all_rounds()
        if self.trade_service:
            self.trade_service.cancel_all_trades()
        if self.content_provider:
            await self.content_provider.stop()
        if self.db:
            await self.db.close()
        await super().close()


async def main():
    """Main entry point."""
    if not Config.DISCORD_TOKEN:
        logger.error("DISCORD_TOKEN not set! Please set it in your .env file.")
        sys.exit(1)

    bot = ChampguessrBot()

    try:
        await bot.start(Config.DISCORD_TOKEN)
    except discord.LoginFailure:
        logger.error("Invalid Discord token! Please check your .env file.")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    finally:
        await bot.close()


def run():
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
