"""Message event handlers: `lol ...` text commands and round guesses."""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import discord
from discord.ext import commands

from bot.commands.economy import ledger_message, send_inventory
from bot.commands.game import start_game
from bot.commands.trade import propose_trade
from bot.services.game_service import GuessResult
from bot.services.trade_service import TradeResult
from config import Config
from utils.discord_utils import can_manage_rounds, get_or_fetch_member, parse_user_mention
from utils.formatting import (
    format_chest_loot,
    format_correct_guess,
    format_craft_success,
    format_daily_reward,
    format_disenchant_success,
    format_elimination,
    format_help,
    format_leaderboard,
    format_player_profile,
    format_purchase_success,
    format_reroll_success,
    format_round_skipped,
)

if TYPE_CHECKING:
    from bot.main import ChampguessrBot

logger = logging.getLogger(__name__)

GAME_ALIASES = {"ga": "ability", "gsp": "splash", "gsk": "skin"}
DIFFICULTY_ALIASES = {"ez": "easy", "mid": "normal", "hard": "hard", "v2": "v2", "v3": "v3"}
SIMPLE_ALIASES = {
    "inv": "inventory",
    "inventory": "inventory",
    "daily": "daily",
    "oc": "open_chest",
    "profile": "profile",
    "prof": "profile",
    "lb": "leaderboard",
    "leaderboard": "leaderboard",
    "help": "help",
    "h": "help",
    "skip": "skip",
}
CHAMPION_WORDS = {"champ", "champion"}


@dataclass(frozen=True)
class TextCommand:
    """A parsed `lol ...` command. ``args`` are already validated."""

    name: str
    args: tuple[str, ...] = ()


def _all_digits(values: list[str]) -> bool:
    return bool(values) and all(v.isdigit() for v in values)


def parse_text_command(content: str, prefix: str) -> Optional[TextCommand]:
    """Parse a text command, or return None if the message isn't one."""
    tokens = content.split()
    if not tokens or tokens[0].lower() != prefix:
        return None

    words = [t.lower() for t in tokens[1:]]
    if not words:
        return TextCommand("help")

    head, rest = words[0], words[1:]

    if head in SIMPLE_ALIASES and not rest:
        return TextCommand(SIMPLE_ALIASES[head])

    if head in ("profile", "prof") and len(rest) == 1:
        return TextCommand("profile", (tokens[2],))

    if head == "open" and rest == ["chest"]:
        return TextCommand("open_chest")

    if head in GAME_ALIASES:
        difficulty = "normal"
        pixelate = False
        elimination = False
        for word in rest:
            if word in DIFFICULTY_ALIASES:
                difficulty = DIFFICULTY_ALIASES[word]
            elif word in ("px", "pixel", "pixelated"):
                pixelate = True
            elif word in ("elim", "elimination"):
                elimination = True
            else:
                return None
        args = [GAME_ALIASES[head], difficulty]
        if pixelate:
            args.append("px")
        if elimination:
            args.append("elim")
        return TextCommand("guess", tuple(args))

    if head == "craft" and len(rest) == 2 and rest[1].isdigit():
        if rest[0] == "skin":
            return TextCommand("craft_skin", (rest[1],))
        if rest[0] in CHAMPION_WORDS:
            return TextCommand("craft_champion", (rest[1],))
        return None

    if head == "de":
        if len(rest) == 1 and rest[0].isdigit():
            return TextCommand("disenchant", (rest[0],))
        if len(rest) == 2 and rest[0] in CHAMPION_WORDS and rest[1].isdigit():
            return TextCommand("disenchant_champion", (rest[1],))
        return None

    if head == "reroll" and len(rest) == 3 and _all_digits(rest):
        return TextCommand("reroll", tuple(rest))

    if head == "buy" and rest:
        return TextCommand("buy", (" ".join(tokens[2:]),))

    if head == "trade":
        trade_type = "skin"
        if rest and rest[0] in ("skin", *CHAMPION_WORDS):
            trade_type = "skin" if rest[0] == "skin" else "champion"
            rest = rest[1:]
        if len(rest) == 3 and parse_user_mention(rest[0]) is not None and _all_digits(rest[1:]):
            return TextCommand("trade", (trade_type, *rest))
        return None

    return None


class MessageEvents(commands.Cog):
    """Cog for text commands and chat guesses."""

    bot: "ChampguessrBot"

    def __init__(self, bot: "ChampguessrBot"):
        self.bot = bot

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        """Route a message to a text command or the channel's active round."""
        # Skip DMs
        if not message.guild:
            return

        # Skip bot messages
        if message.author.bot:
            return

        if not message.content.strip():
            return

        prefix = Config.TEXT_COMMAND_PREFIX
        command = parse_text_command(message.content, prefix)
        if command:
            logger.info(f"Text command '{command.name}' from {message.author} in #{message.channel}")
            try:
                await self.dispatch_text_command(message, command)
            except discord.HTTPException as e:
                logger.error(f"Failed to answer text command '{command.name}': {e}")
            return

        await self.handle_guess(message)

    async def handle_guess(self, message: discord.Message):
        outcome = await self.bot.game_service.submit_guess(
            channel_id=str(message.channel.id),
            user_id=str(message.author.id),
            raw_text=message.content,
            username=message.author.name,
        )

        try:
            if outcome.result is GuessResult.CORRECT:
                await message.add_reaction("✅")
                await message.channel.send(format_correct_guess(str(message.author.id), outcome))
            elif outcome.result is GuessResult.INCORRECT:
                await message.add_reaction("❌")
                if outcome.eliminated:
                    await message.channel.send(format_elimination(str(message.author.id)))
        except discord.HTTPException as e:
            logger.warning(f"Failed to respond to guess in #{message.channel}: {e}")

    async def dispatch_text_command(self, message: discord.Message, command: TextCommand):
        channel = message.channel
        author = message.author
        user_id = str(author.id)
        economy = self.bot.economy_service
        args = command.args

        if command.name == "help":
            await channel.send(format_help(Config.TEXT_COMMAND_PREFIX))

        elif command.name == "guess":
            mode, difficulty = args[0], args[1]
            _, reply = await start_game(
                self.bot, channel, str(message.guild.id), mode, difficulty, "px" in args, "elim" in args
            )
            await channel.send(**reply)

        elif command.name == "skip":
            if not can_manage_rounds(author):
                await channel.send("You need the 'Manage Messages' permission to skip rounds!")
                return
            game_round = await self.bot.game_service.skip_round(str(channel.id))
            if game_round:
                await channel.send(format_round_skipped(game_round.answer))
            else:
                await channel.send("No active round in this channel.")

        elif command.name == "inventory":
            embed, view = await send_inventory(self.bot, author)
            await channel.send(embed=embed, view=view)

        elif command.name == "daily":
            outcome = await economy.claim_daily(user_id, author.name)
            await channel.send(ledger_message(outcome, format_daily_reward))

        elif command.name == "open_chest":
            outcome = await economy.open_chest(user_id)
            await channel.send(ledger_message(outcome, format_chest_loot))

        elif command.name == "craft_skin":
            outcome = await economy.craft_skin(user_id, int(args[0]))
            await channel.send(ledger_message(outcome, format_craft_success))

        elif command.name == "craft_champion":
            outcome = await economy.craft_champion(user_id, int(args[0]))
            await channel.send(ledger_message(outcome, format_craft_success))

        elif command.name == "disenchant":
            outcome = await economy.disenchant_skin(user_id, int(args[0]))
            await channel.send(ledger_message(outcome, format_disenchant_success))

        elif command.name == "disenchant_champion":
            outcome = await economy.disenchant_champion(user_id, int(args[0]))
            await channel.send(ledger_message(outcome, format_disenchant_success))

        elif command.name == "reroll":
            outcome = await economy.reroll_skins(user_id, [int(a) for a in args])
            await channel.send(ledger_message(outcome, format_reroll_success))

        elif command.name == "buy":
            outcome = await economy.purchase_champion(user_id, args[0])
            await channel.send(ledger_message(outcome, format_purchase_success))

        elif command.name == "leaderboard":
            players = await economy.get_leaderboard()
            await channel.send(format_leaderboard(players))

        elif command.name == "profile":
            target = author
            if args:
                target_id = parse_user_mention(args[0])
                member = await get_or_fetch_member(message.guild, target_id) if target_id else None
                if not member:
                    await channel.send("❌ Couldn't find that user.")
                    return
                target = member
            player = await economy.get_player(str(target.id))
            rank = await economy.get_rank(str(target.id)) if player else 0
            champion_count = len(self.bot.content_provider.champion_keys)
            await channel.send(format_player_profile(player, target.display_name, rank, champion_count))

        elif command.name == "trade":
            trade_type, mention, mine, theirs = args
            target = await get_or_fetch_member(message.guild, parse_user_mention(mention))
            if not target:
                await channel.send("❌ Couldn't find that user.")
                return
            outcome, reply = await propose_trade(
                self.bot, author, target, int(mine), int(theirs), trade_type, str(message.guild.id)
            )
            sent = await channel.send(**reply)
            if outcome.result is TradeResult.CREATED:
                reply["view"].message = sent


async def setup(bot: "ChampguessrBot"):
    """Load the cog."""
    await bot.add_cog(MessageEvents(bot))
