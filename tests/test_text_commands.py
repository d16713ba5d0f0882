"""Tests for the `lol ...` text command parser and guess routing."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from bot.events.message import MessageEvents, TextCommand, parse_text_command
from bot.services.game_service import GuessOutcome, GuessResult


def parse(content: str):
    return parse_text_command(content, "lol")


class TestParseTextCommand:
    def test_not_a_command(self):
        assert parse("ahri") is None
        assert parse("lollipop") is None
        assert parse("") is None

    def test_bare_prefix_shows_help(self):
        assert parse("lol") == TextCommand("help")

    def test_simple_aliases(self):
        assert parse("lol inv") == TextCommand("inventory")
        assert parse("LOL Inventory") == TextCommand("inventory")
        assert parse("lol oc") == TextCommand("open_chest")
        assert parse("lol open chest") == TextCommand("open_chest")
        assert parse("lol prof") == TextCommand("profile")
        assert parse("lol lb") == TextCommand("leaderboard")
        assert parse("lol h") == TextCommand("help")
        assert parse("lol daily") == TextCommand("daily")
        assert parse("lol skip") == TextCommand("skip")

    def test_profile_of_another_user(self):
        assert parse("lol profile <@123>") == TextCommand("profile", ("<@123>",))

    def test_game_defaults(self):
        assert parse("lol ga") == TextCommand("guess", ("ability", "normal"))

    def test_game_options(self):
        assert parse("lol gsp hard px") == TextCommand("guess", ("splash", "hard", "px"))
        assert parse("lol gsk ez elim px") == TextCommand("guess", ("skin", "easy", "px", "elim"))
        assert parse("lol ga v3") == TextCommand("guess", ("ability", "v3"))

    def test_game_unknown_option(self):
        assert parse("lol ga nightmare") is None

    def test_crafting(self):
        assert parse("lol craft skin 2") == TextCommand("craft_skin", ("2",))
        assert parse("lol craft champ 1") == TextCommand("craft_champion", ("1",))
        assert parse("lol craft skin two") is None

    def test_disenchant(self):
        assert parse("lol de 3") == TextCommand("disenchant", ("3",))
        assert parse("lol de champ 4") == TextCommand("disenchant_champion", ("4",))
        assert parse("lol de") is None

    def test_reroll_needs_three_numbers(self):
        assert parse("lol reroll 1 2 3") == TextCommand("reroll", ("1", "2", "3"))
        assert parse("lol reroll 1 2") is None

    def test_buy_keeps_full_name(self):
        assert parse("lol buy Dr. Mundo") == TextCommand("buy", ("Dr. Mundo",))
        assert parse("lol buy") is None

    def test_trade(self):
        assert parse("lol trade <@!55> 1 2") == TextCommand("trade", ("skin", "<@!55>", "1", "2"))
        assert parse("lol trade champ <@55> 3 1") == TextCommand("trade", ("champion", "<@55>", "3", "1"))
        assert parse("lol trade bob 1 2") is None


def make_message(content: str, bot: bool = False, guild: bool = True):
    message = MagicMock()
    message.content = content
    message.author.bot = bot
    message.author.id = 77
    message.author.name = "tester"
    message.guild = MagicMock() if guild else None
    message.channel.id = 456
    message.channel.send = AsyncMock()
    message.add_reaction = AsyncMock()
    return message


@pytest.fixture
def bot():
    bot = MagicMock()
    bot.game_service.submit_guess = AsyncMock(return_value=GuessOutcome(GuessResult.IGNORED))
    return bot


class TestOnMessage:
    @pytest.mark.asyncio
    async def test_skips_bots_and_dms(self, bot):
        cog = MessageEvents(bot)

        await cog.on_message(make_message("ahri", bot=True))
        await cog.on_message(make_message("ahri", guild=False))

        bot.game_service.submit_guess.assert_not_called()

    @pytest.mark.asyncio
    async def test_plain_message_is_a_guess(self, bot):
        cog = MessageEvents(bot)
        bot.game_service.submit_guess.return_value = GuessOutcome(GuessResult.INCORRECT)
        message = make_message("zed")

        await cog.on_message(message)

        bot.game_service.submit_guess.assert_awaited_once_with(
            channel_id="456", user_id="77", raw_text="zed", username="tester"
        )
        message.add_reaction.assert_awaited_once_with("❌")

    @pytest.mark.asyncio
    async def test_text_command_is_not_a_guess(self, bot):
        cog = MessageEvents(bot)
        message = make_message("lol help")

        await cog.on_message(message)

        bot.game_service.submit_guess.assert_not_called()
        message.channel.send.assert_awaited_once()
