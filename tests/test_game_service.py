"""Tests for GameService: round lifecycle, guesses and timers."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
import pytest_asyncio

from bot.services.game_service import GameService, GuessResult, StartResult, build_answers
from tests.conftest import FakeChampions


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class SlowChampions(FakeChampions):
    async def get_random_content(self, mode, difficulty, pixelate=False):
        await asyncio.sleep(0)
        return self.content


def make_channel(channel_id: int):
    channel = MagicMock(spec=discord.TextChannel)
    channel.id = channel_id
    channel.send = AsyncMock()
    return channel


@pytest.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
async def service(economy, ahri_content, clock):
    game = GameService(economy, FakeChampions(content=ahri_content), clock=clock)
    yield game
    game.cancel_all_rounds()
    await asyncio.sleep(0)


class TestBuildAnswers:
    def test_champion_only(self, ahri_content):
        answer, accepted = build_answers(ahri_content, "splash", "hard")
        assert answer == "Ahri"
        assert accepted == {"ahri"}

    def test_v2_needs_ability_key(self, ahri_content):
        answer, accepted = build_answers(ahri_content, "ability", "v2")
        assert answer == "Ahri Q"
        assert accepted == {"ahriq"}

    def test_v3_needs_ability_name(self, ahri_content):
        answer, accepted = build_answers(ahri_content, "ability", "v3")
        assert answer == "Ahri Orb of Deception"
        assert accepted == {"ahriorbofdeception"}


class TestStartRound:
    @pytest.mark.asyncio
    async def test_start_round(self, service, mock_channel):
        outcome = await service.start_round(mock_channel, "g1", "ability", "normal")

        assert outcome.result is StartResult.STARTED
        game_round = service.get_active_round("456")
        assert game_round is outcome.round
        assert game_round.answer == "Ahri"
        assert game_round.points == 5
        assert game_round.time_limit == 30.0
        assert game_round.hint_task is not None
        assert game_round.timeout_task is not None

    @pytest.mark.asyncio
    async def test_pixelated_points_and_no_hint_for_v3(self, service, mock_channel):
        outcome = await service.start_round(mock_channel, "g1", "ability", "v3", pixelate=True)

        assert outcome.round.points == 25
        assert outcome.round.hint_task is None

    @pytest.mark.asyncio
    async def test_round_already_active(self, service, mock_channel):
        await service.start_round(mock_channel, None, "splash")
        outcome = await service.start_round(mock_channel, None, "splash")
        assert outcome.result is StartResult.ROUND_ACTIVE

    @pytest.mark.asyncio
    async def test_invalid_combination(self, service, mock_channel):
        outcome = await service.start_round(mock_channel, "g1", "splash", "v2")
        assert outcome.result is StartResult.INVALID_OPTIONS
        assert service.get_active_round("456") is None

    @pytest.mark.asyncio
    async def test_guild_cooldown(self, service, clock):
        await service.start_round(make_channel(1), "g1", "splash")
        clock.now += 2

        outcome = await service.start_round(make_channel(2), "g1", "splash")

        assert outcome.result is StartResult.COOLDOWN
        assert outcome.retry_after == pytest.approx(3.0)

        clock.now += 3
        assert (await service.start_round(make_channel(2), "g1", "splash")).result is StartResult.STARTED

    @pytest.mark.asyncio
    async def test_concurrent_starts_in_one_guild(self, economy, ahri_content):
        game = GameService(economy, SlowChampions(content=ahri_content))

        results = await asyncio.gather(
            game.start_round(make_channel(1), "g1", "splash"),
            game.start_round(make_channel(2), "g1", "splash"),
        )

        assert sorted(r.result.value for r in results) == ["cooldown", "started"]
        game.cancel_all_rounds()
        await asyncio.sleep(0)

    @pytest.mark.asyncio
    async def test_content_unavailable_releases_channel(self, economy, mock_channel, ahri_content):
        champions = FakeChampions(content=None)
        game = GameService(economy, champions)

        outcome = await game.start_round(mock_channel, "g1", "skin")
        assert outcome.result is StartResult.CONTENT_UNAVAILABLE

        champions.content = ahri_content
        outcome = await game.start_round(mock_channel, "g1", "skin")
        assert outcome.result is StartResult.STARTED
        game.cancel_all_rounds()
        await asyncio.sleep(0)

    @pytest.mark.asyncio
    async def test_concurrent_starts_in_one_channel(self, economy, mock_channel, ahri_content):
        game = GameService(economy, SlowChampions(content=ahri_content))

        results = await asyncio.gather(
            game.start_round(mock_channel, None, "splash"),
            game.start_round(mock_channel, None, "splash"),
        )

        assert sorted(r.result.value for r in results) == ["round_active", "started"]
        game.cancel_all_rounds()
        await asyncio.sleep(0)


class TestSubmitGuess:
    @pytest.mark.asyncio
    async def test_no_round_is_ignored(self, service):
        outcome = await service.submit_guess("456", "u1", "Ahri")
        assert outcome.result is GuessResult.IGNORED

    @pytest.mark.asyncio
    async def test_correct_guess(self, service, mock_channel, clock, db):
        await service.start_round(mock_channel, "g1", "ability", "normal")
        clock.now += 4.3

        outcome = await service.submit_guess("456", "u1", "  AHRI ", username="tester")

        assert outcome.result is GuessResult.CORRECT
        assert outcome.time_taken == 4.3
        assert outcome.reward.points_earned == 5
        assert service.get_active_round("456") is None
        player = await db.load_player("u1")
        assert player.total_points == 5
        assert player.current_streak == 1

    @pytest.mark.asyncio
    async def test_streak_multiplier_on_third_win(self, service, mock_channel, db):
        for _ in range(3):
            await service.start_round(mock_channel, None, "splash", "normal")
            outcome = await service.submit_guess("456", "u1", "Ahri")

        assert outcome.reward.streak == 3
        assert outcome.reward.multiplier == 1.5
        assert outcome.reward.points_earned == 7
        assert (await db.load_player("u1")).total_points == 17

    @pytest.mark.asyncio
    async def test_pixelated_round_on_third_streak(self, service, mock_channel, clock, economy, db):
        await economy.increment_streak("u1")
        await economy.increment_streak("u1")
        outcome = await service.start_round(mock_channel, "g1", "splash", "normal", pixelate=True)
        assert outcome.round.points == 10
        clock.now += 4.2

        guess = await service.submit_guess("456", "u1", "Ahri")

        assert guess.reward.streak == 3
        assert guess.reward.points_earned == 15
        player = await db.load_player("u1")
        assert player.total_points == 15
        assert player.wins == 1
        assert player.games_played == 1
        assert player.total_time == pytest.approx(4.2)

    @pytest.mark.asyncio
    async def test_only_one_winner(self, service, mock_channel):
        await service.start_round(mock_channel, "g1", "splash")

        results = await asyncio.gather(
            service.submit_guess("456", "u1", "Ahri"),
            service.submit_guess("456", "u2", "ahri"),
        )

        assert [r.result for r in results].count(GuessResult.CORRECT) == 1

    @pytest.mark.asyncio
    async def test_wrong_champion_resets_streak(self, service, mock_channel, economy, db):
        await economy.increment_streak("u1")
        await service.start_round(mock_channel, "g1", "splash")

        outcome = await service.submit_guess("456", "u1", "Zed")

        assert outcome.result is GuessResult.INCORRECT
        assert (await db.load_player("u1")).current_streak == 0
        assert service.get_active_round("456") is not None

    @pytest.mark.asyncio
    async def test_chatter_is_ignored(self, service, mock_channel, economy, db):
        await economy.increment_streak("u1")
        await service.start_round(mock_channel, "g1", "splash")

        outcome = await service.submit_guess("456", "u1", "no clue what this one could be")

        assert outcome.result is GuessResult.IGNORED
        assert (await db.load_player("u1")).current_streak == 1

    @pytest.mark.asyncio
    async def test_punctuation_only_counts_as_wrong_guess(self, service, mock_channel, economy, db):
        await economy.increment_streak("u1")
        await service.start_round(mock_channel, "g1", "splash", "normal", elimination=True)

        outcome = await service.submit_guess("456", "u1", "...")

        assert outcome.result is GuessResult.INCORRECT
        assert outcome.eliminated
        assert (await db.load_player("u1")).current_streak == 0

    @pytest.mark.asyncio
    async def test_elimination_after_one_wrong_guess(self, service, mock_channel):
        await service.start_round(mock_channel, "g1", "splash", "normal", elimination=True)

        wrong = await service.submit_guess("456", "u1", "Zed")
        retry = await service.submit_guess("456", "u1", "Ahri")

        assert wrong.eliminated
        assert wrong.chances_left == 0
        assert retry.result is GuessResult.IGNORED
        assert service.get_active_round("456") is not None

    @pytest.mark.asyncio
    async def test_pixelated_elimination_allows_two_wrong_guesses(self, service, mock_channel):
        await service.start_round(mock_channel, "g1", "splash", "hard", pixelate=True, elimination=True)

        first = await service.submit_guess("456", "u1", "Zed")
        second = await service.submit_guess("456", "u1", "Kai'Sa")

        assert not first.eliminated
        assert first.chances_left == 1
        assert second.eliminated

    @pytest.mark.asyncio
    async def test_v2_requires_key(self, service, mock_channel):
        await service.start_round(mock_channel, "g1", "ability", "v2")

        partial = await service.submit_guess("456", "u1", "Ahri")
        full = await service.submit_guess("456", "u2", "ahri q")

        assert partial.result is GuessResult.INCORRECT
        assert full.result is GuessResult.CORRECT


class TestRoundEnd:
    @pytest.mark.asyncio
    async def test_skip_round(self, service, mock_channel):
        await service.start_round(mock_channel, "g1", "splash")

        skipped = await service.skip_round("456")

        assert skipped.answer == "Ahri"
        assert service.get_active_round("456") is None
        assert service.cooldown_remaining("g1") == 0
        assert await service.skip_round("456") is None

    @pytest.mark.asyncio
    async def test_timeout_reveals_answer(self, service, mock_channel):
        outcome = await service.start_round(mock_channel, "g1", "splash")

        await service._round_timeout_with_delay(outcome.round, 0)

        assert service.get_active_round("456") is None
        sent = mock_channel.send.call_args.args[0]
        assert "Ahri" in sent

    @pytest.mark.asyncio
    async def test_stale_timeout_does_nothing(self, service, mock_channel):
        first = await service.start_round(mock_channel, None, "splash")
        await service.skip_round("456")
        second = await service.start_round(mock_channel, None, "splash")

        await service._round_timeout_with_delay(first.round, 0)

        assert service.get_active_round("456") is second.round
        mock_channel.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_hint_sent_once(self, service, mock_channel):
        outcome = await service.start_round(mock_channel, "g1", "splash")

        await service._hint_after_delay(outcome.round, 0)
        await service._hint_after_delay(outcome.round, 0)

        assert outcome.round.hint_given
        mock_channel.send.assert_called_once()
        hint = mock_channel.send.call_args.args[0]
        assert "Mage" in hint
        assert "the Nine-Tailed Fox" in hint

    @pytest.mark.asyncio
    async def test_cancel_guild_rounds(self, service):
        await service.start_round(make_channel(1), "g1", "splash")
        await service.start_round(make_channel(2), "g2", "splash")

        assert service.cancel_guild_rounds("g1") == 1
        assert service.get_active_round("1") is None
        assert service.get_active_round("2") is not None

    @pytest.mark.asyncio
    async def test_cancel_all_rounds_stops_timers(self, service, mock_channel):
        outcome = await service.start_round(mock_channel, "g1", "splash")

        assert service.cancel_all_rounds() == 1
        await asyncio.sleep(0)

        assert outcome.round.timeout_task.cancelled()
        assert outcome.round.hint_task.cancelled()
