"""Game service for managing champion guessing rounds."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from bot.services.catalog import DIFFICULTIES, is_valid_combination
from bot.services.content_provider import DataDragonClient
from bot.services.economy_service import EconomyService, RewardSummary
from bot.services.scoring_service import (
    calculate_round_points,
    get_streak_multiplier,
    is_qualifying_wrong_guess,
    max_chances_for,
    normalize_answer,
)
from config import Config
from models import ChampionContent
from utils.formatting import format_hint, format_round_timeout

logger = logging.getLogger(__name__)


@dataclass
class GameRound:
    """A single timed round, alive from start until it is answered, expires or is skipped."""

    channel_id: str
    guild_id: Optional[str]
    channel: Any
    champion: str
    answer: str
    normalized_answers: set[str]
    mode: str
    difficulty: str
    pixelate: bool
    points: int
    start_time: float
    time_limit: float
    tags: list[str] = field(default_factory=list)
    title: str = ""
    elimination: bool = False
    max_chances: int = 0
    participants: set[str] = field(default_factory=set)
    eliminated_users: set[str] = field(default_factory=set)
    wrong_guesses: dict[str, int] = field(default_factory=dict)
    hint_given: bool = False
    hint_task: Optional[asyncio.Task] = None
    timeout_task: Optional[asyncio.Task] = None


class StartResult(Enum):
    STARTED = "started"
    ROUND_ACTIVE = "round_active"
    COOLDOWN = "cooldown"
    INVALID_OPTIONS = "invalid_options"
    CONTENT_UNAVAILABLE = "content_unavailable"


@dataclass(frozen=True)
class StartOutcome:
    result: StartResult
    round: Optional[GameRound] = None
    content: Optional[ChampionContent] = None
    retry_after: float = 0.0


class GuessResult(Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    IGNORED = "ignored"


@dataclass(frozen=True)
class GuessOutcome:
    result: GuessResult
    round: Optional[GameRound] = None
    reward: Optional[RewardSummary] = None
    time_taken: float = 0.0
    eliminated: bool = False
    chances_left: Optional[int] = None


def build_answers(content: ChampionContent, mode: str, difficulty: str) -> tuple[str, set[str]]:
    """Build the displayed answer and the set of accepted normalized guesses."""
    answer = content.champion
    answer_type = DIFFICULTIES[difficulty].answer_type

    if mode == "ability" and answer_type == "key":
        answer = f"{content.champion} {content.ability_key}"
    elif mode == "ability" and answer_type == "name":
        answer = f"{content.champion} {content.ability_name}"

    return answer, {normalize_answer(answer)}


class GameService:
    """Service for managing game rounds, one per channel."""

    def __init__(
        self,
        economy: EconomyService,
        content: DataDragonClient,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.economy = economy
        self.content = content
        self._clock = clock
        self._active_rounds: dict[str, GameRound] = {}
        self._starting: set[str] = set()
        self._cooldowns: dict[str, float] = {}

    def get_active_round(self, channel_id: str) -> Optional[GameRound]:
        return self._active_rounds.get(channel_id)

    def cooldown_remaining(self, guild_id: Optional[str]) -> float:
        """Seconds until a new round may start in this guild (0 if none)."""
        if not guild_id or guild_id not in self._cooldowns:
            return 0.0
        remaining = self._cooldowns[guild_id] - self._clock()
        if remaining <= 0:
            del self._cooldowns[guild_id]
            return 0.0
        return remaining

    async def start_round(
        self,
        channel: Any,
        guild_id: Optional[str],
        mode: str,
        difficulty: str = "normal",
        pixelate: bool = False,
        elimination: bool = False,
    ) -> StartOutcome:
        """Start a new round in a channel.

        The channel is reserved before the content fetch so a concurrent
        start for the same channel is rejected rather than queued.
        """
        channel_id = str(channel.id)
        logger.info(f"Starting {mode}/{difficulty} round in channel {channel_id} (pixelate={pixelate})")

        if not is_valid_combination(mode, difficulty):
            return StartOutcome(StartResult.INVALID_OPTIONS)

        # Check for active round
        if channel_id in self._active_rounds or channel_id in self._starting:
            logger.info(f"Round already active in channel {channel_id}")
            return StartOutcome(StartResult.ROUND_ACTIVE)

        remaining = self.cooldown_remaining(guild_id)
        if remaining > 0:
            return StartOutcome(StartResult.COOLDOWN, retry_after=remaining)

        self._starting.add(channel_id)
        try:
            content = await self.content.get_random_content(mode, difficulty, pixelate)
        finally:
            self._starting.discard(channel_id)

        if not content:
            logger.warning(f"Content provider returned nothing for {mode}/{difficulty}")
            return StartOutcome(StartResult.CONTENT_UNAVAILABLE)

        # Another channel in the guild may have started while we fetched
        remaining = self.cooldown_remaining(guild_id)
        if remaining > 0:
            return StartOutcome(StartResult.COOLDOWN, retry_after=remaining)

        answer, normalized_answers = build_answers(content, mode, difficulty)
        tier = DIFFICULTIES[difficulty]

        game_round = GameRound(
            channel_id=channel_id,
            guild_id=guild_id,
            channel=channel,
            champion=content.champion,
            answer=answer,
            normalized_answers=normalized_answers,
            mode=mode,
            difficulty=difficulty,
            pixelate=pixelate,
            points=calculate_round_points(difficulty, pixelate),
            start_time=self._clock(),
            time_limit=tier.time_limit,
            tags=content.tags,
            title=content.title,
            elimination=elimination,
            max_chances=max_chances_for(difficulty, pixelate) if elimination else 0,
        )

        self._active_rounds[channel_id] = game_round
        if guild_id:
            self._cooldowns[guild_id] = self._clock() + Config.GUILD_COOLDOWN_SECONDS

        # Start timers
        if tier.gives_hint:
            game_round.hint_task = asyncio.create_task(self._hint_after_delay(game_round, Config.HINT_DELAY_SECONDS))
        game_round.timeout_task = asyncio.create_task(self._round_timeout_with_delay(game_round, tier.time_limit))

        logger.info(f"Round started in channel {channel_id}: answer '{answer}' worth {game_round.points} pts")
        return StartOutcome(StartResult.STARTED, round=game_round, content=content)

    async def _hint_after_delay(self, game_round: GameRound, delay: float):
        """Wait for delay, then reveal the champion's tags and title if the round is still running."""
        await asyncio.sleep(delay)

        if self._active_rounds.get(game_round.channel_id) is not game_round or game_round.hint_given:
            return
        game_round.hint_given = True

        try:
            await game_round.channel.send(format_hint(game_round.tags, game_round.title))
        except Exception:
            logger.exception(f"Error sending hint in channel {game_round.channel_id}")

    async def _round_timeout_with_delay(self, game_round: GameRound, delay: float):
        """Handle round timeout: end the round and reveal the answer."""
        await asyncio.sleep(delay)

        if self._active_rounds.get(game_round.channel_id) is not game_round:
            return

        self.cleanup(game_round.channel_id, game_round.guild_id)
        logger.info(f"Round in channel {game_round.channel_id} timed out (answer: {game_round.answer})")

        try:
            await game_round.channel.send(format_round_timeout(game_round.answer))
        except Exception:
            logger.exception(f"Error announcing timeout in channel {game_round.channel_id}")

    def cleanup(self, channel_id: str, guild_id: Optional[str] = None) -> Optional[GameRound]:
        """Destroy a channel's round, cancel its timers and clear the guild cooldown."""
        game_round = self._active_rounds.pop(channel_id, None)
        if game_round:
            # Cancel timers (but not if we ARE the timer task)
            for task in (game_round.hint_task, game_round.timeout_task):
                if task and task is not asyncio.current_task():
                    task.cancel()
        if guild_id:
            self._cooldowns.pop(guild_id, None)
        return game_round

    async def submit_guess(
        self,
        channel_id: str,
        user_id: str,
        raw_text: str,
        username: str | None = None,
    ) -> GuessOutcome:
        """Check a chat message against the channel's active round."""
        game_round = self._active_rounds.get(channel_id)
        if not game_round:
            return GuessOutcome(GuessResult.IGNORED)
        if user_id in game_round.participants or user_id in game_round.eliminated_users:
            return GuessOutcome(GuessResult.IGNORED, round=game_round)

        guess = normalize_answer(raw_text)
        if guess in game_round.normalized_answers:
            # Claim the win before any await so a simultaneous guess can't also score
            game_round.participants.add(user_id)
            time_taken = round(self._clock() - game_round.start_time, 1)
            self.cleanup(channel_id, game_round.guild_id)

            streak = await self.economy.increment_streak(user_id, username)
            multiplier = get_streak_multiplier(streak)
            reward = await self.economy.apply_reward(user_id, time_taken, game_round.points, multiplier, username)

            logger.info(f"{username or user_id} guessed '{game_round.answer}' in {time_taken}s (streak {streak})")
            return GuessOutcome(GuessResult.CORRECT, round=game_round, reward=reward, time_taken=time_taken)

        if not is_qualifying_wrong_guess(raw_text, guess, self.content.normalized_champion_names):
            return GuessOutcome(GuessResult.IGNORED, round=game_round)

        eliminated = False
        chances_left = None
        if game_round.elimination:
            wrong = game_round.wrong_guesses.get(user_id, 0) + 1
            game_round.wrong_guesses[user_id] = wrong
            chances_left = max(0, game_round.max_chances - wrong)
            if wrong >= game_round.max_chances:
                game_round.eliminated_users.add(user_id)
                eliminated = True
                logger.info(f"{username or user_id} eliminated from round in channel {channel_id}")

        await self.economy.reset_streak(user_id, username)
        return GuessOutcome(
            GuessResult.INCORRECT,
            round=game_round,
            eliminated=eliminated,
            chances_left=chances_left,
        )

    async def skip_round(self, channel_id: str) -> Optional[GameRound]:
        """Cancel the active round in a channel. Returns the cancelled round, if any."""
        game_round = self._active_rounds.get(channel_id)
        if not game_round:
            return None

        self.cleanup(channel_id, game_round.guild_id)
        logger.info(f"Round in channel {channel_id} skipped (answer: {game_round.answer})")
        return game_round

    def cancel_guild_rounds(self, guild_id: str) -> int:
        """Cancel all active rounds for a guild.

        Returns the number of rounds cancelled.
        """
        channel_ids = [cid for cid, r in self._active_rounds.items() if r.guild_id == guild_id]
        for channel_id in channel_ids:
            self.cleanup(channel_id, guild_id)
            logger.info(f"Cancelled round in channel {channel_id}")
        return len(channel_ids)

    def cancel_all_rounds(self) -> int:
        """Cancel every active round, used on shutdown."""
        channel_ids = list(self._active_rounds)
        for channel_id in channel_ids:
            self.cleanup(channel_id, self._active_rounds[channel_id].guild_id)
        return len(channel_ids)
