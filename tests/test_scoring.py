"""Tests for scoring service."""

from bot.services.scoring_service import (
    blue_essence_for,
    calculate_points_earned,
    calculate_round_points,
    chests_for,
    count_threshold_crossings,
    get_streak_multiplier,
    is_qualifying_wrong_guess,
    max_chances_for,
    normalize_answer,
)

CHAMPIONS = {"ahri", "kaisa", "zed", "nunuandwillump"}


class TestNormalizeAnswer:
    def test_apostrophes_and_case(self):
        assert normalize_answer("Kai'Sa") == "kaisa"
        assert normalize_answer("KAISA") == "kaisa"

    def test_spaces_periods_and_hyphens(self):
        assert normalize_answer("Dr. Mundo") == "drmundo"
        assert normalize_answer("Fox-Fire") == "foxfire"
        assert normalize_answer("  Lee  Sin ") == "leesin"

    def test_ampersand(self):
        assert normalize_answer("Nunu & Willump") == "nunuandwillump"

    def test_empty(self):
        assert normalize_answer("  ") == ""


class TestStreakMultiplier:
    def test_below_three(self):
        assert get_streak_multiplier(0) == 1.0
        assert get_streak_multiplier(2) == 1.0

    def test_tiers(self):
        assert get_streak_multiplier(3) == 1.5
        assert get_streak_multiplier(4) == 1.5
        assert get_streak_multiplier(5) == 2.0
        assert get_streak_multiplier(9) == 2.0
        assert get_streak_multiplier(10) == 2.5
        assert get_streak_multiplier(50) == 2.5


class TestRoundPoints:
    def test_base_points(self):
        assert calculate_round_points("easy", False) == 2
        assert calculate_round_points("normal", False) == 5
        assert calculate_round_points("hard", False) == 8
        assert calculate_round_points("v2", False) == 12
        assert calculate_round_points("v3", False) == 15

    def test_pixelate_bonus(self):
        assert calculate_round_points("easy", True) == 5
        assert calculate_round_points("normal", True) == 10
        assert calculate_round_points("hard", True) == 15
        assert calculate_round_points("v3", True) == 25

    def test_points_earned_rounds_down(self):
        assert calculate_points_earned(5, 1.5) == 7
        assert calculate_points_earned(8, 2.5) == 20
        assert calculate_points_earned(2, 1.0) == 2


class TestThresholdCrossings:
    def test_no_crossing(self):
        assert count_threshold_crossings(0, 19, 20) == 0

    def test_exact_crossing(self):
        assert count_threshold_crossings(15, 20, 20) == 1

    def test_multiple_crossings(self):
        assert count_threshold_crossings(18, 61, 20) == 3

    def test_blue_essence_and_chests(self):
        # 48 -> 60 crosses 50 once and 60 once
        assert blue_essence_for(48, 60) == 2500
        assert chests_for(48, 60) == 1
        assert blue_essence_for(0, 49) == 0
        assert chests_for(39, 40) == 1


class TestQualifyingWrongGuess:
    def test_champion_name_always_qualifies(self):
        assert is_qualifying_wrong_guess("Kai'Sa", "kaisa", CHAMPIONS)

    def test_short_message_qualifies(self):
        assert is_qualifying_wrong_guess("is it lux", "isitlux", CHAMPIONS)

    def test_long_chat_does_not_qualify(self):
        text = "I have no idea what this one is"
        assert not is_qualifying_wrong_guess(text, normalize_answer(text), CHAMPIONS)


class TestMaxChances:
    def test_v3_gets_three(self):
        assert max_chances_for("v3", False) == 3
        assert max_chances_for("v3", True) == 3

    def test_pixelated_gets_two(self):
        assert max_chances_for("hard", True) == 2

    def test_default_one(self):
        assert max_chances_for("normal", False) == 1
        assert max_chances_for("v2", False) == 1
