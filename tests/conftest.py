"""Pytest configuration and shared fixtures."""

import random
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
import pytest_asyncio

from bot.services.economy_service import EconomyService
from bot.services.scoring_service import normalize_answer
from db.database import Database
from models import ChampionContent

CHAMPION_DETAILS = {
    "Ahri": {
        "name": "Ahri",
        "title": "the Nine-Tailed Fox",
        "tags": ["Mage", "Assassin"],
        "skins": [
            {"num": 0, "name": "default"},
            {"num": 1, "name": "Dynasty Ahri"},
            {"num": 2, "name": "Midnight Ahri"},
        ],
        "passive": {"name": "Essence Theft", "image": {"full": "Ahri_SoulEater2.png"}},
        "spells": [
            {"name": "Orb of Deception", "image": {"full": "AhriQ.png"}},
            {"name": "Fox-Fire", "image": {"full": "AhriW.png"}},
            {"name": "Charm", "image": {"full": "AhriE.png"}},
            {"name": "Spirit Rush", "image": {"full": "AhriR.png"}},
        ],
    },
    "KaiSa": {
        "name": "Kai'Sa",
        "title": "Daughter of the Void",
        "tags": ["Marksman"],
        "skins": [
            {"num": 0, "name": "default"},
            {"num": 1, "name": "Bullet Angel Kai'Sa"},
        ],
    },
    "Zed": {
        "name": "Zed",
        "title": "the Master of Shadows",
        "tags": ["Assassin"],
        "skins": [{"num": 0, "name": "default"}],
    },
}


class ScriptedRandom(random.Random):
    """Random source that replays queued values for random() and choice().

    Anything not scripted falls through to a seeded generator.
    """

    def __init__(self, rolls=None, choices=None, ints=None):
        super().__init__(1234)
        self.rolls = list(rolls or [])
        self.choices = list(choices or [])
        self.ints = list(ints or [])

    # Defined so choice()/randint() keep using bits instead of random()
    def getrandbits(self, k):
        return super().getrandbits(k)

    def random(self):
        if self.rolls:
            return self.rolls.pop(0)
        return super().random()

    def choice(self, seq):
        if self.choices:
            wanted = self.choices.pop(0)
            for item in seq:
                if item == wanted or (isinstance(item, dict) and item.get("num") == wanted):
                    return item
        return super().choice(seq)

    def randint(self, a, b):
        if self.ints:
            return self.ints.pop(0)
        return super().randint(a, b)


class FakeChampions:
    """In-memory stand-in for the Data Dragon client."""

    def __init__(self, details=None, rng=None, content=None):
        self.details = details if details is not None else CHAMPION_DETAILS
        self.rng = rng or random.Random(42)
        self.content = content
        self.detail_requests = []

    @property
    def champion_keys(self):
        return list(self.details)

    @property
    def normalized_champion_names(self):
        return {normalize_answer(d["name"]) for d in self.details.values()}

    def random_champion_key(self):
        if not self.details:
            return None
        return self.rng.choice(self.champion_keys)

    def champion_name(self, champion_key):
        return self.details.get(champion_key, {}).get("name", champion_key)

    def find_champion(self, name):
        normalized = normalize_answer(name)
        for key, details in self.details.items():
            if normalize_answer(details["name"]) == normalized or normalize_answer(key) == normalized:
                return key
        return None

    async def get_champion_details(self, champion_key):
        self.detail_requests.append(champion_key)
        return self.details.get(champion_key)

    async def get_random_content(self, mode, difficulty, pixelate=False):
        return self.content

    def champion_icon_url(self, champion_key):
        return f"https://cdn.test/img/champion/{champion_key}.png"

    def skin_loading_url(self, champion_key, skin_num):
        return f"https://cdn.test/img/champion/loading/{champion_key}_{skin_num}.jpg"


@pytest_asyncio.fixture
async def db():
    """Create an in-memory database for testing."""
    database = Database(":memory:")
    await database.connect()
    yield database
    await database.close()


@pytest.fixture
def champions():
    return FakeChampions()


@pytest.fixture
def economy(db, champions):
    return EconomyService(db, champions, rng=ScriptedRandom())


@pytest.fixture
def ahri_content():
    return ChampionContent(
        champion="Ahri",
        champion_key="Ahri",
        image_url="https://cdn.test/img/spell/AhriQ.png",
        ability_key="Q",
        ability_name="Orb of Deception",
        tags=["Mage", "Assassin"],
        title="the Nine-Tailed Fox",
    )


@pytest.fixture
def mock_channel():
    """Create a mock Discord text channel."""
    channel = MagicMock(spec=discord.TextChannel)
    channel.id = 456
    channel.name = "test-channel"
    channel.send = AsyncMock()
    return channel
