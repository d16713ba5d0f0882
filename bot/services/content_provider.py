"""Riot Data Dragon client that supplies champions, skins and abilities."""

import asyncio
import logging
import random
from typing import Any, Optional

import aiohttp

from bot.services.catalog import ABILITY_KEYS
from bot.services.scoring_service import normalize_answer
from config import Config
from models import ChampionContent
from utils.image_processing import transform_image

logger = logging.getLogger(__name__)


class DataDragonClient:
    """Async client for the Data Dragon static data CDN.

    Champion summaries are loaded once at startup; per-champion detail
    documents (skins, spells) are fetched lazily and cached.
    """

    def __init__(
        self,
        base_url: str | None = None,
        locale: str | None = None,
        rng: random.Random | None = None,
    ):
        self.base_url = (base_url or Config.DDRAGON_BASE_URL).rstrip("/")
        self.locale = locale or Config.DDRAGON_LOCALE
        self.version = Config.DDRAGON_FALLBACK_VERSION
        self._rng = rng or random.Random()
        self._session: Optional[aiohttp.ClientSession] = None
        self._champions: dict[str, dict[str, Any]] = {}
        self._details: dict[str, dict[str, Any]] = {}
        self._normalized_names: dict[str, str] = {}

    async def start(self) -> None:
        """Create the HTTP session and load the champion list."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=Config.HTTP_TIMEOUT_SECONDS),
            )
        self.version = await self._fetch_latest_version()
        logger.info(f"Using Data Dragon version {self.version}")
        await self.load_champion_data()

    async def stop(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    # HTTP helpers

    async def _get_json(self, url: str) -> Optional[Any]:
        if not self._session:
            return None
        try:
            async with self._session.get(url) as resp:
                resp.raise_for_status()
                return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Data Dragon request failed for {url}: {e}")
            return None

    async def _get_bytes(self, url: str) -> Optional[bytes]:
        if not self._session:
            return None
        try:
            async with self._session.get(url) as resp:
                resp.raise_for_status()
                return await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Image download failed for {url}: {e}")
            return None

    async def _fetch_latest_version(self) -> str:
        versions = await self._get_json(f"{self.base_url}/api/versions.json")
        if versions and isinstance(versions, list):
            return str(versions[0])
        logger.warning(f"Could not resolve latest version, falling back to {Config.DDRAGON_FALLBACK_VERSION}")
        return Config.DDRAGON_FALLBACK_VERSION

    # Champion data

    async def load_champion_data(self) -> int:
        """Load the champion summary list. Returns the number of champions loaded."""
        data = await self._get_json(f"{self.cdn_url}/data/{self.locale}/champion.json")
        if not data or "data" not in data:
            logger.error("Failed to load champion data")
            return 0

        self.set_champions(data["data"])
        logger.info(f"Loaded {len(self._champions)} champions")
        return len(self._champions)

    def set_champions(self, champions: dict[str, dict[str, Any]]) -> None:
        """Replace the champion summary table, keyed by champion key (e.g. "MonkeyKing")."""
        self._champions = dict(champions)
        self._normalized_names = {
            normalize_answer(info.get("name", key)): key for key, info in self._champions.items()
        }

    @property
    def cdn_url(self) -> str:
        return f"{self.base_url}/cdn/{self.version}"

    @property
    def champion_keys(self) -> list[str]:
        return list(self._champions)

    @property
    def normalized_champion_names(self) -> set[str]:
        return set(self._normalized_names)

    def champion_name(self, champion_key: str) -> str:
        return self._champions.get(champion_key, {}).get("name", champion_key)

    def find_champion(self, name: str) -> Optional[str]:
        """Resolve a user-typed champion name (or key) to its champion key."""
        normalized = normalize_answer(name)
        if normalized in self._normalized_names:
            return self._normalized_names[normalized]
        for key in self._champions:
            if normalize_answer(key) == normalized:
                return key
        return None

    def random_champion_key(self) -> Optional[str]:
        if not self._champions:
            return None
        return self._rng.choice(self.champion_keys)

    async def get_champion_details(self, champion_key: str) -> Optional[dict[str, Any]]:
        """Get the full detail document for a champion (skins, passive, spells)."""
        if champion_key in self._details:
            return self._details[champion_key]

        data = await self._get_json(f"{self.cdn_url}/data/{self.locale}/champion/{champion_key}.json")
        if not data or champion_key not in data.get("data", {}):
            return None

        details = data["data"][champion_key]
        self._details[champion_key] = details
        return details

    # URL helpers

    def champion_icon_url(self, champion_key: str) -> str:
        return f"{self.cdn_url}/img/champion/{champion_key}.png"

    def skin_splash_url(self, champion_key: str, skin_num: int) -> str:
        return f"{self.base_url}/cdn/img/champion/splash/{champion_key}_{skin_num}.jpg"

    def skin_loading_url(self, champion_key: str, skin_num: int) -> str:
        return f"{self.base_url}/cdn/img/champion/loading/{champion_key}_{skin_num}.jpg"

    def passive_icon_url(self, image_file: str) -> str:
        return f"{self.cdn_url}/img/passive/{image_file}"

    def spell_icon_url(self, image_file: str) -> str:
        return f"{self.cdn_url}/img/spell/{image_file}"

    # Round content

    async def get_random_content(self, mode: str, difficulty: str, pixelate: bool = False) -> Optional[ChampionContent]:
        """Pick a random champion and build the content for one round.

        Returns None if the champion list is empty or the detail fetch fails.
        """
        champion_key = self.random_champion_key()
        if not champion_key:
            logger.warning("No champions loaded, cannot pick round content")
            return None

        details = await self.get_champion_details(champion_key)
        if not details:
            return None

        ability_key = None
        ability_name = None

        if mode == "ability":
            ability_index = self._rng.randrange(len(ABILITY_KEYS))
            ability_key = ABILITY_KEYS[ability_index]
            if ability_index == 0:
                ability = details["passive"]
                image_url = self.passive_icon_url(ability["image"]["full"])
            else:
                ability = details["spells"][ability_index - 1]
                image_url = self.spell_icon_url(ability["image"]["full"])
            ability_name = ability["name"]
        elif mode == "splash":
            image_url = self.skin_splash_url(champion_key, 0)
        else:
            skins = [s for s in details.get("skins", []) if s.get("num", 0) != 0]
            skin_num = self._rng.choice(skins)["num"] if skins else 0
            image_url = self.skin_splash_url(champion_key, skin_num)

        image_bytes = None
        if mode != "ability" or pixelate:
            raw = await self._get_bytes(image_url)
            if raw:
                image_bytes = await asyncio.to_thread(transform_image, raw, mode, difficulty, pixelate)

        return ChampionContent(
            champion=details.get("name", champion_key),
            champion_key=champion_key,
            image_url=image_url,
            image_bytes=image_bytes,
            ability_key=ability_key,
            ability_name=ability_name,
            tags=list(details.get("tags", [])),
            title=details.get("title", ""),
        )
