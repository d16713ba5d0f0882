"""Message formatting utilities for rounds, inventories, loot and trades."""

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Optional

from bot.services.catalog import CHAMPION_TIERS, DIFFICULTIES, GAME_MODES, RARITIES, STORE_PRICES
from bot.services.economy_service import (
    DailyRewardKind,
    InventoryCategory,
    InventoryPage,
    LedgerOutcome,
    LedgerResult,
)
from bot.services.trade_service import PendingTrade, TradeOutcome, TradeResult
from config import Config
from models import ChampionShard, OwnedChampion, Player, SkinItem
from utils.timestamps import format_duration, format_relative_time, format_seconds, format_timestamp

if TYPE_CHECKING:
    from bot.services.game_service import GameRound, GuessOutcome, StartOutcome

# Discord message limit
DISCORD_MAX_LENGTH = 2000

CATEGORY_TITLES = {
    InventoryCategory.CHAMPION_SHARDS: "🔹 Champion Shards",
    InventoryCategory.SKIN_SHARDS: "✨ Skin Shards",
    InventoryCategory.OWNED_CHAMPIONS: "🔹 Owned Champions",
    InventoryCategory.OWNED_SKINS: "✨ Owned Skins",
}


def item_display_name(item: ChampionShard | OwnedChampion | SkinItem) -> str:
    """Human-readable name for any inventory item."""
    if isinstance(item, SkinItem):
        return f"{item.champion_name} - {item.skin_name}"
    return item.name


def format_wallet(player: Player) -> str:
    return f"💎 {player.blue_essence:,} BE | 🔶 {player.orange_essence:,} OE | 🎁 {player.chests} Chests"


# Rounds


def format_round_start(game_round: "GameRound") -> str:
    """Format the announcement posted with a round's image."""
    mode = GAME_MODES[game_round.mode]
    difficulty = DIFFICULTIES[game_round.difficulty]

    lines = [
        f"## {mode.emoji} {mode.name} Guessing Game",
        "Guess the champion!",
        f"**Difficulty:** {difficulty.emoji} {difficulty.name}",
        f"**Time:** {int(game_round.time_limit)}s",
        f"**Points:** {game_round.points} 🏆",
    ]
    if game_round.pixelate:
        lines.append("**Mode:** 🔲 Pixelated")
    if game_round.elimination:
        chances = "chance" if game_round.max_chances == 1 else "chances"
        lines.append(f"**Elimination:** {game_round.max_chances} {chances} per player")
    if difficulty.answer_type == "key":
        lines.append("*Answer with the champion and ability key, e.g. `Ahri Q`*")
    elif difficulty.answer_type == "name":
        lines.append("*Answer with the champion and ability name, e.g. `Ahri Orb of Deception`*")

    return "\n".join(lines)


def format_ability_footer(ability_key: Optional[str]) -> str:
    return f"Ability: {ability_key}" if ability_key else ""


def format_hint(tags: list[str], title: str) -> str:
    """Format the mid-round hint."""
    return f'💡 **Hint:** {", ".join(tags)} - "{title}"'


def format_round_timeout(answer: str) -> str:
    return f"⏱️ **Time's up!** The answer was **{answer}**"


def format_round_skipped(answer: str) -> str:
    return f"⏭️ Round skipped! The answer was **{answer}**"


def format_start_failure(outcome: "StartOutcome") -> str:
    """Explain why a round could not be started."""
    from bot.services.game_service import StartResult

    if outcome.result is StartResult.ROUND_ACTIVE:
        return "❌ A round is already active in this channel!"
    if outcome.result is StartResult.COOLDOWN:
        return f"⏱️ Wait {format_seconds(outcome.retry_after)} before starting another round!"
    if outcome.result is StartResult.INVALID_OPTIONS:
        return "❌ V2 and V3 difficulties are only available for ability rounds."
    return "❌ Failed to load champion data. Try again in a moment!"


def format_correct_guess(user_id: str, outcome: "GuessOutcome") -> str:
    """Format the announcement for a correct guess."""
    game_round = outcome.round
    reward = outcome.reward

    lines = [
        "## 🎉 Correct!",
        f"<@{user_id}> guessed **{game_round.answer}** in {outcome.time_taken}s!",
        f"**Points:** +{reward.points_earned} 🏆",
    ]
    if reward.be_earned > 0:
        lines.append(f"**💎 Blue Essence:** +{reward.be_earned:,}")
    if reward.chests_earned > 0:
        lines.append(f"**🎁 Hextech Chest:** +{reward.chests_earned} (Total: {reward.total_chests})")
    if game_round.pixelate:
        lines.append("🔲 **Pixelated Bonus!**")
    if reward.streak >= 3:
        lines.append(f"🔥 **{reward.streak} win streak!** ({reward.multiplier:g}x)")
    lines.append(f"**Total Points:** {reward.total_points:,} pts")

    return "\n".join(lines)


def format_elimination(user_id: str) -> str:
    return f"💀 <@{user_id}> is out of chances for this round!"


# Leaderboard and profile


def format_leaderboard(players: list[Player], title: str = "Leaderboard") -> str:
    """Format the leaderboard display."""
    lines = [
        f"# 🏆 {title}",
        "",
    ]

    if not players:
        lines.append("*No players yet! Start a game with `/guess-splash`*")
        return "\n".join(lines)

    medals = ["🥇", "🥈", "🥉"]

    for i, player in enumerate(players):
        medal = medals[i] if i < 3 else f"{i + 1}."
        name = player.username or "unknown"
        lines.append(f"{medal} **{name}** - {player.total_points:,} pts | {player.wins}W")

    return "\n".join(lines)


def format_player_profile(player: Optional[Player], display_name: str, rank: int, champion_count: int) -> str:
    """Format a player's profile."""
    if not player:
        return f"**{display_name}** hasn't played any games yet!"

    average = player.total_time / player.wins if player.wins else 0
    shards = len(player.champion_shards) + len(player.skin_shards)
    last_daily = format_timestamp(player.last_daily, "D") if player.last_daily else "Never"

    lines = [
        f"## 📊 {display_name}'s Profile",
        "",
        "**🏆 Stats**",
        f"**Rank:** #{rank}",
        f"**Points:** {player.total_points:,}",
        f"**Wins:** {player.wins}",
        f"**Average Time:** {average:.1f}s",
        f"**Best Streak:** 🔥{player.max_streak}",
        f"**Current Streak:** 🔥{player.current_streak}",
        f"**Last Daily:** {last_daily}",
        "",
        "**💰 Currency**",
        format_wallet(player),
        "",
        "**📦 Collection**",
        f"**Champions:** {len(player.owned_champions)}/{champion_count}",
        f"**Skins:** {len(player.owned_skins)}",
        f"**Shards:** {shards}",
    ]

    return "\n".join(lines)


# Inventory


def format_inventory_card(page: InventoryPage) -> str:
    """Format one inventory card (one item per page)."""
    item = page.item
    footer = f"-# {format_wallet(page.player)} | Card {page.page}/{page.total_pages}"

    if item is None:
        return "\n".join([f"## {CATEGORY_TITLES[page.category]}", "*Inventory is empty*", footer])

    if isinstance(item, ChampionShard):
        tier = CHAMPION_TIERS.get(item.store_price, CHAMPION_TIERS[STORE_PRICES[0]])
        lines = [
            f"## 🔹 Champion Shard #{page.page}",
            f"### {item.name}",
            f"**Unlock Cost:** 💎 {item.be_cost:,} BE",
            f"**Disenchant:** 💎 {tier.disenchant:,} BE",
        ]
    elif isinstance(item, SkinItem) and page.category is InventoryCategory.SKIN_SHARDS:
        rarity = RARITIES[item.rarity]
        lines = [
            f"## ✨ Skin Shard #{page.page}",
            f"### {item_display_name(item)}",
            f"**Rarity:** {item.rarity.value}",
            f"**Unlock Cost:** 🔶 {rarity.craft_cost:,} OE",
            f"**Disenchant:** 🔶 {rarity.disenchant:,} OE",
        ]
    elif isinstance(item, SkinItem):
        lines = [f"## ✨ Owned Skin #{page.page}", f"### {item_display_name(item)}", "✅ Unlocked"]
    else:
        lines = [f"## 🔹 Owned Champion #{page.page}", f"### {item.name}", "✅ Unlocked"]

    lines.append(footer)
    return "\n".join(lines)


# Economy


def format_chest_loot(outcome: LedgerOutcome) -> str:
    """Format the contents of an opened chest."""
    loot = outcome.item
    lines = ["## 🎁 Hextech Chest Opened!"]

    if isinstance(loot, ChampionShard):
        lines.append(f"🔹 **Champion Shard:** {loot.name}")
        lines.append(f"**Unlock Cost:** 💎 {loot.be_cost:,} BE")
    else:
        rarity = RARITIES[loot.rarity]
        lines.append(f"✨ **Skin Shard:** {item_display_name(loot)}")
        lines.append(f"**Rarity:** {loot.rarity.value}")
        lines.append(f"**Unlock Cost:** 🔶 {rarity.craft_cost:,} OE")

    lines.append(f"-# 🎁 {outcome.player.chests} chest(s) remaining")
    return "\n".join(lines)


def format_daily_reward(outcome: LedgerOutcome) -> str:
    reward = outcome.daily
    if reward.kind is DailyRewardKind.CHEST:
        text = "🎁 1 Hextech Chest"
    elif reward.kind is DailyRewardKind.BLUE_ESSENCE:
        text = f"💎 {reward.blue_essence} Blue Essence"
    elif reward.kind is DailyRewardKind.ORANGE_ESSENCE:
        text = f"🔶 {reward.orange_essence} Orange Essence"
    else:
        text = f"💎 {reward.blue_essence} BE + 🔶 {reward.orange_essence} OE"
    return f"## 🎁 Daily Reward!\n{text}"


def format_craft_success(outcome: LedgerOutcome) -> str:
    item = outcome.item
    if isinstance(item, SkinItem):
        return f"## ✨ Skin Unlocked!\n**{item_display_name(item)}** for 🔶 {outcome.amount:,} OE\n-# {format_wallet(outcome.player)}"
    return f"## 🔹 Champion Unlocked!\n**{item.name}** for 💎 {outcome.amount:,} BE\n-# {format_wallet(outcome.player)}"


def format_disenchant_success(outcome: LedgerOutcome) -> str:
    item = outcome.item
    currency = "🔶 OE" if isinstance(item, SkinItem) else "💎 BE"
    return f"⚗️ Disenchanted **{item_display_name(item)}** for {outcome.amount:,} {currency}"


def format_reroll_success(outcome: LedgerOutcome) -> str:
    return f"## 🎲 Reroll Complete!\nYou received **{item_display_name(outcome.item)}** (Epic), unlocked!"


def format_purchase_success(outcome: LedgerOutcome) -> str:
    return f"🛒 Bought **{outcome.item.name}** for 💎 {outcome.amount:,} BE\n-# {format_wallet(outcome.player)}"


def format_ledger_failure(outcome: LedgerOutcome) -> str:
    """Explain a failed economy operation."""
    result = outcome.result
    player = outcome.player
    item = outcome.item

    if result is LedgerResult.NOT_FOUND:
        return "❌ No data found! Play a round first."
    if result is LedgerResult.INVALID_INDEX:
        return "❌ Invalid index! Check your inventory numbers."
    if result is LedgerResult.INVALID_ARGUMENT:
        return "❌ That champion doesn't exist!"
    if result is LedgerResult.NO_CHESTS:
        return "❌ No chests!"
    if result is LedgerResult.MISSING_CHAMPION:
        return (
            f"❌ You must own **{item.champion_name}** before unlocking this skin!\n"
            "Use `/craft-champion` to unlock the champion first."
        )
    if result is LedgerResult.ALREADY_OWNED:
        return f"❌ You already own **{item_display_name(item)}**!"
    if result is LedgerResult.ALREADY_CLAIMED:
        return f"⏰ Daily reward available in {format_duration(outcome.time_until_reset)}"
    if result is LedgerResult.INSUFFICIENT_FUNDS:
        if isinstance(item, SkinItem):
            return f"❌ Need {outcome.amount:,} 🔶 OE! You have {player.orange_essence:,} 🔶 OE"
        return f"❌ Need 💎 {outcome.amount:,} BE! You have 💎 {player.blue_essence:,} BE"
    return "❌ Couldn't reach the champion data service. Try again later!"


# Trades


def format_trade_offer(trade: PendingTrade, offerer_name: str, target_name: str) -> str:
    kind = "Skin" if trade.trade_type == "skin" else "Champion"
    expires = datetime.now(timezone.utc) + timedelta(seconds=Config.TRADE_EXPIRY_SECONDS)
    lines = [
        f"<@{trade.target_id}>",
        f"## 🔄 {kind} Trade Offer",
        f"**{offerer_name}** wants to trade with **{target_name}**!",
        f"📤 **{offerer_name} offers:** {item_display_name(trade.offerer_item)}",
        f"📥 **{target_name} gives:** {item_display_name(trade.target_item)}",
        f"-# Trade expires {format_relative_time(expires)} | Only {target_name} can accept/decline",
    ]
    return "\n".join(lines)


def format_trade_completed(trade: PendingTrade) -> str:
    offered = item_display_name(trade.offerer_item)
    received = item_display_name(trade.target_item)
    return (
        f"<@{trade.offerer_id}> The trade was accepted by <@{trade.target_id}>! ✨\n"
        f"## 🤝 Trade Completed!\n"
        f"Successfully swapped **{offered}** for **{received}**."
    )


def format_trade_declined(trade: PendingTrade) -> str:
    return f"<@{trade.offerer_id}> Sorry, it seems like <@{trade.target_id}> didn't want to trade :c\n## 💔 Trade Declined"


def format_trade_failure(outcome: TradeOutcome, trade_type: str = "skin") -> str:
    """Explain a failed trade operation."""
    result = outcome.result
    if result is TradeResult.NOT_FOUND:
        return "❌ Both players need data to trade! Play a round first."
    if result is TradeResult.INVALID_INDEX:
        return f"❌ Invalid {trade_type} index! Only {outcome.available} owned {trade_type}(s) available."
    if result is TradeResult.SELF_TRADE:
        return "❌ Cannot trade with yourself!"
    if result is TradeResult.DUPLICATE_TRADE:
        return "❌ You already have a pending trade with this player!"
    if result is TradeResult.NOT_AUTHORIZED:
        return "❌ Only the trade recipient can respond to this trade!"
    if result is TradeResult.STALE_STATE:
        return "❌ Inventory has changed since the trade was proposed!"
    if result is TradeResult.INVALID_ARGUMENT:
        return "❌ Trades can only be for skins or champions."
    return "❌ Trade expired or no longer exists!"


def format_help(prefix: str) -> str:
    """Format the help text for both slash and text commands."""
    return f"""
**Champion Guessr**

**🎯 Games**
`/guess-ability` `/guess-splash` `/guess-skin` or `{prefix} ga|gsp|gsk [ez|mid|hard|v2|v3] [px] [elim]`
V2 asks for champion + ability key, V3 for champion + ability name. `px` pixelates, `elim` limits wrong guesses.

**💰 Economy**
💎 {Config.BE_PER_THRESHOLD:,} BE per {Config.BE_THRESHOLD} pts and 🎁 1 chest per {Config.CHEST_THRESHOLD} pts
`/lol-daily` or `{prefix} daily` - Daily reward
`/open-chest` or `{prefix} oc` - Open a chest
`/buy-champion` or `{prefix} buy <champion>` - Buy a champion with BE

**🔨 Crafting**
`/craft-skin` or `{prefix} craft skin <#>` - Unlock skin (🔶 OE)
`/craft-champion` or `{prefix} craft champ <#>` - Unlock champion (💎 BE)
`/disenchant` or `{prefix} de <#>` - Skin shard to 🔶 OE
`/disenchant-champion` or `{prefix} de champ <#>` - Champion shard to 💎 BE
`/reroll-skins` or `{prefix} reroll <#> <#> <#>` - 3 skin shards into 1 Epic skin

**🔄 Trading**
`/trade` or `{prefix} trade [skin|champ] @user <your#> <their#>` - Trades expire in {int(Config.TRADE_EXPIRY_SECONDS // 60)} minutes

**📊 Info**
`/inventory` `/profile` `/leaderboard` or `{prefix} inv|prof|lb`
"""
