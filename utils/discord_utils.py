"""Discord API utility helpers."""

import logging

import discord

logger = logging.getLogger(__name__)


async def get_or_fetch_member(guild: discord.Guild, user_id: int) -> discord.Member | None:
    """Look up a guild member by ID, falling back to an API call if not cached."""
    member = guild.get_member(user_id)
    if member is None:
        try:
            member = await guild.fetch_member(user_id)
        except discord.NotFound:
            pass
        except discord.HTTPException:
            logger.warning(f"Failed to fetch member {user_id}")
    return member


def can_manage_rounds(member: discord.abc.User) -> bool:
    """Whether a user may skip rounds (needs Manage Messages in the guild)."""
    permissions = getattr(member, "guild_permissions", None)
    return bool(permissions and permissions.manage_messages)


def parse_user_mention(text: str) -> int | None:
    """Extract the user ID from a ``<@123>`` or ``<@!123>`` mention."""
    text = text.strip()
    if text.startswith("<@") and text.endswith(">"):
        text = text[2:-1].lstrip("!")
    return int(text) if text.isdigit() else None


async def send_command_error(interaction: discord.Interaction, error: Exception) -> None:
    """Log an unhandled app command error and tell the user, ephemerally."""
    command_name = interaction.command.name if interaction.command else "unknown"
    logger.error(f"Error in /{command_name}: {error}", exc_info=error)

    message = "Something went wrong running that command."
    try:
        if interaction.response.is_done():
            await interaction.followup.send(message, ephemeral=True)
        else:
            await interaction.response.send_message(message, ephemeral=True)
    except discord.HTTPException as e:
        logger.warning(f"Could not report error for /{command_name}: {e}")
