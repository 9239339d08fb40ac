import json
from typing import Optional

import discord
from discord.ext import commands
from discord import app_commands

from tracker.config import Config
from tracker.utils.error_embeds import ErrorEmbeds
from tracker.utils.exceptions import StorageError
from tracker.utils.logger import setup_logger

logger = setup_logger(__name__)


class AdminCog(commands.Cog):
    """Owner-only commands for runtime configuration and roster upkeep"""

    def __init__(self, bot):
        self.bot = bot
        self.logger = logger

    @app_commands.command(name="tracker-config", description="View or set tracker configuration values")
    @app_commands.describe(
        key="Configuration key (e.g., 'scoring.hard_weight') or category (e.g., 'scoring')",
        value="New value (JSON format for numbers, lists and objects)"
    )
    @app_commands.check(lambda interaction: interaction.user.id == Config.OWNER_DISCORD_ID)
    async def tracker_config(
        self,
        interaction: discord.Interaction,
        key: Optional[str] = None,
        value: Optional[str] = None
    ):
        """List, get or set a configuration value."""
        config_service = self.bot.config_service

        if key is None:
            await interaction.response.send_message(
                self._format_configs("All Configuration", config_service.list_all()), ephemeral=True
            )
            return

        if value is None:
            if key in config_service.list_all():
                await interaction.response.send_message(f"**{key}:** `{config_service.get(key)}`", ephemeral=True)
                return
            configs = config_service.get_by_category(key)
            if not configs:
                await interaction.response.send_message(f"Configuration key '{key}' not found.", ephemeral=True)
                return
            await interaction.response.send_message(self._format_configs(f"Configuration: {key}", configs), ephemeral=True)
            return

        if len(key) > 255 or len(value) > 10000:
            await interaction.response.send_message(
                embed=ErrorEmbeds.invalid_input("Key or value is too long."), ephemeral=True
            )
            return

        try:
            parsed_value = json.loads(value)
        except json.JSONDecodeError:
            parsed_value = value

        try:
            await config_service.set(key, parsed_value, interaction.user.id)
        except Exception as e:
            self.logger.error(f"Error updating configuration '{key}': {e}", exc_info=True)
            await interaction.response.send_message(embed=ErrorEmbeds.storage_error(), ephemeral=True)
            return

        await interaction.response.send_message(
            f"✅ Configuration updated: **{key}** = `{parsed_value}`\nOpen dashboards pick this up on their next `/dashboard`.",
            ephemeral=True
        )

    @staticmethod
    def _format_configs(title: str, configs: dict) -> str:
        if not configs:
            return "No configuration found."
        output = f"**{title}:**\n```json\n"
        for key, value in sorted(configs.items()):
            line = f"{key}: {json.dumps(value)}\n"
            if len(output) + len(line) > 1900:
                output += "... (truncated)\n"
                break
            output += line
        return output + "```"

    @app_commands.command(name="tracker-remove-student", description="Remove a registered student")
    @app_commands.describe(roll_number="Roll number of the student to remove")
    @app_commands.check(lambda interaction: interaction.user.id == Config.OWNER_DISCORD_ID)
    async def remove_student(self, interaction: discord.Interaction, roll_number: str):
        roll_number = "".join(roll_number.split()).upper()
        await interaction.response.defer(ephemeral=True)
        try:
            removed = await self.bot.db.remove_student(roll_number)
        except StorageError as e:
            self.logger.error(f"Failed to remove student {roll_number}: {e}")
            await interaction.followup.send(embed=ErrorEmbeds.storage_error(), ephemeral=True)
            return

        if not removed:
            await interaction.followup.send(
                embed=ErrorEmbeds.invalid_input(f"No student with roll number `{roll_number}`."), ephemeral=True
            )
            return

        self.logger.info(f"Student {roll_number} removed by {interaction.user.id}")
        await interaction.followup.send(f"🗑️ Removed `{roll_number}` from the roster.", ephemeral=True)


async def setup(bot):
    await bot.add_cog(AdminCog(bot))
