import discord
from discord import app_commands
from discord.ext import commands

from tracker.services.rate_limiter import rate_limit
from tracker.ui.registration_modal import StudentRegistrationModal
from tracker.utils.logger import setup_logger

logger = setup_logger(__name__)


class RegistrationCog(commands.Cog):
    """Student self-registration"""

    def __init__(self, bot):
        self.bot = bot

    @app_commands.command(name="register", description="Register your LeetCode profile for progress tracking")
    @rate_limit("register", limit=3, window=300)
    async def register(self, interaction: discord.Interaction):
        """Open the registration form."""
        await interaction.response.send_modal(StudentRegistrationModal(self.bot.db))


async def setup(bot):
    await bot.add_cog(RegistrationCog(bot))
