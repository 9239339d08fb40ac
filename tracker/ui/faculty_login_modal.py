"""
Faculty Login Modal

Prompts for the shared faculty ID and password and records the Discord user
as authenticated on success.
"""

import discord

from tracker.utils.error_embeds import ErrorEmbeds
from tracker.utils.logger import setup_logger

logger = setup_logger(__name__)


class FacultyLoginModal(discord.ui.Modal, title="Faculty Login"):

    faculty_id = discord.ui.TextInput(
        label="Faculty ID",
        placeholder="Enter your faculty ID",
        max_length=100
    )
    password = discord.ui.TextInput(
        label="Password",
        placeholder="Enter your password",
        max_length=100
    )

    def __init__(self, auth_gate):
        super().__init__(timeout=120)
        self.auth_gate = auth_gate

    async def on_submit(self, interaction: discord.Interaction):
        if not self.auth_gate.login(interaction.user.id, self.faculty_id.value, self.password.value):
            await interaction.response.send_message(embed=ErrorEmbeds.login_failed(), ephemeral=True)
            return

        embed = discord.Embed(
            title="✅ Logged In",
            description="Use `/dashboard` to view student progress.",
            color=discord.Color.green()
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)
