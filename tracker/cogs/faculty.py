import io
from typing import Dict, Optional

import discord
from discord import app_commands
from discord.ext import commands

from tracker.services.auth import faculty_only
from tracker.services.dashboard import DashboardSession, DashboardSettings
from tracker.services.rate_limiter import rate_limit
from tracker.ui.faculty_login_modal import FacultyLoginModal
from tracker.utils.error_embeds import ErrorEmbeds
from tracker.views.dashboard import DashboardView, export_summary
from tracker.utils.logger import setup_logger

logger = setup_logger(__name__)

# How long /export-roster waits for pending rows before exporting what it has
EXPORT_SETTLE_TIMEOUT = 20.0


class FacultyCog(commands.Cog):
    """Faculty login and the live progress dashboard"""

    def __init__(self, bot):
        self.bot = bot
        self.sessions: Dict[int, DashboardSession] = {}
        self.views: Dict[int, DashboardView] = {}

    async def cog_unload(self):
        for user_id in list(self.sessions):
            self._close_session(user_id)

    def _close_session(self, user_id: int):
        view = self.views.pop(user_id, None)
        if view is not None:
            view.stop()
        session = self.sessions.pop(user_id, None)
        if session is not None:
            session.close()

    async def _open_session(self, user_id: int) -> DashboardSession:
        """Replace the user's session with a fresh one using current configuration."""
        self._close_session(user_id)
        session = DashboardSession(
            roster_source=self.bot.db,
            fetcher=self.bot.stats_fetcher,
            settings=DashboardSettings.from_config(self.bot.config_service)
        )
        self.sessions[user_id] = session
        await session.load()
        return session

    @app_commands.command(name="faculty-login", description="Log in to the faculty dashboard")
    async def faculty_login(self, interaction: discord.Interaction):
        await interaction.response.send_modal(FacultyLoginModal(self.bot.auth_gate))

    @app_commands.command(name="faculty-logout", description="Log out of the faculty dashboard")
    async def faculty_logout(self, interaction: discord.Interaction):
        self._close_session(interaction.user.id)
        if self.bot.auth_gate.logout(interaction.user.id):
            await interaction.response.send_message("👋 Logged out.", ephemeral=True)
        else:
            await interaction.response.send_message("You were not logged in.", ephemeral=True)

    @app_commands.command(name="dashboard", description="View registered students and their LeetCode progress")
    @faculty_only()
    @rate_limit("dashboard", limit=5, window=60)
    async def dashboard(self, interaction: discord.Interaction):
        """Open a live dashboard for the invoking faculty member."""
        await interaction.response.defer(ephemeral=True)

        try:
            session = await self._open_session(interaction.user.id)
            view = DashboardView(
                session,
                owner_id=interaction.user.id,
                refresh_interval=self.bot.config_service.refresh_interval()
            )
            self.views[interaction.user.id] = view
            message = await interaction.followup.send(embed=view.build_embed(), view=view, ephemeral=True, wait=True)
            view.start(message)
        except Exception as e:
            logger.error(f"Error in dashboard command: {e}", exc_info=True)
            self._close_session(interaction.user.id)
            await interaction.followup.send(
                embed=ErrorEmbeds.command_error("Could not open the dashboard. Please try again later."),
                ephemeral=True
            )
            return

        if session.last_notice:
            await interaction.followup.send(embed=ErrorEmbeds.storage_error(), ephemeral=True)

    @app_commands.command(name="export-roster", description="Download the current dashboard view as CSV")
    @faculty_only()
    @rate_limit("export-roster", limit=3, window=60)
    async def export_roster(self, interaction: discord.Interaction):
        """Export the user's current dashboard view, opening one if needed."""
        await interaction.response.defer(ephemeral=True, thinking=True)

        session: Optional[DashboardSession] = self.sessions.get(interaction.user.id)
        if session is None or session.is_closed:
            session = await self._open_session(interaction.user.id)

        await session.wait_until_settled(timeout=EXPORT_SETTLE_TIMEOUT)
        artifact = session.export()

        await interaction.followup.send(
            export_summary(artifact.row_count, session.pending_count),
            file=discord.File(fp=io.BytesIO(artifact.data), filename=artifact.filename),
            ephemeral=True
        )


async def setup(bot):
    await bot.add_cog(FacultyCog(bot))
