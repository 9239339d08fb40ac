import asyncio
import logging
import traceback
from typing import Optional

import discord
import httpx
from discord.ext import commands
from discord import app_commands

from tracker.config import Config
from tracker.database.database import Database
from tracker.services.auth import FacultyAuthGate, FacultyLoginRequired
from tracker.services.configuration import ConfigurationService
from tracker.services.rate_limiter import SimpleRateLimiter
from tracker.services.stats_fetcher import StatsFetcher
from tracker.utils.error_embeds import ErrorEmbeds
from tracker.utils.logger import setup_logger


class TrackerBot(commands.Bot):
    def __init__(self):
        intents = discord.Intents.default()
        intents.guilds = True

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            help_command=None
        )

        # Attach app command error handler
        self.tree.on_error = self.on_app_command_error

        self.db: Optional[Database] = None
        self.rate_limiter = SimpleRateLimiter()
        self.config_service: Optional[ConfigurationService] = None
        self.http_client: Optional[httpx.AsyncClient] = None
        self.stats_fetcher: Optional[StatsFetcher] = None
        self.auth_gate = FacultyAuthGate(Config.FACULTY_ID, Config.FACULTY_PASSWORD)
        self.logger = setup_logger(__name__)

    async def setup_hook(self):
        """Called when the bot is starting up"""
        self.logger.info("Setting up LeetCode Tracker Bot...")

        # Initialize database
        self.db = Database()
        await self.db.initialize()

        # Seed missing defaults, then load everything into the cache
        self.config_service = ConfigurationService(self.db)
        seeded = await self.config_service.seed_defaults(Config.ROLL_RANGES_FILE or None)
        await self.config_service.load_all()
        self.logger.info(f"Configuration service initialized ({seeded} defaults seeded)")

        self.http_client = httpx.AsyncClient(
            timeout=Config.STATS_FETCH_TIMEOUT,
            headers={"Accept": "application/json"}
        )
        self.stats_fetcher = StatsFetcher(self.http_client, Config.STATS_API_BASE_URL)

        # Load cogs
        await self.load_cogs()

        # Sync slash commands
        await self._sync_commands()

        self.logger.info("LeetCode Tracker Bot setup complete!")

    async def load_cogs(self):
        """Load all cogs"""
        cogs_to_load = [
            'tracker.cogs.admin',
            'tracker.cogs.registration',
            'tracker.cogs.faculty'
        ]

        for cog in cogs_to_load:
            try:
                await self.load_extension(cog)
                self.logger.info(f"Loaded cog: {cog}")
            except Exception as e:
                self.logger.error(f"Failed to load cog {cog}: {e}", exc_info=True)

    async def _sync_commands(self):
        """Sync slash commands with Discord"""
        if not self.tree.get_commands():
            self.logger.warning("No application commands found to sync. Check for cog loading errors.")
            return

        try:
            guild_ids = Config.get_guild_ids()

            if guild_ids:
                # Guild-specific sync (instant updates)
                self.logger.info(f"Attempting to sync commands to {len(guild_ids)} guild(s): {guild_ids}...")

                total_synced = 0
                for guild_id in guild_ids:
                    try:
                        guild = discord.Object(id=guild_id)
                        self.tree.copy_global_to(guild=guild)
                        synced = await self.tree.sync(guild=guild)
                        self.logger.info(f"Successfully synced {len(synced)} command(s) to guild {guild_id}")
                        total_synced += len(synced)
                    except discord.errors.Forbidden:
                        self.logger.error(f"Permission error syncing to guild {guild_id}. Ensure the bot has the 'application.commands' scope and is in the guild.", exc_info=True)
                    except discord.errors.HTTPException as e:
                        self.logger.error(f"HTTP error syncing to guild {guild_id}. Status: {e.status}, Response: {e.text}", exc_info=True)

                self.logger.info(f"Multi-guild sync complete: {total_synced} total command instances deployed")
            else:
                # Global sync (can take up to 1 hour)
                self.logger.info("Attempting to sync commands globally... (Note: This can take up to an hour to propagate)")
                synced = await self.tree.sync()
                self.logger.info(f"Successfully synced {len(synced)} command(s) globally")
                for cmd in synced:
                    self.logger.info(f"  - {cmd.name}: {cmd.description}")
        except Exception as e:
            self.logger.error(f"Failed to sync commands: {e}", exc_info=True)

    async def on_ready(self):
        """Called when the bot is ready"""
        self.logger.info(f'{self.user} has connected to Discord!')
        self.logger.info(f'Bot is in {len(self.guilds)} guilds')

        await self.change_presence(
            activity=discord.Game(name="LeetCode Tracker | /register")
        )

    async def on_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        """Global error handler for slash commands"""
        command_name = interaction.command.name if interaction.command else 'Unknown'

        # Don't log full traceback for permission errors
        if isinstance(error, app_commands.CheckFailure):
            self.logger.info(f"Check failed for command '{command_name}' by user {interaction.user}")
        else:
            self.logger.error(f"Error in app command '{command_name}': {error}", exc_info=True)

        if isinstance(error, FacultyLoginRequired):
            error_embed = ErrorEmbeds.not_authenticated()
        elif isinstance(error, app_commands.CommandOnCooldown):
            error_embed = ErrorEmbeds.invalid_input(f"❌ Command is on cooldown. Try again in {error.retry_after:.2f} seconds.")
        elif isinstance(error, app_commands.CheckFailure):
            if command_name.startswith('tracker-'):
                error_embed = discord.Embed(
                    title="❌ Administrative Privileges Required",
                    description="This command is restricted to the bot owner only.",
                    color=discord.Color.red()
                )
                error_embed.set_footer(text="Contact the bot owner if you believe you should have access.")
            else:
                error_embed = ErrorEmbeds.permission_denied()
        elif isinstance(error, app_commands.BotMissingPermissions):
            error_embed = ErrorEmbeds.command_error("I don't have the required permissions to execute this command.")
        else:
            error_embed = discord.Embed(
                title="❌ An unexpected error occurred",
                description="An unexpected error occurred while processing your command. The developers have been notified.",
                color=discord.Color.red()
            )

        try:
            if interaction.response.is_done():
                await interaction.followup.send(embed=error_embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=error_embed, ephemeral=True)
        except Exception as e:
            self.logger.error(f"Failed to send error response: {e}")

    async def close(self):
        """Cleanup when bot is shutting down"""
        self.logger.info("Shutting down LeetCode Tracker Bot...")

        faculty_cog = self.get_cog('FacultyCog')
        if faculty_cog:
            for user_id in list(faculty_cog.sessions):
                faculty_cog._close_session(user_id)

        if self.http_client:
            await self.http_client.aclose()
            self.http_client = None

        if self.db:
            await self.db.close()
            self.db = None

        await super().close()


async def main():
    """Main entry point"""
    Config.validate()

    bot = TrackerBot()

    try:
        await bot.start(Config.DISCORD_TOKEN)
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logging.error(f"Fatal error: {e}")
        traceback.print_exc()
    finally:
        await bot.close()

def run():
    asyncio.run(main())

if __name__ == "__main__":
    run()
