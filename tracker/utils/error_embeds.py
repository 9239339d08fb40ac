"""
Centralized error embeds for consistent error handling across the tracker bot.
"""

import discord
from typing import Optional


class ErrorEmbeds:
    """Centralized error embed factory for consistent error handling."""

    @staticmethod
    def not_authenticated() -> discord.Embed:
        """Create embed for faculty commands used without logging in."""
        return discord.Embed(
            title="Faculty Login Required",
            description="Use `/faculty-login` before opening the dashboard.",
            color=discord.Color.red()
        )

    @staticmethod
    def login_failed() -> discord.Embed:
        return discord.Embed(
            title="Login Failed",
            description="Invalid faculty ID or password.",
            color=discord.Color.red()
        )

    @staticmethod
    def duplicate_registration(roll_number: Optional[str] = None) -> discord.Embed:
        """Create embed for a roll number that is already registered."""
        description = "Roll number already exists. Please use a different roll number."
        if roll_number:
            description = f"`{roll_number}` is already registered. Please use a different roll number."
        return discord.Embed(
            title="Already Registered",
            description=description,
            color=discord.Color.red()
        )

    @staticmethod
    def storage_error() -> discord.Embed:
        """Create embed for database-related errors."""
        return discord.Embed(
            title="Database Error",
            description="A database error occurred. Please try again later or contact an administrator.",
            color=discord.Color.red()
        )

    @staticmethod
    def invalid_input(message: str) -> discord.Embed:
        """Create embed for invalid user input."""
        return discord.Embed(
            title="Invalid Input",
            description=message,
            color=discord.Color.red()
        )

    @staticmethod
    def command_error(error: str) -> discord.Embed:
        """Create embed for general command errors."""
        return discord.Embed(
            title="Command Error",
            description=f"An error occurred: {error}\n\nPlease try again or contact an administrator.",
            color=discord.Color.red()
        )

    @staticmethod
    def permission_denied() -> discord.Embed:
        """Create embed for permission errors."""
        return discord.Embed(
            title="Permission Denied",
            description="You don't have permission to perform this action.",
            color=discord.Color.red()
        )

    @staticmethod
    def rate_limited(command: Optional[str] = None, window: Optional[int] = None) -> discord.Embed:
        """Create embed for rate limiting errors."""
        if command and window:
            description = f"⏰ Please wait up to {window}s before using `/{command}` again."
        else:
            description = "You're using commands too quickly. Please wait a moment and try again."
        return discord.Embed(
            title="Rate Limited",
            description=description,
            color=discord.Color.orange()
        )

    @staticmethod
    def no_dashboard() -> discord.Embed:
        return discord.Embed(
            title="No Dashboard Open",
            description="Open the dashboard with `/dashboard` first.",
            color=discord.Color.orange()
        )
