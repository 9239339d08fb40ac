"""
Student Registration Modal

Five-field self-registration form. Branch and section are typed rather than
picked because Discord modals only hold text inputs; both are validated
against RegistrationConstants before anything is stored.
"""

import discord
from typing import Dict

from tracker.constants import RegistrationConstants
from tracker.utils.error_embeds import ErrorEmbeds
from tracker.utils.exceptions import (
    DuplicateRegistrationError, RegistrationValidationError, StorageError
)
from tracker.utils.logger import setup_logger

logger = setup_logger(__name__)


def _match_choice(value: str, choices, field: str) -> str:
    """Case-insensitive lookup returning the canonical spelling."""
    for choice in choices:
        if choice.upper() == value.upper():
            return choice
    raise RegistrationValidationError(f"{field} must be one of: {', '.join(choices)}")


def validate_registration(
    name: str,
    roll_number: str,
    branch: str,
    section: str,
    leetcode_username: str
) -> Dict[str, str]:
    """
    Normalize and validate raw form values.

    Returns:
        Keyword arguments for Database.create_student

    Raises:
        RegistrationValidationError: A field is missing or not an allowed value
    """
    fields = {
        "Name": (name or "").strip(),
        "Roll number": "".join((roll_number or "").split()).upper(),
        "Branch": (branch or "").strip(),
        "Section": (section or "").strip(),
        "LeetCode username": (leetcode_username or "").strip(),
    }
    for label, value in fields.items():
        if not value:
            raise RegistrationValidationError(f"{label} is required.")

    return {
        "name": fields["Name"],
        "roll_number": fields["Roll number"],
        "branch": _match_choice(fields["Branch"], RegistrationConstants.BRANCHES, "Branch"),
        "section": _match_choice(fields["Section"], RegistrationConstants.SECTIONS, "Section"),
        "leetcode_username": fields["LeetCode username"],
    }


class StudentRegistrationModal(discord.ui.Modal, title="Student Registration"):
    """Collects name, roll number, branch, section and LeetCode username."""

    name = discord.ui.TextInput(
        label="Full Name",
        placeholder="Enter your full name",
        max_length=RegistrationConstants.MAX_NAME_LENGTH
    )
    roll_number = discord.ui.TextInput(
        label="Roll Number",
        placeholder="e.g. 23211A6701",
        max_length=RegistrationConstants.MAX_ROLL_LENGTH
    )
    branch = discord.ui.TextInput(
        label="Branch",
        placeholder=" / ".join(RegistrationConstants.BRANCHES),
        max_length=10
    )
    section = discord.ui.TextInput(
        label="Section",
        placeholder=" / ".join(RegistrationConstants.SECTIONS),
        max_length=2
    )
    leetcode_username = discord.ui.TextInput(
        label="LeetCode Username",
        placeholder="Your leetcode.com profile handle",
        max_length=RegistrationConstants.MAX_HANDLE_LENGTH
    )

    def __init__(self, database):
        super().__init__(timeout=300)
        self.database = database

    async def on_submit(self, interaction: discord.Interaction):
        try:
            values = validate_registration(
                self.name.value,
                self.roll_number.value,
                self.branch.value,
                self.section.value,
                self.leetcode_username.value
            )
        except RegistrationValidationError as e:
            await interaction.response.send_message(embed=ErrorEmbeds.invalid_input(e.user_message), ephemeral=True)
            return

        try:
            student = await self.database.create_student(discord_id=interaction.user.id, **values)
        except DuplicateRegistrationError as e:
            await interaction.response.send_message(
                embed=ErrorEmbeds.duplicate_registration(e.roll_number), ephemeral=True
            )
            return
        except StorageError as e:
            logger.error(f"Registration failed for {interaction.user}: {e}")
            await interaction.response.send_message(embed=ErrorEmbeds.storage_error(), ephemeral=True)
            return

        embed = discord.Embed(
            title="✅ Registration Successful",
            description=f"Welcome, **{student.name}**! Your LeetCode progress is now tracked.",
            color=discord.Color.green()
        )
        embed.add_field(name="Roll Number", value=student.roll_number, inline=True)
        embed.add_field(name="Class", value=f"{student.branch}-{student.section}", inline=True)
        embed.add_field(name="LeetCode", value=student.leetcode_username, inline=True)
        await interaction.response.send_message(embed=embed, ephemeral=True)

    async def on_error(self, interaction: discord.Interaction, error: Exception):
        logger.error(f"Error in registration modal: {error}", exc_info=True)
        if interaction.response.is_done():
            await interaction.followup.send(embed=ErrorEmbeds.command_error("Registration failed."), ephemeral=True)
        else:
            await interaction.response.send_message(embed=ErrorEmbeds.command_error("Registration failed."), ephemeral=True)
