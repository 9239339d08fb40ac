"""
Faculty login gate.

A single shared identifier/secret pair from the environment. This is a
placeholder gate for the dashboard, not an account system: a successful login
marks the Discord user as authenticated until logout or restart.
"""

import hmac
import logging
from typing import Optional, Set

import discord
from discord import app_commands

logger = logging.getLogger(__name__)


class FacultyAuthGate:
    """Checks faculty credentials and remembers who logged in."""

    def __init__(self, faculty_id: Optional[str], password: Optional[str]):
        self._faculty_id = faculty_id or ""
        self._password = password or ""
        self._authenticated: Set[int] = set()

    def authenticate(self, identifier: str, secret: str) -> bool:
        """Constant-time comparison against the configured credentials."""
        if not self._faculty_id or not self._password:
            logger.warning("Faculty credentials are not configured; rejecting login")
            return False
        id_ok = hmac.compare_digest((identifier or "").strip().encode(), self._faculty_id.encode())
        secret_ok = hmac.compare_digest((secret or "").encode(), self._password.encode())
        return id_ok and secret_ok

    def login(self, user_id: int, identifier: str, secret: str) -> bool:
        if not self.authenticate(identifier, secret):
            logger.info(f"Failed faculty login attempt by user {user_id}")
            return False
        self._authenticated.add(user_id)
        logger.info(f"User {user_id} logged in as faculty")
        return True

    def logout(self, user_id: int) -> bool:
        if user_id not in self._authenticated:
            return False
        self._authenticated.discard(user_id)
        logger.info(f"User {user_id} logged out of faculty dashboard")
        return True

    def is_authenticated(self, user_id: int) -> bool:
        return user_id in self._authenticated


class FacultyLoginRequired(app_commands.CheckFailure):
    """Raised by faculty_only() when the user has not logged in."""


def faculty_only():
    """App command check: the invoking user must have passed /faculty-login."""
    async def predicate(interaction: discord.Interaction) -> bool:
        gate: Optional[FacultyAuthGate] = getattr(interaction.client, "auth_gate", None)
        if gate is None or not gate.is_authenticated(interaction.user.id):
            raise FacultyLoginRequired("Faculty login required")
        return True
    return app_commands.check(predicate)
