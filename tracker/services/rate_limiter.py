"""
In-memory per-user rate limiting for slash commands and dashboard buttons.
"""

import time
import asyncio
from functools import wraps
from collections import defaultdict, deque
import logging

logger = logging.getLogger(__name__)


class SimpleRateLimiter:
    """Sliding-window limiter keyed by user and action.

    History lives in memory and is lost on restart, which is fine for a
    single-process bot.
    """

    def __init__(self):
        self._requests = defaultdict(deque)
        self._lock = asyncio.Lock()

    async def is_allowed(self, user_id: int, action: str, limit: int, window: int) -> bool:
        """Record and allow the request if fewer than `limit` happened in the last `window` seconds."""
        if limit <= 0 or window <= 0:
            return False

        key = f"{user_id}:{action}"
        now = time.time()

        async with self._lock:
            history = self._requests[key]
            while history and history[0] < now - window:
                history.popleft()

            if len(history) < limit:
                history.append(now)
                return True

            logger.debug(f"Rate limit hit for {key} ({limit}/{window}s)")
            return False

    async def reset(self, user_id: int, action: str):
        async with self._lock:
            self._requests.pop(f"{user_id}:{action}", None)


def rate_limit(command: str, limit: int = 1, window: int = 60):
    """Decorator for cog app commands. The bot owner is never limited."""
    def decorator(func):
        @wraps(func)
        async def wrapper(self, interaction, *args, **kwargs):
            rate_limiter = self.bot.rate_limiter

            from tracker.config import Config
            if interaction.user.id == Config.OWNER_DISCORD_ID:
                return await func(self, interaction, *args, **kwargs)

            if not await rate_limiter.is_allowed(interaction.user.id, command, limit, window):
                from tracker.utils.error_embeds import ErrorEmbeds
                await interaction.response.send_message(
                    embed=ErrorEmbeds.rate_limited(command, window),
                    ephemeral=True
                )
                return

            return await func(self, interaction, *args, **kwargs)
        return wrapper
    return decorator
