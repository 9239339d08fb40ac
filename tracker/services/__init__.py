"""
Services package for the LeetCode tracker bot.

Stats fetching, aggregation, projection and export live here alongside the
configuration and faculty auth services.
"""

from .rate_limiter import SimpleRateLimiter

__all__ = ['SimpleRateLimiter']
