import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    """Bot configuration settings"""

    # Discord settings
    DISCORD_TOKEN = os.getenv('DISCORD_TOKEN')
    DISCORD_GUILD_ID = int(os.getenv('DISCORD_GUILD_ID', 0))
    DISCORD_GUILD_IDS = os.getenv('DISCORD_GUILD_IDS', '')  # Comma-separated for multi-guild support
    OWNER_DISCORD_ID = int(os.getenv('OWNER_DISCORD_ID', 0))

    # Database settings
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///tracker.db')

    # Bot settings
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
    LOG_DIR = os.getenv('LOG_DIR', 'logs')

    # Statistics provider
    STATS_API_BASE_URL = os.getenv('STATS_API_BASE_URL', 'https://leetcode-stats-api.vercel.app')
    STATS_FETCH_TIMEOUT = float(os.getenv('STATS_FETCH_TIMEOUT', 10))

    # Faculty login gate
    FACULTY_ID = os.getenv('FACULTY_ID')
    FACULTY_PASSWORD = os.getenv('FACULTY_PASSWORD')

    # Optional JSON file with section -> roll type -> [[start, end], ...]
    ROLL_RANGES_FILE = os.getenv('ROLL_RANGES_FILE', '')

    @classmethod
    def get_guild_ids(cls):
        """Get list of guild IDs for command syncing"""
        if cls.DISCORD_GUILD_IDS:
            # Multi-guild support: comma-separated IDs
            try:
                return [int(guild_id.strip()) for guild_id in cls.DISCORD_GUILD_IDS.split(',') if guild_id.strip()]
            except ValueError:
                raise ValueError("DISCORD_GUILD_IDS must be comma-separated integers")
        elif cls.DISCORD_GUILD_ID:
            return [cls.DISCORD_GUILD_ID]
        else:
            # Global sync
            return []

    @classmethod
    def validate(cls):
        """Validate that required configuration is present"""
        if not cls.DISCORD_TOKEN:
            raise ValueError("DISCORD_TOKEN is required")
        if not cls.OWNER_DISCORD_ID:
            raise ValueError("OWNER_DISCORD_ID is required")
        if not cls.FACULTY_ID or not cls.FACULTY_PASSWORD:
            raise ValueError("FACULTY_ID and FACULTY_PASSWORD are required")
        if cls.STATS_FETCH_TIMEOUT <= 0:
            raise ValueError("STATS_FETCH_TIMEOUT must be positive")
