"""
Bot-wide constants for the LeetCode Progress Tracker.

Defaults for values that can be overridden at runtime through the
ConfigurationService live here so the seed data and the fallbacks agree.
"""

class ScoringConstants:
    """Composite score weights and ranking sentinel."""

    EASY_WEIGHT = 1
    MEDIUM_WEIGHT = 2
    HARD_WEIGHT = 3

    # Sort key for students whose stats are unknown or failed
    UNRESOLVED_SORT_KEY = -1

class WindowConstants:
    """Recent-activity windows derived from the submission calendar."""

    SECONDS_PER_DAY = 24 * 60 * 60
    SHORT_WINDOW_DAYS = 7
    LONG_WINDOW_DAYS = 30

class FetchConstants:
    """Outbound statistics fetching."""

    # 0 disables the gate (one unthrottled request per roster row)
    DEFAULT_MAX_CONCURRENCY = 8

class PaginationConstants:
    """Constants for paginated displays."""

    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 20

    # Seconds between dashboard re-renders while results are still arriving
    DEFAULT_REFRESH_INTERVAL = 2.0

class RegistrationConstants:
    """Allowed values on the registration form."""

    BRANCHES = ["CSD", "CSE", "AI&DS", "AI&ML", "CS&BS", "IT"]
    SECTIONS = ["A", "B", "C", "D"]
    MAX_NAME_LENGTH = 100
    MAX_ROLL_LENGTH = 20
    MAX_HANDLE_LENGTH = 50

class ExportConstants:
    """CSV export layout."""

    HEADERS = [
        "Name",
        "Roll Number",
        "Branch",
        "Section",
        "LeetCode Username",
        "Problems Solved",
        "Score",
    ]
    BYTE_ORDER_MARK = "\ufeff"
    FILENAME_FORMAT = "%Y-%m-%d_%H-%M-%S"
    EXTENSION = ".csv"
