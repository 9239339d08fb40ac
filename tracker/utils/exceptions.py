"""
Custom exceptions for the tracker with user-friendly error messages.
"""

class TrackerException(Exception):
    """Base exception for tracker-related errors."""
    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message

class StatsFetchError(TrackerException):
    """Raised when statistics for a handle cannot be fetched."""
    def __init__(self, handle: str, reason: str):
        super().__init__(
            f"Failed to fetch stats for '{handle}': {reason}",
            f"❌ Could not load LeetCode stats for `{handle}`."
        )
        self.handle = handle
        self.reason = reason

class StorageError(TrackerException):
    """Raised when roster storage operations fail."""
    def __init__(self, operation: str, details: str = None):
        super().__init__(
            f"Storage error during {operation}: {details}",
            "❌ Failed to reach the student database. Please try again later."
        )
        self.operation = operation

class DuplicateRegistrationError(TrackerException):
    """Raised when a roll number is already registered."""
    def __init__(self, roll_number: str):
        super().__init__(
            f"Roll number '{roll_number}' already registered",
            "❌ Roll number already exists. Please use a different roll number."
        )
        self.roll_number = roll_number

class RegistrationValidationError(TrackerException):
    """Raised when registration form input is invalid."""
    def __init__(self, reason: str):
        super().__init__(
            f"Invalid registration: {reason}",
            f"❌ {reason}"
        )
