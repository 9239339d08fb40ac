"""
UI Module - Discord UI Components

Modals used by the tracker's slash commands.

Available components:
- StudentRegistrationModal: Student self-registration form
- FacultyLoginModal: Faculty credential prompt for the dashboard
"""
