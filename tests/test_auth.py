from unittest.mock import MagicMock

import pytest

from tracker.services.auth import FacultyAuthGate, FacultyLoginRequired, faculty_only


def test_authenticate_requires_both_values_to_match():
    gate = FacultyAuthGate("faculty01", "s3cret")

    assert gate.authenticate("faculty01", "s3cret") is True
    assert gate.authenticate(" faculty01 ", "s3cret") is True
    assert gate.authenticate("faculty01", "wrong") is False
    assert gate.authenticate("someone", "s3cret") is False
    assert gate.authenticate("", "") is False


def test_unconfigured_gate_rejects_everyone():
    gate = FacultyAuthGate(None, None)

    assert gate.authenticate("", "") is False
    assert gate.login(1, "", "") is False


def test_login_and_logout_track_users():
    gate = FacultyAuthGate("faculty01", "s3cret")

    assert gate.login(10, "faculty01", "nope") is False
    assert gate.is_authenticated(10) is False

    assert gate.login(10, "faculty01", "s3cret") is True
    assert gate.is_authenticated(10) is True
    assert gate.is_authenticated(11) is False

    assert gate.logout(10) is True
    assert gate.logout(10) is False
    assert gate.is_authenticated(10) is False


def _predicate():
    async def command(interaction):
        pass
    return faculty_only()(command).__discord_app_commands_checks__[0]


@pytest.mark.asyncio
async def test_faculty_only_check():
    gate = FacultyAuthGate("faculty01", "s3cret")
    interaction = MagicMock()
    interaction.client.auth_gate = gate
    interaction.user.id = 10
    predicate = _predicate()

    with pytest.raises(FacultyLoginRequired):
        await predicate(interaction)

    gate.login(10, "faculty01", "s3cret")
    assert await predicate(interaction) is True
