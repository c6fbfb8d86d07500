# =============================================================================
# tests/test_roles.py - Role Resolution Tests
# =============================================================================
# This module contains tests for:
# - Guild resolution priority (heads before members, lower guild first)
# - Admin / head / club flags
# - Unset role ids never matching
# =============================================================================

import pytest

from core.roles import RoleMap, get_role_map


@pytest.fixture
def roles() -> RoleMap:
    return RoleMap(
        admin="900",
        heads=("101", "102", "103"),
        members=("201", "202", "203"),
        club="300",
    )


# =============================================================================
# Guild Resolution Tests
# =============================================================================

class TestResolveGuild:
    """Test RoleMap.resolve_guild."""

    def test_member_role(self, roles):
        assert roles.resolve_guild(["202"]) == 2

    def test_head_role_beats_member_role(self, roles):
        """A head of guild 3 who still has the guild 1 member role is guild 3."""
        assert roles.resolve_guild(["201", "103"]) == 3

    def test_lower_guild_wins_within_group(self, roles):
        assert roles.resolve_guild(["203", "202"]) == 2
        assert roles.resolve_guild(["103", "102"]) == 2

    def test_no_matching_role(self, roles):
        assert roles.resolve_guild(["900", "300", "999"]) is None
        assert roles.resolve_guild([]) is None

    def test_unset_role_ids_never_match(self):
        """Empty configured ids must not match anything, including ''."""
        partial = RoleMap(admin="", heads=("", "", ""), members=("201", "", ""), club="")

        assert partial.resolve_guild([""]) is None
        assert partial.is_admin([""]) is False
        assert partial.is_head([""]) is False
        assert partial.resolve_guild(["201"]) == 1


# =============================================================================
# Flag Tests
# =============================================================================

class TestFlags:
    """Test admin / head / club flags."""

    def test_is_admin(self, roles):
        assert roles.is_admin(["900"]) is True
        assert roles.is_admin(["201"]) is False

    def test_is_head(self, roles):
        assert roles.is_head(["101"]) is True
        assert roles.is_head(["201", "300"]) is False

    def test_is_club(self, roles):
        assert roles.is_club(["300"]) is True
        assert roles.is_club(["201"]) is False

    def test_member_role_for(self, roles):
        assert roles.member_role_for(3) == "203"

        with pytest.raises(ValueError):
            roles.member_role_for(4)


class TestGetRoleMap:
    """Test the settings-backed role map."""

    def test_built_from_environment(self):
        roles = get_role_map()

        assert roles.admin == "900"
        assert roles.heads == ("101", "102", "103")
        assert roles.members == ("201", "202", "203")
        assert roles.club == "300"
