"""
Permission predicates and the role enum.

Tests cover:
  - predicate totality over every ProjectRole member and None
  - delete is owner-only
  - role parsing from request strings
"""

import pytest

from projecthub.models.project import ProjectRole
from projecthub.services import permission
from projecthub.services.permission import can_administer, can_delete_project, can_write


EXPECTED = {
    # role:               (write, administer, delete_project)
    ProjectRole.OWNER: (True, True, True),
    ProjectRole.ADMIN: (True, True, False),
    ProjectRole.MEMBER: (True, False, False),
    ProjectRole.VIEWER: (False, False, False),
    None: (False, False, False),
}


class TestPredicates:
    @pytest.mark.parametrize("role", list(EXPECTED))
    def test_predicate_table(self, role):
        write, administer, delete = EXPECTED[role]
        assert can_write(role) is write
        assert can_administer(role) is administer
        assert can_delete_project(role) is delete

    def test_every_role_is_covered(self):
        assert set(permission._CAPABILITIES) == set(ProjectRole)

    def test_only_owner_can_delete(self):
        assert [r for r in ProjectRole if can_delete_project(r)] == [ProjectRole.OWNER]

    def test_accepts_plain_role_values(self):
        # str-valued enum members compare equal to their values
        assert can_write("member") is True
        assert can_administer("viewer") is False

    @pytest.mark.parametrize("value", ["superuser", "", "  ", 3, "owner!", object()])
    def test_unknown_values_are_denied(self, value):
        assert can_write(value) is False
        assert can_administer(value) is False
        assert can_delete_project(value) is False

    def test_role_strings_are_case_insensitive(self):
        assert can_delete_project("OWNER") is True
        assert can_administer(" Admin ") is True


class TestProjectRole:
    def test_parse_is_case_insensitive(self):
        assert ProjectRole.parse("Admin") is ProjectRole.ADMIN
        assert ProjectRole.parse(" viewer ") is ProjectRole.VIEWER

    def test_parse_passes_members_through(self):
        assert ProjectRole.parse(ProjectRole.OWNER) is ProjectRole.OWNER

    @pytest.mark.parametrize("value", ["superuser", "", None, 3])
    def test_parse_unknown(self, value):
        assert ProjectRole.parse(value) is None
