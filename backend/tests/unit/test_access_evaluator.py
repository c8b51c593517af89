"""Access evaluator: effective permissions, page rules, scope and home route"""
import pytest

from taskplus.domain.models import Role, UserAccess, PageAccessRule, EffectiveAccess
from taskplus.engine.access_evaluator import (
    compute_effective_permissions, has_permission, has_any_permission,
    default_home_route, resolve_home_route, find_page_rule,
    can_access_page, is_within_scope
)


ROLES = [
    Role(key="agent", label="Agent", permissions=["dashboard.view", "support.tickets"]),
    Role(key="followup", label="Follow-up", permissions=["dashboard.view", "support.followups"]),
    Role(key="content", label="Content", permissions=["content.ideas"]),
]


def make_access(**fields) -> UserAccess:
    return UserAccess(user_id="USR-1", **fields)


class TestEffectivePermissions:

    def test_no_record_grants_nothing(self):
        effective = compute_effective_permissions(None, ROLES)

        assert effective.permissions == set()
        assert effective.roles == []
        assert effective.home_route is None

    def test_role_permissions_are_unioned(self):
        effective = compute_effective_permissions(make_access(roles=["agent", "followup"]), ROLES)

        assert effective.permissions == {"dashboard.view", "support.tickets", "support.followups"}

    def test_extra_permissions_are_added(self):
        access = make_access(roles=["agent"], perms_extra=["reports.support"])

        effective = compute_effective_permissions(access, ROLES)

        assert "reports.support" in effective.permissions
        assert "support.tickets" in effective.permissions

    def test_denial_wins_over_role(self):
        access = make_access(roles=["agent"], perms_denied=["support.tickets"])

        effective = compute_effective_permissions(access, ROLES)

        assert not has_permission(effective, "support.tickets")
        assert has_permission(effective, "dashboard.view")

    def test_denial_wins_over_extra_grant(self):
        access = make_access(perms_extra=["reports.custom"], perms_denied=["reports.custom"])

        assert compute_effective_permissions(access, ROLES).permissions == set()

    def test_unknown_role_keys_are_ignored(self):
        access = make_access(roles=["ghost", "content"])

        effective = compute_effective_permissions(access, ROLES)

        assert effective.permissions == {"content.ideas"}
        assert effective.roles == ["ghost", "content"]

    def test_camel_case_wire_names_are_accepted(self):
        access = UserAccess.model_validate({
            "userId": "USR-2",
            "roles": ["agent"],
            "permsDenied": ["support.tickets"],
            "homeRoute": "/support/followups",
        })

        effective = compute_effective_permissions(access, ROLES)

        assert effective.permissions == {"dashboard.view"}
        assert effective.home_route == "/support/followups"


class TestPermissionChecks:

    def test_any_permission(self):
        effective = EffectiveAccess(permissions={"support.reviews"})

        assert has_any_permission(effective, ["support.tickets", "support.reviews"])
        assert not has_any_permission(effective, ["support.tickets"])
        assert not has_any_permission(effective, [])

    def test_plain_iterables_and_none(self):
        assert has_permission(["a", "b"], "a")
        assert not has_permission(None, "a")


class TestHomeRoute:

    @pytest.mark.parametrize("permissions, expected", [
        ({"support.tickets", "content.ideas"}, "/support/tickets"),
        ({"content.ideas", "management.view"}, "/content/ideas"),
        ({"operations.view", "dashboard.view"}, "/operations/all"),
        ({"management.view"}, "/management/departments"),
        ({"dashboard.view"}, "/dashboard/admin"),
        (set(), "/dashboard/admin"),
    ])
    def test_priority_order(self, permissions, expected):
        assert default_home_route(EffectiveAccess(permissions=permissions)) == expected

    def test_explicit_home_route_overrides(self):
        effective = EffectiveAccess(permissions={"support.tickets"}, home_route="/reports")

        assert resolve_home_route(effective) == "/reports"


class TestPageAccess:

    def test_no_record_denies(self):
        assert not can_access_page(None, ROLES, "support.tickets", 1)

    def test_missing_base_permission_denies(self):
        access = make_access(roles=["followup"])

        assert not can_access_page(access, ROLES, "support.tickets", 1)

    def test_no_rule_allows_any_page(self):
        access = make_access(perms_extra=["management.users"])

        for page in (1, 2, 50, 1000):
            assert can_access_page(access, ROLES, "management.users", page)

    def test_allowed_pages(self):
        access = make_access(
            roles=["agent"],
            page_access=[PageAccessRule(permission="support.tickets", allowed_pages=[1, 3])],
        )

        assert can_access_page(access, ROLES, "support.tickets", 1)
        assert not can_access_page(access, ROLES, "support.tickets", 2)
        assert can_access_page(access, ROLES, "support.tickets", 3)

    def test_allowed_pages_take_precedence_over_max_pages(self):
        access = make_access(
            roles=["agent"],
            page_access=[PageAccessRule(permission="support.tickets", allowed_pages=[5], max_pages=2)],
        )

        assert can_access_page(access, ROLES, "support.tickets", 5)
        assert not can_access_page(access, ROLES, "support.tickets", 1)

    def test_max_pages(self):
        access = make_access(
            roles=["agent"],
            page_access=[PageAccessRule(permission="support.tickets", max_pages=2)],
        )

        assert can_access_page(access, ROLES, "support.tickets", 2)
        assert not can_access_page(access, ROLES, "support.tickets", 3)

    def test_sections_allowed(self):
        access = make_access(
            roles=["agent"],
            page_access=[PageAccessRule(permission="support.tickets", sections_allowed=["SEC-A"])],
        )

        assert can_access_page(access, ROLES, "support.tickets", 1, "SEC-A")
        assert not can_access_page(access, ROLES, "support.tickets", 1, "SEC-B")
        assert can_access_page(access, ROLES, "support.tickets", 1)

    def test_rule_for_other_permission_does_not_apply(self):
        access = make_access(
            roles=["agent"],
            page_access=[PageAccessRule(permission="support.followups", max_pages=1)],
        )

        assert can_access_page(access, ROLES, "support.tickets", 9)

    def test_denied_permission_denies_page_even_with_rule(self):
        access = make_access(
            roles=["agent"],
            perms_denied=["support.tickets"],
            page_access=[PageAccessRule(permission="support.tickets", allowed_pages=[1])],
        )

        assert not can_access_page(access, ROLES, "support.tickets", 1)

    def test_find_page_rule(self):
        rule = PageAccessRule(permission="support.tickets", max_pages=4)
        access = make_access(page_access=[rule])

        assert find_page_rule(access, "support.tickets").max_pages == 4
        assert find_page_rule(access, "support.reviews") is None
        assert find_page_rule(None, "support.tickets") is None


class TestScope:

    def test_empty_restrictions_are_unrestricted(self):
        access = make_access()

        assert is_within_scope(access, department="DEP-1", section="SEC-1")

    def test_department_restriction(self):
        access = make_access(department_restrictions=["DEP-1"])

        assert is_within_scope(access, department="DEP-1")
        assert not is_within_scope(access, department="DEP-2")
        assert is_within_scope(access)

    def test_section_restriction(self):
        access = make_access(section_restrictions=["SEC-1"])

        assert is_within_scope(access, section="SEC-1")
        assert not is_within_scope(access, section="SEC-9")

    def test_no_record_is_out_of_scope(self):
        assert not is_within_scope(None)
