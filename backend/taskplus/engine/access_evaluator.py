"""Access Evaluator - Effective permissions and page-level decisions

Pure functions over a user's access record and the role catalog. Nothing here
touches the database or raises for partial data: unknown role or permission
keys are inert, a missing access record grants nothing.
"""
from typing import Iterable, Optional, Set, Union

from ..domain.models import EffectiveAccess, PageAccessRule, Role, UserAccess


PermissionSource = Union[EffectiveAccess, Iterable[str], None]

DEFAULT_HOME_ROUTE = "/dashboard/admin"

# First match wins
HOME_ROUTE_PRIORITY = [
    ("support.tickets", "/support/tickets"),
    ("content.ideas", "/content/ideas"),
    ("operations.view", "/operations/all"),
    ("management.view", "/management/departments"),
    ("dashboard.view", "/dashboard/admin"),
]


def _permission_set(effective: PermissionSource) -> Set[str]:
    if effective is None:
        return set()
    if isinstance(effective, EffectiveAccess):
        return effective.permissions
    return set(effective)


def compute_effective_permissions(
    user_access: Optional[UserAccess],
    all_roles: Iterable[Role]
) -> EffectiveAccess:
    """
    Combine role grants, extra grants and denials into one permission set.

    effective = (union of role permissions + perms_extra) - perms_denied

    Args:
        user_access: The user's access record, or None if never created
        all_roles: Full role catalog

    Returns:
        EffectiveAccess with permissions, assigned roles and explicit home route
    """
    if user_access is None:
        return EffectiveAccess()

    assigned = set(user_access.roles or [])
    role_permissions: Set[str] = set()
    for role in all_roles or []:
        if role.key in assigned:
            role_permissions.update(role.permissions or [])

    candidate = role_permissions | set(user_access.perms_extra or [])
    effective = candidate - set(user_access.perms_denied or [])

    return EffectiveAccess(
        permissions=effective,
        roles=list(user_access.roles or []),
        home_route=user_access.home_route,
    )


def has_permission(effective: PermissionSource, key: str) -> bool:
    """Check a single permission key"""
    return key in _permission_set(effective)


def has_any_permission(effective: PermissionSource, keys: Iterable[str]) -> bool:
    """Check that at least one of the keys is granted"""
    permissions = _permission_set(effective)
    return any(key in permissions for key in keys)


def default_home_route(effective: PermissionSource) -> str:
    """Landing route derived from the strongest capability the user has"""
    permissions = _permission_set(effective)
    for key, route in HOME_ROUTE_PRIORITY:
        if key in permissions:
            return route
    return DEFAULT_HOME_ROUTE


def resolve_home_route(effective: EffectiveAccess) -> str:
    """Explicit home route override, else the derived default"""
    if effective.home_route:
        return effective.home_route
    return default_home_route(effective)


def find_page_rule(
    user_access: Optional[UserAccess],
    permission: str
) -> Optional[PageAccessRule]:
    """Page restriction configured for a permission, if any"""
    if user_access is None:
        return None
    for rule in user_access.page_access or []:
        if rule.permission == permission:
            return rule
    return None


def can_access_page(
    user_access: Optional[UserAccess],
    all_roles: Iterable[Role],
    permission: str,
    page_number: int,
    section: Optional[str] = None
) -> bool:
    """
    Decide whether a user may open a given page (and section) of a feature.

    The base permission is necessary. Each configured restriction on the
    matching rule is an additional AND-condition; a missing restriction means
    unrestricted in that dimension.
    """
    if user_access is None:
        return False

    effective = compute_effective_permissions(user_access, all_roles)
    if permission not in effective.permissions:
        return False

    rule = find_page_rule(user_access, permission)
    if rule is None:
        return True

    if rule.allowed_pages:
        if page_number not in rule.allowed_pages:
            return False
    elif rule.max_pages is not None and page_number > rule.max_pages:
        return False

    if section and rule.sections_allowed and section not in rule.sections_allowed:
        return False

    return True


def is_within_scope(
    user_access: Optional[UserAccess],
    department: Optional[str] = None,
    section: Optional[str] = None
) -> bool:
    """
    Check department/section scope restrictions for a resource.

    Only dimensions that are both supplied and restricted are checked.
    """
    if user_access is None:
        return False

    if department and user_access.department_restrictions:
        if department not in user_access.department_restrictions:
            return False

    if section and user_access.section_restrictions:
        if section not in user_access.section_restrictions:
            return False

    return True
