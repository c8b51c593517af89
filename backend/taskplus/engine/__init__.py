"""Access and ticket lifecycle rules"""
from .access_evaluator import (
    compute_effective_permissions,
    has_permission,
    has_any_permission,
    default_home_route,
    resolve_home_route,
    find_page_rule,
    can_access_page,
    is_within_scope,
)
from .ticket_lifecycle import (
    derive_first_call_resolution,
    derive_ticket_state,
    needs_follow_up,
    can_transition,
    check_transition,
    validate_ticket_fields,
    parse_agent_id,
)
from .permission_registry import get_permission_catalog, get_role_presets

__all__ = [
    "compute_effective_permissions",
    "has_permission",
    "has_any_permission",
    "default_home_route",
    "resolve_home_route",
    "find_page_rule",
    "can_access_page",
    "is_within_scope",
    "derive_first_call_resolution",
    "derive_ticket_state",
    "needs_follow_up",
    "can_transition",
    "check_transition",
    "validate_ticket_fields",
    "parse_agent_id",
    "get_permission_catalog",
    "get_role_presets",
]
