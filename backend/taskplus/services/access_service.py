"""Access Service - Permission registry administration and access evaluation"""
from typing import Any, Dict, List, Optional, Tuple

from ..domain.models import UserAccess, Role, Permission, EffectiveAccess, User
from ..domain.errors import InvalidRegistryKeysError
from ..engine.access_evaluator import (
    compute_effective_permissions, find_page_rule, can_access_page, is_within_scope,
    resolve_home_route
)
from ..repositories.access_repo import AccessRepository
from ..repositories.user_repo import UserRepository
from ..utils.logger import get_logger

logger = get_logger(__name__)


class AccessService:
    """Service for roles, permissions and per-user access records"""

    def __init__(self):
        self.access_repo = AccessRepository()
        self.user_repo = UserRepository()

    # =========================================================================
    # Evaluation
    # =========================================================================

    def load_access(self, user_id: str) -> Tuple[Optional[UserAccess], List[Role]]:
        """Fetch the inputs the evaluator needs for one user"""
        return self.access_repo.get_user_access(user_id), self.access_repo.list_roles()

    def get_effective_access(self, user_id: str) -> EffectiveAccess:
        user_access, roles = self.load_access(user_id)
        return compute_effective_permissions(user_access, roles)

    def check_page_access(
        self,
        user_id: str,
        permission: str,
        page: int,
        department: Optional[str] = None,
        section: Optional[str] = None
    ) -> bool:
        """Page rule and department/section scope must both allow"""
        user_access, roles = self.load_access(user_id)
        if not can_access_page(user_access, roles, permission, page, section):
            return False
        return is_within_scope(user_access, department=department, section=section)

    # =========================================================================
    # Registry
    # =========================================================================

    def list_permissions(self) -> List[Permission]:
        return self.access_repo.list_permissions()

    def list_roles(self) -> List[Role]:
        return self.access_repo.list_roles()

    def upsert_role(
        self,
        key: str,
        label: str,
        permissions: List[str],
        description: Optional[str] = None,
        actor_user_id: Optional[str] = None
    ) -> Role:
        """Create or replace a role; every permission key must be registered"""
        unknown = self.access_repo.find_unknown_permissions(permissions)
        if unknown:
            raise InvalidRegistryKeysError(
                "Unknown permission keys",
                details={"invalidPerms": unknown}
            )

        role = self.access_repo.upsert_role(
            Role(key=key, label=label, description=description, permissions=permissions)
        )
        logger.info(
            f"Role {key} saved with {len(role.permissions)} permissions",
            extra={"actor_user_id": actor_user_id, "action": "role_upsert"}
        )
        return role

    # =========================================================================
    # User Access
    # =========================================================================

    def _serialize_access(self, user_id: str, user_access: Optional[UserAccess]) -> Dict[str, Any]:
        record = user_access or UserAccess(user_id=user_id)
        return record.model_dump(by_alias=True, mode="json")

    def get_user_access_view(self, user_id: str) -> Dict[str, Any]:
        """User summary plus access record (empty defaults when none exists)"""
        user = self.user_repo.get_user_or_raise(user_id)
        user_access = self.access_repo.get_user_access(user_id)
        return {
            "user": user.to_public(),
            "access": self._serialize_access(user_id, user_access),
        }

    def update_user_access(
        self,
        user_id: str,
        updates: Dict[str, Any],
        actor_user_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Upsert a user's access record

        Args:
            user_id: Target user
            updates: Snake-case UserAccess fields supplied by the caller
            actor_user_id: Administrator performing the change

        Raises:
            UserNotFoundError: Target user does not exist
            InvalidRegistryKeysError: Unknown role or permission keys
        """
        user = self.user_repo.get_user_or_raise(user_id)

        unknown_roles = self.access_repo.find_unknown_roles(updates.get("roles") or [])
        if unknown_roles:
            raise InvalidRegistryKeysError(
                "Unknown role keys",
                details={"invalidRoles": unknown_roles}
            )

        requested_perms = list(updates.get("perms_extra") or []) + list(updates.get("perms_denied") or [])
        unknown_perms = self.access_repo.find_unknown_permissions(requested_perms)
        if unknown_perms:
            raise InvalidRegistryKeysError(
                "Unknown permission keys",
                details={"invalidPerms": unknown_perms}
            )

        # Round-trip through the model to dedupe and normalize page rules
        normalized = UserAccess(user_id=user_id, **updates).model_dump(include=set(updates.keys()))
        user_access = self.access_repo.upsert_user_access(user_id, normalized)

        logger.info(
            f"Access updated for {user.username}",
            extra={"user_id": user_id, "actor_user_id": actor_user_id, "action": "access_update"}
        )
        return {
            "user": user.to_public(),
            "access": self._serialize_access(user_id, user_access),
        }

    def get_page_restrictions(self, user_id: str, permission: str) -> Dict[str, Any]:
        user = self.user_repo.get_user_or_raise(user_id)
        rule = find_page_rule(self.access_repo.get_user_access(user_id), permission)
        return {
            "user": user.to_public(),
            "permission": permission,
            "restrictions": rule.model_dump(by_alias=True) if rule else None,
        }

    # =========================================================================
    # Organization lookups
    # =========================================================================

    def list_departments(self) -> List[Dict[str, Any]]:
        return [department.model_dump() for department in self.user_repo.list_departments()]

    def list_sections(self, department_id: Optional[str] = None) -> List[Dict[str, Any]]:
        return [section.model_dump() for section in self.user_repo.list_sections(department_id)]

    def describe_user(self, user: User) -> Dict[str, Any]:
        """Session payload: public user fields, effective permissions and landing route"""
        effective = self.get_effective_access(user.user_id)
        payload = user.to_public()
        payload.pop("status", None)
        payload["permissions"] = sorted(effective.permissions)
        payload["roles"] = effective.roles
        payload["homeRoute"] = resolve_home_route(effective)
        return payload
