"""Access Repository - Permission registry, roles and per-user access records"""
from typing import Any, Dict, Iterable, List, Optional, Set
from pymongo import ASCENDING, ReturnDocument
from pymongo.collection import Collection

from .mongo_client import get_collection
from ..domain.models import Permission, Role, UserAccess
from ..utils.logger import get_logger
from ..utils.time import storage_now

logger = get_logger(__name__)


class AccessRepository:
    """Repository for the permission registry and user access records"""

    def __init__(self):
        self._permissions: Collection = get_collection("permissions")
        self._roles: Collection = get_collection("roles")
        self._user_access: Collection = get_collection("user_access")

    # =========================================================================
    # Permissions
    # =========================================================================

    def list_permissions(self) -> List[Permission]:
        """All registered permissions grouped then keyed"""
        cursor = self._permissions.find({}).sort([("group", ASCENDING), ("key", ASCENDING)])
        permissions = []
        for doc in cursor:
            doc.pop("_id", None)
            permissions.append(Permission.model_validate(doc))
        return permissions

    def upsert_permission(self, permission: Permission) -> None:
        self._permissions.update_one(
            {"key": permission.key},
            {"$set": permission.model_dump()},
            upsert=True
        )

    def find_unknown_permissions(self, keys: Iterable[str]) -> List[str]:
        """Keys not present in the registry, in the order given"""
        requested = list(dict.fromkeys(keys))
        if not requested:
            return []
        known: Set[str] = {
            doc["key"] for doc in self._permissions.find({"key": {"$in": requested}}, {"key": 1})
        }
        return [key for key in requested if key not in known]

    # =========================================================================
    # Roles
    # =========================================================================

    def list_roles(self) -> List[Role]:
        cursor = self._roles.find({}).sort("key", ASCENDING)
        roles = []
        for doc in cursor:
            doc.pop("_id", None)
            roles.append(Role.model_validate(doc))
        return roles

    def get_role(self, key: str) -> Optional[Role]:
        doc = self._roles.find_one({"key": key})
        if doc:
            doc.pop("_id", None)
            return Role.model_validate(doc)
        return None

    def upsert_role(self, role: Role) -> Role:
        """Create or replace a role definition"""
        self._roles.update_one(
            {"key": role.key},
            {"$set": role.model_dump()},
            upsert=True
        )
        logger.info(f"Upserted role: {role.key}", extra={"action": "role_upsert"})
        return role

    def find_unknown_roles(self, keys: Iterable[str]) -> List[str]:
        requested = list(dict.fromkeys(keys))
        if not requested:
            return []
        known: Set[str] = {
            doc["key"] for doc in self._roles.find({"key": {"$in": requested}}, {"key": 1})
        }
        return [key for key in requested if key not in known]

    # =========================================================================
    # User Access
    # =========================================================================

    def get_user_access(self, user_id: str) -> Optional[UserAccess]:
        """Access record for a user, or None if it was never created"""
        doc = self._user_access.find_one({"user_id": user_id})
        if doc:
            doc.pop("_id", None)
            return UserAccess.model_validate(doc)
        return None

    def upsert_user_access(self, user_id: str, updates: Dict[str, Any]) -> UserAccess:
        """
        Create the record on first edit, otherwise update only the given fields

        Args:
            user_id: Owner of the record
            updates: Snake-case UserAccess fields to set

        Returns:
            The stored record after the update
        """
        now = storage_now()
        set_fields = dict(updates)
        set_fields["updated_at"] = now

        doc = self._user_access.find_one_and_update(
            {"user_id": user_id},
            {
                "$set": set_fields,
                "$setOnInsert": {"created_at": now},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        doc.pop("_id", None)
        logger.info(
            f"Upserted access for user {user_id}",
            extra={"user_id": user_id, "action": "access_upsert"}
        )
        return UserAccess.model_validate(doc)
