# app/auth/permissions.py

from typing import List, Dict, Any, Optional
from fastapi import HTTPException, status
from app.models.shared.enums import ItemType
import logging

logger = logging.getLogger(__name__)

# Permission resource guarding each item catalog and its ledger rows
ITEM_PERMISSION_RESOURCES: Dict[ItemType, str] = {
    ItemType.PHARMACY: "pharmacy",
    ItemType.OPTICAL: "optical_plan",
}


class PermissionChecker:
    """
    Check user permissions from JWT token
    """

    def __init__(self, user_permissions: List[Dict[str, Any]]):
        self.permissions = user_permissions or []
        self._permission_map = {}

        for perm in self.permissions:
            resource = perm.get("resource")
            action = perm.get("action")
            if resource and action:
                self._permission_map[f"{resource}:{action}"] = True

        logger.debug(f"PermissionChecker initialized with {len(self.permissions)} permissions")

    def can(self, resource: str, action: str) -> bool:
        """
        Check if user can perform action on resource

        Examples:
            can("pharmacy", "create")
        """
        permission_key = f"{resource}:{action}"
        if permission_key in self._permission_map:
            return True

        # Admin on the resource grants every action on it
        if f"{resource}:admin" in self._permission_map:
            return True

        if "system:admin" in self._permission_map:
            return True

        logger.debug(f"Permission denied: {permission_key}")
        return False

    def cannot(self, resource: str, action: str) -> bool:
        return not self.can(resource, action)

    def require(
        self,
        resource: str,
        action: str,
        custom_message: Optional[str] = None
    ):
        """
        Require permission or raise HTTPException
        """
        if self.cannot(resource, action):
            message = custom_message or f"Insufficient permissions to {action} {resource}"
            logger.warning(f"Permission check failed: {message}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=message
            )

    def has_any(self, *permission_tuples) -> bool:
        """
        Check if user has any of the given permissions (OR logic)
        """
        for resource, action in permission_tuples:
            if self.can(resource, action):
                return True
        return False

    def require_item_access(self, item_type: ItemType, action: str):
        self.require(ITEM_PERMISSION_RESOURCES[ItemType(item_type)], action)


def format_permission_name(resource: str, action: str) -> str:
    """
    Format permission as string
    """
    return f"{resource}:{action}"
