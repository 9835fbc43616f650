"""Global matrix authorization operations."""
from __future__ import annotations
import logging
from typing import FrozenSet, Iterable, Optional

from .commands import (
    CommandTemplateRegistry,
    CREATE_USER_PERMISSIONS,
    DELETE_USER_PERMISSIONS,
    GET_USER_GRANTS,
    GET_USER_PERMISSIONS,
    LIST_PERMISSIONS,
    UPDATE_USER_PERMISSIONS,
)
from .envelope import UserPermissionSet
from .permissions import ReconcilePlan, plan_reconcile
from .script import ScriptExecutionClient

logger = logging.getLogger(__name__)


class PermissionService:
    """Service for a user's grants in the global permission matrix."""

    def __init__(self, scripts: ScriptExecutionClient, templates: Optional[CommandTemplateRegistry] = None):
        """Initialize permission service.

        Args:
            scripts: Script console client
            templates: Command templates (default registry when omitted)
        """
        self.scripts = scripts
        self.templates = templates or CommandTemplateRegistry()

    def _run(self, kind: str, username: str, **params) -> UserPermissionSet:
        script = self.templates.render(kind, username=username, **params)
        envelope = self.scripts.call(script, UserPermissionSet.from_payload)
        result = envelope.unwrap() or UserPermissionSet(username=username)
        if envelope.msg:
            logger.info("[permissions] %s", envelope.msg)
        return result

    def get_permissions(self, username: str) -> UserPermissionSet:
        """Canonical names granted to ``username`` (empty set when none)."""
        return self._run(GET_USER_PERMISSIONS, username)

    def grant(self, username: str, permissions: Iterable[str]) -> UserPermissionSet:
        """Add every known permission in ``permissions``; nothing is revoked.

        Returns:
            The user's grant set after the change
        """
        return self._run(CREATE_USER_PERMISSIONS, username, permissions=list(permissions))

    def reconcile(self, username: str, permissions: Iterable[str]) -> UserPermissionSet:
        """Grant the desired set and revoke every other grant the user holds.

        Returns:
            The user's grant set after the change
        """
        return self._run(UPDATE_USER_PERMISSIONS, username, permissions=list(permissions))

    def revoke_all(self, username: str) -> UserPermissionSet:
        """Remove ``username`` from every permission in the matrix."""
        return self._run(DELETE_USER_PERMISSIONS, username)

    def available_permissions(self) -> FrozenSet[str]:
        """Canonical names that can be granted through this interface."""
        script = self.templates.render(LIST_PERMISSIONS)
        result = self.scripts.call(script, UserPermissionSet.from_payload).unwrap()
        return result.permissions if result else frozenset()

    def plan(self, username: str, permissions: Iterable[str]) -> ReconcilePlan:
        """Compute what reconcile() would change without touching the server.

        The plan starts from every grant the user holds, so grants outside the
        addressable table (e.g. Overall/RunScripts) show up in ``to_remove``
        exactly as reconcile() would revoke them.
        """
        script = self.templates.render(GET_USER_GRANTS, username=username)
        current = self.scripts.call(script, UserPermissionSet.from_payload).unwrap() or UserPermissionSet(username=username)
        granted = {name: {username} for name in current.permissions}
        plan = plan_reconcile(granted, username, permissions, addressable=self.available_permissions())
        if plan.unknown:
            logger.warning("[permissions] Unknown permissions for %s will be skipped: %s", username, ", ".join(plan.unknown))
        return plan
