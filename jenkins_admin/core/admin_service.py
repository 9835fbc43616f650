"""
Admin Operations: single entry point for Jenkins account administration

This module composes the script console client, the command templates and
the user/permission services into the operations consumed by callers
(CLI, provisioning tooling).

Architecture:
    caller ──> AdminOperations ──> UserService / PermissionService
                                        │
                                        ├─> CommandTemplateRegistry (Groovy text)
                                        └─> ScriptExecutionClient ──> POST /scriptText

Features:
    - Input validation before any script is rendered
    - Default description for accounts created without one
    - Dry-run planning of permission updates
    - Every failure surfaces as a JenkinsError subclass (or ValueError for bad input)
"""

from __future__ import annotations
import logging
from typing import Iterable, Optional

from jenkins_admin.core.jenkins import (
    CommandTemplateRegistry,
    LocalUser,
    PermissionService,
    ReconcilePlan,
    ScriptExecutionClient,
    UserPermissionSet,
    UserAlreadyExistsError,
    UserService,
)
from jenkins_admin.core.validators import (
    validate_email,
    validate_permission_names,
    validate_text,
    validate_username,
)

DEFAULT_DESCRIPTION = "Managed by Terraform"

logger = logging.getLogger(__name__)


class AdminOperations:
    """Facade over Jenkins local users and global matrix permissions.

    Usage:
        admin = AdminOperations(ScriptExecutionClient(JenkinsClient(url, user, token)))
        admin.create_local_user("alice", "s3cret", "Alice A", "a@x.com")
        admin.create_user_permissions("alice", ["Overall/Read", "Job/Build"])
    """

    def __init__(
        self,
        scripts: ScriptExecutionClient,
        templates: Optional[CommandTemplateRegistry] = None,
        default_description: str = DEFAULT_DESCRIPTION,
    ):
        """Initialize the facade.

        Args:
            scripts: Script console client
            templates: Command templates (default registry when omitted)
            default_description: Description applied when none is given
        """
        templates = templates or CommandTemplateRegistry()
        self.users = UserService(scripts, templates)
        self.permissions = PermissionService(scripts, templates)
        self.default_description = default_description

    # ─────────────────────────────────────────────────────────────────────
    # Local users
    # ─────────────────────────────────────────────────────────────────────
    def get_local_user(self, username: str) -> LocalUser:
        """Return the user, or an empty LocalUser when it does not exist."""
        return self.users.get_user(validate_username(username))

    def create_local_user(
        self,
        username: str,
        password: str,
        fullname: str,
        email: str,
        description: Optional[str] = None,
    ) -> None:
        """Create a local user; an empty description becomes the default one.

        Raises:
            UserAlreadyExistsError: If the username is already taken
        """
        username = validate_username(username)
        fields = self._user_fields(password, fullname, email, description)
        if self.users.get_user(username).exists:
            raise UserAlreadyExistsError(f"Local user {username} already exists in Jenkins")
        self.users.create_user(username, *fields)

    def update_local_user(
        self,
        username: str,
        password: str,
        fullname: str,
        email: str,
        description: Optional[str] = None,
    ) -> None:
        """Overwrite password and profile of a user.

        Jenkins account creation is an upsert, so this reuses the create script.
        """
        username = validate_username(username)
        self.users.create_user(username, *self._user_fields(password, fullname, email, description))

    def _user_fields(self, password, fullname, email, description):
        if not isinstance(password, str) or not password:
            raise ValueError("Password is required")
        return (
            password,
            validate_text(fullname, "Full name", max_length=255),
            validate_email(email),
            validate_text(description, "Description", multiline=True) or self.default_description,
        )

    def delete_local_user(self, username: str) -> None:
        self.users.delete_user(validate_username(username))

    # ─────────────────────────────────────────────────────────────────────
    # Global matrix permissions
    # ─────────────────────────────────────────────────────────────────────
    def get_user_permissions(self, username: str) -> UserPermissionSet:
        return self.permissions.get_permissions(validate_username(username))

    def create_user_permissions(self, username: str, permissions: Iterable[str]) -> None:
        """Grant ``permissions``; existing grants are kept, unknown names are skipped."""
        self.permissions.grant(validate_username(username), validate_permission_names(permissions))

    def update_user_permissions(self, username: str, permissions: Iterable[str]) -> None:
        """Make ``permissions`` the user's exact grant set."""
        self.permissions.reconcile(validate_username(username), validate_permission_names(permissions))

    def delete_user_permissions(self, username: str) -> None:
        """Revoke every grant the user holds."""
        self.permissions.revoke_all(validate_username(username))

    def plan_user_permissions(self, username: str, permissions: Iterable[str]) -> ReconcilePlan:
        """Preview update_user_permissions() without changing anything."""
        return self.permissions.plan(validate_username(username), validate_permission_names(permissions))

    def available_permissions(self) -> list:
        """Sorted canonical names that can be granted."""
        return sorted(self.permissions.available_permissions())


def build_admin(settings) -> AdminOperations:
    """Wire an AdminOperations facade from loaded settings."""
    client = settings.create_client()
    logger.debug("[admin] Using Jenkins at %s", client.base_url)
    return AdminOperations(ScriptExecutionClient(client), default_description=settings.default_description)
