"""Jenkins script console client library.

Architecture:
- client.py: HTTP client with basic auth, TLS trust and CSRF crumbs
- script.py: POST /scriptText and envelope decoding
- commands.py: Groovy command templates and literal escaping
- envelope.py: Result envelope and typed payloads
- permissions.py: Permission naming and reconciliation plans
- users.py: Local user database operations
- matrix.py: Global matrix authorization operations
- exceptions.py: Typed exceptions for error handling

Usage:
    from jenkins_admin.core.jenkins import JenkinsClient, ScriptExecutionClient, UserService

    client = JenkinsClient("https://jenkins.example.com", "admin", "api-token")
    users = UserService(ScriptExecutionClient(client))
    user = users.get_user("alice")
"""
from .client import JenkinsClient, REQUEST_TIMEOUT
from .commands import CommandTemplateRegistry, groovy_literal, groovy_list
from .envelope import Envelope, LocalUser, UserPermissionSet, decode_envelope
from .exceptions import (
    JenkinsError,
    TransportError,
    ProtocolError,
    DomainError,
    TemplateError,
    UserAlreadyExistsError,
)
from .matrix import PermissionService
from .permissions import (
    Permission,
    ReconcilePlan,
    encode_permission,
    build_addressable_table,
    plan_grant,
    plan_reconcile,
    plan_revoke_all,
    apply_plan,
)
from .script import ScriptExecutionClient
from .users import UserService

__all__ = [
    # Client
    "JenkinsClient",
    "ScriptExecutionClient",
    "REQUEST_TIMEOUT",

    # Exceptions
    "JenkinsError",
    "TransportError",
    "ProtocolError",
    "DomainError",
    "TemplateError",
    "UserAlreadyExistsError",

    # Templates and envelope
    "CommandTemplateRegistry",
    "groovy_literal",
    "groovy_list",
    "Envelope",
    "LocalUser",
    "UserPermissionSet",
    "decode_envelope",

    # Permissions
    "Permission",
    "ReconcilePlan",
    "encode_permission",
    "build_addressable_table",
    "plan_grant",
    "plan_reconcile",
    "plan_revoke_all",
    "apply_plan",

    # Services
    "UserService",
    "PermissionService",
]
