"""Pytest shared fixtures: an in-memory Jenkins answering command scripts."""
import hashlib
import json
import pathlib
import sys

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from jenkins_admin.core.admin_service import AdminOperations
from jenkins_admin.core.jenkins import commands
from jenkins_admin.core.jenkins.commands import CommandTemplateRegistry
from jenkins_admin.core.jenkins.permissions import (
    Permission,
    apply_plan,
    build_addressable_table,
    encode_permission,
    plan_reconcile,
    plan_revoke_all,
)
from jenkins_admin.core.jenkins.script import ScriptExecutionClient


SERVER_PERMISSIONS = [
    Permission("hudson.model.Hudson.Administer"),
    Permission("hudson.model.Hudson.Read"),
    Permission("hudson.model.Hudson.RunScripts"),
    Permission("hudson.model.Hudson.UploadPlugins"),
    Permission("hudson.model.Hudson.ConfigureUpdateCenter"),
    Permission("hudson.model.Item.Build"),
    Permission("hudson.model.Item.Read"),
    Permission("hudson.model.Item.Configure"),
    Permission("hudson.model.Computer.Connect"),
    Permission("hudson.model.View.Create"),
    Permission("hudson.model.Run.Replay", enabled=False),
    Permission("hudson.security.Permission.GenericRead"),
    Permission("com.cloudbees.plugins.credentials.CredentialsProvider.View"),
    Permission("org.jenkins.plugins.lockableresources.LockableResourcesManager.Reserve"),
]


class RecordingRegistry(CommandTemplateRegistry):
    """Renders the real template, then hands the fake server a JSON call record."""

    def __init__(self):
        super().__init__()
        self.rendered = []

    def render(self, kind, **params):
        self.rendered.append(super().render(kind, **params))
        return json.dumps({"kind": kind, "params": params})


class FakeJenkins(ScriptExecutionClient):
    """Controller double holding a user directory and a global grant table."""

    def __init__(self, permissions=SERVER_PERMISSIONS):
        super().__init__(requester=None)
        self.addressable = build_addressable_table(permissions)
        self.users = {}
        # Every known permission, addressable or not, keyed by canonical name
        self.granted = {encode_permission(p.id): set() for p in permissions}
        self.local_realm = True
        self.matrix = True
        self.saves = 0
        self.calls = []

    def execute(self, script):
        call = json.loads(script)
        self.calls.append(call["kind"])
        handler = getattr(self, "_" + call["kind"])
        return json.dumps(handler(**call["params"]))

    # -- helpers -------------------------------------------------------------
    def _realm_error(self):
        return {"error": True, "msg": commands.NOT_LOCAL_REALM_MSG, "data": {}}

    def _matrix_error(self):
        return {"error": True, "msg": commands.NOT_MATRIX_MSG, "data": {}}

    def _names(self, username):
        return sorted(
            name for name, users in self.granted.items()
            if username in users and name in self.addressable
        )

    def _permission_result(self, username, msg=""):
        return {"error": False, "msg": msg, "data": {"username": username, "permissions": self._names(username)}}

    # -- users ---------------------------------------------------------------
    def _get_local_user(self, username):
        if not self.local_realm:
            return self._realm_error()
        return {"error": False, "msg": "", "data": dict(self.users.get(username, {}))}

    def _create_local_user(self, username, password, fullname, email, description):
        if not self.local_realm:
            return self._realm_error()
        self.users[username] = {
            "username": username,
            "fullname": fullname,
            "email": email,
            "password_hash": "#jbcrypt:" + hashlib.sha256(password.encode()).hexdigest(),
            "description": description,
        }
        return {"error": False, "msg": f"User {username} successfully created", "data": {}}

    def _delete_local_user(self, username):
        if not self.local_realm:
            return self._realm_error()
        self.users.pop(username, None)
        return {"error": False, "msg": f"User {username} successfully deleted", "data": {}}

    # -- permissions ---------------------------------------------------------
    def _get_user_permissions(self, username):
        if not self.matrix:
            return self._matrix_error()
        return self._permission_result(username)

    def _get_user_grants(self, username):
        if not self.matrix:
            return self._matrix_error()
        names = sorted(name for name, users in self.granted.items() if username in users)
        return {"error": False, "msg": "", "data": {"username": username, "permissions": names}}

    def _list_permissions(self):
        if not self.matrix:
            return self._matrix_error()
        return {"error": False, "msg": "", "data": {"username": "", "permissions": sorted(self.addressable)}}

    def _create_user_permissions(self, username, permissions):
        if not self.matrix:
            return self._matrix_error()
        for name in permissions:
            if name in self.addressable:
                self.granted[name].add(username)
        self.saves += 1
        return self._permission_result(username, f"Permissions for user {username} is created")

    def _update_user_permissions(self, username, permissions):
        if not self.matrix:
            return self._matrix_error()
        plan = plan_reconcile(self.granted, username, permissions, addressable=self.addressable)
        self.granted = apply_plan(self.granted, plan)
        self.saves += 1
        return self._permission_result(username, f"Permissions of user {username} is updated")

    def _delete_user_permissions(self, username):
        if not self.matrix:
            return self._matrix_error()
        self.granted = apply_plan(self.granted, plan_revoke_all(self.granted, username))
        self.saves += 1
        return self._permission_result(username, f"User {username} has been removed from the global matrix authorization")


@pytest.fixture
def fake_jenkins():
    return FakeJenkins()


@pytest.fixture
def registry():
    return RecordingRegistry()


@pytest.fixture
def admin(fake_jenkins, registry):
    return AdminOperations(fake_jenkins, templates=registry)
