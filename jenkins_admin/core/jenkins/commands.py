"""Groovy command templates for the Jenkins script console.

Each operation is one Jinja2 template. Rendered scripts check the server
setup, perform the query or mutation, and print exactly one JSON envelope
(see ``envelope.py``).

Values reach the script only as Groovy single-quoted literals produced by
the ``groovy`` / ``groovy_list`` filters. Any other ``{{ ... }}`` output is
refused at render time.
"""
from __future__ import annotations
from typing import Dict, Iterable

import jinja2
from jinja2 import DictLoader, Environment, StrictUndefined, Undefined

from .exceptions import TemplateError
from .permissions import INTERNAL_PREFIX, NON_CONFIGURABLE_SUFFIXES, REWRITES

GET_LOCAL_USER = "get_local_user"
CREATE_LOCAL_USER = "create_local_user"
DELETE_LOCAL_USER = "delete_local_user"
GET_USER_PERMISSIONS = "get_user_permissions"
CREATE_USER_PERMISSIONS = "create_user_permissions"
UPDATE_USER_PERMISSIONS = "update_user_permissions"
DELETE_USER_PERMISSIONS = "delete_user_permissions"
LIST_PERMISSIONS = "list_permissions"
GET_USER_GRANTS = "get_user_grants"

NOT_LOCAL_REALM_MSG = "Jenkins is not using local user database"
NOT_MATRIX_MSG = "Jenkins is not using matrix-based authorization"

_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
}


class GroovyLiteral(str):
    """Text already rendered as Groovy source."""


def _escape_char(char: str) -> str:
    if char in _ESCAPES:
        return _ESCAPES[char]
    code = ord(char)
    if code < 0x20 or 0x7F <= code <= 0x9F or char in "\u2028\u2029":
        return "\\u%04x" % code
    return char


def groovy_literal(value) -> GroovyLiteral:
    """Render a Python string as a Groovy single-quoted string literal.

    Backslash and quote are escaped, control characters become escape
    sequences. Single-quoted Groovy strings never expand ``$``.
    """
    if isinstance(value, Undefined):
        str(value)  # StrictUndefined raises UndefinedError
    if not isinstance(value, str):
        raise TemplateError(f"Only strings can be interpolated, got {type(value).__name__}")
    return GroovyLiteral("'" + "".join(_escape_char(char) for char in value) + "'")


def groovy_list(values) -> GroovyLiteral:
    """Render an iterable of strings as a Groovy list literal."""
    if isinstance(values, Undefined):
        str(values)
    if isinstance(values, str):
        raise TemplateError("Expected a list of strings, got a single string")
    return GroovyLiteral("[" + ", ".join(groovy_literal(value) for value in values) + "]")


def _require_literal(value):
    if isinstance(value, GroovyLiteral):
        return value
    raise TemplateError(
        f"Refusing to interpolate unescaped value {value!r}; pipe it through |groovy or |groovy_list"
    )


_HEADER = """\
import groovy.json.JsonOutput
import jenkins.model.Jenkins
"""

_LOCAL_REALM_GUARD = """\
def realm = Jenkins.instance.getSecurityRealm()
if (!(realm instanceof HudsonPrivateSecurityRealm)) {
  println(JsonOutput.toJson([error: true, msg: {{ not_local_realm_msg|groovy }}, data: [:]]))
  return
}
"""

_MATRIX_GUARD = """\
def strategy = Jenkins.instance.getAuthorizationStrategy()
if (!(strategy instanceof GlobalMatrixAuthorizationStrategy)) {
  println(JsonOutput.toJson([error: true, msg: {{ not_matrix_msg|groovy }}, data: [:]]))
  return
}
"""

_PERMISSION_CODEC = """\
String shortName(Permission p) {
  String name = p.id.tokenize('.').takeRight(2).join('/')
{% for old, new in rewrites %}
  name = name.replace({{ old|groovy }}, {{ new|groovy }})
{% endfor %}
  return name
}

def nonConfigurable = {{ non_configurable|groovy_list }}
def addressable = Permission.all.findAll { p ->
  p.enabled &&
    !p.id.startsWith({{ internal_prefix|groovy }}) &&
    !nonConfigurable.any { suffix -> p.id.endsWith(suffix) }
}.collectEntries { p -> [(shortName(p)): p] }

def grantedNames = { String sid ->
  strategy.grantedPermissions.findAll { p, sids ->
    sids.contains(sid) && addressable.containsKey(shortName(p))
  }.collect { p, sids -> shortName(p) }.unique().sort()
}
"""

_GET_LOCAL_USER = """\
import hudson.security.HudsonPrivateSecurityRealm
import hudson.security.HudsonPrivateSecurityRealm.Details
import hudson.tasks.Mailer
{% include "_header" %}

{% include "_local_realm_guard" %}

def username = {{ username|groovy }}
def result = [error: false, msg: '', data: [:]]
def user = realm.getUser(username)
if (user != null) {
  def details = user.getProperty(Details.class)
  def mail = user.getProperty(Mailer.UserProperty.class)
  result.data = [
    username: user.getId(),
    fullname: user.getFullName() ?: '',
    email: mail?.getAddress() ?: '',
    password_hash: details?.getPassword() ?: '',
    description: user.getDescription() ?: ''
  ]
}
println(JsonOutput.toJson(result))
"""

_CREATE_LOCAL_USER = """\
import hudson.security.HudsonPrivateSecurityRealm
import hudson.tasks.Mailer
{% include "_header" %}

{% include "_local_realm_guard" %}

def username = {{ username|groovy }}
try {
  def user = realm.createAccount(username, {{ password|groovy }})
  user.addProperty(new Mailer.UserProperty({{ email|groovy }}))
  user.setFullName({{ fullname|groovy }})
  user.setDescription({{ description|groovy }})
  user.save()
} catch (Exception e) {
  println(JsonOutput.toJson([error: true, msg: 'Failed to create user ' + username + ': ' + e.message, data: [:]]))
  return
}
println(JsonOutput.toJson([error: false, msg: 'User ' + username + ' successfully created', data: [:]]))
"""

_DELETE_LOCAL_USER = """\
import hudson.security.HudsonPrivateSecurityRealm
{% include "_header" %}

{% include "_local_realm_guard" %}

def username = {{ username|groovy }}
def user = realm.getUser(username)
if (user == null) {
  println(JsonOutput.toJson([error: false, msg: 'User ' + username + ' does not exist', data: [:]]))
  return
}
try {
  user.delete()
} catch (Exception e) {
  println(JsonOutput.toJson([error: true, msg: 'Failed to delete user ' + username + ': ' + e.message, data: [:]]))
  return
}
println(JsonOutput.toJson([error: false, msg: 'User ' + username + ' successfully deleted', data: [:]]))
"""

_GET_USER_PERMISSIONS = """\
import hudson.security.GlobalMatrixAuthorizationStrategy
import hudson.security.Permission
{% include "_header" %}

{% include "_matrix_guard" %}

{% include "_permission_codec" %}

def username = {{ username|groovy }}
println(JsonOutput.toJson([error: false, msg: '', data: [username: username, permissions: grantedNames(username)]]))
"""

_GET_USER_GRANTS = """\
import hudson.security.GlobalMatrixAuthorizationStrategy
import hudson.security.Permission
{% include "_header" %}

{% include "_matrix_guard" %}

{% include "_permission_codec" %}

// Every grant the user holds, including permissions outside the addressable table
def username = {{ username|groovy }}
def names = strategy.grantedPermissions.findAll { p, sids ->
  sids.contains(username)
}.collect { p, sids -> shortName(p) }.unique().sort()
println(JsonOutput.toJson([error: false, msg: '', data: [username: username, permissions: names]]))
"""

_CREATE_USER_PERMISSIONS = """\
import hudson.security.GlobalMatrixAuthorizationStrategy
import hudson.security.Permission
{% include "_header" %}

{% include "_matrix_guard" %}

{% include "_permission_codec" %}

def username = {{ username|groovy }}
def requested = {{ permissions|groovy_list }}

// Names missing from the addressable table are skipped
requested.findAll { addressable.containsKey(it) }.each { name ->
  strategy.add(addressable[name], username)
}
Jenkins.instance.save()

println(JsonOutput.toJson([
  error: false,
  msg: 'Permissions for user ' + username + ' is created',
  data: [username: username, permissions: grantedNames(username)]
]))
"""

_UPDATE_USER_PERMISSIONS = """\
import hudson.security.GlobalMatrixAuthorizationStrategy
import hudson.security.Permission
{% include "_header" %}

{% include "_matrix_guard" %}

{% include "_permission_codec" %}

def username = {{ username|groovy }}
def desired = ({{ permissions|groovy_list }} as Set)

def toAdd = desired.findAll { addressable.containsKey(it) }
def toRemove = strategy.grantedPermissions.findAll { p, sids ->
  sids.contains(username) && !desired.contains(shortName(p))
}.collect { p, sids -> sids }

toAdd.each { name -> strategy.add(addressable[name], username) }
toRemove.each { sids -> sids.remove(username) }
Jenkins.instance.save()

println(JsonOutput.toJson([
  error: false,
  msg: 'Permissions of user ' + username + ' is updated',
  data: [username: username, permissions: grantedNames(username)]
]))
"""

_DELETE_USER_PERMISSIONS = """\
import hudson.security.GlobalMatrixAuthorizationStrategy
import hudson.security.Permission
{% include "_header" %}

{% include "_matrix_guard" %}

{% include "_permission_codec" %}

def username = {{ username|groovy }}
strategy.grantedPermissions.each { p, sids -> sids.remove(username) }
Jenkins.instance.save()

println(JsonOutput.toJson([
  error: false,
  msg: 'User ' + username + ' has been removed from the global matrix authorization',
  data: [username: username, permissions: grantedNames(username)]
]))
"""

_LIST_PERMISSIONS = """\
import hudson.security.GlobalMatrixAuthorizationStrategy
import hudson.security.Permission
{% include "_header" %}

{% include "_matrix_guard" %}

{% include "_permission_codec" %}

println(JsonOutput.toJson([error: false, msg: '', data: [username: '', permissions: addressable.keySet().sort()]]))
"""

COMMANDS: Dict[str, str] = {
    "_header": _HEADER,
    "_local_realm_guard": _LOCAL_REALM_GUARD,
    "_matrix_guard": _MATRIX_GUARD,
    "_permission_codec": _PERMISSION_CODEC,
    GET_LOCAL_USER: _GET_LOCAL_USER,
    CREATE_LOCAL_USER: _CREATE_LOCAL_USER,
    DELETE_LOCAL_USER: _DELETE_LOCAL_USER,
    GET_USER_PERMISSIONS: _GET_USER_PERMISSIONS,
    GET_USER_GRANTS: _GET_USER_GRANTS,
    CREATE_USER_PERMISSIONS: _CREATE_USER_PERMISSIONS,
    UPDATE_USER_PERMISSIONS: _UPDATE_USER_PERMISSIONS,
    DELETE_USER_PERMISSIONS: _DELETE_USER_PERMISSIONS,
    LIST_PERMISSIONS: _LIST_PERMISSIONS,
}


class CommandTemplateRegistry:
    """Holds one Groovy template per operation and renders it.

    Usage:
        registry = CommandTemplateRegistry()
        script = registry.render(GET_LOCAL_USER, username="alice")
    """

    def __init__(self, templates: Dict[str, str] = None):
        """Initialize the registry.

        Args:
            templates: Template sources by name (defaults to COMMANDS)
        """
        self.templates = dict(COMMANDS if templates is None else templates)
        self.env = Environment(
            loader=DictLoader(self.templates),
            undefined=StrictUndefined,
            finalize=_require_literal,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.env.filters["groovy"] = groovy_literal
        self.env.filters["groovy_list"] = groovy_list
        self.env.globals.update(
            rewrites=REWRITES,
            internal_prefix=INTERNAL_PREFIX,
            non_configurable=NON_CONFIGURABLE_SUFFIXES,
            not_local_realm_msg=NOT_LOCAL_REALM_MSG,
            not_matrix_msg=NOT_MATRIX_MSG,
        )

    @property
    def kinds(self) -> Iterable[str]:
        """Names of the renderable operations (fragments excluded)."""
        return sorted(name for name in self.templates if not name.startswith("_"))

    def render(self, kind: str, **params) -> str:
        """Render the template for ``kind`` with ``params``.

        Raises:
            TemplateError: Unknown kind, broken template syntax, missing
                parameter, or an interpolation that skipped escaping
        """
        if kind not in self.templates or kind.startswith("_"):
            raise TemplateError(f"Unknown command template '{kind}'")
        try:
            return self.env.get_template(kind).render(**params)
        except jinja2.TemplateError as exc:
            raise TemplateError(f"Failed rendering '{kind}' command: {exc}") from exc
