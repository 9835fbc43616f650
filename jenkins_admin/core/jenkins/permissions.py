"""Permission naming and global-matrix reconciliation.

Jenkins identifies permissions by dotted ids such as
``hudson.model.Hudson.Administer``. This module maps them to the short
``Group/Action`` names used by callers (``Overall/Administer``) and computes
the grants to add and remove when moving a user to a desired set.

The Groovy side of the same rules lives in the ``_permission_codec``
template fragment; both must stay in sync.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Collection, Dict, Iterable, Mapping, Optional, Set, Tuple

# Applied in order as substring replacements on the "Group/Action" text
REWRITES: Tuple[Tuple[str, str], ...] = (
    ("Hudson", "Overall"),
    ("Computer", "Agent"),
    ("Item", "Job"),
    ("CredentialsProvider", "Credentials"),
    ("LockableResourcesManager", "LockableResources"),
)

INTERNAL_PREFIX = "hudson.security.Permission"
NON_CONFIGURABLE_SUFFIXES: Tuple[str, ...] = ("RunScripts", "UploadPlugins", "ConfigureUpdateCenter")


@dataclass(frozen=True)
class Permission:
    """A permission as known to the server."""
    id: str
    enabled: bool = True


def encode_permission(permission_id: str) -> str:
    """Return the canonical short name for a dotted permission id.

    >>> encode_permission("hudson.model.Item.Build")
    'Job/Build'
    """
    name = "/".join(permission_id.split(".")[-2:])
    for old, new in REWRITES:
        name = name.replace(old, new)
    return name


def is_addressable(permission: Permission) -> bool:
    """True for enabled permissions that may be granted through this interface."""
    return (
        permission.enabled
        and not permission.id.startswith(INTERNAL_PREFIX)
        and not permission.id.endswith(NON_CONFIGURABLE_SUFFIXES)
    )


def build_addressable_table(permissions: Iterable[Permission]) -> Dict[str, Permission]:
    """Map canonical name -> permission for every addressable permission."""
    return {encode_permission(p.id): p for p in permissions if is_addressable(p)}


@dataclass(frozen=True)
class ReconcilePlan:
    """Grants to add and remove for one user.

    ``unknown`` holds requested names that are not addressable; they are
    skipped rather than rejected.
    """
    username: str
    to_add: Tuple[str, ...] = ()
    to_remove: Tuple[str, ...] = ()
    unknown: Tuple[str, ...] = ()

    @property
    def is_noop(self) -> bool:
        return not self.to_add and not self.to_remove


def _split_known(desired: Iterable[str], addressable: Optional[Collection[str]]) -> Tuple[Set[str], Set[str]]:
    wanted = set(desired)
    if addressable is None:
        return wanted, set()
    known = {name for name in wanted if name in addressable}
    return known, wanted - known


def granted_to(granted: Mapping[str, Iterable[str]], username: str) -> Set[str]:
    """Canonical names currently granted to ``username``."""
    return {name for name, users in granted.items() if username in users}


def plan_grant(username: str, desired: Iterable[str], addressable: Optional[Collection[str]] = None) -> ReconcilePlan:
    """Additive grant: every desired name is added, nothing is removed."""
    known, unknown = _split_known(desired, addressable)
    return ReconcilePlan(username=username, to_add=tuple(sorted(known)), unknown=tuple(sorted(unknown)))


def plan_reconcile(
    granted: Mapping[str, Iterable[str]],
    username: str,
    desired: Iterable[str],
    addressable: Optional[Collection[str]] = None,
) -> ReconcilePlan:
    """Two-list diff moving ``username`` to exactly the desired set.

    Args:
        granted: Current table, canonical name -> grantee names
        username: User being reconciled
        desired: Canonical names the user should end up with
        addressable: Names that can be granted; None accepts everything

    Returns:
        Plan whose adds are desired-but-missing and whose removes are
        granted-but-undesired
    """
    wanted = set(desired)
    known, unknown = _split_known(wanted, addressable)
    current = granted_to(granted, username)
    return ReconcilePlan(
        username=username,
        to_add=tuple(sorted(known - current)),
        to_remove=tuple(sorted(current - wanted)),
        unknown=tuple(sorted(unknown)),
    )


def plan_revoke_all(granted: Mapping[str, Iterable[str]], username: str) -> ReconcilePlan:
    """Remove ``username`` from every permission it holds."""
    return ReconcilePlan(username=username, to_remove=tuple(sorted(granted_to(granted, username))))


def apply_plan(granted: Mapping[str, Iterable[str]], plan: ReconcilePlan) -> Dict[str, Set[str]]:
    """Return a new grant table with ``plan`` applied; the input is left untouched."""
    table = {name: set(users) for name, users in granted.items()}
    for name in plan.to_add:
        table.setdefault(name, set()).add(plan.username)
    for name in plan.to_remove:
        table.get(name, set()).discard(plan.username)
    return table
