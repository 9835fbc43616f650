"""Result envelope printed by every Groovy command script.

Wire shape::

    {"error": bool, "msg": str, "data": {...}}

``data`` depends on the operation, so decoding takes the target type.
"""
from __future__ import annotations
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Optional, TypeVar

from .exceptions import DomainError, ProtocolError

T = TypeVar("T")


def _text(payload: dict, key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ProtocolError(f"Field '{key}' must be a string, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class LocalUser:
    """Account in the Jenkins own user database.

    An empty record (``LocalUser()``) means the user does not exist.
    """
    username: str = ""
    fullname: str = ""
    email: str = ""
    password_hash: str = ""
    description: str = ""

    @property
    def exists(self) -> bool:
        return bool(self.username)

    @classmethod
    def from_payload(cls, payload: dict) -> "LocalUser":
        return cls(
            username=_text(payload, "username"),
            fullname=_text(payload, "fullname"),
            email=_text(payload, "email"),
            password_hash=_text(payload, "password_hash"),
            description=_text(payload, "description"),
        )

    def to_dict(self) -> dict:
        return {
            "username": self.username,
            "fullname": self.fullname,
            "email": self.email,
            "password_hash": self.password_hash,
            "description": self.description,
        }


@dataclass(frozen=True)
class UserPermissionSet:
    """Canonical permission names granted to one user in the global matrix."""
    username: str = ""
    permissions: frozenset = field(default_factory=frozenset)

    @classmethod
    def from_payload(cls, payload: dict) -> "UserPermissionSet":
        names = payload.get("permissions") or []
        if not isinstance(names, list) or not all(isinstance(name, str) for name in names):
            raise ProtocolError("Field 'permissions' must be a list of strings")
        return cls(username=_text(payload, "username"), permissions=frozenset(names))

    def to_dict(self) -> dict:
        return {"username": self.username, "permissions": sorted(self.permissions)}


def no_data(payload: dict) -> None:
    """Data factory for scripts whose ``data`` carries nothing of interest."""
    return None


@dataclass(frozen=True)
class Envelope(Generic[T]):
    """Decoded script result."""
    error: bool
    msg: str
    data: Optional[T] = None

    def unwrap(self) -> Optional[T]:
        """Return the data, or raise DomainError when the script reported failure."""
        if self.error:
            raise DomainError(self.msg)
        return self.data


def decode_envelope(body: str, data_type: Callable[[dict], T]) -> Envelope[T]:
    """Decode a script console response body into a typed envelope.

    Args:
        body: Raw response text (the script's printed output)
        data_type: Factory turning the ``data`` object into a typed value

    Returns:
        Envelope; ``data`` is only decoded when ``error`` is false

    Raises:
        ProtocolError: If the body is not JSON, or misses ``error``/``msg``
    """
    try:
        payload = json.loads(body)
    except (TypeError, ValueError) as exc:
        raise ProtocolError(f"Script output is not valid JSON: {_excerpt(body)}") from exc

    if not isinstance(payload, dict):
        raise ProtocolError(f"Script output is not a JSON object: {_excerpt(body)}")
    for key in ("error", "msg"):
        if key not in payload:
            raise ProtocolError(f"Script output is missing '{key}': {_excerpt(body)}")
    if not isinstance(payload["error"], bool):
        raise ProtocolError("Field 'error' must be a boolean")

    msg = payload["msg"] if payload["msg"] is not None else ""
    if payload["error"]:
        return Envelope(error=True, msg=str(msg))

    data = payload.get("data")
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ProtocolError("Field 'data' must be an object")
    return Envelope(error=False, msg=str(msg), data=data_type(data))


def _excerpt(body: Any, limit: int = 200) -> str:
    text = body if isinstance(body, str) else repr(body)
    text = text.strip()
    return text if len(text) <= limit else text[:limit] + "..."