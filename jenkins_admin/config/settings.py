"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from jenkins_admin.core.admin_service import DEFAULT_DESCRIPTION
from jenkins_admin.core.jenkins.client import JenkinsClient, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        secret_value = secret_file.read_text().strip()
        if secret_value:
            logger.debug("[settings] Loaded %s from /run/secrets", secret_name)
            return secret_value

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            logger.debug("[settings] Loaded %s from environment", env_var)
            return secret_value

    return None


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None or not value.strip():
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise RuntimeError(f"Invalid boolean value: {value!r}")


def _require(var_name: str) -> str:
    value = os.environ.get(var_name, "").strip()
    if not value:
        raise RuntimeError(f"Environment variable {var_name} is required.")
    return value


@dataclass
class JenkinsSettings:
    """Connection and behavior settings for a Jenkins controller."""
    server_url: str
    username: str
    password: str
    ca_cert: str = ""
    verify_ssl: bool = True
    timeout: float = REQUEST_TIMEOUT
    default_description: str = DEFAULT_DESCRIPTION

    def create_client(self) -> JenkinsClient:
        """Build the HTTP client described by these settings."""
        return JenkinsClient(
            self.server_url,
            self.username,
            self.password,
            verify_ssl=self.verify_ssl,
            ca_cert=self.ca_cert or None,
            timeout=self.timeout,
        )


def load_settings() -> JenkinsSettings:
    """Load settings from the environment and /run/secrets.

    Raises:
        RuntimeError: If a required value is missing or malformed
    """
    server_url = _require("JENKINS_URL")
    username = _require("JENKINS_USERNAME")

    password = _load_secret_from_file("jenkins_password", "JENKINS_PASSWORD")
    if not password:
        raise RuntimeError("JENKINS_PASSWORD not found in /run/secrets or environment")

    timeout_str = os.environ.get("JENKINS_TIMEOUT", "").strip()
    try:
        timeout = float(timeout_str) if timeout_str else REQUEST_TIMEOUT
    except ValueError:
        raise RuntimeError(f"Invalid JENKINS_TIMEOUT: {timeout_str!r}")

    verify_ssl = _parse_bool(os.environ.get("JENKINS_VERIFY_SSL"), True)
    if not verify_ssl:
        logger.warning("[settings] TLS certificate verification is disabled")

    settings = JenkinsSettings(
        server_url=server_url.rstrip("/"),
        username=username,
        password=password,
        ca_cert=os.environ.get("JENKINS_CA_CERT", "").strip(),
        verify_ssl=verify_ssl,
        timeout=timeout,
        default_description=os.environ.get("JENKINS_DEFAULT_DESCRIPTION", DEFAULT_DESCRIPTION),
    )
    logger.info("[settings] server=%s; user=%s; verify_ssl=%s", settings.server_url, settings.username, verify_ssl)
    return settings
