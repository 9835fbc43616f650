"""Low-level HTTP client for the Jenkins remote API.

Handles authentication, TLS trust, CSRF crumbs and HTTP operations.
"""
from __future__ import annotations
import logging
import os
import tempfile
from typing import Optional, Dict, Any

import requests
import requests.certs

from .exceptions import TransportError

REQUEST_TIMEOUT = 30
CRUMB_PATH = "/crumbIssuer/api/json"

logger = logging.getLogger(__name__)


def _trust_bundle(ca_cert: str) -> str:
    """Write the default CA bundle plus ``ca_cert`` to a temporary PEM file.

    requests replaces its trust store with whatever ``verify`` points at, so
    the custom certificate is appended to a copy of the default bundle.
    """
    with open(requests.certs.where(), "r", encoding="utf-8") as fh:
        default = fh.read()
    with open(ca_cert, "r", encoding="utf-8") as fh:
        custom = fh.read()
    with tempfile.NamedTemporaryFile("w", suffix=".pem", prefix="jenkins-ca-", delete=False, encoding="utf-8") as out:
        out.write(default.rstrip("\n") + "\n" + custom)
    logger.debug("[tls] Trusting %s in addition to the default bundle", ca_cert)
    return out.name


class JenkinsClient:
    """HTTP client for a Jenkins controller with basic auth and crumb handling.

    Features:
    - HTTP basic authentication (password or API token)
    - Optional custom CA bundle or disabled certificate verification
    - CSRF crumb fetched once and attached to every POST
    - Connection errors normalized to TransportError

    Usage:
        client = JenkinsClient("https://jenkins.example.com", "admin", "api-token")
        response = client.post("/scriptText", data={"script": "println 1"})
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        username: str = "",
        password: str = "",
        verify_ssl: bool = True,
        ca_cert: Optional[str] = None,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """Initialize Jenkins client.

        Args:
            base_url: Jenkins root URL (defaults to JENKINS_URL env var)
            username: User to authenticate as
            password: Password or API token
            verify_ssl: Verify the server certificate
            ca_cert: PEM certificate(s) trusted in addition to the system bundle
            timeout: Per-request timeout in seconds
            session: Pre-built requests session (mainly for tests)

        Raises:
            ValueError: If ca_cert points to a missing file
        """
        self.base_url = (base_url or os.environ.get("JENKINS_URL", "http://localhost:8080")).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        if username:
            self.session.auth = (username, password)

        if ca_cert:
            if not os.path.isfile(ca_cert):
                raise ValueError(f"CA certificate file not found: {ca_cert}")
            # A CA bundle only makes sense with verification on
            self.session.verify = _trust_bundle(ca_cert) if verify_ssl else False
        else:
            self.session.verify = verify_ssl

        self._crumb: Optional[Dict[str, str]] = None

    def get(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute GET request.

        Args:
            path: Path below the Jenkins root (e.g., "/api/json")
            params: Query parameters
            **kwargs: Additional arguments for Session.get

        Returns:
            Response object, whatever its status

        Raises:
            TransportError: If no response was received
        """
        url = f"{self.base_url}{path}"
        try:
            return self.session.get(url, params=params, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise TransportError(None, str(exc), url) from exc

    def post(self, path: str, data: Optional[Dict[str, Any]] = None, **kwargs) -> requests.Response:
        """Execute form-encoded POST request with the CSRF crumb attached.

        Args:
            path: Path below the Jenkins root
            data: Form fields
            **kwargs: Additional arguments for Session.post

        Returns:
            Response object, whatever its status

        Raises:
            TransportError: If no response was received
        """
        headers = kwargs.pop("headers", {})
        headers.update(self._crumb_headers())
        url = f"{self.base_url}{path}"
        try:
            return self.session.post(url, data=data, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise TransportError(None, str(exc), url) from exc

    def server_version(self) -> str:
        """Return the controller version advertised in the X-Jenkins header.

        Raises:
            TransportError: If the root page does not answer 200
        """
        resp = self.get("/")
        self._handle_error(resp)
        return resp.headers.get("X-Jenkins", "")

    def _crumb_headers(self) -> Dict[str, str]:
        """Fetch the CSRF crumb once; empty when crumbs are disabled."""
        if self._crumb is None:
            resp = self.get(CRUMB_PATH)
            if resp.status_code == 200:
                try:
                    payload = resp.json()
                    self._crumb = {payload["crumbRequestField"]: payload["crumb"]}
                except (ValueError, KeyError, TypeError) as exc:
                    raise TransportError(resp.status_code, f"Malformed crumb response: {resp.text[:200]}", resp.url) from exc
                logger.debug("[crumb] Using crumb header %s", next(iter(self._crumb)))
            elif resp.status_code == 404:
                self._crumb = {}
                logger.debug("[crumb] Crumb issuer disabled")
            else:
                self._handle_error(resp)
        return dict(self._crumb)

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Args:
            resp: Response object to check

        Raises:
            TransportError: If response status is anything but 200
        """
        if resp.status_code != 200:
            raise TransportError(resp.status_code, resp.text, resp.url)
