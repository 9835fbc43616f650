"""Script console execution over HTTP."""
from __future__ import annotations
import logging
from typing import Callable, TypeVar

from .client import JenkinsClient
from .envelope import Envelope, decode_envelope
from .exceptions import TransportError

SCRIPT_PATH = "/scriptText"

T = TypeVar("T")

logger = logging.getLogger(__name__)


class ScriptExecutionClient:
    """Posts rendered Groovy scripts to ``/scriptText`` and decodes the result."""

    def __init__(self, requester: JenkinsClient):
        """Initialize script client.

        Args:
            requester: Configured Jenkins HTTP client
        """
        self.requester = requester

    def execute(self, script: str) -> str:
        """Run ``script`` on the controller and return the printed output.

        Raises:
            TransportError: On connection failure or any status other than 200
        """
        # The script may carry a password; never log its content
        logger.debug("[script] Posting %d bytes to %s", len(script), SCRIPT_PATH)
        resp = self.requester.post(SCRIPT_PATH, data={"script": script})
        if resp.status_code != 200:
            raise TransportError(resp.status_code, resp.text, resp.url)
        return resp.text

    def call(self, script: str, data_type: Callable[[dict], T]) -> Envelope[T]:
        """Execute ``script`` and decode its envelope with ``data_type``.

        Raises:
            TransportError: See execute()
            ProtocolError: If the output is not a valid envelope
        """
        return decode_envelope(self.execute(script), data_type)
