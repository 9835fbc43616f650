"""Jenkins local user database operations."""
from __future__ import annotations
import logging
from typing import Optional

from .commands import CommandTemplateRegistry, CREATE_LOCAL_USER, DELETE_LOCAL_USER, GET_LOCAL_USER
from .envelope import LocalUser, no_data
from .script import ScriptExecutionClient

logger = logging.getLogger(__name__)


class UserService:
    """Service for managing accounts in the Jenkins own user database."""

    def __init__(self, scripts: ScriptExecutionClient, templates: Optional[CommandTemplateRegistry] = None):
        """Initialize user service.

        Args:
            scripts: Script console client
            templates: Command templates (default registry when omitted)
        """
        self.scripts = scripts
        self.templates = templates or CommandTemplateRegistry()

    def get_user(self, username: str) -> LocalUser:
        """Return the local user, or an empty LocalUser when it does not exist.

        Raises:
            DomainError: If Jenkins does not use its own user database
        """
        script = self.templates.render(GET_LOCAL_USER, username=username)
        user = self.scripts.call(script, LocalUser.from_payload).unwrap()
        return user or LocalUser()

    def create_user(self, username: str, password: str, fullname: str, email: str, description: str) -> None:
        """Create the account, or overwrite password and profile if it exists.

        Args:
            username: User id
            password: Plain-text password, hashed by Jenkins
            fullname: Display name
            email: Mail address stored in the Mailer user property
            description: Free-text description
        """
        script = self.templates.render(
            CREATE_LOCAL_USER,
            username=username,
            password=password,
            fullname=fullname,
            email=email,
            description=description,
        )
        envelope = self.scripts.call(script, no_data)
        envelope.unwrap()
        logger.info("[user] %s", envelope.msg)

    def delete_user(self, username: str) -> None:
        """Delete the account; deleting a missing user is not an error."""
        script = self.templates.render(DELETE_LOCAL_USER, username=username)
        envelope = self.scripts.call(script, no_data)
        envelope.unwrap()
        logger.info("[user] %s", envelope.msg)
