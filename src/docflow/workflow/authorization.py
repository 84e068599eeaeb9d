"""Authorization resolver - may a user invoke an action on a document?

A user holds a role on a document when any group in the user's closure
(direct memberships plus all ancestor groups) was granted that role in the
document's access context. Roles do not imply each other: the required role
itself must be granted.
"""

import logging
from typing import Optional, Set

from sqlalchemy.orm import Session

from ..access import AccessContextService
from ..errors import UnauthorizedError
from ..groups import GroupService

logger = logging.getLogger(__name__)


class AuthorizationResolver:
    """Resolves document roles through the group hierarchy."""

    def __init__(self, groups: GroupService, access_contexts: AccessContextService):
        self.groups = groups
        self.access_contexts = access_contexts

    def effective_roles(self, user_id: int, document_id: int, session: Optional[Session] = None) -> Set[int]:
        """Answer every role the user holds on the document."""
        closure = self.groups.closure(user_id, session=session)
        return self.access_contexts.roles_for(document_id, closure, session=session)

    def is_authorized(
        self,
        user_id: int,
        document_id: int,
        required_role_id: int,
        session: Optional[Session] = None,
    ) -> bool:
        return required_role_id in self.effective_roles(user_id, document_id, session=session)

    def authorize(
        self,
        user_id: int,
        document_id: int,
        required_role_id: int,
        session: Optional[Session] = None,
    ) -> None:
        """Raise UnauthorizedError unless the user holds the required role.

        The error says only that access was denied. Which role was missing
        goes to the log, not to the caller.
        """
        if self.is_authorized(user_id, document_id, required_role_id, session=session):
            return

        logger.warning(
            f"Denied user {user_id} on document {document_id}: role {required_role_id} not held",
            extra={"user_id": user_id, "document_id": document_id},
        )
        raise UnauthorizedError()
