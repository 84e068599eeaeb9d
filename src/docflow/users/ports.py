"""
UserDirectoryPort - Port interface for the external user directory

User accounts are managed outside docflow. Group and workflow services only
need to know whether a user id exists, so they depend on this Port rather
than on any concrete user store.
"""

from abc import ABC, abstractmethod

from sqlalchemy.orm import Session


class UserDirectoryPort(ABC):
    """Port interface for user existence checks."""

    @abstractmethod
    def exists(self, session: Session, user_id: int) -> bool:
        """Check whether a user id is known to the directory.

        Args:
            session: Session of the calling unit of work, so the check sees
                users created earlier in the same transaction
            user_id: User identifier

        Returns:
            True if the user exists, False otherwise
        """
        pass
