"""SQL-backed user directory reading the users_master table."""

from sqlalchemy.orm import Session

from ..models.user import User
from .ports import UserDirectoryPort


class SqlUserDirectory(UserDirectoryPort):
    """UserDirectoryPort over the application's users_master table.

    Inactive users still exist: deactivation is an application concern and
    does not orphan their groups or audit history.
    """

    def exists(self, session: Session, user_id: int) -> bool:
        return session.get(User, user_id) is not None
