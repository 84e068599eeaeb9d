"""Group service - users, groups and the group hierarchy.

Every user owns exactly one SINGLETON group so that individual users and
teams are granted roles the same way. NAMED groups hold users directly and
contain other groups through hierarchy edges ("parent contains child"): a
member of a child group is effectively a member of every ancestor.

The hierarchy must stay acyclic. add_child takes a hierarchy-wide write lock
before reading anything, then checks reachability and inserts the edge in the
same transaction, so two concurrent calls cannot each add half of a cycle.
"""

import logging
from typing import Iterable, List, Optional, Set, Union

from sqlalchemy import delete, func, select, text, update
from sqlalchemy.orm import Session, sessionmaker

from ..database import insert_ignore, read_session, unit_of_work
from ..errors import ConflictError, CycleError, NotFoundError, ValidationError
from ..models.group import Group, GroupHierarchy, GroupKind, GroupUser
from ..models.lock import HIERARCHY_LOCK_NAME, WorkflowLock
from ..users import SqlUserDirectory, UserDirectoryPort
from ..validation import check_id, check_paging, clean_name

logger = logging.getLogger(__name__)

# Key for pg_advisory_xact_lock serializing hierarchy writers ("docflow")
HIERARCHY_LOCK_KEY = 0x646F63666C6F77


class GroupService:
    """Service for group membership and hierarchy operations."""

    def __init__(
        self,
        session_factory: sessionmaker,
        user_directory: Optional[UserDirectoryPort] = None,
    ):
        self.session_factory = session_factory
        self.user_directory = user_directory or SqlUserDirectory()

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def new_singleton(self, user_id: int, session: Optional[Session] = None) -> int:
        """Create the singleton group of a user.

        The user becomes the group's only member in the same transaction.
        A unique constraint on owner_user_id backs the one-per-user rule,
        so a concurrent duplicate also ends in ConflictError.

        Raises:
            NotFoundError: If the user directory does not know the user
            ConflictError: If the user already owns a singleton group
        """
        check_id(user_id, "user id")

        with unit_of_work(self.session_factory, session) as db:
            self._require_user(db, user_id)

            existing = db.query(Group).filter(Group.owner_user_id == user_id).first()
            if existing is not None:
                raise ConflictError(f"user {user_id} already owns singleton group {existing.id}")

            group = Group(
                name=f"user:{user_id}",
                kind=GroupKind.SINGLETON.value,
                owner_user_id=user_id,
            )
            db.add(group)
            db.flush()
            db.add(GroupUser(group_id=group.id, user_id=user_id))
            db.flush()

            logger.info(f"Created singleton group {group.id} for user {user_id}",
                        extra={"user_id": user_id, "group_id": group.id})
            return group.id

    def new(
        self,
        name: str,
        kind: Union[GroupKind, str] = GroupKind.NAMED,
        session: Optional[Session] = None,
    ) -> int:
        """Create a NAMED group.

        Raises:
            ValidationError: If name is empty or kind is not NAMED
        """
        name = clean_name(name, "group name")
        try:
            kind = GroupKind(kind)
        except ValueError:
            raise ValidationError(f"unknown group kind {kind!r}")
        if kind is GroupKind.SINGLETON:
            raise ValidationError("singleton groups are created with new_singleton")

        with unit_of_work(self.session_factory, session) as db:
            group = Group(name=name, kind=GroupKind.NAMED.value)
            db.add(group)
            db.flush()
            logger.info(f"Created group {group.id} '{name}'", extra={"group_id": group.id})
            return group.id

    def get(self, group_id: int, session: Optional[Session] = None) -> Group:
        """Fetch a group by id.

        Raises:
            NotFoundError: If id is non-positive or unmatched
        """
        if isinstance(group_id, bool) or not isinstance(group_id, int) or group_id <= 0:
            raise NotFoundError(f"group {group_id!r} not found")

        with read_session(self.session_factory, session) as db:
            return self._require_group(db, group_id)

    def list(
        self,
        offset: int = 0,
        limit: int = 0,
        kind: Optional[Union[GroupKind, str]] = None,
        session: Optional[Session] = None,
    ) -> List[Group]:
        """List groups ordered by id, optionally of one kind."""
        offset, limit = check_paging(offset, limit)
        if kind is not None:
            try:
                kind = GroupKind(kind)
            except ValueError:
                raise ValidationError(f"unknown group kind {kind!r}")

        with read_session(self.session_factory, session) as db:
            query = db.query(Group)
            if kind is not None:
                query = query.filter(Group.kind == kind.value)
            query = query.order_by(Group.id).offset(offset)
            if limit:
                query = query.limit(limit)
            return query.all()

    def rename(self, group_id: int, new_name: str, session: Optional[Session] = None) -> None:
        check_id(group_id, "group id")
        new_name = clean_name(new_name, "group name")

        with unit_of_work(self.session_factory, session) as db:
            group = self._require_group(db, group_id)
            group.name = new_name
            db.flush()

    def singleton_of(self, user_id: int, session: Optional[Session] = None) -> int:
        """Answer the id of a user's singleton group.

        Raises:
            NotFoundError: If the user has no singleton group
        """
        check_id(user_id, "user id")

        with read_session(self.session_factory, session) as db:
            group_id = db.execute(
                select(Group.id).where(Group.owner_user_id == user_id)
            ).scalar_one_or_none()
            if group_id is None:
                raise NotFoundError(f"user {user_id} has no singleton group")
            return group_id

    # ------------------------------------------------------------------
    # Direct membership
    # ------------------------------------------------------------------

    def add_user(self, group_id: int, user_id: int, session: Optional[Session] = None) -> None:
        """Add a user to a NAMED group; adding an existing member is a no-op.

        Raises:
            ValidationError: If the group is a SINGLETON group
            NotFoundError: If the group or the user does not exist
        """
        check_id(group_id, "group id")
        check_id(user_id, "user id")

        with unit_of_work(self.session_factory, session) as db:
            group = self._require_group(db, group_id)
            if group.is_singleton:
                raise ValidationError(f"membership of singleton group {group_id} is fixed")
            self._require_user(db, user_id)

            if insert_ignore(db, GroupUser, group_id=group_id, user_id=user_id):
                logger.info(f"Added user {user_id} to group {group_id}",
                            extra={"user_id": user_id, "group_id": group_id})

    def remove_user(self, group_id: int, user_id: int, session: Optional[Session] = None) -> None:
        """Remove a user from a NAMED group; removing a non-member is a no-op.

        Raises:
            ValidationError: If the group is a SINGLETON group
            NotFoundError: If the group does not exist
        """
        check_id(group_id, "group id")
        check_id(user_id, "user id")

        with unit_of_work(self.session_factory, session) as db:
            group = self._require_group(db, group_id)
            if group.is_singleton:
                raise ValidationError(f"membership of singleton group {group_id} is fixed")

            result = db.execute(
                delete(GroupUser).where(
                    GroupUser.group_id == group_id,
                    GroupUser.user_id == user_id,
                )
            )
            if result.rowcount:
                logger.info(f"Removed user {user_id} from group {group_id}",
                            extra={"user_id": user_id, "group_id": group_id})

    def users(self, group_id: int, session: Optional[Session] = None) -> List[int]:
        """Answer the ids of a group's direct members, ascending."""
        check_id(group_id, "group id")

        with read_session(self.session_factory, session) as db:
            self._require_group(db, group_id)
            return list(db.execute(
                select(GroupUser.user_id)
                .where(GroupUser.group_id == group_id)
                .order_by(GroupUser.user_id)
            ).scalars())

    def has_user(self, group_id: int, user_id: int, session: Optional[Session] = None) -> bool:
        """Check direct membership only (the hierarchy is not consulted)."""
        check_id(group_id, "group id")
        check_id(user_id, "user id")

        with read_session(self.session_factory, session) as db:
            return db.get(GroupUser, (group_id, user_id)) is not None

    # ------------------------------------------------------------------
    # Hierarchy
    # ------------------------------------------------------------------

    def add_child(self, parent_id: int, child_id: int, session: Optional[Session] = None) -> None:
        """Add the edge "parent contains child"; an existing edge is a no-op.

        Raises:
            CycleError: If child already (transitively) contains parent
            ValidationError: If parent is a SINGLETON group
            NotFoundError: If either group does not exist
        """
        check_id(parent_id, "parent group id")
        check_id(child_id, "child group id")
        if parent_id == child_id:
            raise CycleError(f"group {parent_id} cannot contain itself")

        with unit_of_work(self.session_factory, session) as db:
            self._lock_hierarchy(db)

            parent = self._require_group(db, parent_id)
            self._require_group(db, child_id)
            if parent.is_singleton:
                raise ValidationError(f"singleton group {parent_id} cannot contain groups")

            if db.get(GroupHierarchy, (parent_id, child_id)) is not None:
                return

            if self._reaches(db, child_id, parent_id):
                logger.warning(f"Rejected hierarchy edge {parent_id} -> {child_id}: would create a cycle",
                               extra={"group_id": parent_id})
                raise CycleError(
                    f"group {child_id} already contains group {parent_id}; edge would create a cycle"
                )

            insert_ignore(db, GroupHierarchy, parent_group_id=parent_id, child_group_id=child_id)
            logger.info(f"Added hierarchy edge {parent_id} -> {child_id}",
                        extra={"group_id": parent_id})

    def remove_child(self, parent_id: int, child_id: int, session: Optional[Session] = None) -> None:
        """Remove the edge "parent contains child"; a missing edge is a no-op."""
        check_id(parent_id, "parent group id")
        check_id(child_id, "child group id")

        with unit_of_work(self.session_factory, session) as db:
            self._lock_hierarchy(db)
            db.execute(
                delete(GroupHierarchy).where(
                    GroupHierarchy.parent_group_id == parent_id,
                    GroupHierarchy.child_group_id == child_id,
                )
            )

    def children(self, group_id: int, session: Optional[Session] = None) -> List[int]:
        """Answer the direct child group ids of a group, ascending."""
        check_id(group_id, "group id")

        with read_session(self.session_factory, session) as db:
            return list(db.execute(
                select(GroupHierarchy.child_group_id)
                .where(GroupHierarchy.parent_group_id == group_id)
                .order_by(GroupHierarchy.child_group_id)
            ).scalars())

    def parents(self, group_id: int, session: Optional[Session] = None) -> List[int]:
        """Answer the direct parent group ids of a group, ascending."""
        check_id(group_id, "group id")

        with read_session(self.session_factory, session) as db:
            return list(db.execute(
                select(GroupHierarchy.parent_group_id)
                .where(GroupHierarchy.child_group_id == group_id)
                .order_by(GroupHierarchy.parent_group_id)
            ).scalars())

    def closure(self, user_id: int, session: Optional[Session] = None) -> Set[int]:
        """Compute every group a user effectively belongs to.

        Starts from the user's direct memberships (the singleton group
        included) and adds all ancestors reachable through hierarchy edges.
        The walk keeps a visited set, so it terminates even if a cycle was
        committed by a racing writer.

        Returns:
            Set of group ids (empty for a user without memberships)
        """
        check_id(user_id, "user id")

        with read_session(self.session_factory, session) as db:
            direct = set(db.execute(
                select(GroupUser.group_id).where(GroupUser.user_id == user_id)
            ).scalars())
            return self._ancestors(db, direct)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_group(self, db: Session, group_id: int) -> Group:
        group = db.get(Group, group_id)
        if group is None:
            raise NotFoundError(f"group {group_id} not found")
        return group

    def _require_user(self, db: Session, user_id: int) -> None:
        if not self.user_directory.exists(db, user_id):
            raise NotFoundError(f"user {user_id} not found")

    def _lock_hierarchy(self, db: Session) -> None:
        """Serialize hierarchy writers until the current transaction ends.

        All writers contend for one key whatever edge they touch.
        PostgreSQL takes a transaction-scoped advisory lock. Other dialects
        update the shared workflow_locks row, which holds its row lock
        (MySQL/MariaDB) or the database write lock (SQLite) until commit.
        """
        if db.get_bind().dialect.name == "postgresql":
            db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": HIERARCHY_LOCK_KEY})
            return

        touch = (
            update(WorkflowLock)
            .where(WorkflowLock.name == HIERARCHY_LOCK_NAME)
            .values(acquired_at=func.now())
            .execution_options(synchronize_session=False)
        )
        if db.execute(touch).rowcount == 0:
            # Lock row missing from a schema created outside init_schema
            insert_ignore(db, WorkflowLock, name=HIERARCHY_LOCK_NAME)
            db.execute(touch)

    def _reaches(self, db: Session, start_id: int, target_id: int) -> bool:
        """Breadth-first search down child edges from start_id.

        Uses locking reads so that, under REPEATABLE READ, edges committed
        by the previous lock holder are visible.
        """
        visited = {start_id}
        frontier = {start_id}
        while frontier:
            if target_id in frontier:
                return True
            next_ids = set(db.execute(
                select(GroupHierarchy.child_group_id)
                .where(GroupHierarchy.parent_group_id.in_(frontier))
                .with_for_update(read=True)
            ).scalars())
            frontier = next_ids - visited
            visited |= frontier
        return False

    def _ancestors(self, db: Session, group_ids: Iterable[int]) -> Set[int]:
        """Breadth-first search up parent edges; includes the start groups."""
        visited = set(group_ids)
        frontier = set(visited)
        while frontier:
            parent_ids = set(db.execute(
                select(GroupHierarchy.parent_group_id)
                .where(GroupHierarchy.child_group_id.in_(frontier))
            ).scalars())
            frontier = parent_ids - visited
            visited |= frontier
        return visited
