"""Transition table - per-doctype state machine definitions.

Each document type owns a set of edges:

    (from_state, action) -> (to_state, required_role)

At most one edge exists per (doctype, from_state, action), so the machine is
deterministic. A state without outgoing edges is terminal.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.orm import Session, sessionmaker

from ..database import insert_ignore, read_session, unit_of_work
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models.transition import Transition
from ..models.vocabulary import DocAction, DocState, DocType, Role
from ..validation import check_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionTarget:
    """Outcome of resolving a trigger: where it leads and who may invoke it."""
    to_state_id: int
    required_role_id: int


class TransitionTable:
    """Service for defining and resolving state transitions."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def define(
        self,
        doctype_id: int,
        from_state_id: int,
        action_id: int,
        to_state_id: int,
        required_role_id: int,
        session: Optional[Session] = None,
    ) -> None:
        """Define the edge (from_state, action) -> to_state for a doctype.

        Redefining an edge with the same target and role is a no-op.

        Raises:
            ValidationError: If an id is non-positive or a state belongs to
                another document type
            NotFoundError: If the doctype, a state, the action or the role
                does not exist
            ConflictError: If the trigger is already defined with a different
                target or required role
        """
        check_id(doctype_id, "doctype id")
        check_id(from_state_id, "from state id")
        check_id(action_id, "action id")
        check_id(to_state_id, "to state id")
        check_id(required_role_id, "required role id")

        with unit_of_work(self.session_factory, session) as db:
            if db.get(DocType, doctype_id) is None:
                raise NotFoundError(f"document type {doctype_id} not found")
            for state_id in (from_state_id, to_state_id):
                state = db.get(DocState, state_id)
                if state is None:
                    raise NotFoundError(f"document state {state_id} not found")
                if state.doctype_id != doctype_id:
                    raise ValidationError(
                        f"document state {state_id} does not belong to document type {doctype_id}"
                    )
            if db.get(DocAction, action_id) is None:
                raise NotFoundError(f"document action {action_id} not found")
            if db.get(Role, required_role_id) is None:
                raise NotFoundError(f"role {required_role_id} not found")

            inserted = insert_ignore(
                db,
                Transition,
                doctype_id=doctype_id,
                from_state_id=from_state_id,
                action_id=action_id,
                to_state_id=to_state_id,
                required_role_id=required_role_id,
            )
            if not inserted:
                existing = self._find(db, doctype_id, from_state_id, action_id, lock=True)
                if (existing.to_state_id == to_state_id
                        and existing.required_role_id == required_role_id):
                    return
                raise ConflictError(
                    f"transition for action {action_id} from state {from_state_id} "
                    f"is already defined (to state {existing.to_state_id})"
                )

            logger.info(
                f"Defined transition {from_state_id} --{action_id}--> {to_state_id} "
                f"for doctype {doctype_id} (role {required_role_id})"
            )

    def resolve(
        self,
        doctype_id: int,
        from_state_id: int,
        action_id: int,
        session: Optional[Session] = None,
    ) -> TransitionTarget:
        """Resolve where an action leads from a state.

        Raises:
            NotFoundError: If no such transition is defined. This is the
                normal outcome for an action that does not apply in the
                current state.
        """
        with read_session(self.session_factory, session) as db:
            transition = self._find(db, doctype_id, from_state_id, action_id)
            if transition is None:
                raise NotFoundError("no such transition")
            return TransitionTarget(
                to_state_id=transition.to_state_id,
                required_role_id=transition.required_role_id,
            )

    def outgoing(
        self,
        doctype_id: int,
        from_state_id: int,
        session: Optional[Session] = None,
    ) -> List[Transition]:
        """List the transitions leaving a state, ordered by action id."""
        check_id(doctype_id, "doctype id")
        check_id(from_state_id, "from state id")

        with read_session(self.session_factory, session) as db:
            return (
                db.query(Transition)
                .filter(
                    Transition.doctype_id == doctype_id,
                    Transition.from_state_id == from_state_id,
                )
                .order_by(Transition.action_id)
                .all()
            )

    def is_terminal(self, doctype_id: int, state_id: int, session: Optional[Session] = None) -> bool:
        """Check whether a state has no outgoing transitions."""
        return not self.outgoing(doctype_id, state_id, session=session)

    def _find(
        self,
        db: Session,
        doctype_id: int,
        from_state_id: int,
        action_id: int,
        lock: bool = False,
    ) -> Optional[Transition]:
        query = db.query(Transition).filter(
            Transition.doctype_id == doctype_id,
            Transition.from_state_id == from_state_id,
            Transition.action_id == action_id,
        )
        if lock:
            # Locking read sees rows committed after this transaction's snapshot
            query = query.with_for_update(read=True)
        return query.first()
