"""Error taxonomy for the workflow engine.

RejectedActionError and UnauthorizedError are expected business outcomes:
callers present them to end users as "not allowed". StorageError signals a
retry-or-escalate condition in the transactional layer.
"""


class WorkflowError(Exception):
    """Base class for all errors raised by docflow."""
    pass


class ValidationError(WorkflowError):
    """Raised on malformed input (empty names, non-positive ids, negative paging)."""
    pass


class ConflictError(WorkflowError):
    """Raised when a uniqueness or determinism invariant would be violated."""
    pass


class NotFoundError(WorkflowError):
    """Raised when a referenced entity does not exist.

    Also raised by TransitionTable.resolve when no transition is defined,
    which is a normal outcome rather than a fault.
    """
    pass


class CycleError(WorkflowError):
    """Raised when a group hierarchy edge would introduce a cycle."""
    pass


class UnauthorizedError(WorkflowError):
    """Raised when a user may not invoke an action on a document.

    The message never names the missing role or group.
    """

    def __init__(self, message: str = "access denied"):
        super().__init__(message)


class RejectedActionError(WorkflowError):
    """Raised when an action is not valid in the document's current state."""
    pass


class ConcurrentModificationError(WorkflowError):
    """Raised when a document changed state between read and update.

    Callers should retry the whole operation from a fresh read.
    """
    pass


class StorageError(WorkflowError):
    """Raised when the underlying transactional store fails.

    The original driver exception is always chained as __cause__.
    """

    def __init__(self, message: str, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable
