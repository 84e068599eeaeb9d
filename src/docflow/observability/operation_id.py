"""Operation ID management for log correlation.

Every WorkflowEngine.apply call runs under one operation id so that the
transition, authorization and retry log lines it emits can be grouped.
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Generator, Optional

# Context variable for operation_id (thread- and async-safe)
operation_id_var: ContextVar[Optional[str]] = ContextVar("operation_id", default=None)


def generate_operation_id() -> str:
    """Generate a new unique operation ID.

    Returns:
        str: UUID v4 operation ID
    """
    return str(uuid.uuid4())


def get_operation_id() -> str:
    """Get current operation ID from context.

    Returns:
        str: Current operation ID or "no-operation-id" if not set
    """
    return operation_id_var.get() or "no-operation-id"


@contextmanager
def operation_scope(operation_id: Optional[str] = None) -> Generator[str, None, None]:
    """Bind an operation ID for the duration of a block.

    Nested scopes keep the outer ID so retries share one correlation ID.
    """
    current = operation_id_var.get()
    if current is not None and operation_id is None:
        yield current
        return

    token = operation_id_var.set(operation_id or generate_operation_id())
    try:
        yield operation_id_var.get()
    finally:
        operation_id_var.reset(token)
