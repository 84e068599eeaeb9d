"""Workflow engine and authorization resolver"""

from .authorization import AuthorizationResolver
from .engine import ApplyResult, WorkflowEngine

__all__ = [
    "AuthorizationResolver",
    "ApplyResult",
    "WorkflowEngine",
]
