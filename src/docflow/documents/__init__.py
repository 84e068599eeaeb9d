"""Workflow documents"""

from .service import DocumentService

__all__ = [
    "DocumentService",
]
