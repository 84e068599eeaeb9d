"""Per-document access contexts"""

from .service import AccessContextService

__all__ = [
    "AccessContextService",
]
