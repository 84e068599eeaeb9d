"""Controlled vocabulary registries"""

from .service import (
    VocabularyRegistry,
    DocTypeRegistry,
    DocStateRegistry,
    DocActionRegistry,
    RoleRegistry,
)

__all__ = [
    "VocabularyRegistry",
    "DocTypeRegistry",
    "DocStateRegistry",
    "DocActionRegistry",
    "RoleRegistry",
]
