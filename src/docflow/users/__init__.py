"""User directory port and adapters"""

from .ports import UserDirectoryPort
from .directory import SqlUserDirectory

__all__ = [
    "UserDirectoryPort",
    "SqlUserDirectory",
]
