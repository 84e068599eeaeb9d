"""Groups, memberships and the group hierarchy"""

from .service import GroupService

__all__ = [
    "GroupService",
]
