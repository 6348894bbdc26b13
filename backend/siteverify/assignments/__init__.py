"""Moderator assignment"""

from .service import AssignmentManager

__all__ = ["AssignmentManager"]
