"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the personal-finance models used by ``wangku``.
"""

from .finance import Base, WkChatMessage, WkProfile, WkTransaction, WkWishlist

__all__ = [
    "Base",
    "WkChatMessage",
    "WkProfile",
    "WkTransaction",
    "WkWishlist",
]
