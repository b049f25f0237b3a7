"""Models package"""
from sheetchat.models.sheet_cache import SheetCacheEntry
from sheetchat.models.chat_log import ChatLog, MessageSender
from sheetchat.models.sheet_connection import SheetConnection

__all__ = [
    "SheetCacheEntry",
    "ChatLog",
    "MessageSender",
    "SheetConnection",
]
