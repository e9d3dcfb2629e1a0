from .words import Word
from .preferences import Preference
from .sync import SyncOutboxEntry, SyncState
from .notification import NotificationEvent


__all__ = [
    "Word",
    "Preference",
    "SyncState",
    "SyncOutboxEntry",
    "NotificationEvent",
]
