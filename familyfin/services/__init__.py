"""Services layer - ビジネスロジック"""

from familyfin.services.activity_feed import ActivityFeed
from familyfin.services.shopping_alerts import AlertResult, ShoppingAlertDispatcher
from familyfin.services.shopping_watcher import (
    ReminderScheduler,
    ShoppingListMonitor,
    diff_items,
)
from familyfin.services.voice_entry import VoiceEntryDraft, VoiceEntryService

__all__ = [
    "ActivityFeed",
    "AlertResult",
    "ShoppingAlertDispatcher",
    "ReminderScheduler",
    "ShoppingListMonitor",
    "diff_items",
    "VoiceEntryDraft",
    "VoiceEntryService",
]
