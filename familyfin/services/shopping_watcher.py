"""ShoppingWatcher - 買い物リストのスナップショット差分とリマインダータイマー

Firestore のスナップショットリスナーから渡されるアイテム一覧を処理する。

  diff_items         : 前回と今回の一覧を id で突き合わせ、追加・購入済みへの変化を検出
  ShoppingListMonitor: 初回スナップショットは記録のみ、以降は差分をハンドラへ渡す
  ReminderScheduler  : reminderAt ごとのメモリ上タイマー（永続化・再試行なし）
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import datetime, timezone

from familyfin.domain.models import ShoppingChange, ShoppingEvent, ShoppingItem
from familyfin.domain.ports import ShoppingRepository

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def diff_items(
    previous: dict[str, ShoppingItem], current: Iterable[ShoppingItem]
) -> list[ShoppingEvent]:
    """
    2つのスナップショットの差分をイベントに変換する。

    - previous に無い id → ADDED（actor は addedBy）
    - purchased が False → True に変わった → PURCHASED（actor は purchasedBy）
    - 削除やその他の変更はイベントにしない
    """
    events: list[ShoppingEvent] = []
    for item in current:
        old = previous.get(item.id)
        if old is None:
            events.append(ShoppingEvent(ShoppingChange.ADDED, item, item.added_by))
        elif item.purchased and not old.purchased:
            events.append(ShoppingEvent(ShoppingChange.PURCHASED, item, item.purchased_by))
    return events


class ReminderScheduler:
    """
    アイテムごとのリマインダータイマーを管理する。

    sync() が呼ばれるたびに既存タイマーをすべて張り直す。
    発火済み・期限切れのリマインダーはストア側で解除する。
    """

    def __init__(
        self,
        shopping_repo: ShoppingRepository,
        family_id: str,
        on_due: Callable[[ShoppingItem], None],
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """
        Args:
            shopping_repo: リマインダー解除に使うリポジトリ
            family_id: 対象ファミリー
            on_due: リマインダー発火時に呼ぶハンドラ
            timer_factory: threading.Timer 互換のファクトリ（テストで差し替える）
            clock: 現在時刻（UTC, tz-aware）
        """
        self._repo = shopping_repo
        self._family_id = family_id
        self._on_due = on_due
        self._timer_factory = timer_factory
        self._clock = clock
        self._timers: dict[str, threading.Timer] = {}
        self._due_at: dict[str, datetime] = {}
        self._lock = threading.Lock()

    @property
    def pending_item_ids(self) -> set[str]:
        with self._lock:
            return set(self._timers)

    def sync(self, items: list[ShoppingItem], now: datetime | None = None) -> None:
        """最新のアイテム一覧に合わせてタイマーを張り直す"""
        now = now or self._clock()
        current_ids = {item.id for item in items}
        expired: list[str] = []

        with self._lock:
            for item_id in list(self._timers):
                if item_id not in current_ids:
                    self._cancel_locked(item_id)

            for item in items:
                self._cancel_locked(item.id)

                if item.reminder_at is None:
                    continue

                delay = (item.reminder_at - now).total_seconds()
                if delay > 0:
                    timer = self._timer_factory(delay, self._fire, args=(item,))
                    timer.daemon = True
                    self._timers[item.id] = timer
                    self._due_at[item.id] = item.reminder_at
                    timer.start()
                else:
                    expired.append(item.id)

        # 期限切れは通知せずに解除だけ行う
        for item_id in expired:
            logger.info(
                "Reminder already past, clearing: family_id=%s, item_id=%s",
                self._family_id,
                item_id,
            )
            self._clear_reminder(item_id)

    def cancel_all(self) -> None:
        with self._lock:
            for timer in self._timers.values():
                timer.cancel()
            count = len(self._timers)
            self._timers.clear()
            self._due_at.clear()
        logger.info(
            "Cancelled reminder timers: family_id=%s, count=%d", self._family_id, count
        )

    def _clear_reminder(self, item_id: str) -> None:
        # リスナーのコールバック・タイマースレッドから呼ばれるため例外は外に出さない
        try:
            self._repo.clear_reminder(self._family_id, item_id)
        except Exception:
            logger.exception(
                "Failed to clear reminder: family_id=%s, item_id=%s", self._family_id, item_id
            )

    def _cancel_locked(self, item_id: str) -> None:
        timer = self._timers.pop(item_id, None)
        self._due_at.pop(item_id, None)
        if timer is not None:
            timer.cancel()

    def _fire(self, item: ShoppingItem) -> None:
        logger.info(
            "Reminder due: family_id=%s, item_id=%s, name=%s",
            self._family_id,
            item.id,
            item.name,
        )
        try:
            self._on_due(item)
        except Exception:
            logger.exception("Reminder handler failed: item_id=%s", item.id)

        self._clear_reminder(item.id)

        with self._lock:
            # sync() で別の時刻に張り直されたタイマーは残す
            if self._due_at.get(item.id) == item.reminder_at:
                self._timers.pop(item.id, None)
                self._due_at.pop(item.id, None)


class ShoppingListMonitor:
    """
    1ファミリー分の買い物リストを監視する。

    on_snapshot() をスナップショットリスナーのコールバックとして登録する。
    初回スナップショットでは既存アイテムを記録するだけでイベントは出さない。
    """

    def __init__(
        self,
        family_id: str,
        on_events: Callable[[str, list[ShoppingEvent]], None],
        scheduler: ReminderScheduler,
    ) -> None:
        self._family_id = family_id
        self._on_events = on_events
        self._scheduler = scheduler
        self._previous: dict[str, ShoppingItem] = {}
        self._initialized = False
        self._lock = threading.Lock()

    @property
    def family_id(self) -> str:
        return self._family_id

    def on_snapshot(self, items: list[ShoppingItem]) -> None:
        with self._lock:
            if not self._initialized:
                self._initialized = True
                events: list[ShoppingEvent] = []
                logger.info(
                    "Initial shopping snapshot: family_id=%s, items=%d",
                    self._family_id,
                    len(items),
                )
            else:
                events = diff_items(self._previous, items)
            self._previous = {item.id: item for item in items}

        if events:
            logger.info(
                "Shopping list changed: family_id=%s, events=%d",
                self._family_id,
                len(events),
            )
            try:
                self._on_events(self._family_id, events)
            except Exception:
                logger.exception(
                    "Shopping event handler failed: family_id=%s", self._family_id
                )

        self._scheduler.sync(items)

    def stop(self) -> None:
        self._scheduler.cancel_all()
