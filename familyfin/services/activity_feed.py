"""ActivityFeed - 通知ページ用のアクティビティ一覧

買い物リスト・支出・収入を createdAt で1本の時系列にまとめ、
他メンバーの新着だけを返す。既読位置は users/{uid}.lastClearedNotifications に保存する。
"""

from __future__ import annotations

import logging
from datetime import datetime

from familyfin.domain.models import Activity, LedgerKind, UserProfile
from familyfin.domain.ports import LedgerRepository, ShoppingRepository, UserRepository
from familyfin.services.ledger import hidden_user_ids, is_visible

logger = logging.getLogger(__name__)


class ActivityFeed:
    """
    通知フィードの組み立てと既読管理。

    除外対象:
      - 自分が追加したもの
      - 他メンバーのプライベートな支出・収入
      - 家計データを非公開にしたメンバーの支出・収入
      - lastClearedNotifications 以前のもの
    """

    def __init__(
        self,
        user_repo: UserRepository,
        ledger_repo: LedgerRepository,
        shopping_repo: ShoppingRepository,
    ) -> None:
        self._user_repo = user_repo
        self._ledger_repo = ledger_repo
        self._shopping_repo = shopping_repo

    def list_for(
        self, profile: UserProfile, family_id: str, now: datetime
    ) -> list[Activity]:
        """
        閲覧者向けの新着アクティビティを新しい順に返す。

        既読位置が未設定のユーザーは now で初期化し、過去の履歴は表示しない。
        """
        last_cleared = profile.last_cleared_notifications
        if last_cleared is None:
            self._user_repo.update_user(profile.uid, {"lastClearedNotifications": now})
            logger.info("Initialized notification marker: uid=%s", profile.uid)
            return []

        hidden = hidden_user_ids(self._user_repo.list_members(family_id))
        activities: list[Activity] = []

        for item in self._shopping_repo.list(family_id):
            if item.created_at is None:
                continue
            activities.append(
                Activity(
                    kind="shopping",
                    entry_id=item.id,
                    name=item.name,
                    added_by=item.added_by,
                    activity_time=item.created_at,
                )
            )

        for kind in LedgerKind:
            for entry in self._ledger_repo.list(family_id, kind):
                if entry.created_at is None:
                    continue
                if not is_visible(entry, profile.uid, hidden):
                    continue
                activities.append(
                    Activity(
                        kind=kind.value,
                        entry_id=entry.id,
                        name=entry.name,
                        added_by=entry.added_by,
                        activity_time=entry.created_at,
                        amount=entry.amount,
                    )
                )

        activities.sort(key=lambda a: a.activity_time, reverse=True)
        return [
            a
            for a in activities
            if a.added_by != profile.uid and a.activity_time > last_cleared
        ]

    def clear(self, uid: str, now: datetime) -> None:
        """既読位置を now に進める"""
        self._user_repo.update_user(uid, {"lastClearedNotifications": now})
        logger.info("Notifications cleared: uid=%s", uid)
