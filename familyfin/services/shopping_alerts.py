"""ShoppingAlertDispatcher - 買い物リストのイベントをプッシュ通知に変換

ShoppingListMonitor / ReminderScheduler / リマインダー巡回ワーカーから呼ばれる。
通知の失敗はログに残すだけで呼び出し元には伝えない。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from familyfin.domain.models import (
    ShoppingChange,
    ShoppingEvent,
    ShoppingItem,
    UserProfile,
)
from familyfin.domain.ports import PushNotifier, UserRepository
from familyfin.logging_config import log_fields
from familyfin.services.ledger import member_name_map

logger = logging.getLogger(__name__)

_UNKNOWN_ACTOR = "Someone"
_SHOPPING_LINK = "/shopping"


@dataclass
class AlertResult:
    """送信結果"""

    sent: int = 0
    errors: int = 0
    removed_tokens: int = 0


def build_event_message(event: ShoppingEvent, actor_name: str) -> tuple[str, str]:
    """イベントから (title, body) を作る"""
    if event.change is ShoppingChange.ADDED:
        return "New Item Added", f'{actor_name} added "{event.item.name}" to the list.'
    return (
        "Item Purchased",
        f'✔ "{event.item.name}" was marked as bought by {actor_name}.',
    )


def build_reminder_message(item: ShoppingItem) -> tuple[str, str]:
    return "Shopping Reminder", f"It's time to buy {item.name}."


class ShoppingAlertDispatcher:
    """
    買い物リストのイベント・リマインダーをファミリーメンバーへ配信する。

    - 追加・購入: 操作したメンバー以外の全員へ
    - リマインダー: remindedBy のメンバーへ（未設定・不在ならファミリー全員）
    FCM が失効と判定したトークンは users/{uid}.fcmTokens から削除する。
    """

    def __init__(self, user_repo: UserRepository, notifier: PushNotifier) -> None:
        self._user_repo = user_repo
        self._notifier = notifier

    def notify_events(self, family_id: str, events: list[ShoppingEvent]) -> AlertResult:
        result = AlertResult()
        if not events:
            return result

        members = self._user_repo.list_members(family_id)
        names = member_name_map(members)

        for event in events:
            actor_name = names.get(event.actor_uid or "", _UNKNOWN_ACTOR)
            title, body = build_event_message(event, actor_name)
            recipients = [m for m in members if m.uid != event.actor_uid]
            self._deliver(recipients, title, body, tag=None, result=result)

        logger.info(
            "Shopping alerts sent",
            extra=log_fields(
                family_id=family_id, events=len(events), sent=result.sent, errors=result.errors
            ),
        )
        return result

    def notify_reminder(self, family_id: str, item: ShoppingItem) -> AlertResult:
        result = AlertResult()
        members = self._user_repo.list_members(family_id)

        recipients = [m for m in members if m.uid == item.reminded_by]
        if not recipients:
            recipients = members

        title, body = build_reminder_message(item)
        self._deliver(recipients, title, body, tag=f"reminder-{item.id}", result=result)
        logger.info(
            "Reminder sent",
            extra=log_fields(
                family_id=family_id, item_id=item.id, sent=result.sent, errors=result.errors
            ),
        )
        return result

    def _deliver(
        self,
        recipients: list[UserProfile],
        title: str,
        body: str,
        tag: str | None,
        result: AlertResult,
    ) -> None:
        # 失効トークンをユーザー単位で削除するため、送信もユーザー単位で行う
        for member in recipients:
            if not member.fcm_tokens:
                continue
            try:
                invalid = self._notifier.send(
                    member.fcm_tokens, title, body, link=_SHOPPING_LINK, tag=tag
                )
            except Exception:
                logger.exception("Push failed (non-critical): uid=%s", member.uid)
                result.errors += 1
                continue

            result.sent += len(member.fcm_tokens) - len(invalid)
            if invalid:
                logger.info(
                    "FCM tokens expired, removing: uid=%s, count=%d",
                    member.uid,
                    len(invalid),
                )
                try:
                    self._user_repo.remove_push_tokens(member.uid, invalid)
                    result.removed_tokens += len(invalid)
                except Exception:
                    logger.exception("Token cleanup failed: uid=%s", member.uid)
                    result.errors += 1
