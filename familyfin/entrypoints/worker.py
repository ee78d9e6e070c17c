"""Cloud Scheduler ワーカー エントリーポイント

Cloud Scheduler から HTTP POST を受け取り、定期処理を実行する。

  POST /worker/shopping-reminders
    reminderAt が過ぎた買い物リマインダーを巡回する。
    直近 REMINDER_SWEEP_MINUTES 分以内に期限を迎えたものは通知して解除、
    それより古いもの（巡回の取りこぼし）は通知せずに解除だけ行う。
    `watch` コマンドを常駐させない構成でもリマインダーが届くようにするためのもの。
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, status

from familyfin.domain.ports import (
    FamilyRepository,
    PushNotifier,
    ShoppingRepository,
    UserRepository,
)
from familyfin.entrypoints.api.deps import (
    get_family_repo,
    get_push_notifier,
    get_shopping_repo,
    get_user_repo,
)
from familyfin.entrypoints.api.worker_auth import verify_worker_token
from familyfin.logging_config import log_fields
from familyfin.services.shopping_alerts import ShoppingAlertDispatcher

logger = logging.getLogger(__name__)

_DEFAULT_SWEEP_MINUTES = 5


def _sweep_window() -> timedelta:
    raw = os.environ.get("REMINDER_SWEEP_MINUTES", str(_DEFAULT_SWEEP_MINUTES))
    try:
        minutes = int(raw)
    except ValueError:
        logger.warning("Invalid REMINDER_SWEEP_MINUTES=%r, using default", raw)
        minutes = _DEFAULT_SWEEP_MINUTES
    return timedelta(minutes=minutes)


def run_reminder_sweep(
    family_repo: FamilyRepository,
    shopping_repo: ShoppingRepository,
    dispatcher: ShoppingAlertDispatcher,
    now: datetime,
    window: timedelta,
) -> dict:
    """
    全ファミリーの期限到来リマインダーを処理する。

    通知に失敗したアイテムも解除する（再試行しない）。
    1ファミリーの失敗は記録して次のファミリーへ進む。

    Returns:
        {"fired": 通知した件数, "expired": 通知せず解除した件数, "errors": 失敗件数}
    """
    fired = 0
    expired = 0
    errors = 0
    cutoff = now - window

    for family_id in family_repo.list_family_ids():
        try:
            due_items = shopping_repo.list_with_reminder_before(family_id, now)
            for item in due_items:
                if item.reminder_at is None:
                    continue
                if item.reminder_at > cutoff:
                    try:
                        result = dispatcher.notify_reminder(family_id, item)
                    except Exception:
                        logger.exception(
                            "Reminder alert failed",
                            extra=log_fields(family_id=family_id, item_id=item.id),
                        )
                        errors += 1
                    else:
                        errors += result.errors
                        fired += 1
                else:
                    logger.info(
                        "Reminder missed, clearing without alert",
                        extra=log_fields(family_id=family_id, item_id=item.id),
                    )
                    expired += 1
                shopping_repo.clear_reminder(family_id, item.id)
        except Exception:
            logger.exception("Reminder sweep failed", extra=log_fields(family_id=family_id))
            errors += 1

    summary = {"fired": fired, "expired": expired, "errors": errors}
    logger.info("Reminder sweep complete", extra=log_fields(**summary))
    return summary


# ── Worker ルーター（app.py で /worker プレフィックスにマウント） ───────────────

router = APIRouter(dependencies=[Depends(verify_worker_token)])


@router.post("/shopping-reminders", status_code=status.HTTP_200_OK)
async def shopping_reminders(
    family_repo: FamilyRepository = Depends(get_family_repo),
    shopping_repo: ShoppingRepository = Depends(get_shopping_repo),
    user_repo: UserRepository = Depends(get_user_repo),
    notifier: PushNotifier = Depends(get_push_notifier),
) -> dict:
    """
    買い物リマインダー巡回エンドポイント（Cloud Scheduler から呼び出し）。

    OIDC トークン検証は verify_worker_token Depends によりルーターレベルで実施済み。
    """
    summary = run_reminder_sweep(
        family_repo,
        shopping_repo,
        ShoppingAlertDispatcher(user_repo, notifier),
        now=datetime.now(timezone.utc),
        window=_sweep_window(),
    )
    return {"status": "ok", **summary}
