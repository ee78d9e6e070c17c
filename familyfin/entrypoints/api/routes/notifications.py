"""通知フィード API ルート

GET  /api/notifications        → 200 { count, items: [...] }
POST /api/notifications/clear  → 204 既読位置を現在時刻に進める
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from familyfin.domain.ports import LedgerRepository, ShoppingRepository, UserRepository
from familyfin.entrypoints.api.deps import (
    FamilyContext,
    get_family_context,
    get_ledger_repo,
    get_shopping_repo,
    get_user_repo,
)
from familyfin.services.activity_feed import ActivityFeed
from familyfin.services.ledger import member_name_map

router = APIRouter(prefix="/notifications", tags=["notifications"])


class ActivityResponse(BaseModel):
    kind: str
    id: str
    name: str
    added_by: str
    added_by_name: str
    activity_time: datetime
    amount: float | None


class NotificationsResponse(BaseModel):
    count: int
    items: list[ActivityResponse]


def get_activity_feed(
    user_repo: UserRepository = Depends(get_user_repo),
    ledger_repo: LedgerRepository = Depends(get_ledger_repo),
    shopping_repo: ShoppingRepository = Depends(get_shopping_repo),
) -> ActivityFeed:
    return ActivityFeed(user_repo, ledger_repo, shopping_repo)


@router.get("", response_model=NotificationsResponse)
async def list_notifications(
    ctx: FamilyContext = Depends(get_family_context),
    feed: ActivityFeed = Depends(get_activity_feed),
    user_repo: UserRepository = Depends(get_user_repo),
) -> NotificationsResponse:
    activities = feed.list_for(ctx.profile, ctx.family_id, datetime.now(timezone.utc))
    names = member_name_map(user_repo.list_members(ctx.family_id)) if activities else {}
    items = [
        ActivityResponse(
            kind=a.kind,
            id=a.entry_id,
            name=a.name,
            added_by=a.added_by,
            added_by_name=names.get(a.added_by, "Someone"),
            activity_time=a.activity_time,
            amount=a.amount,
        )
        for a in activities
    ]
    return NotificationsResponse(count=len(items), items=items)


@router.post("/clear", status_code=status.HTTP_204_NO_CONTENT)
async def clear_notifications(
    ctx: FamilyContext = Depends(get_family_context),
    feed: ActivityFeed = Depends(get_activity_feed),
) -> None:
    feed.clear(ctx.uid, datetime.now(timezone.utc))
