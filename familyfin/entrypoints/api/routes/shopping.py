"""買い物リスト API ルート

GET    /api/shopping                     → 200 { to_buy: [...], purchased: [...] }
POST   /api/shopping                     → 201 Item
POST   /api/shopping/{id}/toggle         → 200 Item（購入済み ⇔ 未購入）
DELETE /api/shopping/{id}                → 204
PUT    /api/shopping/{id}/reminder       → 200 Item（未来日時のみ）
DELETE /api/shopping/{id}/reminder       → 204
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator

from familyfin.domain.errors import RecordNotFoundError
from familyfin.domain.models import SHOPPING_UNITS, CategoryType, ShoppingItem
from familyfin.domain.ports import CategoryRepository, ShoppingRepository
from familyfin.entrypoints.api.deps import (
    FamilyContext,
    get_category_repo,
    get_family_context,
    get_shopping_repo,
)
from familyfin.services.ledger import category_name_map, resolve_category

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/shopping", tags=["shopping"])

_ITEM_GONE = "This item may have been deleted by another family member."


class ItemCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    quantity: float | None = Field(default=None, gt=0)
    unit: str | None = None
    category_id: str = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        name = v.strip()
        if not name:
            raise ValueError("name must not be blank")
        return name

    @field_validator("unit")
    @classmethod
    def _known_unit(cls, v: str | None) -> str | None:
        if v is not None and v not in SHOPPING_UNITS:
            raise ValueError(f"unit must be one of {', '.join(SHOPPING_UNITS)}")
        return v


class ReminderRequest(BaseModel):
    reminder_at: datetime


class ItemResponse(BaseModel):
    id: str
    name: str
    quantity: float | None
    unit: str | None
    category_id: str
    category_name: str
    purchased: bool
    added_by: str
    purchased_by: str | None
    reminder_at: datetime | None
    reminded_by: str | None
    created_at: datetime | None


class ShoppingListResponse(BaseModel):
    to_buy: list[ItemResponse]
    purchased: list[ItemResponse]


def _to_response(item: ShoppingItem, categories: dict[str, str]) -> ItemResponse:
    return ItemResponse(
        id=item.id,
        name=item.name,
        quantity=item.quantity,
        unit=item.unit,
        category_id=item.category_id,
        category_name=resolve_category(categories, item.category_id),
        purchased=item.purchased,
        added_by=item.added_by,
        purchased_by=item.purchased_by,
        reminder_at=item.reminder_at,
        reminded_by=item.reminded_by,
        created_at=item.created_at,
    )


def _categories(ctx: FamilyContext, category_repo: CategoryRepository) -> dict[str, str]:
    return category_name_map(category_repo.list(ctx.family_id, CategoryType.SHOPPING))


def _get_item(ctx: FamilyContext, shopping_repo: ShoppingRepository, item_id: str) -> ShoppingItem:
    item = shopping_repo.get(ctx.family_id, item_id)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_ITEM_GONE)
    return item


def _as_utc(value: datetime) -> datetime:
    # タイムゾーンなしの入力は UTC とみなす
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@router.get("", response_model=ShoppingListResponse)
async def list_items(
    ctx: FamilyContext = Depends(get_family_context),
    shopping_repo: ShoppingRepository = Depends(get_shopping_repo),
    category_repo: CategoryRepository = Depends(get_category_repo),
) -> ShoppingListResponse:
    categories = _categories(ctx, category_repo)
    items = [_to_response(i, categories) for i in shopping_repo.list(ctx.family_id)]
    return ShoppingListResponse(
        to_buy=[i for i in items if not i.purchased],
        purchased=[i for i in items if i.purchased],
    )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ItemResponse)
async def add_item(
    body: ItemCreateRequest,
    ctx: FamilyContext = Depends(get_family_context),
    shopping_repo: ShoppingRepository = Depends(get_shopping_repo),
    category_repo: CategoryRepository = Depends(get_category_repo),
) -> ItemResponse:
    item = ShoppingItem(
        id="",
        name=body.name,
        added_by=ctx.uid,
        category_id=body.category_id,
        quantity=body.quantity,
        unit=body.unit,
    )
    item_id = shopping_repo.add(ctx.family_id, item)
    created = shopping_repo.get(ctx.family_id, item_id) or item
    return _to_response(created, _categories(ctx, category_repo))


@router.post("/{item_id}/toggle", response_model=ItemResponse)
async def toggle_purchased(
    item_id: str,
    ctx: FamilyContext = Depends(get_family_context),
    shopping_repo: ShoppingRepository = Depends(get_shopping_repo),
    category_repo: CategoryRepository = Depends(get_category_repo),
) -> ItemResponse:
    """購入状態を反転する。購入済みにしたメンバーを purchasedBy に記録"""
    item = _get_item(ctx, shopping_repo, item_id)
    purchased = not item.purchased
    try:
        shopping_repo.update(
            ctx.family_id,
            item_id,
            {"purchased": purchased, "purchasedBy": ctx.uid if purchased else None},
        )
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_ITEM_GONE) from e

    updated = _get_item(ctx, shopping_repo, item_id)
    return _to_response(updated, _categories(ctx, category_repo))


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: str,
    ctx: FamilyContext = Depends(get_family_context),
    shopping_repo: ShoppingRepository = Depends(get_shopping_repo),
) -> None:
    shopping_repo.delete(ctx.family_id, item_id)


@router.put("/{item_id}/reminder", response_model=ItemResponse)
async def set_reminder(
    item_id: str,
    body: ReminderRequest,
    ctx: FamilyContext = Depends(get_family_context),
    shopping_repo: ShoppingRepository = Depends(get_shopping_repo),
    category_repo: CategoryRepository = Depends(get_category_repo),
) -> ItemResponse:
    reminder_at = _as_utc(body.reminder_at)
    if reminder_at <= datetime.now(timezone.utc):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Reminder time must be in the future.",
        )

    try:
        shopping_repo.update(
            ctx.family_id,
            item_id,
            {"reminderAt": reminder_at, "remindedBy": ctx.uid},
        )
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_ITEM_GONE) from e

    logger.info(
        "Reminder set: family_id=%s, item_id=%s, at=%s",
        ctx.family_id,
        item_id,
        reminder_at.isoformat(),
    )
    updated = _get_item(ctx, shopping_repo, item_id)
    return _to_response(updated, _categories(ctx, category_repo))


@router.delete("/{item_id}/reminder", status_code=status.HTTP_204_NO_CONTENT)
async def clear_reminder(
    item_id: str,
    ctx: FamilyContext = Depends(get_family_context),
    shopping_repo: ShoppingRepository = Depends(get_shopping_repo),
) -> None:
    shopping_repo.clear_reminder(ctx.family_id, item_id)
