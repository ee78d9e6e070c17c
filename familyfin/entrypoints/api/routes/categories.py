"""カテゴリ API ルート

GET    /api/categories/{type}        → 200 [{ id, name }...]（名前順）
POST   /api/categories/{type}        → 201 { id, name }
DELETE /api/categories/{type}/{id}   → 204

{type} は expense / earning / shopping。
削除済みカテゴリを参照するエントリは "Uncategorized" として表示される。
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from familyfin.domain.models import CategoryType
from familyfin.domain.ports import CategoryRepository
from familyfin.entrypoints.api.deps import (
    FamilyContext,
    get_category_repo,
    get_family_context,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/categories", tags=["categories"])


class CategoryCreateRequest(BaseModel):
    name: str


class CategoryResponse(BaseModel):
    id: str
    name: str


@router.get("/{category_type}", response_model=list[CategoryResponse])
async def list_categories(
    category_type: CategoryType,
    ctx: FamilyContext = Depends(get_family_context),
    category_repo: CategoryRepository = Depends(get_category_repo),
) -> list[CategoryResponse]:
    return [
        CategoryResponse(id=c.id, name=c.name)
        for c in category_repo.list(ctx.family_id, category_type)
    ]


@router.post(
    "/{category_type}",
    status_code=status.HTTP_201_CREATED,
    response_model=CategoryResponse,
)
async def add_category(
    category_type: CategoryType,
    body: CategoryCreateRequest,
    ctx: FamilyContext = Depends(get_family_context),
    category_repo: CategoryRepository = Depends(get_category_repo),
) -> CategoryResponse:
    name = body.name.strip()
    if not name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Category name cannot be empty.",
        )
    category_id = category_repo.add(ctx.family_id, category_type, name)
    return CategoryResponse(id=category_id, name=name)


@router.delete("/{category_type}/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_type: CategoryType,
    category_id: str,
    ctx: FamilyContext = Depends(get_family_context),
    category_repo: CategoryRepository = Depends(get_category_repo),
) -> None:
    category_repo.delete(ctx.family_id, category_type, category_id)
