"""支出・収入 API ルート

GET    /api/expenses        → 200 [Entry...]（閲覧者に見えるものだけ）
POST   /api/expenses        → 201 Entry
PATCH  /api/expenses/{id}   → 200 Entry（作成者のみ）
DELETE /api/expenses/{id}   → 204（作成者のみ）

/api/earnings も同じ形。
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator

from familyfin.domain.errors import RecordNotFoundError
from familyfin.domain.models import LedgerEntry, LedgerKind
from familyfin.domain.ports import CategoryRepository, LedgerRepository, UserRepository
from familyfin.entrypoints.api.deps import (
    FamilyContext,
    get_category_repo,
    get_family_context,
    get_ledger_repo,
    get_user_repo,
)
from familyfin.services.ledger import (
    category_name_map,
    hidden_user_ids,
    member_name_map,
    resolve_category,
    visible_entries,
)

logger = logging.getLogger(__name__)


def _stripped_name(v: str) -> str:
    name = v.strip()
    if not name:
        raise ValueError("name must not be blank")
    return name


class EntryCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    amount: float = Field(ge=0.01)
    category_id: str = Field(min_length=1)
    date: datetime
    is_private: bool | None = None  # 省略時はユーザーの既定値

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        return _stripped_name(v)


class EntryUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    amount: float | None = Field(default=None, ge=0.01)
    category_id: str | None = Field(default=None, min_length=1)
    date: datetime | None = None
    is_private: bool | None = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str | None) -> str | None:
        return None if v is None else _stripped_name(v)


class EntryResponse(BaseModel):
    id: str
    name: str
    amount: float
    category_id: str
    category_name: str
    date: datetime | None
    added_by: str
    added_by_name: str
    is_private: bool
    created_at: datetime | None


def entry_to_response(
    entry: LedgerEntry, categories: dict[str, str], names: dict[str, str]
) -> EntryResponse:
    return EntryResponse(
        id=entry.id,
        name=entry.name,
        amount=entry.amount,
        category_id=entry.category_id,
        category_name=resolve_category(categories, entry.category_id),
        date=entry.date,
        added_by=entry.added_by,
        added_by_name=names.get(entry.added_by, "Someone"),
        is_private=entry.is_private,
        created_at=entry.created_at,
    )


def _build_router(kind: LedgerKind) -> APIRouter:
    router = APIRouter(prefix=f"/{kind.collection}", tags=[kind.collection])

    def _get_own_entry(
        ctx: FamilyContext, ledger_repo: LedgerRepository, entry_id: str
    ) -> LedgerEntry:
        entry = ledger_repo.get(ctx.family_id, kind, entry_id)
        if entry is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{kind.value.capitalize()} not found",
            )
        if entry.added_by != ctx.uid:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Only the creator can modify this {kind.value}.",
            )
        return entry

    def _respond(
        ctx: FamilyContext,
        entry: LedgerEntry,
        category_repo: CategoryRepository,
    ) -> EntryResponse:
        categories = category_name_map(
            category_repo.list(ctx.family_id, kind.category_type)
        )
        return entry_to_response(
            entry, categories, {ctx.uid: ctx.profile.display_name}
        )

    @router.get("", response_model=list[EntryResponse])
    async def list_entries(
        ctx: FamilyContext = Depends(get_family_context),
        ledger_repo: LedgerRepository = Depends(get_ledger_repo),
        category_repo: CategoryRepository = Depends(get_category_repo),
        user_repo: UserRepository = Depends(get_user_repo),
    ) -> list[EntryResponse]:
        """閲覧者に見えるエントリを createdAt 降順で返す"""
        members = user_repo.list_members(ctx.family_id)
        entries = visible_entries(
            ledger_repo.list(ctx.family_id, kind), ctx.uid, hidden_user_ids(members)
        )
        categories = category_name_map(
            category_repo.list(ctx.family_id, kind.category_type)
        )
        names = member_name_map(members)
        return [entry_to_response(e, categories, names) for e in entries]

    @router.post("", status_code=status.HTTP_201_CREATED, response_model=EntryResponse)
    async def add_entry(
        body: EntryCreateRequest,
        ctx: FamilyContext = Depends(get_family_context),
        ledger_repo: LedgerRepository = Depends(get_ledger_repo),
        category_repo: CategoryRepository = Depends(get_category_repo),
    ) -> EntryResponse:
        is_private = (
            body.is_private
            if body.is_private is not None
            else ctx.profile.default_private(kind)
        )
        entry = LedgerEntry(
            id="",
            name=body.name,
            amount=body.amount,
            category_id=body.category_id,
            date=body.date,
            added_by=ctx.uid,
            is_private=is_private,
        )
        entry_id = ledger_repo.add(ctx.family_id, kind, entry)
        logger.info(
            "%s added: family_id=%s, uid=%s, id=%s, private=%s",
            kind.value,
            ctx.family_id,
            ctx.uid,
            entry_id,
            is_private,
        )
        return _respond(ctx, replace(entry, id=entry_id), category_repo)

    @router.patch("/{entry_id}", response_model=EntryResponse)
    async def update_entry(
        entry_id: str,
        body: EntryUpdateRequest,
        ctx: FamilyContext = Depends(get_family_context),
        ledger_repo: LedgerRepository = Depends(get_ledger_repo),
        category_repo: CategoryRepository = Depends(get_category_repo),
    ) -> EntryResponse:
        _get_own_entry(ctx, ledger_repo, entry_id)

        update: dict = {}
        if body.name is not None:
            update["name"] = body.name
        if body.amount is not None:
            update["amount"] = body.amount
        if body.category_id is not None:
            update["categoryId"] = body.category_id
        if body.date is not None:
            update["date"] = body.date
        if body.is_private is not None:
            update["isPrivate"] = body.is_private

        if update:
            try:
                ledger_repo.update(ctx.family_id, kind, entry_id, update)
            except RecordNotFoundError as e:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"{kind.value.capitalize()} not found",
                ) from e

        entry = ledger_repo.get(ctx.family_id, kind, entry_id)
        if entry is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{kind.value.capitalize()} not found",
            )
        return _respond(ctx, entry, category_repo)

    @router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_entry(
        entry_id: str,
        ctx: FamilyContext = Depends(get_family_context),
        ledger_repo: LedgerRepository = Depends(get_ledger_repo),
    ) -> None:
        _get_own_entry(ctx, ledger_repo, entry_id)
        ledger_repo.delete(ctx.family_id, kind, entry_id)

    return router


expenses_router = _build_router(LedgerKind.EXPENSE)
earnings_router = _build_router(LedgerKind.EARNING)
