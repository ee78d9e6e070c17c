"""ファミリー管理 API ルート

POST  /api/families          → 201 ファミリー作成（既定カテゴリ付き）
POST  /api/families/join     → 200 招待コードで参加
GET   /api/families/me       → 200 所属ファミリー
PATCH /api/families/me       → 200 名前・通貨の変更
GET   /api/families/members  → 200 [{ uid, name, email, photo_url }...]
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator

from familyfin.domain.currencies import find_currency
from familyfin.domain.models import Family, UserProfile
from familyfin.domain.ports import FamilyRepository, UserRepository
from familyfin.entrypoints.api.deps import (
    FamilyContext,
    get_current_profile,
    get_family_context,
    get_family_repo,
    get_user_repo,
)
from familyfin.services.invite_codes import (
    INVITE_CODE_LENGTH,
    generate_invite_code,
    normalize_invite_code,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/families", tags=["families"])


def _trimmed_name(v: str, min_length: int) -> str:
    # 空白だけで min_length を満たすのを防ぐ
    name = v.strip()
    if len(name) < min_length:
        raise ValueError(f"name must be at least {min_length} characters")
    return name


# ── リクエスト・レスポンスモデル ───────────────────────────────────────────────


class FamilyCreateRequest(BaseModel):
    name: str = Field(min_length=3)

    @field_validator("name")
    @classmethod
    def _name_long_enough(cls, v: str) -> str:
        return _trimmed_name(v, 3)


class JoinRequest(BaseModel):
    invite_code: str = Field(min_length=INVITE_CODE_LENGTH, max_length=INVITE_CODE_LENGTH)


class FamilySettingsRequest(BaseModel):
    name: str = Field(min_length=2)
    currency: str

    @field_validator("name")
    @classmethod
    def _name_long_enough(cls, v: str) -> str:
        return _trimmed_name(v, 2)


class FamilyResponse(BaseModel):
    id: str
    name: str
    invite_code: str
    currency: str
    currency_symbol: str
    members: list[str]


class MemberResponse(BaseModel):
    uid: str
    name: str
    email: str
    photo_url: str


def _to_response(family: Family) -> FamilyResponse:
    return FamilyResponse(
        id=family.id,
        name=family.name,
        invite_code=family.invite_code,
        currency=family.currency,
        currency_symbol=family.currency_symbol,
        members=family.members,
    )


def _require_no_family(profile: UserProfile) -> None:
    if profile.family_id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="You already belong to a family.",
        )


# ── エンドポイント ────────────────────────────────────────────────────────────────


@router.post("", status_code=status.HTTP_201_CREATED, response_model=FamilyResponse)
async def create_family(
    body: FamilyCreateRequest,
    profile: UserProfile = Depends(get_current_profile),
    family_repo: FamilyRepository = Depends(get_family_repo),
) -> FamilyResponse:
    """
    ファミリーを作成し、作成者をメンバーにする。

    既定カテゴリ（支出・収入・買い物）と users/{uid}.familyId も同じバッチで書き込む。
    """
    _require_no_family(profile)

    family = family_repo.create_family(
        owner_uid=profile.uid,
        name=body.name,
        invite_code=generate_invite_code(),
    )
    logger.info("Family created: uid=%s, family_id=%s", profile.uid, family.id)
    return _to_response(family)


@router.post("/join", response_model=FamilyResponse)
async def join_family(
    body: JoinRequest,
    profile: UserProfile = Depends(get_current_profile),
    family_repo: FamilyRepository = Depends(get_family_repo),
) -> FamilyResponse:
    """招待コード（大文字小文字を区別しない）でファミリーに参加する"""
    _require_no_family(profile)

    family = family_repo.find_by_invite_code(normalize_invite_code(body.invite_code))
    if family is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No family found with that invite code",
        )

    family_repo.add_member(family.id, profile.uid)
    logger.info("Joined family: uid=%s, family_id=%s", profile.uid, family.id)

    members = family.members if profile.uid in family.members else [*family.members, profile.uid]
    return _to_response(
        Family(
            id=family.id,
            name=family.name,
            members=members,
            invite_code=family.invite_code,
            currency=family.currency,
            currency_symbol=family.currency_symbol,
            created_at=family.created_at,
        )
    )


@router.get("/me", response_model=FamilyResponse)
async def get_my_family(
    ctx: FamilyContext = Depends(get_family_context),
    family_repo: FamilyRepository = Depends(get_family_repo),
) -> FamilyResponse:
    family = family_repo.get_family(ctx.family_id)
    if family is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Family not found")
    return _to_response(family)


@router.patch("/me", response_model=FamilyResponse)
async def update_family_settings(
    body: FamilySettingsRequest,
    ctx: FamilyContext = Depends(get_family_context),
    family_repo: FamilyRepository = Depends(get_family_repo),
) -> FamilyResponse:
    """ファミリー名と通貨を変更する（通貨記号は通貨コードから決まる）"""
    currency = find_currency(body.currency)
    if currency is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported currency: {body.currency}",
        )

    family_repo.update_family(
        ctx.family_id,
        {
            "name": body.name,
            "currency": currency.code,
            "currencySymbol": currency.symbol,
        },
    )
    return await get_my_family(ctx=ctx, family_repo=family_repo)


@router.get("/members", response_model=list[MemberResponse])
async def list_members(
    ctx: FamilyContext = Depends(get_family_context),
    user_repo: UserRepository = Depends(get_user_repo),
) -> list[MemberResponse]:
    return [
        MemberResponse(
            uid=m.uid,
            name=m.display_name,
            email=m.email,
            photo_url=m.photo_url,
        )
        for m in user_repo.list_members(ctx.family_id)
    ]
