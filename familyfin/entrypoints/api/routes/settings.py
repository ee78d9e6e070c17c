"""ユーザー設定 API ルート

GET   /api/settings  → プライバシー設定・通知音
PATCH /api/settings  → 部分更新
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from familyfin.domain.models import (
    DEFAULT_NOTIFICATION_SOUND,
    NOTIFICATION_SOUNDS,
    UserProfile,
)
from familyfin.domain.ports import UserRepository
from familyfin.entrypoints.api.deps import get_current_profile, get_user_repo

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/settings", tags=["settings"])


class SettingsResponse(BaseModel):
    default_expenses_private: bool
    default_earnings_private: bool
    financial_data_hidden: bool
    notification_sound: str  # "Default" | "Chime" | "Ding" | "Positive" | "Start"
    notification_sound_url: str
    available_sounds: list[str]


class SettingsUpdateRequest(BaseModel):
    default_expenses_private: bool | None = None
    default_earnings_private: bool | None = None
    financial_data_hidden: bool | None = None
    notification_sound: str | None = None


def _sound_name(path: str) -> str:
    for name, sound_path in NOTIFICATION_SOUNDS.items():
        if sound_path == path:
            return name
    return "Default"


def _to_response(profile: UserProfile) -> SettingsResponse:
    sound_url = profile.notification_sound or DEFAULT_NOTIFICATION_SOUND
    return SettingsResponse(
        default_expenses_private=profile.default_expenses_private,
        default_earnings_private=profile.default_earnings_private,
        financial_data_hidden=profile.financial_data_hidden,
        notification_sound=_sound_name(sound_url),
        notification_sound_url=sound_url,
        available_sounds=list(NOTIFICATION_SOUNDS),
    )


@router.get("", response_model=SettingsResponse)
async def get_settings(
    profile: UserProfile = Depends(get_current_profile),
) -> SettingsResponse:
    return _to_response(profile)


@router.patch("", response_model=SettingsResponse)
async def update_settings(
    body: SettingsUpdateRequest,
    profile: UserProfile = Depends(get_current_profile),
    user_repo: UserRepository = Depends(get_user_repo),
) -> SettingsResponse:
    """設定を部分更新する"""
    update: dict = {}
    if body.default_expenses_private is not None:
        update["defaultExpensesToPrivate"] = body.default_expenses_private
    if body.default_earnings_private is not None:
        update["defaultEarningsToPrivate"] = body.default_earnings_private
    if body.financial_data_hidden is not None:
        update["isFinancialDataHidden"] = body.financial_data_hidden
    if body.notification_sound is not None:
        sound = NOTIFICATION_SOUNDS.get(body.notification_sound)
        if sound is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown notification sound: {body.notification_sound}",
            )
        update["notificationSound"] = sound

    if update:
        user_repo.update_user(profile.uid, update)
        profile = user_repo.get_user(profile.uid) or profile

    return _to_response(profile)
