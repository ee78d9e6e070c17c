"""FCM トークン管理 API ルート

POST /api/push-tokens             → 204 トークンを登録（重複は無視）
POST /api/push-tokens/unregister  → 204 トークンを削除

Firestore スキーマ:
  users/{uid}/fcmTokens: [token, ...]   ← 端末ごとに1つ
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from familyfin.domain.models import UserProfile
from familyfin.domain.ports import UserRepository
from familyfin.entrypoints.api.deps import get_current_profile, get_user_repo

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/push-tokens", tags=["push-tokens"])


class PushTokenRequest(BaseModel):
    token: str = Field(min_length=1)


@router.post("", status_code=status.HTTP_204_NO_CONTENT)
def register_push_token(
    body: PushTokenRequest,
    profile: UserProfile = Depends(get_current_profile),
    user_repo: UserRepository = Depends(get_user_repo),
) -> None:
    """ブラウザの FCM トークンを users/{uid}.fcmTokens に追加する"""
    if body.token in profile.fcm_tokens:
        return
    user_repo.add_push_token(profile.uid, body.token)


@router.post("/unregister", status_code=status.HTTP_204_NO_CONTENT)
def unregister_push_token(
    body: PushTokenRequest,
    profile: UserProfile = Depends(get_current_profile),
    user_repo: UserRepository = Depends(get_user_repo),
) -> None:
    user_repo.remove_push_tokens(profile.uid, [body.token])
