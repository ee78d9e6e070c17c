"""プロフィール API ルート

GET   /api/profile           → 200 { uid, name, email, photo_url, family_id }
PATCH /api/profile           → 200 表示名の変更
POST  /api/profile/photo     → 200 { photo_url }  （image/* かつ 5MB 以下）
POST  /api/profile/password  → 204 現在のパスワードで再認証してから変更
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, UploadFile, status
from pydantic import BaseModel, Field

from familyfin.domain.errors import AuthenticationError, StorageError
from familyfin.domain.models import UserProfile
from familyfin.domain.ports import AuthAdmin, BlobStorage, UserRepository
from familyfin.entrypoints.api.deps import (
    get_auth_admin,
    get_blob_storage,
    get_current_profile,
    get_user_repo,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/profile", tags=["profile"])

_MAX_PHOTO_BYTES = 5 * 1024 * 1024


class ProfileResponse(BaseModel):
    uid: str
    name: str
    email: str
    photo_url: str
    family_id: str | None


class NameUpdateRequest(BaseModel):
    name: str = Field(min_length=2)


class PhotoResponse(BaseModel):
    photo_url: str


class PasswordChangeRequest(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


def _to_response(profile: UserProfile) -> ProfileResponse:
    return ProfileResponse(
        uid=profile.uid,
        name=profile.name,
        email=profile.email,
        photo_url=profile.photo_url,
        family_id=profile.family_id,
    )


@router.get("", response_model=ProfileResponse)
async def get_profile(
    profile: UserProfile = Depends(get_current_profile),
) -> ProfileResponse:
    return _to_response(profile)


@router.patch("", response_model=ProfileResponse)
async def update_name(
    body: NameUpdateRequest,
    profile: UserProfile = Depends(get_current_profile),
    user_repo: UserRepository = Depends(get_user_repo),
    auth_admin: AuthAdmin = Depends(get_auth_admin),
) -> ProfileResponse:
    """Firebase Auth の表示名と users/{uid}.name を揃えて更新する"""
    name = body.name.strip()
    auth_admin.update_profile(profile.uid, display_name=name)
    user_repo.update_user(profile.uid, {"name": name})
    return _to_response(user_repo.get_user(profile.uid) or profile)


@router.post("/photo", response_model=PhotoResponse)
async def upload_photo(
    file: UploadFile,
    profile: UserProfile = Depends(get_current_profile),
    user_repo: UserRepository = Depends(get_user_repo),
    storage: BlobStorage = Depends(get_blob_storage),
    auth_admin: AuthAdmin = Depends(get_auth_admin),
) -> PhotoResponse:
    """
    プロフィール写真をアップロードする。

    profile-pictures/{uid} に上書き保存し、ダウンロード URL を
    Firebase Auth と users/{uid}.photoURL の両方に書き込む。
    """
    content_type = file.content_type or ""
    if not content_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please select an image file.",
        )

    content = await file.read()
    if len(content) > _MAX_PHOTO_BYTES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Image must be 5MB or smaller.",
        )

    try:
        photo_url = storage.upload(f"profile-pictures/{profile.uid}", content, content_type)
    except StorageError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to upload profile picture.",
        ) from e

    auth_admin.update_profile(profile.uid, photo_url=photo_url)
    user_repo.update_user(profile.uid, {"photoURL": photo_url})
    logger.info("Profile photo updated: uid=%s, size=%d", profile.uid, len(content))
    return PhotoResponse(photo_url=photo_url)


@router.post("/password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    body: PasswordChangeRequest,
    profile: UserProfile = Depends(get_current_profile),
    auth_admin: AuthAdmin = Depends(get_auth_admin),
) -> None:
    try:
        auth_admin.verify_password(profile.email, body.current_password)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to update password. Please check your current password.",
        ) from e

    auth_admin.update_password(profile.uid, body.new_password)
