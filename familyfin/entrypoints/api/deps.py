"""FastAPI 依存性注入

Firebase Auth JWT 検証と Firestore リポジトリ・外部サービスの初期化を担当する。
各ルートは Depends() でこのモジュールの関数を呼び出して認証情報と
リポジトリインスタンスを受け取る。
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import firebase_admin
import firebase_admin.auth as fb_auth
import vertexai
from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import credentials as fb_creds
from google.cloud import firestore
from vertexai.generative_models import GenerativeModel

from familyfin.adapters.cloud_storage import GCSBlobStorage
from familyfin.adapters.fcm_notifier import FcmNotifier
from familyfin.adapters.firebase_auth import FirebaseAuthAdmin
from familyfin.adapters.firestore_repository import (
    FirestoreCategoryRepository,
    FirestoreFamilyRepository,
    FirestoreLedgerRepository,
    FirestoreShoppingRepository,
    FirestoreUserRepository,
)
from familyfin.adapters.gemini import GeminiTranscriptParser
from familyfin.adapters.pdf_report import ReportLabPdfRenderer
from familyfin.domain.models import UserProfile
from familyfin.domain.ports import (
    AuthAdmin,
    BlobStorage,
    CategoryRepository,
    FamilyRepository,
    LedgerRepository,
    PushNotifier,
    ReportRenderer,
    ShoppingRepository,
    TranscriptParser,
    UserRepository,
)

logger = logging.getLogger(__name__)

# ── Firebase Admin 初期化（プロセス内で1回のみ） ────────────────────────────────

_firebase_app: firebase_admin.App | None = None


def _get_firebase_app() -> firebase_admin.App:
    global _firebase_app
    if _firebase_app is None:
        try:
            # 既に初期化済み（watch コマンドなどが先に初期化した場合）
            _firebase_app = firebase_admin.get_app()
        except ValueError:
            cred = fb_creds.ApplicationDefault()
            project_id = os.environ.get("PROJECT_ID")
            options: dict = {"projectId": project_id} if project_id else {}
            bucket = os.environ.get("STORAGE_BUCKET")
            if bucket:
                options["storageBucket"] = bucket
            _firebase_app = firebase_admin.initialize_app(cred, options=options)
            logger.info("Firebase Admin initialized (deps) project=%s", project_id)
    return _firebase_app


# ── 認証 ────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AuthInfo:
    """Firebase Auth JWT から取得した認証情報"""

    uid: str
    email: str
    display_name: str
    photo_url: str = ""


_bearer = HTTPBearer()


async def get_auth_info(
    creds: HTTPAuthorizationCredentials = Depends(_bearer),
) -> AuthInfo:
    """
    Authorization: Bearer <id_token> ヘッダーを検証して AuthInfo を返す。

    Raises:
        HTTPException(401): トークンが無効な場合
    """
    _get_firebase_app()
    try:
        decoded = fb_auth.verify_id_token(creds.credentials)
    except fb_auth.ExpiredIdTokenError as e:
        # クライアントは getIdToken(true) で取り直して再送する
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Firebase ID token expired",
        ) from e
    except (ValueError, fb_auth.InvalidIdTokenError, fb_auth.CertificateFetchError) as e:
        logger.warning("Invalid Firebase ID token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Firebase ID token",
        ) from e

    return AuthInfo(
        uid=decoded["uid"],
        email=decoded.get("email", ""),
        display_name=decoded.get("name", ""),
        photo_url=decoded.get("picture", ""),
    )


# ── Firestore クライアント（シングルトン） ──────────────────────────────────────

_firestore_client: firestore.Client | None = None


def _get_firestore_client() -> firestore.Client:
    global _firestore_client
    if _firestore_client is None:
        _firestore_client = firestore.Client()
        logger.info("Firestore client initialized")
    return _firestore_client


# ── リポジトリ依存 ─────────────────────────────────────────────────────────────


def get_user_repo() -> UserRepository:
    return FirestoreUserRepository(_get_firestore_client())


def get_family_repo() -> FamilyRepository:
    return FirestoreFamilyRepository(_get_firestore_client())


def get_ledger_repo() -> LedgerRepository:
    return FirestoreLedgerRepository(_get_firestore_client())


def get_shopping_repo() -> ShoppingRepository:
    return FirestoreShoppingRepository(_get_firestore_client())


def get_category_repo() -> CategoryRepository:
    return FirestoreCategoryRepository(_get_firestore_client())


# ── 外部サービス依存 ───────────────────────────────────────────────────────────


def get_blob_storage() -> BlobStorage:
    """プロフィール写真用の BlobStorage を返す依存関数"""
    project_id = os.environ.get("PROJECT_ID", "")
    bucket = os.environ.get("STORAGE_BUCKET") or f"{project_id}.appspot.com"
    return GCSBlobStorage(bucket_name=bucket)


def get_push_notifier() -> PushNotifier:
    return FcmNotifier(app=_get_firebase_app(), base_url=os.environ.get("APP_BASE_URL", ""))


def get_auth_admin() -> AuthAdmin:
    return FirebaseAuthAdmin(
        web_api_key=os.environ.get("FIREBASE_WEB_API_KEY", ""),
        app=_get_firebase_app(),
    )


def get_report_renderer() -> ReportRenderer:
    return ReportLabPdfRenderer()


_transcript_parser: GeminiTranscriptParser | None = None


def get_transcript_parser() -> TranscriptParser:
    """TranscriptParser を返す依存関数（vertexai.init はプロセス内で1回）"""
    global _transcript_parser
    if _transcript_parser is None:
        vertexai.init(
            project=os.environ["PROJECT_ID"],
            location=os.environ.get("VERTEX_AI_LOCATION", "us-central1"),
        )
        model = GenerativeModel(os.environ.get("GEMINI_MODEL", "gemini-2.5-flash"))
        _transcript_parser = GeminiTranscriptParser(model=model)
    return _transcript_parser


# ── プロファイル・ファミリーコンテキスト ─────────────────────────────────────────


async def get_current_profile(
    auth_info: AuthInfo = Depends(get_auth_info),
    user_repo: UserRepository = Depends(get_user_repo),
) -> UserProfile:
    """
    users/{uid} を返す。初回アクセス時は JWT claims から作成する。
    """
    profile = user_repo.get_user(auth_info.uid)
    if profile is None:
        profile = UserProfile(
            uid=auth_info.uid,
            email=auth_info.email,
            name=auth_info.display_name,
            photo_url=auth_info.photo_url,
        )
        user_repo.create_user(profile)
        logger.info("Auto-created user profile: uid=%s", auth_info.uid)
    return profile


@dataclass(frozen=True)
class FamilyContext:
    """認証済みユーザーのファミリーコンテキスト"""

    uid: str
    family_id: str
    profile: UserProfile


async def get_family_context(
    profile: UserProfile = Depends(get_current_profile),
) -> FamilyContext:
    """
    ファミリー所属を要求する依存関数。

    Raises:
        HTTPException(403): まだファミリーに所属していない場合
    """
    if not profile.family_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="FAMILY_REQUIRED",
        )
    return FamilyContext(uid=profile.uid, family_id=profile.family_id, profile=profile)


def get_viewer_timezone(
    tz: str = Query(
        "UTC",
        max_length=64,
        description="閲覧者の IANA タイムゾーン（例: Asia/Kolkata）。月の区切りと日付表示に使う",
    ),
) -> tzinfo:
    """
    ?tz= を ZoneInfo に解決する依存関数。

    Raises:
        HTTPException(422): 未知のタイムゾーン名の場合
    """
    try:
        return ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown time zone: {tz}",
        ) from e
