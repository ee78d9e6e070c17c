"""Firebase Auth Adapter

AuthAdmin ABC の実装。
表示名・写真・パスワードの更新は firebase_admin.auth で行い、
パスワード変更前の再認証は Identity Toolkit REST API
（accounts:signInWithPassword）で現在のパスワードを検証する。
"""

from __future__ import annotations

import logging

import firebase_admin
import firebase_admin.auth as fb_auth
import httpx

from familyfin.domain.errors import AuthenticationError
from familyfin.domain.ports import AuthAdmin

logger = logging.getLogger(__name__)

_SIGN_IN_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"


class FirebaseAuthAdmin(AuthAdmin):
    """firebase_admin.auth + Identity Toolkit REST を使った AuthAdmin 実装"""

    def __init__(
        self,
        web_api_key: str,
        app: firebase_admin.App | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        """
        Args:
            web_api_key: Firebase の Web API キー（再認証に必要）
            app: 初期化済みの firebase_admin.App（省略時はデフォルトアプリ）
            http_client: テスト用に差し替える httpx クライアント
        """
        self._web_api_key = web_api_key
        self._app = app
        self._http = http_client or httpx.Client(timeout=10.0)

    def update_profile(
        self, uid: str, display_name: str | None = None, photo_url: str | None = None
    ) -> None:
        kwargs: dict = {}
        if display_name is not None:
            kwargs["display_name"] = display_name
        if photo_url is not None:
            kwargs["photo_url"] = photo_url
        if not kwargs:
            return
        fb_auth.update_user(uid, app=self._app, **kwargs)
        logger.info("Auth profile updated: uid=%s, fields=%s", uid, list(kwargs))

    def verify_password(self, email: str, password: str) -> None:
        """
        現在のパスワードで再認証する。

        Raises:
            AuthenticationError: パスワード不一致、または API キー未設定の場合
        """
        if not self._web_api_key:
            raise AuthenticationError("FIREBASE_WEB_API_KEY is not configured")

        response = self._http.post(
            _SIGN_IN_URL,
            params={"key": self._web_api_key},
            json={"email": email, "password": password, "returnSecureToken": False},
        )
        if response.status_code != 200:
            reason = ""
            try:
                reason = response.json().get("error", {}).get("message", "")
            except ValueError:
                pass
            logger.warning("Re-authentication failed: email=%s, reason=%s", email, reason)
            raise AuthenticationError("Current password is incorrect")

    def update_password(self, uid: str, new_password: str) -> None:
        fb_auth.update_user(uid, password=new_password, app=self._app)
        logger.info("Password updated: uid=%s", uid)
