"""/worker/* を呼べるのは Cloud Scheduler のサービスアカウントだけ

Scheduler のジョブには OIDC トークンを付けさせ、ここで署名と
email claim（WORKER_SERVICE_ACCOUNT_EMAIL）を確かめる。
WORKER_AUDIENCE を設定した場合は aud claim も照合する。

LOCAL_MODE が設定されていれば検証しない（手元から curl で叩く用）。
"""

from __future__ import annotations

import logging
import os

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from google.auth import exceptions as google_auth_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

logger = logging.getLogger(__name__)

_scheduler_bearer = HTTPBearer(auto_error=False)


def _reject(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _caller_email(token: str) -> str:
    """OIDC トークンを検証して email claim を返す（失敗時は 401）"""
    try:
        claims = id_token.verify_oauth2_token(
            token,
            google_requests.Request(),
            audience=os.environ.get("WORKER_AUDIENCE") or None,
        )
    except (ValueError, google_auth_exceptions.GoogleAuthError) as e:
        logger.warning("Scheduler token rejected: %s", e)
        raise _reject("Invalid OIDC token") from e
    return claims.get("email", "")


def verify_worker_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_scheduler_bearer),
) -> None:
    """worker ルーター全体に付ける依存関数

    Raises:
        HTTPException(401): サービスアカウント未設定・ヘッダーなし・検証失敗・別アカウント
    """
    if os.environ.get("LOCAL_MODE"):
        return

    scheduler_account = os.environ.get("WORKER_SERVICE_ACCOUNT_EMAIL")
    if not scheduler_account:
        logger.error("WORKER_SERVICE_ACCOUNT_EMAIL is not set; refusing worker call")
        raise _reject("Worker authentication is not configured")
    if credentials is None:
        raise _reject("Missing Authorization header")

    caller = _caller_email(credentials.credentials)
    if caller != scheduler_account:
        logger.warning("Worker call from unexpected account: %s", caller or "<none>")
        raise _reject("Unauthorized service account")
