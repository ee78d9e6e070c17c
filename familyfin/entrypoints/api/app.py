"""FastAPI アプリケーション

FamilyFin バックエンド API。
Cloud Run Service として動作し、Firebase Auth で認証する。

エンドポイント一覧:
  POST   /api/families
  POST   /api/families/join
  GET    /api/families/me
  PATCH  /api/families/me
  GET    /api/families/members
  GET    /api/expenses               (POST, PATCH /{id}, DELETE /{id})
  GET    /api/earnings               (POST, PATCH /{id}, DELETE /{id})
  GET    /api/shopping               (POST, DELETE /{id})
  POST   /api/shopping/{id}/toggle
  PUT    /api/shopping/{id}/reminder (DELETE)
  GET    /api/categories/{type}      (POST, DELETE /{id})
  GET    /api/dashboard/family
  GET    /api/dashboard/individual
  GET    /api/notifications
  POST   /api/notifications/clear
  GET    /api/profile                (PATCH)
  POST   /api/profile/photo
  POST   /api/profile/password
  GET    /api/settings               (PATCH)
  POST   /api/push-tokens
  POST   /api/push-tokens/unregister
  GET    /api/reports/{expenses|earnings|combined}
  POST   /api/voice/parse
  POST   /worker/shopping-reminders  ← OIDC（Cloud Scheduler）
"""

from __future__ import annotations

import logging
import os
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.responses import Response

from familyfin.entrypoints import worker
from familyfin.entrypoints.api.routes import (
    categories,
    dashboard,
    families,
    ledger,
    notifications,
    profile,
    push_tokens,
    reports,
    settings,
    shopping,
    voice,
)
from familyfin.logging_config import log_fields, setup_logging

setup_logging()
logger = logging.getLogger(__name__)

_LOCAL_PWA_ORIGIN = "http://localhost:9002"

# Firebase ID トークンで保護される /api 配下のルーター
_API_ROUTERS = (
    families.router,
    ledger.expenses_router,
    ledger.earnings_router,
    shopping.router,
    categories.router,
    dashboard.router,
    notifications.router,
    profile.router,
    settings.router,
    push_tokens.router,
    reports.router,
    voice.router,
)


def _cors_origins() -> list[str]:
    """CORS_ORIGINS（カンマ区切り）。未設定なら開発用 PWA のオリジン"""
    origins = [o.strip() for o in os.environ.get("CORS_ORIGINS", "").split(",")]
    return [o for o in origins if o] or [_LOCAL_PWA_ORIGIN]


app = FastAPI(
    title="FamilyFin API",
    description="家族で共有する家計簿・買い物リスト FamilyFin のバックエンド API",
    version="1.0.0",
)


# CORSMiddleware より先に登録する（内側に置くことで 500 にも CORS ヘッダーが付く）
@app.middleware("http")
async def _internal_error_as_json(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    try:
        return await call_next(request)
    except Exception:
        logger.exception(
            "Unhandled error",
            extra=log_fields(method=request.method, path=request.url.path),
        )
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

for _router in _API_ROUTERS:
    app.include_router(_router, prefix="/api")

# Cloud Scheduler 用。Firebase Auth ではなく OIDC で保護される
app.include_router(worker.router, prefix="/worker")


@app.get("/health")
async def health() -> dict:
    """Cloud Run の起動確認用"""
    return {"status": "ok"}
