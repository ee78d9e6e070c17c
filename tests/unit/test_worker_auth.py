"""/worker/* の OIDC 認証テスト

verify_oauth2_token はパッチで差し替え、巡回処理本体も呼ばない。
"""

from __future__ import annotations

import os
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from familyfin.entrypoints.api.app import app
from familyfin.entrypoints.api.deps import (
    get_family_repo,
    get_push_notifier,
    get_shopping_repo,
    get_user_repo,
)

_VALID_EMAIL = "scheduler@familyfin.iam.gserviceaccount.com"
_VALID_HEADERS = {"Authorization": "Bearer valid.oidc.token"}
_SUMMARY = {"fired": 0, "expired": 0, "errors": 0}
_VERIFY = "familyfin.entrypoints.api.worker_auth.id_token.verify_oauth2_token"


@pytest.fixture(autouse=True)
def stub_sweep():
    """リポジトリ生成と巡回処理を差し替え、認証だけを検証する"""
    for dep in (get_family_repo, get_shopping_repo, get_user_repo, get_push_notifier):
        app.dependency_overrides[dep] = lambda: MagicMock()

    with patch(
        "familyfin.entrypoints.worker.run_reminder_sweep", return_value=_SUMMARY
    ) as mock_sweep:
        yield mock_sweep

    app.dependency_overrides.clear()


def _post(headers=None):
    client = TestClient(app, raise_server_exceptions=False)
    return client.post("/worker/shopping-reminders", headers=headers or {})


def test_no_auth_header_returns_401():
    with patch.dict("os.environ", {"WORKER_SERVICE_ACCOUNT_EMAIL": _VALID_EMAIL}):
        response = _post()
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_invalid_token_returns_401(stub_sweep):
    def _raise(token, request, audience):  # noqa: ARG001
        raise ValueError("invalid token")

    with (
        patch.dict("os.environ", {"WORKER_SERVICE_ACCOUNT_EMAIL": _VALID_EMAIL}),
        patch(_VERIFY, _raise),
    ):
        response = _post({"Authorization": "Bearer bad.token"})

    assert response.status_code == 401
    stub_sweep.assert_not_called()


def test_email_mismatch_returns_401():
    with (
        patch.dict("os.environ", {"WORKER_SERVICE_ACCOUNT_EMAIL": _VALID_EMAIL}),
        patch(_VERIFY, return_value={"email": "attacker@evil.iam.gserviceaccount.com"}),
    ):
        response = _post(_VALID_HEADERS)
    assert response.status_code == 401


def test_valid_token_accepted(stub_sweep):
    with (
        patch.dict("os.environ", {"WORKER_SERVICE_ACCOUNT_EMAIL": _VALID_EMAIL}),
        patch(_VERIFY, return_value={"email": _VALID_EMAIL, "sub": "12345"}),
    ):
        response = _post(_VALID_HEADERS)

    assert response.status_code == 200
    assert response.json() == {"status": "ok", **_SUMMARY}
    stub_sweep.assert_called_once()


def test_audience_checked_when_configured():
    env = {
        "WORKER_SERVICE_ACCOUNT_EMAIL": _VALID_EMAIL,
        "WORKER_AUDIENCE": "https://api.example.com",
    }
    with (
        patch.dict("os.environ", env),
        patch(_VERIFY, return_value={"email": _VALID_EMAIL}) as mock_verify,
    ):
        response = _post(_VALID_HEADERS)

    assert response.status_code == 200
    assert mock_verify.call_args.kwargs["audience"] == "https://api.example.com"


def test_local_mode_skips_verification():
    with patch.dict(
        "os.environ", {"LOCAL_MODE": "true", "WORKER_SERVICE_ACCOUNT_EMAIL": _VALID_EMAIL}
    ):
        response = _post()
    assert response.status_code == 200


def test_missing_env_var_returns_401():
    """WORKER_SERVICE_ACCOUNT_EMAIL 未設定時は fail-closed で 401 を返す"""
    env = {
        k: v
        for k, v in os.environ.items()
        if k not in ("WORKER_SERVICE_ACCOUNT_EMAIL", "LOCAL_MODE")
    }
    with patch.dict("os.environ", env, clear=True):
        response = _post(_VALID_HEADERS)
    assert response.status_code == 401
