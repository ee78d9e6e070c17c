"""グローバル例外ハンドラーのユニットテスト

未処理例外が 500 JSON レスポンスになること、かつ CORS ヘッダーが付与されることを検証する。
"""

import pytest
from conftest import FAMILY_ID, UID_ALICE
from fastapi.testclient import TestClient
from familyfin.entrypoints.api.app import app
from familyfin.entrypoints.api.deps import (
    FamilyContext,
    get_category_repo,
    get_family_context,
    get_shopping_repo,
)

_ORIGIN = "http://localhost:9002"


@pytest.fixture
def context(alice):
    return FamilyContext(uid=UID_ALICE, family_id=FAMILY_ID, profile=alice)


@pytest.fixture
def client_with_broken_repo(context, mock_shopping_repo, mock_category_repo):
    """list が RuntimeError を投げるリポジトリを差し込んだクライアント"""
    mock_shopping_repo.list.side_effect = RuntimeError("Firestore index not ready")

    app.dependency_overrides[get_family_context] = lambda: context
    app.dependency_overrides[get_shopping_repo] = lambda: mock_shopping_repo
    app.dependency_overrides[get_category_repo] = lambda: mock_category_repo

    # raise_server_exceptions=False で 500 をレスポンスとして受け取る
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def normal_client(context, mock_shopping_repo, mock_category_repo):
    app.dependency_overrides[get_family_context] = lambda: context
    app.dependency_overrides[get_shopping_repo] = lambda: mock_shopping_repo
    app.dependency_overrides[get_category_repo] = lambda: mock_category_repo

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


class TestUnhandledExceptionHandler:
    def test_500_returns_json(self, client_with_broken_repo):
        response = client_with_broken_repo.get("/api/shopping", headers={"Origin": _ORIGIN})
        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}

    def test_500_has_cors_header(self, client_with_broken_repo):
        """500 レスポンスに CORS ヘッダーが付与されること"""
        response = client_with_broken_repo.get("/api/shopping", headers={"Origin": _ORIGIN})
        assert response.headers["access-control-allow-origin"] == _ORIGIN

    def test_normal_request_unaffected(self, normal_client):
        response = normal_client.get("/api/shopping", headers={"Origin": _ORIGIN})
        assert response.status_code == 200
        assert response.json() == {"to_buy": [], "purchased": []}

    def test_health(self, normal_client):
        assert normal_client.get("/health").json() == {"status": "ok"}
