"""FastAPI ファミリー API のユニットテスト

dependency_overrides を使ってリポジトリをモックに差し替える。
"""

from dataclasses import replace

import pytest
from conftest import FAMILY_ID, UID_ALICE
from fastapi.testclient import TestClient
from familyfin.domain.models import Family
from familyfin.entrypoints.api.app import app
from familyfin.entrypoints.api.deps import (
    FamilyContext,
    get_current_profile,
    get_family_context,
    get_family_repo,
    get_user_repo,
)


@pytest.fixture
def newcomer(alice):
    """まだファミリーに所属していないユーザー"""
    return replace(alice, family_id=None)


@pytest.fixture
def client(alice, mock_family_repo, mock_user_repo):
    """所属済みユーザーのテストクライアント"""
    app.dependency_overrides[get_current_profile] = lambda: alice
    app.dependency_overrides[get_family_context] = lambda: FamilyContext(
        uid=UID_ALICE, family_id=FAMILY_ID, profile=alice
    )
    app.dependency_overrides[get_family_repo] = lambda: mock_family_repo
    app.dependency_overrides[get_user_repo] = lambda: mock_user_repo

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def newcomer_client(newcomer, mock_family_repo):
    app.dependency_overrides[get_current_profile] = lambda: newcomer
    app.dependency_overrides[get_family_repo] = lambda: mock_family_repo

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


class TestCreateFamily:
    def test_create_returns_201(self, newcomer_client, mock_family_repo):
        # Arrange
        mock_family_repo.create_family.side_effect = lambda owner_uid, name, invite_code: Family(
            id="fam-new", name=name, members=[owner_uid], invite_code=invite_code
        )

        # Act
        resp = newcomer_client.post("/api/families", json={"name": "  The Smiths "})

        # Assert
        assert resp.status_code == 201
        data = resp.json()
        assert data["id"] == "fam-new"
        assert data["name"] == "The Smiths"
        assert data["members"] == [UID_ALICE]
        assert len(data["invite_code"]) == 6
        assert data["currency"] == "INR"

    def test_short_name_rejected(self, newcomer_client, mock_family_repo):
        resp = newcomer_client.post("/api/families", json={"name": "Ab"})
        assert resp.status_code == 422
        mock_family_repo.create_family.assert_not_called()

    def test_padded_short_name_rejected(self, newcomer_client, mock_family_repo):
        resp = newcomer_client.post("/api/families", json={"name": "  Ab  "})
        assert resp.status_code == 422
        mock_family_repo.create_family.assert_not_called()

    def test_already_in_family_conflict(self, client, mock_family_repo):
        resp = client.post("/api/families", json={"name": "Second Family"})
        assert resp.status_code == 409
        mock_family_repo.create_family.assert_not_called()


class TestJoinFamily:
    def test_join_with_lowercase_code(self, newcomer_client, mock_family_repo, sample_family):
        mock_family_repo.find_by_invite_code.return_value = replace(
            sample_family, members=["uid-bob"]
        )

        resp = newcomer_client.post("/api/families/join", json={"invite_code": "ab12cd"})

        assert resp.status_code == 200
        mock_family_repo.find_by_invite_code.assert_called_once_with("AB12CD")
        mock_family_repo.add_member.assert_called_once_with(FAMILY_ID, UID_ALICE)
        assert resp.json()["members"] == ["uid-bob", UID_ALICE]

    def test_unknown_code_404(self, newcomer_client, mock_family_repo):
        mock_family_repo.find_by_invite_code.return_value = None

        resp = newcomer_client.post("/api/families/join", json={"invite_code": "ZZZZZZ"})

        assert resp.status_code == 404
        assert resp.json()["detail"] == "No family found with that invite code"
        mock_family_repo.add_member.assert_not_called()

    def test_wrong_length_422(self, newcomer_client):
        resp = newcomer_client.post("/api/families/join", json={"invite_code": "ABC"})
        assert resp.status_code == 422


class TestFamilySettings:
    def test_get_my_family(self, client):
        resp = client.get("/api/families/me")
        assert resp.status_code == 200
        assert resp.json()["invite_code"] == "AB12CD"

    def test_update_currency(self, client, mock_family_repo):
        resp = client.patch("/api/families/me", json={"name": "Smiths", "currency": "usd"})

        assert resp.status_code == 200
        mock_family_repo.update_family.assert_called_once_with(
            FAMILY_ID, {"name": "Smiths", "currency": "USD", "currencySymbol": "$"}
        )

    def test_unknown_currency_400(self, client, mock_family_repo):
        resp = client.patch("/api/families/me", json={"name": "Smiths", "currency": "XXX"})
        assert resp.status_code == 400
        mock_family_repo.update_family.assert_not_called()

    def test_members(self, client):
        resp = client.get("/api/families/members")

        assert resp.status_code == 200
        names = [m["name"] for m in resp.json()]
        assert names == ["Alice", "Bob", "A family member"]


def test_family_required_without_membership(newcomer, mock_family_repo):
    """ファミリー未所属で家計データにアクセスすると 403"""
    app.dependency_overrides[get_current_profile] = lambda: newcomer
    app.dependency_overrides[get_family_repo] = lambda: mock_family_repo
    try:
        with TestClient(app) as c:
            resp = c.get("/api/families/me")
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 403
    assert resp.json()["detail"] == "FAMILY_REQUIRED"
