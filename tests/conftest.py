"""共通テストフィクスチャ

全テストから利用可能なモックオブジェクトとサンプルデータを提供。

モックの作成:
- MagicMock(spec=ABC) でABCのメソッドシグネチャを保持
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from familyfin.domain.models import (
    Category,
    Family,
    LedgerEntry,
    ShoppingItem,
    UserProfile,
)
from familyfin.domain.ports import (
    CategoryRepository,
    FamilyRepository,
    LedgerRepository,
    PushNotifier,
    ShoppingRepository,
    UserRepository,
)

FAMILY_ID = "fam-1"
UID_ALICE = "uid-alice"
UID_BOB = "uid-bob"
UID_CAROL = "uid-carol"

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


# ========== サンプルデータ ==========


@pytest.fixture
def alice() -> UserProfile:
    """閲覧者（トークン1つ）"""
    return UserProfile(
        uid=UID_ALICE,
        email="alice@example.com",
        name="Alice",
        family_id=FAMILY_ID,
        fcm_tokens=["tok-alice"],
        last_cleared_notifications=datetime(2026, 3, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def bob() -> UserProfile:
    return UserProfile(
        uid=UID_BOB,
        email="bob@example.com",
        name="Bob",
        family_id=FAMILY_ID,
        fcm_tokens=["tok-bob-1", "tok-bob-2"],
    )


@pytest.fixture
def carol() -> UserProfile:
    """家計データを非公開にしているメンバー"""
    return UserProfile(
        uid=UID_CAROL,
        email="carol@example.com",
        name="",
        family_id=FAMILY_ID,
        financial_data_hidden=True,
    )


@pytest.fixture
def members(alice, bob, carol) -> list[UserProfile]:
    return [alice, bob, carol]


@pytest.fixture
def sample_family() -> Family:
    return Family(
        id=FAMILY_ID,
        name="The Smiths",
        members=[UID_ALICE, UID_BOB, UID_CAROL],
        invite_code="AB12CD",
    )


@pytest.fixture
def expense_categories() -> list[Category]:
    return [Category(id="cat-groceries", name="Groceries"), Category(id="cat-rent", name="Rent/Mortgage")]


def make_entry(
    entry_id: str,
    added_by: str,
    amount: float,
    date: datetime,
    is_private: bool = False,
    category_id: str = "cat-groceries",
    created_at: datetime | None = None,
) -> LedgerEntry:
    return LedgerEntry(
        id=entry_id,
        name=f"entry {entry_id}",
        amount=amount,
        category_id=category_id,
        date=date,
        added_by=added_by,
        is_private=is_private,
        created_at=created_at or date,
    )


def make_item(item_id: str, added_by: str = UID_BOB, **kwargs) -> ShoppingItem:
    return ShoppingItem(id=item_id, name=kwargs.pop("name", f"item {item_id}"), added_by=added_by, **kwargs)


# ========== モックフィクスチャ ==========


@pytest.fixture
def mock_user_repo(members) -> MagicMock:
    """UserRepository のモック"""
    mock = MagicMock(spec=UserRepository)
    mock.list_members.return_value = members
    return mock


@pytest.fixture
def mock_family_repo(sample_family) -> MagicMock:
    mock = MagicMock(spec=FamilyRepository)
    mock.get_family.return_value = sample_family
    mock.list_family_ids.return_value = [FAMILY_ID]
    return mock


@pytest.fixture
def mock_ledger_repo() -> MagicMock:
    mock = MagicMock(spec=LedgerRepository)
    mock.list.return_value = []
    return mock


@pytest.fixture
def mock_shopping_repo() -> MagicMock:
    mock = MagicMock(spec=ShoppingRepository)
    mock.list.return_value = []
    return mock


@pytest.fixture
def mock_category_repo(expense_categories) -> MagicMock:
    mock = MagicMock(spec=CategoryRepository)
    mock.list.return_value = expense_categories
    return mock


@pytest.fixture
def mock_notifier() -> MagicMock:
    """PushNotifier のモック（失効トークンなし）"""
    mock = MagicMock(spec=PushNotifier)
    mock.send.return_value = []
    return mock
