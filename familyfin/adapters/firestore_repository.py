"""Firestore Repository Adapter

FamilyRepository / UserRepository / LedgerRepository / ShoppingRepository /
CategoryRepository の Firestore 実装。

Firestore コレクション構造（Web クライアントと共有するため camelCase）:
  users/{uid}                                   ← ユーザープロファイル
  families/{familyId}                           ← ファミリー
  families/{familyId}/expenses/{entryId}        ← 支出
  families/{familyId}/earnings/{entryId}        ← 収入
  families/{familyId}/shoppingItems/{itemId}    ← 買い物リスト
  families/{familyId}/expenseCategories/{id}    ← カテゴリ（種別ごと）
  families/{familyId}/earningCategories/{id}
  families/{familyId}/shoppingCategories/{id}
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from google.api_core.exceptions import NotFound
from google.cloud import firestore

from familyfin.domain.errors import RecordNotFoundError
from familyfin.domain.models import (
    Category,
    CategoryType,
    Family,
    LedgerEntry,
    LedgerKind,
    ShoppingItem,
    UserProfile,
)
from familyfin.domain.ports import (
    CategoryRepository,
    FamilyRepository,
    LedgerRepository,
    ListenerHandle,
    ShoppingRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)

_USERS = "users"
_FAMILIES = "families"
_SHOPPING_ITEMS = "shoppingItems"

DEFAULT_CATEGORIES: dict[CategoryType, tuple[str, ...]] = {
    CategoryType.EXPENSE: (
        "Groceries",
        "Utilities",
        "Rent/Mortgage",
        "Transportation",
        "Entertainment",
        "Healthcare",
        "Dining Out",
        "Other",
    ),
    CategoryType.EARNING: ("Salary", "Bonus", "Investment", "Freelance", "Other"),
    CategoryType.SHOPPING: (
        "Groceries",
        "Household",
        "Personal Care",
        "Electronics",
        "Clothing",
        "Other",
    ),
}


class FirestoreFamilyRepository(FamilyRepository):
    """
    Firestore を使った FamilyRepository 実装。

    ファミリー作成・参加は users/{uid} の更新と同じバッチで書き込み、
    どちらか一方だけが反映される状態を作らない。
    """

    def __init__(self, db: firestore.Client) -> None:
        """
        Args:
            db: 初期化済みの Firestore クライアント
        """
        self._db = db

    def create_family(self, owner_uid: str, name: str, invite_code: str) -> Family:
        """ファミリー・既定カテゴリ・users/{uid}.familyId を1バッチで作成"""
        family_ref = self._db.collection(_FAMILIES).document()
        batch = self._db.batch()

        batch.set(
            family_ref,
            {
                "name": name,
                "members": [owner_uid],
                "inviteCode": invite_code,
                "createdAt": firestore.SERVER_TIMESTAMP,
                "currency": "INR",
                "currencySymbol": "₹",
            },
        )

        # 既定カテゴリ（種別ごとのサブコレクション）
        for category_type, names in DEFAULT_CATEGORIES.items():
            col = family_ref.collection(category_type.collection)
            for category_name in names:
                batch.set(col.document(), {"name": category_name})

        batch.update(
            self._db.collection(_USERS).document(owner_uid),
            {"familyId": family_ref.id},
        )
        batch.commit()
        logger.info("Created family: family_id=%s, owner=%s", family_ref.id, owner_uid)

        return Family(
            id=family_ref.id,
            name=name,
            members=[owner_uid],
            invite_code=invite_code,
        )

    def get_family(self, family_id: str) -> Family | None:
        snap = self._db.collection(_FAMILIES).document(family_id).get()
        if not snap.exists:
            return None
        return self._dict_to_family(snap.id, snap.to_dict() or {})

    def find_by_invite_code(self, invite_code: str) -> Family | None:
        """招待コードで検索（大文字に正規化して照合）"""
        snaps = (
            self._db.collection(_FAMILIES)
            .where("inviteCode", "==", invite_code.upper())
            .limit(1)
            .stream()
        )
        for snap in snaps:
            return self._dict_to_family(snap.id, snap.to_dict() or {})
        return None

    def add_member(self, family_id: str, uid: str) -> None:
        """members に uid を追加し、users/{uid}.familyId を設定"""
        batch = self._db.batch()
        batch.update(
            self._db.collection(_FAMILIES).document(family_id),
            {"members": firestore.ArrayUnion([uid])},
        )
        batch.update(
            self._db.collection(_USERS).document(uid), {"familyId": family_id}
        )
        batch.commit()
        logger.info("Added member: family_id=%s, uid=%s", family_id, uid)

    def update_family(self, family_id: str, data: dict[str, Any]) -> None:
        self._db.collection(_FAMILIES).document(family_id).update(data)
        logger.info(
            "Updated family: family_id=%s, fields=%s", family_id, list(data.keys())
        )

    def list_family_ids(self) -> list[str]:
        return [snap.id for snap in self._db.collection(_FAMILIES).stream()]

    def watch_family_ids(self, callback: Callable[[list[str]], None]) -> ListenerHandle:
        def _on_snapshot(docs, changes, read_time) -> None:
            callback([doc.id for doc in docs])

        watch = self._db.collection(_FAMILIES).on_snapshot(_on_snapshot)
        logger.info("Watching families collection")
        return _WatchHandle(watch)

    @staticmethod
    def _dict_to_family(family_id: str, data: dict) -> Family:
        return Family(
            id=family_id,
            name=data.get("name") or "",
            members=list(data.get("members") or []),
            invite_code=data.get("inviteCode") or "",
            currency=data.get("currency") or "INR",
            currency_symbol=data.get("currencySymbol") or "₹",
            created_at=data.get("createdAt"),
        )


class FirestoreUserRepository(UserRepository):
    """
    Firestore を使った UserRepository 実装。

    users/{uid} を管理する。
    """

    def __init__(self, db: firestore.Client) -> None:
        self._db = db

    def get_user(self, uid: str) -> UserProfile | None:
        snap = self._db.collection(_USERS).document(uid).get()
        if not snap.exists:
            return None
        return self._dict_to_profile(uid, snap.to_dict() or {})

    def create_user(self, profile: UserProfile) -> None:
        """サインアップ直後のプロファイルを作成（既存フィールドは上書きしない）"""
        self._db.collection(_USERS).document(profile.uid).set(
            {
                "uid": profile.uid,
                "email": profile.email,
                "name": profile.name,
                "photoURL": profile.photo_url,
            },
            merge=True,
        )
        logger.info("Created user profile: uid=%s", profile.uid)

    def update_user(self, uid: str, data: dict[str, Any]) -> None:
        """ユーザー設定を更新（部分更新）"""
        self._db.collection(_USERS).document(uid).set(data, merge=True)
        logger.info("Updated user: uid=%s, fields=%s", uid, list(data.keys()))

    def list_members(self, family_id: str) -> list[UserProfile]:
        snaps = (
            self._db.collection(_USERS).where("familyId", "==", family_id).stream()
        )
        return [self._dict_to_profile(snap.id, snap.to_dict() or {}) for snap in snaps]

    def add_push_token(self, uid: str, token: str) -> None:
        self._db.collection(_USERS).document(uid).set(
            {"fcmTokens": firestore.ArrayUnion([token])}, merge=True
        )
        logger.info("Push token registered: uid=%s, token=%s...", uid, token[:12])

    def remove_push_tokens(self, uid: str, tokens: list[str]) -> None:
        if not tokens:
            return
        self._db.collection(_USERS).document(uid).update(
            {"fcmTokens": firestore.ArrayRemove(tokens)}
        )
        logger.info("Push tokens removed: uid=%s, count=%d", uid, len(tokens))

    @staticmethod
    def _dict_to_profile(uid: str, data: dict) -> UserProfile:
        return UserProfile(
            uid=data.get("uid") or uid,
            email=data.get("email") or "",
            name=data.get("name") or "",
            family_id=data.get("familyId") or None,
            photo_url=data.get("photoURL") or "",
            default_expenses_private=bool(data.get("defaultExpensesToPrivate")),
            default_earnings_private=bool(data.get("defaultEarningsToPrivate")),
            notification_sound=data.get("notificationSound") or "",
            fcm_tokens=list(data.get("fcmTokens") or []),
            financial_data_hidden=bool(data.get("isFinancialDataHidden")),
            last_cleared_notifications=data.get("lastClearedNotifications"),
        )


class FirestoreLedgerRepository(LedgerRepository):
    """
    Firestore を使った LedgerRepository 実装。

    families/{familyId}/expenses と earnings は同じ形のドキュメントなので
    LedgerKind でコレクションを切り替える。
    """

    def __init__(self, db: firestore.Client) -> None:
        self._db = db

    def _collection(self, family_id: str, kind: LedgerKind):
        return (
            self._db.collection(_FAMILIES)
            .document(family_id)
            .collection(kind.collection)
        )

    def add(self, family_id: str, kind: LedgerKind, entry: LedgerEntry) -> str:
        ref = self._collection(family_id, kind).add(
            {
                "name": entry.name,
                "amount": entry.amount,
                "categoryId": entry.category_id,
                "date": entry.date,
                "addedBy": entry.added_by,
                "isPrivate": entry.is_private,
                "createdAt": firestore.SERVER_TIMESTAMP,
            }
        )[1]
        logger.info(
            "Created %s: family_id=%s, entry_id=%s", kind.value, family_id, ref.id
        )
        return ref.id

    def get(self, family_id: str, kind: LedgerKind, entry_id: str) -> LedgerEntry | None:
        snap = self._collection(family_id, kind).document(entry_id).get()
        if not snap.exists:
            return None
        return self._dict_to_entry(snap.id, snap.to_dict() or {})

    def list(self, family_id: str, kind: LedgerKind) -> list[LedgerEntry]:
        snaps = (
            self._collection(family_id, kind)
            .order_by("createdAt", direction=firestore.Query.DESCENDING)
            .stream()
        )
        return [self._dict_to_entry(snap.id, snap.to_dict() or {}) for snap in snaps]

    def update(
        self, family_id: str, kind: LedgerKind, entry_id: str, data: dict[str, Any]
    ) -> None:
        try:
            self._collection(family_id, kind).document(entry_id).update(data)
        except NotFound as e:
            raise RecordNotFoundError(f"{kind.value} {entry_id} not found") from e
        logger.info(
            "Updated %s: family_id=%s, entry_id=%s", kind.value, family_id, entry_id
        )

    def delete(self, family_id: str, kind: LedgerKind, entry_id: str) -> None:
        self._collection(family_id, kind).document(entry_id).delete()
        logger.info(
            "Deleted %s: family_id=%s, entry_id=%s", kind.value, family_id, entry_id
        )

    @staticmethod
    def _dict_to_entry(entry_id: str, data: dict) -> LedgerEntry:
        return LedgerEntry(
            id=entry_id,
            name=data.get("name") or "",
            amount=float(data.get("amount") or 0),
            category_id=data.get("categoryId") or "",
            date=data.get("date"),
            added_by=data.get("addedBy") or "",
            is_private=bool(data.get("isPrivate")),
            created_at=data.get("createdAt"),
        )


class _WatchHandle(ListenerHandle):
    """google.cloud.firestore の Watch をラップする"""

    def __init__(self, watch) -> None:
        self._watch = watch

    def unsubscribe(self) -> None:
        self._watch.unsubscribe()


class FirestoreShoppingRepository(ShoppingRepository):
    """
    Firestore を使った ShoppingRepository 実装。

    watch() は Firestore のスナップショットリスナー（on_snapshot）を使う。
    コールバックは Firestore SDK のバックグラウンドスレッドから呼ばれる。
    """

    def __init__(self, db: firestore.Client) -> None:
        self._db = db

    def _collection(self, family_id: str):
        return (
            self._db.collection(_FAMILIES)
            .document(family_id)
            .collection(_SHOPPING_ITEMS)
        )

    def add(self, family_id: str, item: ShoppingItem) -> str:
        ref = self._collection(family_id).add(
            {
                "name": item.name,
                "quantity": item.quantity,
                "unit": item.unit,
                "categoryId": item.category_id,
                "purchased": False,
                "addedBy": item.added_by,
                "createdAt": firestore.SERVER_TIMESTAMP,
            }
        )[1]
        logger.info("Created shopping item: family_id=%s, item_id=%s", family_id, ref.id)
        return ref.id

    def get(self, family_id: str, item_id: str) -> ShoppingItem | None:
        snap = self._collection(family_id).document(item_id).get()
        if not snap.exists:
            return None
        return self._dict_to_item(snap.id, snap.to_dict() or {})

    def list(self, family_id: str) -> list[ShoppingItem]:
        snaps = (
            self._collection(family_id)
            .order_by("createdAt", direction=firestore.Query.DESCENDING)
            .stream()
        )
        return [self._dict_to_item(snap.id, snap.to_dict() or {}) for snap in snaps]

    def update(self, family_id: str, item_id: str, data: dict[str, Any]) -> None:
        try:
            self._collection(family_id).document(item_id).update(data)
        except NotFound as e:
            raise RecordNotFoundError(f"shopping item {item_id} not found") from e
        logger.info(
            "Updated shopping item: family_id=%s, item_id=%s, fields=%s",
            family_id,
            item_id,
            list(data.keys()),
        )

    def delete(self, family_id: str, item_id: str) -> None:
        self._collection(family_id).document(item_id).delete()
        logger.info("Deleted shopping item: family_id=%s, item_id=%s", family_id, item_id)

    def clear_reminder(self, family_id: str, item_id: str) -> None:
        """リマインダーを解除。アイテムが削除済みなら何もしない"""
        try:
            self.update(family_id, item_id, {"reminderAt": None, "remindedBy": None})
        except RecordNotFoundError:
            logger.warning(
                "Reminder clear skipped, item no longer exists: family_id=%s, item_id=%s",
                family_id,
                item_id,
            )

    def list_with_reminder_before(
        self, family_id: str, until: datetime
    ) -> list[ShoppingItem]:
        snaps = self._collection(family_id).where("reminderAt", "<=", until).stream()
        return [self._dict_to_item(snap.id, snap.to_dict() or {}) for snap in snaps]

    def watch(
        self, family_id: str, callback: Callable[[list[ShoppingItem]], None]
    ) -> ListenerHandle:
        """shoppingItems 全体を購読し、変更のたびに全アイテムを渡す"""

        def _on_snapshot(docs, changes, read_time) -> None:
            items = [self._dict_to_item(doc.id, doc.to_dict() or {}) for doc in docs]
            callback(items)

        query = self._collection(family_id).order_by(
            "createdAt", direction=firestore.Query.DESCENDING
        )
        watch = query.on_snapshot(_on_snapshot)
        logger.info("Watching shopping list: family_id=%s", family_id)
        return _WatchHandle(watch)

    @staticmethod
    def _dict_to_item(item_id: str, data: dict) -> ShoppingItem:
        quantity = data.get("quantity")
        return ShoppingItem(
            id=item_id,
            name=data.get("name") or "",
            added_by=data.get("addedBy") or "",
            purchased=bool(data.get("purchased")),
            created_at=data.get("createdAt"),
            category_id=data.get("categoryId") or "",
            quantity=float(quantity) if quantity is not None else None,
            unit=data.get("unit") or None,
            reminder_at=data.get("reminderAt"),
            reminded_by=data.get("remindedBy"),
            purchased_by=data.get("purchasedBy"),
        )


class FirestoreCategoryRepository(CategoryRepository):
    """
    Firestore を使った CategoryRepository 実装。

    families/{familyId}/{type}Categories/{categoryId} を管理する。
    """

    def __init__(self, db: firestore.Client) -> None:
        self._db = db

    def _collection(self, family_id: str, category_type: CategoryType):
        return (
            self._db.collection(_FAMILIES)
            .document(family_id)
            .collection(category_type.collection)
        )

    def list(self, family_id: str, category_type: CategoryType) -> list[Category]:
        snaps = self._collection(family_id, category_type).order_by("name").stream()
        return [
            Category(id=snap.id, name=(snap.to_dict() or {}).get("name") or "")
            for snap in snaps
        ]

    def add(self, family_id: str, category_type: CategoryType, name: str) -> str:
        ref = self._collection(family_id, category_type).add({"name": name})[1]
        logger.info(
            "Created category: family_id=%s, type=%s, id=%s",
            family_id,
            category_type.value,
            ref.id,
        )
        return ref.id

    def delete(self, family_id: str, category_type: CategoryType, category_id: str) -> None:
        self._collection(family_id, category_type).document(category_id).delete()
        logger.info(
            "Deleted category: family_id=%s, type=%s, id=%s",
            family_id,
            category_type.value,
            category_id,
        )
