"""Ports - 外部サービスのインターフェース定義（ABC）

各Port（抽象基底クラス）は外部サービスとの契約を定義します。
実装クラス（Adapter）はこれらのABCを継承し、全ての抽象メソッドを実装する必要があります。
実装漏れはインスタンス化時に TypeError として検出される。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime
from typing import Any

from familyfin.domain.models import (
    Category,
    CategoryType,
    Family,
    LedgerEntry,
    LedgerKind,
    ParsedTransaction,
    ReportDocument,
    ShoppingItem,
    UserProfile,
)


class ListenerHandle(ABC):
    """スナップショットリスナーの解除ハンドル"""

    @abstractmethod
    def unsubscribe(self) -> None:
        pass


class FamilyRepository(ABC):
    """ファミリーの永続化（Firestore等）"""

    @abstractmethod
    def create_family(self, owner_uid: str, name: str, invite_code: str) -> Family:
        """ファミリー・既定カテゴリ・users/{uid}.familyId をまとめて作成する"""
        pass

    @abstractmethod
    def get_family(self, family_id: str) -> Family | None:
        pass

    @abstractmethod
    def find_by_invite_code(self, invite_code: str) -> Family | None:
        pass

    @abstractmethod
    def add_member(self, family_id: str, uid: str) -> None:
        """members への追加と users/{uid}.familyId の更新を一括で行う"""
        pass

    @abstractmethod
    def update_family(self, family_id: str, data: dict[str, Any]) -> None:
        pass

    @abstractmethod
    def list_family_ids(self) -> list[str]:
        pass

    @abstractmethod
    def watch_family_ids(self, callback: Callable[[list[str]], None]) -> ListenerHandle:
        """families コレクションを購読し、変更のたびに全ファミリー ID を渡す"""
        pass


class UserRepository(ABC):
    """ユーザープロファイルの永続化"""

    @abstractmethod
    def get_user(self, uid: str) -> UserProfile | None:
        pass

    @abstractmethod
    def create_user(self, profile: UserProfile) -> None:
        pass

    @abstractmethod
    def update_user(self, uid: str, data: dict[str, Any]) -> None:
        """部分更新。キーは Firestore 上のフィールド名"""
        pass

    @abstractmethod
    def list_members(self, family_id: str) -> list[UserProfile]:
        """familyId が一致するユーザー一覧"""
        pass

    @abstractmethod
    def add_push_token(self, uid: str, token: str) -> None:
        pass

    @abstractmethod
    def remove_push_tokens(self, uid: str, tokens: list[str]) -> None:
        pass


class LedgerRepository(ABC):
    """支出・収入エントリの永続化"""

    @abstractmethod
    def add(self, family_id: str, kind: LedgerKind, entry: LedgerEntry) -> str:
        """エントリを作成。生成されたIDを返す"""
        pass

    @abstractmethod
    def get(self, family_id: str, kind: LedgerKind, entry_id: str) -> LedgerEntry | None:
        pass

    @abstractmethod
    def list(self, family_id: str, kind: LedgerKind) -> list[LedgerEntry]:
        """createdAt 降順で返す"""
        pass

    @abstractmethod
    def update(
        self, family_id: str, kind: LedgerKind, entry_id: str, data: dict[str, Any]
    ) -> None:
        pass

    @abstractmethod
    def delete(self, family_id: str, kind: LedgerKind, entry_id: str) -> None:
        pass


class ShoppingRepository(ABC):
    """買い物リストの永続化とリアルタイム購読"""

    @abstractmethod
    def add(self, family_id: str, item: ShoppingItem) -> str:
        pass

    @abstractmethod
    def get(self, family_id: str, item_id: str) -> ShoppingItem | None:
        pass

    @abstractmethod
    def list(self, family_id: str) -> list[ShoppingItem]:
        """createdAt 降順で返す"""
        pass

    @abstractmethod
    def update(self, family_id: str, item_id: str, data: dict[str, Any]) -> None:
        """存在しないアイテムの場合は RecordNotFoundError"""
        pass

    @abstractmethod
    def delete(self, family_id: str, item_id: str) -> None:
        pass

    @abstractmethod
    def clear_reminder(self, family_id: str, item_id: str) -> None:
        """reminderAt / remindedBy を null に戻す"""
        pass

    @abstractmethod
    def list_with_reminder_before(
        self, family_id: str, until: datetime
    ) -> list[ShoppingItem]:
        """reminderAt <= until のアイテム一覧"""
        pass

    @abstractmethod
    def watch(
        self, family_id: str, callback: Callable[[list[ShoppingItem]], None]
    ) -> ListenerHandle:
        """リスト全体のスナップショットを購読する"""
        pass


class CategoryRepository(ABC):
    """カテゴリの永続化"""

    @abstractmethod
    def list(self, family_id: str, category_type: CategoryType) -> list[Category]:
        """名前の昇順で返す"""
        pass

    @abstractmethod
    def add(self, family_id: str, category_type: CategoryType, name: str) -> str:
        pass

    @abstractmethod
    def delete(self, family_id: str, category_type: CategoryType, category_id: str) -> None:
        pass


class BlobStorage(ABC):
    """バイナリファイルのアップロード（Firebase Storage等）"""

    @abstractmethod
    def upload(self, blob_path: str, content: bytes, content_type: str) -> str:
        """ファイルをアップロードし、取得可能なダウンロードURLを返す"""
        pass


class PushNotifier(ABC):
    """プッシュ通知（FCM等）"""

    @abstractmethod
    def send(
        self,
        tokens: list[str],
        title: str,
        body: str,
        link: str = "/",
        tag: str | None = None,
    ) -> list[str]:
        """通知を送信し、失効していたトークンのリストを返す"""
        pass


class TranscriptParser(ABC):
    """音声トランスクリプトの構造化（Gemini等のLLM）"""

    @abstractmethod
    def parse(self, text: str, category_names: list[str]) -> ParsedTransaction:
        pass


class ReportRenderer(ABC):
    """表形式レポートのレンダリング（PDF）"""

    @abstractmethod
    def render(self, document: ReportDocument) -> bytes:
        pass


class AuthAdmin(ABC):
    """認証サービス側のユーザー操作（Firebase Auth等）"""

    @abstractmethod
    def update_profile(
        self, uid: str, display_name: str | None = None, photo_url: str | None = None
    ) -> None:
        pass

    @abstractmethod
    def verify_password(self, email: str, password: str) -> None:
        """再認証。失敗時は AuthenticationError"""
        pass

    @abstractmethod
    def update_password(self, uid: str, new_password: str) -> None:
        pass
