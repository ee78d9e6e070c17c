"""ドメインモデル - 外部依存なしのデータ構造

Firestore 上のフィールド名（camelCase）はクライアントアプリと共有しているため、
変換はリポジトリ側（adapters/firestore_repository.py）で行う。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

UNCATEGORIZED = "Uncategorized"
DEFAULT_MEMBER_NAME = "A family member"

SHOPPING_UNITS = ("pcs", "kg", "g", "l", "ml", "pack", "bottle", "can", "dozen")

# 通知音の名前 → クライアントが再生する音声ファイル（users/{uid}.notificationSound にはパスを保存）
DEFAULT_NOTIFICATION_SOUND = "/sounds/default-notification.mp3"
NOTIFICATION_SOUNDS: dict[str, str] = {
    "Default": DEFAULT_NOTIFICATION_SOUND,
    "Chime": "https://assets.mixkit.co/sfx/preview/mixkit-bright-small-bell-419.mp3",
    "Ding": "https://assets.mixkit.co/sfx/preview/mixkit-clear-interface-beep-121.mp3",
    "Positive": "https://assets.mixkit.co/sfx/preview/mixkit-positive-notification-951.mp3",
    "Start": "https://assets.mixkit.co/sfx/preview/mixkit-software-interface-start-2574.mp3",
}


class CategoryType(Enum):
    """カテゴリの種別（ファミリーごとに別コレクション）"""

    EXPENSE = "expense"
    EARNING = "earning"
    SHOPPING = "shopping"

    @property
    def collection(self) -> str:
        return f"{self.value}Categories"


class LedgerKind(Enum):
    """家計簿エントリの種別"""

    EXPENSE = "expense"
    EARNING = "earning"

    @property
    def collection(self) -> str:
        return f"{self.value}s"

    @property
    def category_type(self) -> CategoryType:
        return CategoryType(self.value)


@dataclass(frozen=True)
class Family:
    """ファミリー（families/{id}）"""

    id: str
    name: str
    members: list[str] = field(default_factory=list)  # uid のリスト
    invite_code: str = ""  # 6文字の英大文字・数字
    currency: str = "INR"
    currency_symbol: str = "₹"
    created_at: datetime | None = None


@dataclass(frozen=True)
class UserProfile:
    """ユーザープロファイル（users/{uid}）"""

    uid: str
    email: str = ""
    name: str = ""
    family_id: str | None = None
    photo_url: str = ""
    default_expenses_private: bool = False
    default_earnings_private: bool = False
    notification_sound: str = ""
    fcm_tokens: list[str] = field(default_factory=list)
    financial_data_hidden: bool = False  # True の場合、他メンバーに家計データを見せない
    last_cleared_notifications: datetime | None = None

    @property
    def display_name(self) -> str:
        return self.name or DEFAULT_MEMBER_NAME

    def default_private(self, kind: LedgerKind) -> bool:
        """新規エントリのプライベート初期値"""
        if kind is LedgerKind.EXPENSE:
            return self.default_expenses_private
        return self.default_earnings_private


@dataclass(frozen=True)
class Category:
    """カテゴリ"""

    id: str
    name: str


@dataclass(frozen=True)
class LedgerEntry:
    """支出・収入エントリ（families/{id}/expenses|earnings/{entryId}）"""

    id: str
    name: str
    amount: float
    category_id: str
    date: datetime
    added_by: str  # uid
    is_private: bool = False
    created_at: datetime | None = None  # サーバータイムスタンプ。書き込み直後は None


@dataclass(frozen=True)
class ShoppingItem:
    """買い物リストのアイテム（families/{id}/shoppingItems/{itemId}）"""

    id: str
    name: str
    added_by: str
    purchased: bool = False
    created_at: datetime | None = None
    category_id: str = ""
    quantity: float | None = None
    unit: str | None = None
    reminder_at: datetime | None = None
    reminded_by: str | None = None
    purchased_by: str | None = None


class ShoppingChange(Enum):
    """買い物リストのスナップショット差分の種別"""

    ADDED = "added"
    PURCHASED = "purchased"


@dataclass(frozen=True)
class ShoppingEvent:
    """スナップショット差分から検出したイベント"""

    change: ShoppingChange
    item: ShoppingItem
    actor_uid: str | None  # ADDED: added_by / PURCHASED: purchased_by


@dataclass(frozen=True)
class Activity:
    """通知フィードの1行"""

    kind: str  # "shopping" | "expense" | "earning"
    entry_id: str
    name: str
    added_by: str
    activity_time: datetime
    amount: float | None = None


@dataclass(frozen=True)
class MonthlyTotals:
    """月別集計（グラフ用）"""

    label: str  # "Jan" .. "Dec"
    year: int
    month: int  # 1-12
    expenses: float = 0.0
    earnings: float = 0.0


@dataclass(frozen=True)
class LedgerSummary:
    """ダッシュボード集計結果"""

    total_earnings: float
    total_expenses: float
    balance: float
    months: list[MonthlyTotals] = field(default_factory=list)
    recent_expenses: list[LedgerEntry] = field(default_factory=list)
    recent_earnings: list[LedgerEntry] = field(default_factory=list)


@dataclass(frozen=True)
class ParsedTransaction:
    """音声トランスクリプトの解析結果（全フィールド任意）"""

    amount: float | None = None
    name: str | None = None
    category_name: str | None = None


@dataclass(frozen=True)
class ReportSection:
    """PDF レポートの表1つ分"""

    heading: str
    headers: list[str]
    rows: list[list[str]]
    accent: tuple[int, int, int] = (75, 85, 99)  # ヘッダー背景色 (RGB)


@dataclass(frozen=True)
class ReportDocument:
    """PDF レポート全体"""

    title: str
    filename: str
    sections: list[ReportSection] = field(default_factory=list)
    footer_lines: list[str] = field(default_factory=list)  # 最終行は太字
