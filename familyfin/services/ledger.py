"""家計簿エントリの可視性ルールとカテゴリ名解決

一覧・ダッシュボード・通知フィード・レポートで共通に使う。

可視性:
  - 自分のエントリは常に見える
  - 家計データを非公開にしたメンバー（isFinancialDataHidden）のエントリは見えない
  - 他メンバーのプライベートエントリは見えない（集計用途では include_private で含められる）
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone, tzinfo

from familyfin.domain.models import (
    UNCATEGORIZED,
    Category,
    LedgerEntry,
    UserProfile,
)


def local_time(value: datetime, tz: tzinfo) -> datetime:
    """閲覧者のタイムゾーンでの日時（naive は UTC とみなす）

    Web クライアントは date を端末のローカル 0 時で保存するため、
    月の振り分けや日付表示は閲覧者のタイムゾーンで行う。
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz)


def hidden_user_ids(members: Iterable[UserProfile]) -> set[str]:
    """家計データを非公開にしているメンバーの uid"""
    return {m.uid for m in members if m.financial_data_hidden}


def is_visible(
    entry: LedgerEntry,
    viewer_uid: str,
    hidden_uids: set[str],
    include_private: bool = False,
) -> bool:
    if entry.added_by == viewer_uid:
        return True
    if entry.added_by in hidden_uids:
        return False
    if entry.is_private and not include_private:
        return False
    return True


def visible_entries(
    entries: Iterable[LedgerEntry],
    viewer_uid: str,
    hidden_uids: set[str],
    include_private: bool = False,
) -> list[LedgerEntry]:
    return [
        e for e in entries if is_visible(e, viewer_uid, hidden_uids, include_private)
    ]


def category_name_map(categories: Iterable[Category]) -> dict[str, str]:
    return {c.id: c.name for c in categories}


def resolve_category(names: dict[str, str], category_id: str) -> str:
    """削除済み・未設定のカテゴリは "Uncategorized" に落とす"""
    return names.get(category_id) or UNCATEGORIZED


def member_name_map(members: Iterable[UserProfile]) -> dict[str, str]:
    return {m.uid: m.display_name for m in members}
