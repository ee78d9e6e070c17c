"""ダッシュボード集計

ファミリー全体（summarize_family）と本人のみ（summarize_individual）の2種類。
どちらも合計・収支・直近6か月の月別推移・直近5件を返す。
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone, tzinfo

from familyfin.domain.models import LedgerEntry, LedgerSummary, MonthlyTotals
from familyfin.services.ledger import is_visible, local_time

_MONTH_LABELS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
_RECENT_LIMIT = 5
_MONTHS = 6


def last_six_months(now: datetime) -> list[tuple[int, int]]:
    """当月を含む直近6か月の (year, month) を古い順に返す"""
    result = []
    year, month = now.year, now.month
    for _ in range(_MONTHS):
        result.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(result))


def _monthly_series(
    expenses: list[LedgerEntry], earnings: list[LedgerEntry], now: datetime, tz: tzinfo
) -> list[MonthlyTotals]:
    buckets: dict[tuple[int, int], list[float]] = {
        key: [0.0, 0.0] for key in last_six_months(local_time(now, tz))
    }
    for index, entries in ((0, expenses), (1, earnings)):
        for e in entries:
            if e.date is None:
                continue
            local = local_time(e.date, tz)
            key = (local.year, local.month)
            if key in buckets:
                buckets[key][index] += e.amount

    return [
        MonthlyTotals(
            label=_MONTH_LABELS[month - 1],
            year=year,
            month=month,
            expenses=round(totals[0], 2),
            earnings=round(totals[1], 2),
        )
        for (year, month), totals in buckets.items()
    ]


def _summarize(
    expenses: list[LedgerEntry],
    earnings: list[LedgerEntry],
    recent_expenses: list[LedgerEntry],
    recent_earnings: list[LedgerEntry],
    now: datetime,
    tz: tzinfo,
) -> LedgerSummary:
    total_expenses = sum(e.amount for e in expenses)
    total_earnings = sum(e.amount for e in earnings)
    return LedgerSummary(
        total_earnings=round(total_earnings, 2),
        total_expenses=round(total_expenses, 2),
        balance=round(total_earnings - total_expenses, 2),
        months=_monthly_series(expenses, earnings, now, tz),
        recent_expenses=recent_expenses[:_RECENT_LIMIT],
        recent_earnings=recent_earnings[:_RECENT_LIMIT],
    )


def summarize_family(
    expenses: Iterable[LedgerEntry],
    earnings: Iterable[LedgerEntry],
    viewer_uid: str,
    hidden_uids: set[str],
    now: datetime,
    tz: tzinfo = timezone.utc,
) -> LedgerSummary:
    """
    ファミリー全体の集計。

    非公開メンバーのエントリは除外する。
    他メンバーのプライベートエントリは合計・月別推移には含めるが、
    直近リストには出さない。

    Args:
        expenses / earnings: createdAt 降順のエントリ
        viewer_uid: 閲覧者
        hidden_uids: 家計データを非公開にしているメンバー
        now: 集計基準時刻
        tz: 月の区切りに使う閲覧者のタイムゾーン
    """
    counted_expenses = [
        e for e in expenses if is_visible(e, viewer_uid, hidden_uids, include_private=True)
    ]
    counted_earnings = [
        e for e in earnings if is_visible(e, viewer_uid, hidden_uids, include_private=True)
    ]
    return _summarize(
        counted_expenses,
        counted_earnings,
        [e for e in counted_expenses if is_visible(e, viewer_uid, hidden_uids)],
        [e for e in counted_earnings if is_visible(e, viewer_uid, hidden_uids)],
        now,
        tz,
    )


def summarize_individual(
    expenses: Iterable[LedgerEntry],
    earnings: Iterable[LedgerEntry],
    viewer_uid: str,
    now: datetime,
    tz: tzinfo = timezone.utc,
) -> LedgerSummary:
    """本人のエントリのみ（プライベート含む）の集計"""
    own_expenses = [e for e in expenses if e.added_by == viewer_uid]
    own_earnings = [e for e in earnings if e.added_by == viewer_uid]
    return _summarize(own_expenses, own_earnings, own_expenses, own_earnings, now, tz)
