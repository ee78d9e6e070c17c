"""月次レポート（PDF 出力用の表データ）の組み立て

ReportDocument を作るだけで、PDF への変換は ReportRenderer が担当する。
エントリは呼び出し側で可視性フィルタ済みのものを渡す。
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from datetime import timezone, tzinfo

from familyfin.domain.models import (
    LedgerEntry,
    LedgerKind,
    ReportDocument,
    ReportSection,
)
from familyfin.services.ledger import local_time, resolve_category

_EARNING_ACCENT = (34, 197, 94)
_EXPENSE_ACCENT = (239, 68, 68)

_KIND_LABELS = {LedgerKind.EXPENSE: "Expense", LedgerKind.EARNING: "Earning"}


def entries_in_month(
    entries: Iterable[LedgerEntry], year: int, month: int, tz: tzinfo = timezone.utc
) -> list[LedgerEntry]:
    """date が閲覧者のタイムゾーンで指定の暦月に入るエントリ（日付の昇順）"""
    selected = []
    for e in entries:
        if e.date is None:
            continue
        local = local_time(e.date, tz)
        if (local.year, local.month) == (year, month):
            selected.append(e)
    return sorted(selected, key=lambda e: e.date)


def _month_title(year: int, month: int) -> str:
    return f"{calendar.month_name[month]} {year}"


def _headers(currency_code: str) -> list[str]:
    return ["Date", "Name", "Category", f"Amount ({currency_code})"]


def _rows(
    entries: list[LedgerEntry], category_names: dict[str, str], tz: tzinfo, sign: str = ""
) -> list[list[str]]:
    return [
        [
            local_time(e.date, tz).strftime("%d-%m-%Y"),
            e.name,
            resolve_category(category_names, e.category_id),
            f"{sign}{e.amount:.2f}",
        ]
        for e in entries
    ]


def build_monthly_report(
    kind: LedgerKind,
    entries: Iterable[LedgerEntry],
    category_names: dict[str, str],
    year: int,
    month: int,
    currency_code: str,
    tz: tzinfo = timezone.utc,
) -> ReportDocument:
    """
    支出または収入の月次レポート。

    Returns:
        "Expense Report for March 2026" / Expense-Report-03-2026.pdf 形式
    """
    label = _KIND_LABELS[kind]
    selected = entries_in_month(entries, year, month, tz)
    return ReportDocument(
        title=f"{label} Report for {_month_title(year, month)}",
        filename=f"{label}-Report-{month:02d}-{year}.pdf",
        sections=[
            ReportSection(
                heading="",
                headers=_headers(currency_code),
                rows=_rows(selected, category_names, tz),
            )
        ],
    )


def build_combined_report(
    expenses: Iterable[LedgerEntry],
    earnings: Iterable[LedgerEntry],
    expense_categories: dict[str, str],
    earning_categories: dict[str, str],
    year: int,
    month: int,
    currency_code: str,
    tz: tzinfo = timezone.utc,
) -> ReportDocument:
    """収入表・支出表と合計・純貯蓄をまとめた月次レポート"""
    month_expenses = entries_in_month(expenses, year, month, tz)
    month_earnings = entries_in_month(earnings, year, month, tz)

    total_expenses = sum(e.amount for e in month_expenses)
    total_earnings = sum(e.amount for e in month_earnings)

    return ReportDocument(
        title=f"Combined Report for {_month_title(year, month)}",
        filename=f"Combined-Report-{month:02d}-{year}.pdf",
        sections=[
            ReportSection(
                heading="Earnings",
                headers=_headers(currency_code),
                rows=_rows(month_earnings, earning_categories, tz, sign="+ "),
                accent=_EARNING_ACCENT,
            ),
            ReportSection(
                heading="Expenses",
                headers=_headers(currency_code),
                rows=_rows(month_expenses, expense_categories, tz, sign="- "),
                accent=_EXPENSE_ACCENT,
            ),
        ],
        footer_lines=[
            f"Total Earnings: {currency_code} {total_earnings:.2f}",
            f"Total Expenses: {currency_code} {total_expenses:.2f}",
            f"Net Savings: {currency_code} {total_earnings - total_expenses:.2f}",
        ],
    )
