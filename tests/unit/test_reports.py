"""月次レポート組み立てと PDF 出力のテスト"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from conftest import UID_ALICE, make_entry
from familyfin.adapters.pdf_report import ReportLabPdfRenderer
from familyfin.domain.models import LedgerKind, ReportDocument, ReportSection
from familyfin.services.reports import (
    build_combined_report,
    build_monthly_report,
    entries_in_month,
)

_CATS = {"cat-groceries": "Groceries"}


def _d(month: int, day: int) -> datetime:
    return datetime(2026, month, day, tzinfo=timezone.utc)


def test_entries_in_month_sorted_by_date():
    entries = [
        make_entry("b", UID_ALICE, 1, _d(3, 20)),
        make_entry("x", UID_ALICE, 1, _d(4, 1)),
        make_entry("a", UID_ALICE, 1, _d(3, 2)),
    ]
    assert [e.id for e in entries_in_month(entries, 2026, 3)] == ["a", "b"]


def test_month_selection_and_dates_in_viewer_timezone():
    # UTC では 2月28日だが IST では 3月1日
    entry = make_entry("e1", UID_ALICE, 100.0, datetime(2026, 2, 28, 18, 30, tzinfo=timezone.utc))
    ist = ZoneInfo("Asia/Kolkata")

    doc = build_monthly_report(LedgerKind.EXPENSE, [entry], _CATS, 2026, 3, "INR", tz=ist)

    assert entries_in_month([entry], 2026, 2) == [entry]
    assert entries_in_month([entry], 2026, 2, tz=ist) == []
    assert doc.sections[0].rows[0][0] == "01-03-2026"


def test_monthly_expense_report():
    entries = [
        make_entry("e1", UID_ALICE, 12.5, _d(3, 5)),
        make_entry("e2", UID_ALICE, 3, _d(3, 6), category_id="deleted"),
    ]

    doc = build_monthly_report(LedgerKind.EXPENSE, entries, _CATS, 2026, 3, "INR")

    assert doc.title == "Expense Report for March 2026"
    assert doc.filename == "Expense-Report-03-2026.pdf"
    section = doc.sections[0]
    assert section.headers == ["Date", "Name", "Category", "Amount (INR)"]
    assert section.rows == [
        ["05-03-2026", "entry e1", "Groceries", "12.50"],
        ["06-03-2026", "entry e2", "Uncategorized", "3.00"],
    ]
    assert doc.footer_lines == []


def test_combined_report_totals():
    expenses = [make_entry("e1", UID_ALICE, 40, _d(3, 5))]
    earnings = [
        make_entry("g1", UID_ALICE, 100, _d(3, 1), category_id="cat-salary"),
        make_entry("g2", UID_ALICE, 900, _d(2, 1), category_id="cat-salary"),
    ]

    doc = build_combined_report(
        expenses, earnings, _CATS, {"cat-salary": "Salary"}, 2026, 3, "USD"
    )

    assert doc.filename == "Combined-Report-03-2026.pdf"
    earnings_section, expenses_section = doc.sections
    assert earnings_section.heading == "Earnings"
    assert earnings_section.rows[0][3] == "+ 100.00"
    assert expenses_section.rows[0][3] == "- 40.00"
    assert doc.footer_lines == [
        "Total Earnings: USD 100.00",
        "Total Expenses: USD 40.00",
        "Net Savings: USD 60.00",
    ]


class TestReportLabPdfRenderer:
    def test_renders_pdf(self):
        doc = build_combined_report(
            [make_entry("e1", UID_ALICE, 40, _d(3, 5))], [], _CATS, {}, 2026, 3, "INR"
        )

        pdf = ReportLabPdfRenderer().render(doc)

        assert pdf.startswith(b"%PDF")

    def test_empty_table_and_markup_characters(self):
        doc = ReportDocument(
            title="Earning Report for <March> & co",
            filename="x.pdf",
            sections=[ReportSection(heading="", headers=["A", "B"], rows=[])],
        )

        assert ReportLabPdfRenderer().render(doc).startswith(b"%PDF")
