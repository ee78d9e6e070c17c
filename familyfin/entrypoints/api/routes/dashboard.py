"""ダッシュボード API ルート

GET /api/dashboard/family      → ファミリー全体の集計
GET /api/dashboard/individual  → 自分のエントリだけの集計

月別推移は ?tz= （既定 UTC）のタイムゾーンで月を区切る。
"""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from familyfin.domain.models import LedgerKind, LedgerSummary
from familyfin.domain.ports import (
    CategoryRepository,
    FamilyRepository,
    LedgerRepository,
    UserRepository,
)
from familyfin.entrypoints.api.deps import (
    FamilyContext,
    get_category_repo,
    get_family_context,
    get_family_repo,
    get_ledger_repo,
    get_user_repo,
    get_viewer_timezone,
)
from familyfin.entrypoints.api.routes.ledger import EntryResponse, entry_to_response
from familyfin.services.dashboard import summarize_family, summarize_individual
from familyfin.services.ledger import category_name_map, hidden_user_ids, member_name_map

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


class MonthResponse(BaseModel):
    label: str
    year: int
    month: int
    expenses: float
    earnings: float


class SummaryResponse(BaseModel):
    currency: str
    currency_symbol: str
    total_earnings: float
    total_expenses: float
    balance: float
    months: list[MonthResponse]
    recent_expenses: list[EntryResponse]
    recent_earnings: list[EntryResponse]


def _to_response(
    summary: LedgerSummary,
    ctx: FamilyContext,
    family_repo: FamilyRepository,
    category_repo: CategoryRepository,
    names: dict[str, str],
) -> SummaryResponse:
    family = family_repo.get_family(ctx.family_id)
    expense_categories = category_name_map(
        category_repo.list(ctx.family_id, LedgerKind.EXPENSE.category_type)
    )
    earning_categories = category_name_map(
        category_repo.list(ctx.family_id, LedgerKind.EARNING.category_type)
    )
    return SummaryResponse(
        currency=family.currency if family else "INR",
        currency_symbol=family.currency_symbol if family else "₹",
        total_earnings=summary.total_earnings,
        total_expenses=summary.total_expenses,
        balance=summary.balance,
        months=[
            MonthResponse(
                label=m.label,
                year=m.year,
                month=m.month,
                expenses=m.expenses,
                earnings=m.earnings,
            )
            for m in summary.months
        ],
        recent_expenses=[
            entry_to_response(e, expense_categories, names) for e in summary.recent_expenses
        ],
        recent_earnings=[
            entry_to_response(e, earning_categories, names) for e in summary.recent_earnings
        ],
    )


@router.get("/family", response_model=SummaryResponse)
async def family_dashboard(
    ctx: FamilyContext = Depends(get_family_context),
    ledger_repo: LedgerRepository = Depends(get_ledger_repo),
    user_repo: UserRepository = Depends(get_user_repo),
    family_repo: FamilyRepository = Depends(get_family_repo),
    category_repo: CategoryRepository = Depends(get_category_repo),
    tz: tzinfo = Depends(get_viewer_timezone),
) -> SummaryResponse:
    members = user_repo.list_members(ctx.family_id)
    summary = summarize_family(
        ledger_repo.list(ctx.family_id, LedgerKind.EXPENSE),
        ledger_repo.list(ctx.family_id, LedgerKind.EARNING),
        viewer_uid=ctx.uid,
        hidden_uids=hidden_user_ids(members),
        now=datetime.now(timezone.utc),
        tz=tz,
    )
    return _to_response(summary, ctx, family_repo, category_repo, member_name_map(members))


@router.get("/individual", response_model=SummaryResponse)
async def individual_dashboard(
    ctx: FamilyContext = Depends(get_family_context),
    ledger_repo: LedgerRepository = Depends(get_ledger_repo),
    family_repo: FamilyRepository = Depends(get_family_repo),
    category_repo: CategoryRepository = Depends(get_category_repo),
    tz: tzinfo = Depends(get_viewer_timezone),
) -> SummaryResponse:
    summary = summarize_individual(
        ledger_repo.list(ctx.family_id, LedgerKind.EXPENSE),
        ledger_repo.list(ctx.family_id, LedgerKind.EARNING),
        viewer_uid=ctx.uid,
        now=datetime.now(timezone.utc),
        tz=tz,
    )
    return _to_response(
        summary,
        ctx,
        family_repo,
        category_repo,
        {ctx.uid: ctx.profile.display_name},
    )
