"""レポート API ルート

GET /api/reports/expenses?year=2026&month=3  → application/pdf
GET /api/reports/earnings?year=2026&month=3  → application/pdf
GET /api/reports/combined?year=2026&month=3  → application/pdf

閲覧者に見えるエントリ（一覧と同じ可視性ルール）だけを出力する。
月の区切りと日付は ?tz= （既定 UTC）のタイムゾーンで扱う。
"""

from __future__ import annotations

import logging
from datetime import tzinfo

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from familyfin.domain.models import LedgerKind, ReportDocument
from familyfin.domain.ports import (
    CategoryRepository,
    FamilyRepository,
    LedgerRepository,
    ReportRenderer,
    UserRepository,
)
from familyfin.entrypoints.api.deps import (
    FamilyContext,
    get_category_repo,
    get_family_context,
    get_family_repo,
    get_ledger_repo,
    get_report_renderer,
    get_user_repo,
    get_viewer_timezone,
)
from familyfin.services.ledger import category_name_map, hidden_user_ids, visible_entries
from familyfin.services.reports import build_combined_report, build_monthly_report

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/reports", tags=["reports"])


def _pdf_response(renderer: ReportRenderer, document: ReportDocument) -> Response:
    return Response(
        content=renderer.render(document),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{document.filename}"'},
    )


class _ReportInputs:
    """レポートに必要な可視エントリ・カテゴリ・通貨をまとめて読む"""

    def __init__(
        self,
        ctx: FamilyContext,
        ledger_repo: LedgerRepository,
        user_repo: UserRepository,
        family_repo: FamilyRepository,
        category_repo: CategoryRepository,
        tz: tzinfo,
    ) -> None:
        self._ctx = ctx
        self.tz = tz
        self._ledger_repo = ledger_repo
        self._category_repo = category_repo
        self._hidden = hidden_user_ids(user_repo.list_members(ctx.family_id))
        family = family_repo.get_family(ctx.family_id)
        self.currency = family.currency if family else "INR"

    def entries(self, kind: LedgerKind):
        return visible_entries(
            self._ledger_repo.list(self._ctx.family_id, kind), self._ctx.uid, self._hidden
        )

    def categories(self, kind: LedgerKind) -> dict[str, str]:
        return category_name_map(
            self._category_repo.list(self._ctx.family_id, kind.category_type)
        )


def get_report_inputs(
    ctx: FamilyContext = Depends(get_family_context),
    ledger_repo: LedgerRepository = Depends(get_ledger_repo),
    user_repo: UserRepository = Depends(get_user_repo),
    family_repo: FamilyRepository = Depends(get_family_repo),
    category_repo: CategoryRepository = Depends(get_category_repo),
    tz: tzinfo = Depends(get_viewer_timezone),
) -> _ReportInputs:
    return _ReportInputs(ctx, ledger_repo, user_repo, family_repo, category_repo, tz)


def _monthly(kind: LedgerKind, year: int, month: int, inputs: _ReportInputs) -> ReportDocument:
    return build_monthly_report(
        kind,
        inputs.entries(kind),
        inputs.categories(kind),
        year,
        month,
        inputs.currency,
        inputs.tz,
    )


@router.get("/expenses")
async def expense_report(
    year: int = Query(ge=2000, le=2100),
    month: int = Query(ge=1, le=12),
    inputs: _ReportInputs = Depends(get_report_inputs),
    renderer: ReportRenderer = Depends(get_report_renderer),
) -> Response:
    return _pdf_response(renderer, _monthly(LedgerKind.EXPENSE, year, month, inputs))


@router.get("/earnings")
async def earning_report(
    year: int = Query(ge=2000, le=2100),
    month: int = Query(ge=1, le=12),
    inputs: _ReportInputs = Depends(get_report_inputs),
    renderer: ReportRenderer = Depends(get_report_renderer),
) -> Response:
    return _pdf_response(renderer, _monthly(LedgerKind.EARNING, year, month, inputs))


@router.get("/combined")
async def combined_report(
    year: int = Query(ge=2000, le=2100),
    month: int = Query(ge=1, le=12),
    inputs: _ReportInputs = Depends(get_report_inputs),
    renderer: ReportRenderer = Depends(get_report_renderer),
) -> Response:
    document = build_combined_report(
        inputs.entries(LedgerKind.EXPENSE),
        inputs.entries(LedgerKind.EARNING),
        inputs.categories(LedgerKind.EXPENSE),
        inputs.categories(LedgerKind.EARNING),
        year,
        month,
        inputs.currency,
        inputs.tz,
    )
    return _pdf_response(renderer, document)
