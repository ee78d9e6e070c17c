"""音声入力 API ルート

POST /api/voice/parse  { text, kind }  → 200 { amount, name, category_id, category_name }
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from familyfin.domain.errors import TranscriptParseError
from familyfin.domain.models import LedgerKind
from familyfin.domain.ports import CategoryRepository, TranscriptParser
from familyfin.entrypoints.api.deps import (
    FamilyContext,
    get_category_repo,
    get_family_context,
    get_transcript_parser,
)
from familyfin.services.voice_entry import VoiceEntryService

router = APIRouter(prefix="/voice", tags=["voice"])


class VoiceParseRequest(BaseModel):
    text: str = Field(min_length=1)
    kind: LedgerKind


class VoiceParseResponse(BaseModel):
    amount: float | None
    name: str | None
    category_id: str | None
    category_name: str | None


@router.post("/parse", response_model=VoiceParseResponse)
async def parse_transcript(
    body: VoiceParseRequest,
    ctx: FamilyContext = Depends(get_family_context),
    parser: TranscriptParser = Depends(get_transcript_parser),
    category_repo: CategoryRepository = Depends(get_category_repo),
) -> VoiceParseResponse:
    """音声認識結果から支出・収入フォームの下書きを作る"""
    service = VoiceEntryService(parser, category_repo)
    try:
        draft = service.draft(ctx.family_id, body.kind, body.text)
    except TranscriptParseError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Could not understand the transcript. Please try again.",
        ) from e

    return VoiceParseResponse(
        amount=draft.amount,
        name=draft.name,
        category_id=draft.category_id,
        category_name=draft.category_name,
    )
