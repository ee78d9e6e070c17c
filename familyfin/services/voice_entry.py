"""VoiceEntry - 音声入力のトランスクリプトを支出・収入フォームの初期値に変換"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from familyfin.domain.models import LedgerKind
from familyfin.domain.ports import CategoryRepository, TranscriptParser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoiceEntryDraft:
    """フォームに流し込む下書き（取れなかった項目は None）"""

    amount: float | None
    name: str | None
    category_id: str | None
    category_name: str | None


class VoiceEntryService:
    """
    トランスクリプトとファミリーのカテゴリ名を TranscriptParser に渡し、
    返ってきたカテゴリ名をカテゴリ ID に解決する。
    """

    def __init__(self, parser: TranscriptParser, category_repo: CategoryRepository) -> None:
        self._parser = parser
        self._category_repo = category_repo

    def draft(self, family_id: str, kind: LedgerKind, text: str) -> VoiceEntryDraft:
        """
        Raises:
            TranscriptParseError: 解析に失敗した場合
        """
        categories = self._category_repo.list(family_id, kind.category_type)
        parsed = self._parser.parse(text, [c.name for c in categories])

        category_id = None
        category_name = None
        if parsed.category_name:
            for c in categories:
                if c.name == parsed.category_name:
                    category_id, category_name = c.id, c.name
                    break

        logger.info(
            "Voice draft: family_id=%s, kind=%s, amount=%s, category_id=%s",
            family_id,
            kind.value,
            parsed.amount,
            category_id,
        )
        return VoiceEntryDraft(
            amount=parsed.amount,
            name=parsed.name,
            category_id=category_id,
            category_name=category_name,
        )
