"""GeminiTranscriptParser・VoiceEntryService のテスト"""

import json
from unittest.mock import MagicMock, PropertyMock

import pytest
from conftest import FAMILY_ID
from familyfin.adapters.gemini import GeminiTranscriptParser
from familyfin.domain.errors import TranscriptParseError
from familyfin.domain.models import CategoryType, LedgerKind, ParsedTransaction
from familyfin.domain.ports import TranscriptParser
from familyfin.services.voice_entry import VoiceEntryService

_CATEGORIES = ["Groceries", "Rent/Mortgage"]


def _model_returning(text: str) -> MagicMock:
    model = MagicMock()
    model.generate_content.return_value = MagicMock(text=text, usage_metadata=None)
    return model


class TestGeminiTranscriptParser:
    def test_model_required(self):
        with pytest.raises(ValueError):
            GeminiTranscriptParser(None)

    def test_parse_json_response(self):
        # Arrange
        model = _model_returning(
            json.dumps({"amount": "250", "name": " milk and bread ", "categoryName": "groceries"})
        )
        parser = GeminiTranscriptParser(model)

        # Act
        result = parser.parse("250 rupees milk and bread", _CATEGORIES)

        # Assert
        assert result == ParsedTransaction(
            amount=250.0, name="milk and bread", category_name="Groceries"
        )
        prompt = model.generate_content.call_args.args[0]
        assert "- Rent/Mortgage" in prompt
        assert "250 rupees milk and bread" in prompt
        config = model.generate_content.call_args.kwargs["generation_config"]
        assert config["response_mime_type"] == "application/json"

    def test_code_fence_stripped(self):
        parser = GeminiTranscriptParser(_model_returning('```json\n{"amount": 12}\n```'))
        assert parser.parse("twelve", _CATEGORIES).amount == 12.0

    def test_unknown_category_dropped(self):
        parser = GeminiTranscriptParser(
            _model_returning('{"name": "taxi", "categoryName": "Transport"}')
        )
        result = parser.parse("taxi", _CATEGORIES)
        assert result.category_name is None
        assert result.amount is None

    def test_invalid_json_raises(self):
        parser = GeminiTranscriptParser(_model_returning("not json"))
        with pytest.raises(TranscriptParseError):
            parser.parse("x", _CATEGORIES)

    def test_non_object_raises(self):
        parser = GeminiTranscriptParser(_model_returning("[1, 2]"))
        with pytest.raises(TranscriptParseError):
            parser.parse("x", _CATEGORIES)

    def test_request_failure_wrapped(self):
        model = MagicMock()
        model.generate_content.side_effect = RuntimeError("quota exceeded")
        with pytest.raises(TranscriptParseError):
            GeminiTranscriptParser(model).parse("x", _CATEGORIES)

    def test_blocked_response_raises(self):
        # Arrange
        response = MagicMock(usage_metadata=None)
        type(response).text = PropertyMock(side_effect=ValueError("response was blocked"))
        model = MagicMock()
        model.generate_content.return_value = response

        # Act / Assert
        with pytest.raises(TranscriptParseError):
            GeminiTranscriptParser(model).parse("x", _CATEGORIES)


class TestVoiceEntryService:
    def test_category_resolved_to_id(self, mock_category_repo):
        parser = MagicMock(spec=TranscriptParser)
        parser.parse.return_value = ParsedTransaction(
            amount=30.0, name="veg", category_name="Groceries"
        )
        service = VoiceEntryService(parser, mock_category_repo)

        draft = service.draft(FAMILY_ID, LedgerKind.EXPENSE, "30 veg")

        mock_category_repo.list.assert_called_once_with(FAMILY_ID, CategoryType.EXPENSE)
        parser.parse.assert_called_once_with("30 veg", ["Groceries", "Rent/Mortgage"])
        assert draft.category_id == "cat-groceries"
        assert draft.amount == 30.0

    def test_no_category(self, mock_category_repo):
        parser = MagicMock(spec=TranscriptParser)
        parser.parse.return_value = ParsedTransaction(name="gift")

        draft = VoiceEntryService(parser, mock_category_repo).draft(
            FAMILY_ID, LedgerKind.EARNING, "gift"
        )

        assert draft.category_id is None
        assert draft.name == "gift"
