"""Gemini Transcript Parser Adapter

TranscriptParser ABCの実装。
音声入力のトランスクリプトから金額・名前・カテゴリを抽出する。

vertexai.init() はコンストラクタから分離されており、
呼び出し側（deps等）が事前に初期化した GenerativeModel を渡す。
"""

import json
import logging

from vertexai.generative_models import GenerativeModel

from familyfin.domain.errors import TranscriptParseError
from familyfin.domain.models import ParsedTransaction
from familyfin.domain.ports import TranscriptParser

logger = logging.getLogger(__name__)


class GeminiTranscriptParser(TranscriptParser):
    """
    Gemini を使ったトランスクリプト解析実装。

    レスポンスは JSON（response_mime_type）で受け取り、
    カテゴリ名は渡した候補に含まれるものだけを採用する。
    """

    def __init__(self, model: GenerativeModel) -> None:
        """
        Args:
            model: 初期化済みの GenerativeModel インスタンス。
                   呼び出し側で vertexai.init() を実行してから渡すこと。
        """
        if model is None:
            raise ValueError("model is required")

        self._model = model

    def parse(self, text: str, category_names: list[str]) -> ParsedTransaction:
        """
        トランスクリプトを解析。

        Args:
            text: 音声認識の結果テキスト（誤認識を含み得る）
            category_names: 選択可能なカテゴリ名

        Returns:
            ParsedTransaction: 取れなかった項目は None

        Raises:
            TranscriptParseError: Gemini 呼び出しまたは JSON 解析に失敗した場合
        """
        prompt = self._build_prompt(text, category_names)
        generation_config = {
            "max_output_tokens": 512,
            "temperature": 0.0,
            "response_mime_type": "application/json",
        }

        try:
            response = self._model.generate_content(
                prompt, generation_config=generation_config, stream=False
            )
        except Exception as e:
            logger.exception("Gemini request failed")
            raise TranscriptParseError("Transcript parsing request failed") from e

        usage = getattr(response, "usage_metadata", None)
        if usage:
            logger.info(
                "Gemini token usage: input=%d, output=%d, total=%d",
                usage.prompt_token_count,
                usage.candidates_token_count,
                usage.total_token_count,
            )

        try:
            # 安全フィルタでブロックされた応答は .text で ValueError になる
            response_text = response.text
        except ValueError as e:
            logger.warning("Gemini returned no text: %s", e)
            raise TranscriptParseError("Model returned no text") from e

        raw_json = self._parse_response(response_text)
        result = self._convert_to_domain_model(raw_json, category_names)
        logger.info(
            "Transcript parsed: amount=%s, category=%s",
            result.amount,
            result.category_name,
        )
        return result

    @staticmethod
    def _build_prompt(text: str, category_names: list[str]) -> str:
        categories = "\n".join(f"- {name}" for name in category_names)
        return f"""You are an expert at parsing transaction details from unstructured text and categorizing them.
Extract the amount and the name/description from the following text.
The text is a voice transcription and may contain errors.
Ignore currency symbols like 'Rs' or '$'. Just extract the numeric value for the amount.
The name should be the remaining part of the text after extracting the amount.

From the list of available categories below, select the one that best fits the transaction.
If no category seems to be a good match, do not return a value for categoryName.

Available Categories:
{categories}

Text: {text}

Respond with a JSON object: {{"amount": number, "name": string, "categoryName": string}}.
Omit any field you cannot determine.
"""

    @staticmethod
    def _parse_response(response_text: str) -> dict:
        """Markdownコードブロックを除去してJSONとして解釈する"""
        text = response_text.strip()

        if text.startswith("```json"):
            text = text[7:]
        elif text.startswith("```"):
            text = text[3:]
        if text.endswith("```"):
            text = text[:-3]

        try:
            data = json.loads(text.strip())
        except json.JSONDecodeError as e:
            logger.error("Failed to parse JSON response: %s", e)
            logger.error("Raw response: %s", response_text)
            raise TranscriptParseError("Model returned invalid JSON") from e

        if not isinstance(data, dict):
            raise TranscriptParseError("Model returned a non-object JSON value")
        return data

    @staticmethod
    def _convert_to_domain_model(
        raw_json: dict, category_names: list[str]
    ) -> ParsedTransaction:
        amount = raw_json.get("amount")
        try:
            amount = float(amount) if amount is not None else None
        except (TypeError, ValueError):
            logger.warning("Invalid amount in model output: %r", amount)
            amount = None

        name = raw_json.get("name")
        name = name.strip() if isinstance(name, str) and name.strip() else None

        # 候補にないカテゴリ名は採用しない（大文字小文字は無視して正規化）
        category_name = None
        proposed = raw_json.get("categoryName")
        if isinstance(proposed, str):
            by_lower = {c.lower(): c for c in category_names}
            category_name = by_lower.get(proposed.strip().lower())
            if category_name is None:
                logger.warning("Model proposed unknown category: %s", proposed)

        return ParsedTransaction(amount=amount, name=name, category_name=category_name)
