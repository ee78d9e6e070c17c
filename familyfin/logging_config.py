"""ロギング設定モジュール

API と watch プロセスの両方から最初に1回だけ呼ぶ。
Cloud Run 上では Cloud Logging が解釈できる JSON を1行ずつ、
手元ではテキストで標準エラーに出す。

家族単位・アイテム単位で検索できるよう、構造化したい値は
``log_fields()`` で渡す::

    logger.info("Reminder sent", extra=log_fields(family_id=fid, item_id=iid))

環境変数:
    LOG_LEVEL: DEBUG / INFO / WARNING / ERROR（既定: INFO）
    K_SERVICE: Cloud Run が自動で設定する。あれば JSON 出力
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

_FIELDS_ATTR = "familyfin_fields"
_TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# firebase_admin・Firestore の gRPC 層が INFO で大量に出すため抑える
_QUIET_LOGGERS = ("google.auth", "google.api_core", "urllib3", "grpc", "httpx")


def log_fields(**fields: Any) -> dict[str, Any]:
    """``logger.xxx(..., extra=...)`` に渡す構造化フィールド"""
    return {_FIELDS_ATTR: fields}


def _fields_of(record: logging.LogRecord) -> dict[str, Any]:
    return getattr(record, _FIELDS_ATTR, None) or {}


class CloudLoggingFormatter(logging.Formatter):
    """Cloud Logging 向け JSON フォーマッタ

    Python のレベル名は Cloud Logging の severity と同じ綴りなので
    そのまま使う。log_fields() の値はトップレベルに展開する。
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
        }
        payload.update(_fields_of(record))
        if record.exc_info and record.exc_info[1] is not None:
            payload["stack_trace"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """ローカル用。log_fields() の値を ``key=value`` で末尾に付ける"""

    def __init__(self) -> None:
        super().__init__(_TEXT_FORMAT, datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _fields_of(record)
        if not fields:
            return line
        suffix = " ".join(f"{key}={value}" for key, value in fields.items())
        head, sep, rest = line.partition("\n")
        return f"{head} [{suffix}]{sep}{rest}"


def setup_logging(level: str | None = None) -> None:
    """ルートロガーを設定する（何度呼んでもハンドラーは1つ）

    Args:
        level: ログレベル名。省略時は LOG_LEVEL 環境変数
    """
    level_name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()

    handler = logging.StreamHandler()
    on_cloud_run = bool(os.getenv("K_SERVICE"))
    handler.setFormatter(CloudLoggingFormatter() if on_cloud_run else TextFormatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.getLevelNamesMapping().get(level_name, logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
