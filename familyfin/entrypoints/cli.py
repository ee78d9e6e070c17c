#!/usr/bin/env python3
"""CLI Entrypoint - コマンドラインから実行

使い方:
    python -m familyfin.entrypoints.cli watch
    python -m familyfin.entrypoints.cli watch --family-id FAMILY_ID [--family-id ...]

watch:
    買い物リストのスナップショットを購読し、追加・購入のプッシュ通知と
    リマインダーのタイマーを動かし続ける。Ctrl+C / SIGTERM で停止。

環境変数:
    PROJECT_ID: GCP プロジェクト ID（必須）
    LOG_LEVEL: ログレベル (DEBUG, INFO, WARNING, ERROR) デフォルト: INFO
    K_SERVICE / CLOUD_RUN_JOB: Cloud Run 環境では自動設定されJSON形式ログに切替
"""

import argparse
import logging
import signal
import sys
import threading

from familyfin.entrypoints.factory import create_watch_session
from familyfin.logging_config import setup_logging


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="familyfin")
    parser.add_argument("--log-level", help="override LOG_LEVEL (DEBUG, INFO, ...)")
    sub = parser.add_subparsers(dest="command", required=True)

    watch = sub.add_parser("watch", help="watch shopping lists and send push alerts")
    watch.add_argument(
        "--family-id",
        action="append",
        dest="family_ids",
        help="family to watch (repeatable, default: all families)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """メインエントリーポイント"""
    args = _parse_args(argv)

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    logger.info("FamilyFin watcher - Starting")

    stop = threading.Event()
    signal.signal(signal.SIGTERM, lambda *_: stop.set())

    session = None
    try:
        session = create_watch_session(family_ids=args.family_ids)
        while not stop.is_set():
            stop.wait(timeout=1.0)
        logger.info("Termination requested")

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)

    except Exception:
        logger.exception("Fatal error")
        sys.exit(1)

    finally:
        if session is not None:
            session.stop()


if __name__ == "__main__":
    main()
