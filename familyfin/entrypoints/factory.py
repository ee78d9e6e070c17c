"""Factory - 依存性注入の組み立て

`watch` コマンド用に、全ファミリー（または指定ファミリー）の
買い物リスト監視（ShoppingListMonitor + スナップショットリスナー）を組み立てる。
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

import firebase_admin
from firebase_admin import credentials as fb_creds
from google.cloud import firestore

from familyfin.adapters.fcm_notifier import FcmNotifier
from familyfin.adapters.firestore_repository import (
    FirestoreFamilyRepository,
    FirestoreShoppingRepository,
    FirestoreUserRepository,
)
from familyfin.config import AppConfig
from familyfin.domain.ports import ListenerHandle, ShoppingRepository
from familyfin.services.shopping_alerts import ShoppingAlertDispatcher
from familyfin.services.shopping_watcher import ReminderScheduler, ShoppingListMonitor

logger = logging.getLogger(__name__)


@dataclass
class WatchSession:
    """起動中の監視一式。stop() でリスナーとタイマーをすべて解除する

    attach() は families リスナーのコールバックとしても呼ばれるため、
    監視済みのファミリーは読み飛ばす。
    """

    shopping_repo: ShoppingRepository | None = None
    dispatcher: ShoppingAlertDispatcher | None = None
    monitors: list[ShoppingListMonitor] = field(default_factory=list)
    handles: list[ListenerHandle] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _stopped: bool = field(default=False, repr=False)

    def attach(self, family_ids: list[str]) -> list[str]:
        """未監視のファミリーに監視を張り、新たに追加した ID を返す"""
        added: list[str] = []
        with self._lock:
            if self._stopped:
                return added
            watched = {m.family_id for m in self.monitors}
            for family_id in family_ids:
                if family_id in watched:
                    continue
                monitor = build_monitor(family_id, self.shopping_repo, self.dispatcher)
                self.monitors.append(monitor)
                self.handles.append(self.shopping_repo.watch(family_id, monitor.on_snapshot))
                watched.add(family_id)
                added.append(family_id)
        if added:
            logger.info("Watching families: %s (total=%d)", ", ".join(added), len(self.monitors))
        return added

    def stop(self) -> None:
        with self._lock:
            self._stopped = True
        for handle in self.handles:
            try:
                handle.unsubscribe()
            except Exception:
                logger.exception("Failed to unsubscribe listener")
        for monitor in self.monitors:
            monitor.stop()
        logger.info("Watch session stopped: families=%d", len(self.monitors))


def _init_firebase(config: AppConfig) -> firebase_admin.App:
    try:
        return firebase_admin.get_app()
    except ValueError:
        app = firebase_admin.initialize_app(
            fb_creds.ApplicationDefault(),
            options={"projectId": config.project_id},
        )
        logger.info("Firebase Admin initialized (watch) project=%s", config.project_id)
        return app


def build_monitor(
    family_id: str,
    shopping_repo: ShoppingRepository,
    dispatcher: ShoppingAlertDispatcher,
) -> ShoppingListMonitor:
    """1ファミリー分の ShoppingListMonitor を組み立てる"""
    scheduler = ReminderScheduler(
        shopping_repo,
        family_id,
        on_due=lambda item: dispatcher.notify_reminder(family_id, item),
    )
    return ShoppingListMonitor(
        family_id,
        on_events=dispatcher.notify_events,
        scheduler=scheduler,
    )


def create_watch_session(
    config: AppConfig | None = None,
    family_ids: list[str] | None = None,
) -> WatchSession:
    """
    監視を開始した WatchSession を返す。

    Args:
        config: アプリケーション設定（Noneの場合は環境変数から読み込み）
        family_ids: 監視対象（Noneの場合は全ファミリー。後から作成されたファミリーも追加する）

    Raises:
        ValueError: 必須設定が不足している場合
    """
    if config is None:
        config = AppConfig.from_env()

    logger.info("Creating watch session: project_id=%s", config.project_id)

    app = _init_firebase(config)
    db = firestore.Client(project=config.project_id)

    family_repo = FirestoreFamilyRepository(db)
    shopping_repo = FirestoreShoppingRepository(db)
    notifier = FcmNotifier(app=app, base_url=config.app_base_url)
    dispatcher = ShoppingAlertDispatcher(FirestoreUserRepository(db), notifier)

    session = WatchSession(shopping_repo=shopping_repo, dispatcher=dispatcher)
    if family_ids is not None:
        session.attach(family_ids)
    else:
        # 初回スナップショットで既存の全ファミリー、以降は作成されたファミリーが届く
        session.handles.append(family_repo.watch_family_ids(session.attach))

    logger.info("Watch session started: families=%d", len(session.monitors))
    return session
