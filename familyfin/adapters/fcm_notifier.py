"""FCM Push Notifier Adapter

firebase_admin.messaging を使ったプッシュ通知実装。
クライアントが登録した FCM トークン（users/{uid}.fcmTokens）宛てに送信し、
バックグラウンド時はサービスワーカーが通知を表示する。
"""

from __future__ import annotations

import logging

import firebase_admin
from firebase_admin import exceptions as fb_exceptions
from firebase_admin import messaging

from familyfin.domain.ports import PushNotifier

logger = logging.getLogger(__name__)

_ICON = "/icons/apple-touch-icon.png"
_MAX_BODY = 200

# トークン自体が無効（アンインストール・期限切れ等）であることを示す例外
_INVALID_TOKEN_ERRORS = (
    messaging.UnregisteredError,
    messaging.SenderIdMismatchError,
    fb_exceptions.InvalidArgumentError,
)


class FcmNotifier(PushNotifier):
    """
    Firebase Cloud Messaging を使った PushNotifier 実装。

    1回の呼び出しで複数トークンへ multicast 送信する。
    個別トークンの失敗は例外にせず、失効トークンのリストとして返す。
    """

    def __init__(self, app: firebase_admin.App | None = None, base_url: str = "") -> None:
        """
        Args:
            app: 初期化済みの firebase_admin.App（省略時はデフォルトアプリ）
            base_url: PWA の公開 URL。FCM の link は https の絶対 URL のみ受け付けるため、
                それ以外の場合は link を data にだけ載せる
        """
        self._app = app
        self._base_url = base_url.rstrip("/") if base_url.startswith("https://") else ""

    def send(
        self,
        tokens: list[str],
        title: str,
        body: str,
        link: str = "/",
        tag: str | None = None,
    ) -> list[str]:
        """
        プッシュ通知を送信。

        Args:
            tokens: 送信先の FCM トークン
            title: 通知タイトル
            body: 通知本文（200文字を超える場合は切り詰める）
            link: タップ時に開く URL（相対パス）
            tag: 同一 tag の通知を上書きする識別子

        Returns:
            失効していた（削除すべき）トークンのリスト
        """
        if not tokens:
            return []

        if len(body) > _MAX_BODY:
            body = body[: _MAX_BODY - 3] + "..."

        message = messaging.MulticastMessage(
            tokens=tokens,
            notification=messaging.Notification(title=title, body=body),
            data={"url": link},
            webpush=messaging.WebpushConfig(
                notification=messaging.WebpushNotification(
                    icon=_ICON,
                    tag=tag,
                    # リマインダーはユーザーが閉じるまで表示し続ける
                    require_interaction=bool(tag and tag.startswith("reminder-")),
                ),
                fcm_options=(
                    messaging.WebpushFCMOptions(link=self._base_url + link)
                    if self._base_url
                    else None
                ),
            ),
        )
        response = messaging.send_each_for_multicast(message, app=self._app)

        invalid: list[str] = []
        for token, result in zip(tokens, response.responses):
            if result.success:
                continue
            if isinstance(result.exception, _INVALID_TOKEN_ERRORS):
                invalid.append(token)
            else:
                logger.error(
                    "FCM send failed: token=%s..., error=%s", token[:12], result.exception
                )

        logger.info(
            "FCM sent: title=%s, success=%d, failure=%d, invalid=%d",
            title,
            response.success_count,
            response.failure_count,
            len(invalid),
        )
        return invalid
