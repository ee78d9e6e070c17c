"""設定管理 - 環境変数の型安全な読み込み"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv


@dataclass(frozen=True)
class AppConfig:
    """`watch` コマンドの設定"""

    project_id: str
    app_base_url: str = ""  # 通知タップ時に開く PWA の URL（https のみ有効）

    @classmethod
    def from_env(cls) -> "AppConfig":
        """環境変数から設定を読み込む"""
        load_dotenv()

        project_id = os.getenv("PROJECT_ID")
        if not project_id:
            raise ValueError("PROJECT_ID is not set in environment")

        return cls(
            project_id=project_id,
            app_base_url=os.getenv("APP_BASE_URL", "").rstrip("/"),
        )
