"""Cloud Run デプロイ用エントリーポイント

起動コマンド:
    uvicorn main:app --host 0.0.0.0 --port ${PORT:-8080}

買い物リストの常駐監視は別プロセスで起動する:
    python -m familyfin.entrypoints.cli watch
"""

from familyfin.entrypoints.api.app import app

__all__ = ["app"]
