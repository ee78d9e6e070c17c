"""ドメイン固有の例外クラス"""


class FamilyFinError(Exception):
    """FamilyFin の基底例外"""

    pass


class RecordNotFoundError(FamilyFinError):
    """エントリ・アイテムが存在しない（他メンバーが削除済み等）"""

    pass


class TranscriptParseError(FamilyFinError):
    """音声トランスクリプト解析エラー（Gemini API等）"""

    pass


class AuthenticationError(FamilyFinError):
    """再認証の失敗（現在のパスワード不一致等）"""

    pass


class StorageError(FamilyFinError):
    """プロフィール写真のアップロード失敗"""

    pass
