"""Cloud Storage Adapter

BlobStorage ABC の Google Cloud Storage（Firebase Storage バケット）実装。
プロフィール写真の保存を行い、Firebase クライアントと同じ形式の
ダウンロード URL（トークン付き）を返す。
"""

from __future__ import annotations

import logging
import uuid
from urllib.parse import quote

from google.cloud import storage

from familyfin.domain.errors import StorageError
from familyfin.domain.ports import BlobStorage

logger = logging.getLogger(__name__)

_DOWNLOAD_URL = "https://firebasestorage.googleapis.com/v0/b/{bucket}/o/{path}?alt=media&token={token}"


class GCSBlobStorage(BlobStorage):
    """
    Google Cloud Storage を使った BlobStorage 実装。

    パス規約: profile-pictures/{uid}（同じユーザーの再アップロードは上書き）
    """

    def __init__(self, bucket_name: str, client: storage.Client | None = None) -> None:
        """
        Args:
            bucket_name: Firebase Storage のバケット名（例: "my-project.appspot.com"）
            client: 初期化済みの GCS クライアント（省略時は ADC で自動初期化）
        """
        self._client = client or storage.Client()
        self._bucket = self._client.bucket(bucket_name)
        self._bucket_name = bucket_name

    def upload(self, blob_path: str, content: bytes, content_type: str) -> str:
        """
        ファイルをアップロードし、ダウンロード URL を返す。

        Firebase の getDownloadURL() と互換にするため
        firebaseStorageDownloadTokens メタデータを毎回新しく発行する。

        Raises:
            StorageError: アップロードに失敗した場合
        """
        token = str(uuid.uuid4())
        blob = self._bucket.blob(blob_path)
        blob.metadata = {"firebaseStorageDownloadTokens": token}
        try:
            blob.upload_from_string(content, content_type=content_type)
        except Exception as e:
            logger.error(
                "Upload failed: bucket=%s, path=%s, error=%s",
                self._bucket_name,
                blob_path,
                e,
            )
            raise StorageError(f"Failed to upload {blob_path}") from e

        logger.info(
            "Uploaded: bucket=%s, path=%s, size=%d bytes",
            self._bucket_name,
            blob_path,
            len(content),
        )
        return _DOWNLOAD_URL.format(
            bucket=self._bucket_name, path=quote(blob_path, safe=""), token=token
        )
