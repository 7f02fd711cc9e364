import logging
import time
from typing import BinaryIO

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from recruitflow.config import Settings
from recruitflow.errors import UpstreamError

logger = logging.getLogger(__name__)
SANITIZE_ALLOWED = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-_")


def sanitize_token(value: str) -> str:
    """
    Keep a small set of characters to avoid unsafe S3 object keys derived from user input.
    """
    return "".join(ch for ch in (value or "") if ch in SANITIZE_ALLOWED)


def build_upload_key(folder: str, file_name: str | None, now: float | None = None) -> str:
    safe_folder = sanitize_token(folder) or "misc"
    ext = "bin"
    if file_name and "." in file_name:
        ext = sanitize_token(file_name.rsplit(".", 1)[-1].lower()) or "bin"
    timestamp = int((now if now is not None else time.time()) * 1000)
    return f"{safe_folder}/{timestamp}.{ext}"


class ObjectStorage:
    def __init__(self, settings: Settings, client=None):
        self.settings = settings
        self._client = client

    def _get_client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=self.settings.S3_ENDPOINT,
                aws_access_key_id=self.settings.S3_ACCESS_KEY,
                aws_secret_access_key=self.settings.S3_SECRET_KEY,
                config=Config(
                    signature_version="s3v4",
                    s3={"addressing_style": "path"},
                    connect_timeout=self.settings.S3_TIMEOUT_SEC,
                    read_timeout=self.settings.S3_TIMEOUT_SEC,
                    retries={"max_attempts": 1},
                ),
            )
        return self._client

    def put_object(self, bucket: str, object_key: str, body: BinaryIO | bytes, content_type: str | None) -> None:
        params = {"Bucket": bucket, "Key": object_key, "Body": body}
        if content_type:
            params["ContentType"] = content_type
        try:
            self._get_client().put_object(**params)
        except (ClientError, BotoCoreError) as exc:
            logger.exception("Upload of %s to %s failed", object_key, bucket)
            raise UpstreamError("Could not store the file") from exc

    def presign_get_object(self, bucket: str, object_key: str, expires_in: int) -> dict:
        try:
            url = self._get_client().generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": object_key},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as exc:
            raise UpstreamError("Could not sign the file URL") from exc
        return {
            "url": url,
            "object_key": object_key,
            "expires_at": int(time.time()) + expires_in,
        }
