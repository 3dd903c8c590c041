"""Object storage backed by Supabase Storage."""

import logging
from typing import List

logger = logging.getLogger(__name__)


class SupabaseObjectStorage:
    def __init__(self, client, bucket: str):
        self.client = client
        self.bucket = bucket

    def upload(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        """Upload ``data`` to ``path``, replacing any existing object."""
        logger.info("Uploading to storage: bucket=%s, path=%s, size=%s", self.bucket, path, len(data))
        self.client.storage.from_(self.bucket).upload(
            path=path,
            file=data,
            file_options={"content-type": content_type, "upsert": "true"},
        )

    def public_url(self, path: str) -> str:
        return self.client.storage.from_(self.bucket).get_public_url(path)

    def remove(self, paths: List[str]) -> None:
        if not paths:
            return
        self.client.storage.from_(self.bucket).remove(paths)
        logger.info("Deleted %s object(s) from storage: bucket=%s", len(paths), self.bucket)
